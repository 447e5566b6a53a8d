"""
Pytest configuration and shared test fixtures.

This module provides an in-memory SQLite store per test, services bound to
a single session, in-memory fake gateways for service unit tests, and
factories for sample orders and shipments.
"""

import copy
from datetime import date
from decimal import Decimal
from typing import AsyncGenerator, Callable, Optional

import pytest
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from orderdesk.core.config import Settings
from orderdesk.core.exceptions import NotFoundError
from orderdesk.database.connection import (
    create_engine,
    create_schema,
    create_session_factory,
)
from orderdesk.domain.entities import Order, Shipment
from orderdesk.domain.enums import Carrier, OrderStatus, ShipmentStatus, ShipmentType
from orderdesk.services import Services, build_services
from orderdesk.services.orders.service import OrderService
from orderdesk.services.shipments.service import ShipmentService


# ============================================================================
# Settings and store fixtures
# ============================================================================


@pytest.fixture
def test_settings() -> Settings:
    """Settings pointing at an in-memory store, transitions not enforced."""
    return Settings(
        database_url="sqlite+aiosqlite://",
        environment="test",
        enforce_shipment_transitions=False,
    )


@pytest.fixture
async def engine(test_settings: Settings) -> AsyncGenerator[AsyncEngine, None]:
    """
    Create an in-memory SQLite engine with the schema in place.

    Yields:
        AsyncEngine: Engine disposed after the test
    """
    engine = create_engine(test_settings.database_url)
    await create_schema(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return create_session_factory(engine)


@pytest.fixture
async def session(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    """
    Open a session for the test; uncommitted work is rolled back afterwards.

    Yields:
        AsyncSession: Session shared by repositories and services
    """
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
def services(session: AsyncSession, test_settings: Settings) -> Services:
    """Order and shipment services bound to the test session."""
    return build_services(session, test_settings)


# ============================================================================
# Entity factories
# ============================================================================


@pytest.fixture
def make_shipment() -> Callable[..., Shipment]:
    """
    Factory for valid unsaved shipments.

    Example:
        shipment = make_shipment(tracking="TRK-2", cost=Decimal("5.00"))
    """

    def _make(**overrides) -> Shipment:
        fields = {
            "tracking": "TRK-0001",
            "carrier": Carrier.CARRIER_A,
            "shipment_type": ShipmentType.STANDARD,
            "cost": Decimal("15.50"),
            "dispatch_date": date(2024, 1, 12),
            "estimated_arrival": date(2024, 1, 15),
            "status": ShipmentStatus.PREPARING,
        }
        fields.update(overrides)
        return Shipment(**fields)

    return _make


@pytest.fixture
def make_order() -> Callable[..., Order]:
    """
    Factory for valid unsaved orders.

    Example:
        order = make_order(number="A-2", shipment=make_shipment())
    """

    def _make(**overrides) -> Order:
        fields = {
            "number": "A-1",
            "order_date": date(2024, 1, 10),
            "customer_name": "Ada Lovelace",
            "total": Decimal("120.00"),
            "status": OrderStatus.NEW,
        }
        fields.update(overrides)
        return Order(**fields)

    return _make


# ============================================================================
# In-memory gateways
# ============================================================================


class FakeStore:
    """
    Shared in-memory rows for the fake gateways.

    ``writes`` records every mutating call in order, e.g.
    ``("order.update", 1)`` or ``("shipment.soft_delete", 3)``.
    """

    def __init__(self):
        self.orders: dict[int, Order] = {}
        self.shipments: dict[int, Shipment] = {}
        self.writes: list[tuple[str, int]] = []
        self._next_order_id = 1
        self._next_shipment_id = 1

    def next_order_id(self) -> int:
        value = self._next_order_id
        self._next_order_id += 1
        return value

    def next_shipment_id(self) -> int:
        value = self._next_shipment_id
        self._next_shipment_id += 1
        return value

    def active_shipment_of(self, order_id: int) -> Optional[Shipment]:
        for shipment in self.shipments.values():
            if shipment.order_id == order_id and not shipment.deleted:
                return shipment
        return None


class FakeShipmentGateway:
    """Dictionary backed stand-in for ``ShipmentRepository``."""

    def __init__(self, store: FakeStore):
        self.store = store

    async def create(self, shipment: Shipment) -> Shipment:
        shipment.id = self.store.next_shipment_id()
        shipment.deleted = False
        self.store.shipments[shipment.id] = copy.deepcopy(shipment)
        self.store.writes.append(("shipment.create", shipment.id))
        return shipment

    async def update(self, shipment: Shipment) -> Shipment:
        stored = self.store.shipments.get(shipment.id)
        if stored is None or stored.deleted:
            raise NotFoundError(f"Shipment {shipment.id} not found")
        shipment.order_id = stored.order_id
        self.store.shipments[shipment.id] = copy.deepcopy(shipment)
        self.store.writes.append(("shipment.update", shipment.id))
        return shipment

    async def soft_delete(self, shipment_id: int) -> bool:
        stored = self.store.shipments.get(shipment_id)
        if stored is None:
            raise NotFoundError(f"Shipment {shipment_id} not found")
        if stored.deleted:
            return False
        stored.deleted = True
        self.store.writes.append(("shipment.soft_delete", shipment_id))
        return True

    async def restore(self, shipment_id: int) -> Shipment:
        stored = self.store.shipments.get(shipment_id)
        if stored is None:
            raise NotFoundError(f"Shipment {shipment_id} not found")
        stored.deleted = False
        self.store.writes.append(("shipment.restore", shipment_id))
        return copy.deepcopy(stored)

    async def get_by_id(
        self, shipment_id: int, include_deleted: bool = False
    ) -> Optional[Shipment]:
        stored = self.store.shipments.get(shipment_id)
        if stored is None or (stored.deleted and not include_deleted):
            return None
        return copy.deepcopy(stored)

    async def list_active(self) -> list[Shipment]:
        return [copy.deepcopy(s) for s in self.store.shipments.values() if not s.deleted]

    async def find_active_by_tracking(self, tracking: str) -> Optional[Shipment]:
        for shipment in self.store.shipments.values():
            if shipment.tracking == tracking.strip() and not shipment.deleted:
                return copy.deepcopy(shipment)
        return None

    async def find_deleted_by_tracking(self, tracking: str) -> Optional[Shipment]:
        for shipment in reversed(list(self.store.shipments.values())):
            if shipment.tracking == tracking.strip() and shipment.deleted:
                return copy.deepcopy(shipment)
        return None

    async def find_active_by_order(self, order_id: int) -> Optional[Shipment]:
        shipment = self.store.active_shipment_of(order_id)
        return copy.deepcopy(shipment) if shipment else None

    async def get_order_date(self, order_id: int) -> Optional[date]:
        order = self.store.orders.get(order_id)
        if order is None or order.deleted:
            return None
        return order.order_date


class FakeOrderGateway:
    """Dictionary backed stand-in for ``OrderRepository``."""

    def __init__(self, store: FakeStore):
        self.store = store

    def _hydrate(self, order: Order) -> Order:
        hydrated = copy.deepcopy(order)
        shipment = self.store.active_shipment_of(order.id)
        hydrated.shipment = copy.deepcopy(shipment) if shipment else None
        return hydrated

    def _sync_link(self, order: Order) -> None:
        keep_id = order.shipment_id
        for shipment in self.store.shipments.values():
            if shipment.order_id == order.id and not shipment.deleted and shipment.id != keep_id:
                shipment.order_id = None
        if keep_id is not None:
            self.store.shipments[keep_id].order_id = order.id
            order.shipment.order_id = order.id

    async def create(self, order: Order) -> Order:
        order.id = self.store.next_order_id()
        order.deleted = False
        stored = copy.deepcopy(order)
        stored.shipment = None
        self.store.orders[order.id] = stored
        self._sync_link(order)
        self.store.writes.append(("order.create", order.id))
        return order

    async def update(self, order: Order) -> Order:
        stored = self.store.orders.get(order.id)
        if stored is None or stored.deleted:
            raise NotFoundError(f"Order {order.id} not found")
        replacement = copy.deepcopy(order)
        replacement.shipment = None
        self.store.orders[order.id] = replacement
        self._sync_link(order)
        self.store.writes.append(("order.update", order.id))
        return order

    async def soft_delete(self, order_id: int) -> bool:
        stored = self.store.orders.get(order_id)
        if stored is None:
            raise NotFoundError(f"Order {order_id} not found")
        if stored.deleted:
            return False
        stored.deleted = True
        self.store.writes.append(("order.soft_delete", order_id))
        return True

    async def get_by_id(self, order_id: int) -> Optional[Order]:
        stored = self.store.orders.get(order_id)
        if stored is None or stored.deleted:
            return None
        return self._hydrate(stored)

    async def list_active(self) -> list[Order]:
        return [self._hydrate(o) for o in self.store.orders.values() if not o.deleted]

    async def find_active_by_number(self, number: str) -> Optional[Order]:
        for order in self.store.orders.values():
            if order.number == number.strip() and not order.deleted:
                return self._hydrate(order)
        return None

    async def search_by_customer_name(self, fragment: str) -> list[Order]:
        needle = fragment.strip().lower()
        return [
            self._hydrate(o)
            for o in self.store.orders.values()
            if not o.deleted and needle in o.customer_name.lower()
        ]


@pytest.fixture
def fake_store() -> FakeStore:
    return FakeStore()


@pytest.fixture
def shipment_gateway(fake_store: FakeStore) -> FakeShipmentGateway:
    return FakeShipmentGateway(fake_store)


@pytest.fixture
def shipment_service(
    shipment_gateway: FakeShipmentGateway, test_settings: Settings
) -> ShipmentService:
    """ShipmentService over the in-memory gateway."""
    return ShipmentService(shipment_gateway, test_settings)


@pytest.fixture
def order_service(fake_store: FakeStore, shipment_service: ShipmentService) -> OrderService:
    """OrderService over the in-memory gateways."""
    return OrderService(FakeOrderGateway(fake_store), shipment_service)
