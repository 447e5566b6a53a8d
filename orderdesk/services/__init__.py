"""
Service wiring.

``open_services()`` opens one session scope and yields the order and
shipment services bound to it, so every write made through the bundle
commits or rolls back together.
"""

from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import AsyncGenerator, Optional

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from orderdesk.core.config import Settings, get_settings
from orderdesk.database.connection import get_session
from orderdesk.services.orders.repository import OrderRepository
from orderdesk.services.orders.service import OrderService
from orderdesk.services.shipments.repository import ShipmentRepository
from orderdesk.services.shipments.service import ShipmentService


@dataclass
class Services:
    """Order and shipment services sharing one unit of work."""

    orders: OrderService
    shipments: ShipmentService
    session: AsyncSession


def build_services(session: AsyncSession, settings: Optional[Settings] = None) -> Services:
    """Bind repositories and services to an existing session."""
    shipments = ShipmentService(ShipmentRepository(session), settings or get_settings())
    orders = OrderService(OrderRepository(session), shipments)
    return Services(orders=orders, shipments=shipments, session=session)


@asynccontextmanager
async def open_services(
    session_factory: Optional[async_sessionmaker[AsyncSession]] = None,
    settings: Optional[Settings] = None,
) -> AsyncGenerator[Services, None]:
    """
    Open a session scope and yield the services bound to it.

    Example:
        >>> async with open_services() as services:
        ...     await services.orders.delete_shipment_of_order(1, 1)
    """
    async with get_session(session_factory) as session:
        yield build_services(session, settings)


__all__ = [
    "OrderService",
    "Services",
    "ShipmentService",
    "build_services",
    "open_services",
]
