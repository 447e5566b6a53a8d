"""
Persistence gateway interfaces consumed by the services.

The services depend on these protocols rather than on the SQLAlchemy
repositories, so tests can pass in-memory implementations.
"""

from datetime import date
from typing import Optional, Protocol

from orderdesk.domain.entities import Order, Shipment


class ShipmentGateway(Protocol):
    async def create(self, shipment: Shipment) -> Shipment:
        """Insert ``shipment`` and set its store identity."""
        ...

    async def update(self, shipment: Shipment) -> Shipment:
        """Overwrite the fields of an active shipment, leaving its order link."""
        ...

    async def soft_delete(self, shipment_id: int) -> bool:
        """Flag the shipment deleted; False if it already was."""
        ...

    async def restore(self, shipment_id: int) -> Shipment:
        """Clear the deleted flag and return the restored shipment."""
        ...

    async def get_by_id(
        self, shipment_id: int, include_deleted: bool = False
    ) -> Optional[Shipment]:
        ...

    async def list_active(self) -> list[Shipment]:
        ...

    async def find_active_by_tracking(self, tracking: str) -> Optional[Shipment]:
        ...

    async def find_deleted_by_tracking(self, tracking: str) -> Optional[Shipment]:
        ...

    async def find_active_by_order(self, order_id: int) -> Optional[Shipment]:
        ...

    async def get_order_date(self, order_id: int) -> Optional[date]:
        """Date of the active order with ``order_id``, if any."""
        ...


class OrderGateway(Protocol):
    async def create(self, order: Order) -> Order:
        """Insert ``order``, set its identity and link its persisted shipment."""
        ...

    async def update(self, order: Order) -> Order:
        """Overwrite an active order and make the stored link match ``order.shipment``."""
        ...

    async def soft_delete(self, order_id: int) -> bool:
        """Flag the order deleted; False if it already was."""
        ...

    async def get_by_id(self, order_id: int) -> Optional[Order]:
        ...

    async def list_active(self) -> list[Order]:
        ...

    async def find_active_by_number(self, number: str) -> Optional[Order]:
        ...

    async def search_by_customer_name(self, fragment: str) -> list[Order]:
        ...
