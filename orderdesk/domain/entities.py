"""
Plain data entities returned by the services.

Entities carry no persistence behaviour. An ``Order`` holds a resolved
``Shipment`` object while a ``Shipment`` only holds the integer identity of
its owning order; the repositories translate between this graph and the
``shipments.order_id`` foreign key.
"""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Optional, Protocol, runtime_checkable

from orderdesk.domain.enums import Carrier, OrderStatus, ShipmentStatus, ShipmentType


@runtime_checkable
class SoftDeletable(Protocol):
    """Anything with a store identity and a soft-delete flag."""

    id: Optional[int]
    deleted: bool


def is_persisted(entity: SoftDeletable) -> bool:
    """Return True once the store has assigned an identity."""
    return entity.id is not None and entity.id > 0


@dataclass
class Shipment:
    """A shipment dispatched for at most one order."""

    tracking: str
    carrier: Carrier
    shipment_type: ShipmentType
    cost: Decimal
    dispatch_date: date
    estimated_arrival: date
    status: ShipmentStatus = ShipmentStatus.PREPARING
    order_id: Optional[int] = None
    id: Optional[int] = None
    deleted: bool = False


@dataclass
class Order:
    """A customer order with an optional shipment."""

    number: str
    order_date: date
    customer_name: str
    total: Decimal
    status: OrderStatus = OrderStatus.NEW
    shipment: Optional[Shipment] = field(default=None)
    id: Optional[int] = None
    deleted: bool = False

    @property
    def shipment_id(self) -> Optional[int]:
        """Identity of the linked shipment, if it has been persisted."""
        if self.shipment is None:
            return None
        return self.shipment.id
