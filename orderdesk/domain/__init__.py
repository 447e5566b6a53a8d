"""Entity model: orders, shipments and their enumerations."""

from orderdesk.domain.entities import (
    Order,
    Shipment,
    SoftDeletable,
    is_persisted,
)
from orderdesk.domain.enums import (
    Carrier,
    OrderStatus,
    ShipmentStatus,
    ShipmentType,
)

__all__ = [
    "Carrier",
    "Order",
    "OrderStatus",
    "Shipment",
    "ShipmentStatus",
    "ShipmentType",
    "SoftDeletable",
    "is_persisted",
]
