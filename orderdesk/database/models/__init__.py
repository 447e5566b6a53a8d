"""
Database models package initialization.

Models are imported here to ensure they are registered with the Base
metadata before ``create_all`` builds the schema.
"""

from orderdesk.database.base import (
    Base,
    IntegerIdMixin,
    SoftDeleteMixin,
    SoftDeleteModel,
    TimestampMixin,
)
from orderdesk.database.models.order import OrderRecord
from orderdesk.database.models.shipment import ShipmentRecord

__all__ = [
    "Base",
    "IntegerIdMixin",
    "OrderRecord",
    "ShipmentRecord",
    "SoftDeleteMixin",
    "SoftDeleteModel",
    "TimestampMixin",
]
