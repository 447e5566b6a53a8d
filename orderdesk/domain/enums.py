"""Closed enumerations for orders and shipments.

This module defines order status, shipment carrier, shipment type and
shipment status, together with the intended shipment status progression.
Every enum parses user input through ``from_string`` and rejects unknown
values instead of substituting a default.
"""

from enum import Enum
from typing import Dict, Set


class OrderStatus(str, Enum):
    """Order billing lifecycle status.

    Intended progression:
    - NEW -> INVOICED -> SHIPPED
    """

    NEW = "new"
    INVOICED = "invoiced"
    SHIPPED = "shipped"

    @classmethod
    def from_string(cls, value: str) -> "OrderStatus":
        """Convert string to OrderStatus enum.

        Args:
            value: String representation of status, case-insensitive

        Returns:
            OrderStatus enum value

        Raises:
            ValueError: If value is not a valid status
        """
        try:
            return cls(value.strip().lower())
        except (AttributeError, ValueError):
            valid_values = ", ".join([s.name for s in cls])
            raise ValueError(
                f"Invalid order status: {value}. "
                f"Valid values are: {valid_values}"
            )


class Carrier(str, Enum):
    """Company that carries a shipment."""

    CARRIER_A = "carrier_a"
    CARRIER_B = "carrier_b"
    CARRIER_C = "carrier_c"

    @classmethod
    def from_string(cls, value: str) -> "Carrier":
        """Convert string to Carrier enum.

        Raises:
            ValueError: If value is not a known carrier
        """
        try:
            return cls(value.strip().lower())
        except (AttributeError, ValueError):
            valid_values = ", ".join([c.name for c in cls])
            raise ValueError(
                f"Invalid carrier: {value}. Valid values are: {valid_values}"
            )


class ShipmentType(str, Enum):
    """Service level of a shipment."""

    STANDARD = "standard"
    EXPRESS = "express"

    @classmethod
    def from_string(cls, value: str) -> "ShipmentType":
        """Convert string to ShipmentType enum.

        Raises:
            ValueError: If value is not a known shipment type
        """
        try:
            return cls(value.strip().lower())
        except (AttributeError, ValueError):
            valid_values = ", ".join([t.name for t in cls])
            raise ValueError(
                f"Invalid shipment type: {value}. Valid values are: {valid_values}"
            )


class ShipmentStatus(str, Enum):
    """Shipment delivery status.

    Intended progression (not enforced unless configured):
    - PREPARING -> IN_TRANSIT
    - IN_TRANSIT -> DELIVERED
    - DELIVERED -> (terminal state)
    """

    PREPARING = "preparing"
    IN_TRANSIT = "in_transit"
    DELIVERED = "delivered"

    @classmethod
    def from_string(cls, value: str) -> "ShipmentStatus":
        """Convert string to ShipmentStatus enum.

        Args:
            value: String representation of status, case-insensitive

        Returns:
            ShipmentStatus enum value

        Raises:
            ValueError: If value is not a valid shipment status
        """
        try:
            return cls(value.strip().lower())
        except (AttributeError, ValueError):
            valid_values = ", ".join([s.name for s in cls])
            raise ValueError(
                f"Invalid shipment status: {value}. "
                f"Valid values are: {valid_values}"
            )


SHIPMENT_STATUS_TRANSITIONS: Dict[ShipmentStatus, Set[ShipmentStatus]] = {
    ShipmentStatus.PREPARING: {ShipmentStatus.IN_TRANSIT},
    ShipmentStatus.IN_TRANSIT: {ShipmentStatus.DELIVERED},
    ShipmentStatus.DELIVERED: set(),  # Terminal
}


def validate_shipment_status_transition(
    current: ShipmentStatus,
    new: ShipmentStatus,
) -> bool:
    """Validate if shipment status transition is allowed.

    Keeping the current status is always allowed.

    Args:
        current: Current shipment status
        new: Desired new status

    Returns:
        True if transition is valid
    """
    if current == new:
        return True
    return new in SHIPMENT_STATUS_TRANSITIONS.get(current, set())


def get_allowed_shipment_transitions(current: ShipmentStatus) -> Set[ShipmentStatus]:
    """Get all allowed transitions from current shipment status."""
    return SHIPMENT_STATUS_TRANSITIONS.get(current, set()).copy()
