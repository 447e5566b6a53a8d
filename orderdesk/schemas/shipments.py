"""
Shipment input schema.

Parses the fields typed at the shipment prompts and builds a ``Shipment``
entity. Enum fields accept their names in any case.
"""

from datetime import date
from decimal import Decimal
from typing import Any, Optional

from pydantic import Field, field_validator, model_validator

from orderdesk.domain.entities import Shipment
from orderdesk.domain.enums import Carrier, ShipmentStatus, ShipmentType
from orderdesk.schemas.base import InputModel


class ShipmentInput(InputModel):
    """Shipment fields entered at the console."""

    tracking: str = Field(
        ...,
        min_length=1,
        max_length=40,
        description="Tracking code, unique among active shipments",
    )
    carrier: Carrier = Field(..., description="Carrier company")
    shipment_type: ShipmentType = Field(..., description="Service level")
    cost: Decimal = Field(..., gt=0, decimal_places=2, description="Shipping cost")
    dispatch_date: date = Field(..., description="Dispatch date (YYYY-MM-DD)")
    estimated_arrival: date = Field(..., description="Estimated arrival (YYYY-MM-DD)")
    status: ShipmentStatus = Field(
        default=ShipmentStatus.PREPARING,
        description="Shipment status",
    )

    @field_validator("carrier", mode="before")
    @classmethod
    def parse_carrier(cls, v: Any) -> Any:
        return Carrier.from_string(v) if isinstance(v, str) else v

    @field_validator("shipment_type", mode="before")
    @classmethod
    def parse_shipment_type(cls, v: Any) -> Any:
        return ShipmentType.from_string(v) if isinstance(v, str) else v

    @field_validator("status", mode="before")
    @classmethod
    def parse_status(cls, v: Any) -> Any:
        """Accept status names in any case; blank keeps the default."""
        if isinstance(v, str):
            if not v.strip():
                return ShipmentStatus.PREPARING
            return ShipmentStatus.from_string(v)
        return v

    @model_validator(mode="after")
    def validate_dates(self) -> "ShipmentInput":
        """Estimated arrival must not precede dispatch."""
        if self.estimated_arrival < self.dispatch_date:
            raise ValueError("estimated_arrival cannot be before dispatch_date")
        return self

    def to_entity(
        self,
        shipment_id: Optional[int] = None,
        order_id: Optional[int] = None,
    ) -> Shipment:
        """Build a ``Shipment`` entity, optionally carrying identity and order."""
        return Shipment(
            id=shipment_id,
            tracking=self.tracking,
            carrier=self.carrier,
            shipment_type=self.shipment_type,
            cost=self.cost,
            dispatch_date=self.dispatch_date,
            estimated_arrival=self.estimated_arrival,
            status=self.status,
            order_id=order_id,
        )
