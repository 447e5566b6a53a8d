"""
Order input schema.

Parses the fields typed at the order prompts and builds an ``Order``
entity. Length and range limits mirror the ``orders`` table.
"""

from datetime import date
from decimal import Decimal
from typing import Any, Optional

from pydantic import Field, field_validator

from orderdesk.domain.entities import Order, Shipment
from orderdesk.domain.enums import OrderStatus
from orderdesk.schemas.base import InputModel


class OrderInput(InputModel):
    """Order fields entered at the console."""

    number: str = Field(
        ...,
        min_length=1,
        max_length=20,
        description="Order number, unique among active orders",
    )
    order_date: date = Field(..., description="Order date (YYYY-MM-DD)")
    customer_name: str = Field(
        ...,
        min_length=1,
        max_length=120,
        description="Customer name",
    )
    total: Decimal = Field(..., ge=0, decimal_places=2, description="Order total")
    status: OrderStatus = Field(default=OrderStatus.NEW, description="Order status")

    @field_validator("status", mode="before")
    @classmethod
    def parse_status(cls, v: Any) -> Any:
        """Accept status names in any case; blank keeps the default."""
        if isinstance(v, str):
            if not v.strip():
                return OrderStatus.NEW
            return OrderStatus.from_string(v)
        return v

    def to_entity(
        self,
        shipment: Optional[Shipment] = None,
        order_id: Optional[int] = None,
    ) -> Order:
        """Build an ``Order`` entity, optionally carrying identity and shipment."""
        return Order(
            id=order_id,
            number=self.number,
            order_date=self.order_date,
            customer_name=self.customer_name,
            total=self.total,
            status=self.status,
            shipment=shipment,
        )
