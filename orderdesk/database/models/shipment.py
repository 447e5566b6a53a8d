"""
Shipment table model.

``order_id`` is the only persisted form of the order/shipment link. A
partial unique index keeps at most one active shipment per order.
"""

from datetime import date
from decimal import Decimal
from typing import Optional

from sqlalchemy import (
    CheckConstraint,
    Date,
    Enum as SQLEnum,
    ForeignKey,
    Index,
    Numeric,
    String,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column

from orderdesk.database.base import SoftDeleteModel
from orderdesk.domain.enums import Carrier, ShipmentStatus, ShipmentType


class ShipmentRecord(SoftDeleteModel):
    """
    Persisted row of the ``shipments`` table.

    Attributes:
        id: Store assigned identifier
        tracking: Tracking code, unique among active shipments
        carrier: Carrying company
        shipment_type: Service level
        cost: Shipping cost, strictly positive
        dispatch_date: Date the shipment leaves
        estimated_arrival: Expected arrival, never before dispatch_date
        status: Delivery status
        order_id: Owning order, NULL once the link has been cleared
    """

    __tablename__ = "shipments"

    tracking: Mapped[str] = mapped_column(
        String(40),
        nullable=False,
        comment="Tracking code, unique among active shipments",
    )

    carrier: Mapped[Carrier] = mapped_column(
        SQLEnum(Carrier, name="shipment_carrier", create_constraint=True),
        nullable=False,
    )

    shipment_type: Mapped[ShipmentType] = mapped_column(
        SQLEnum(ShipmentType, name="shipment_type", create_constraint=True),
        nullable=False,
    )

    cost: Mapped[Decimal] = mapped_column(
        Numeric(precision=10, scale=2, asdecimal=True),
        nullable=False,
        comment="Shipping cost",
    )

    dispatch_date: Mapped[date] = mapped_column(Date, nullable=False)

    estimated_arrival: Mapped[date] = mapped_column(Date, nullable=False)

    status: Mapped[ShipmentStatus] = mapped_column(
        SQLEnum(ShipmentStatus, name="shipment_status", create_constraint=True),
        nullable=False,
        default=ShipmentStatus.PREPARING,
    )

    order_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("orders.id"),
        nullable=True,
        comment="Owning order",
    )

    __table_args__ = (
        Index(
            "uq_shipments_tracking_active",
            "tracking",
            unique=True,
            sqlite_where=text("NOT deleted"),
            postgresql_where=text("NOT deleted"),
        ),
        # Strict 1:1 between an order and its active shipment
        Index(
            "uq_shipments_order_active",
            "order_id",
            unique=True,
            sqlite_where=text("order_id IS NOT NULL AND NOT deleted"),
            postgresql_where=text("order_id IS NOT NULL AND NOT deleted"),
        ),
        CheckConstraint("cost > 0", name="ck_shipments_cost_positive"),
        CheckConstraint(
            "estimated_arrival >= dispatch_date",
            name="ck_shipments_arrival_after_dispatch",
        ),
        {"comment": "Shipments linked to orders"},
    )
