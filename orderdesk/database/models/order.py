"""
Order table model.

Orders do not store a shipment column: the link lives on
``shipments.order_id`` and is resolved by the order repository with an
outer join.
"""

from datetime import date
from decimal import Decimal

from sqlalchemy import (
    CheckConstraint,
    Date,
    Enum as SQLEnum,
    Index,
    Numeric,
    String,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column

from orderdesk.database.base import SoftDeleteModel
from orderdesk.domain.enums import OrderStatus


class OrderRecord(SoftDeleteModel):
    """
    Persisted row of the ``orders`` table.

    Attributes:
        id: Store assigned identifier
        number: Order number, unique among active orders
        order_date: Date the order was placed
        customer_name: Name of the customer
        total: Order total, never negative
        status: Billing status
        deleted: Soft-delete flag (from SoftDeleteModel)
        deleted_at: Soft deletion timestamp (from SoftDeleteModel)
    """

    __tablename__ = "orders"

    number: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        comment="Order number, unique among active orders",
    )

    order_date: Mapped[date] = mapped_column(
        Date,
        nullable=False,
        comment="Date the order was placed",
    )

    customer_name: Mapped[str] = mapped_column(
        String(120),
        nullable=False,
        comment="Customer name",
    )

    total: Mapped[Decimal] = mapped_column(
        Numeric(precision=12, scale=2, asdecimal=True),
        nullable=False,
        comment="Order total",
    )

    status: Mapped[OrderStatus] = mapped_column(
        SQLEnum(OrderStatus, name="order_status", create_constraint=True),
        nullable=False,
        default=OrderStatus.NEW,
        comment="Current order status",
    )

    __table_args__ = (
        # Order number is unique among active rows only
        Index(
            "uq_orders_number_active",
            "number",
            unique=True,
            sqlite_where=text("NOT deleted"),
            postgresql_where=text("NOT deleted"),
        ),
        Index("ix_orders_customer_name", "customer_name"),
        CheckConstraint("total >= 0", name="ck_orders_total_non_negative"),
        {"comment": "Customer orders"},
    )
