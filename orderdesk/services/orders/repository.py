"""
Order data access repository.

This module implements the OrderRepository class providing async methods for
inserting, updating, soft deleting and querying orders. Reads resolve the
order's shipment with an outer join on ``shipments.order_id`` restricted to
active shipments, and writes keep that foreign key in line with the
in-memory ``Order.shipment`` reference.
"""

from typing import Optional

from sqlalchemy import Select, and_, select
from sqlalchemy.ext.asyncio import AsyncSession

from orderdesk.core.exceptions import NotFoundError
from orderdesk.core.logging import get_logger
from orderdesk.database.errors import wrap_store_errors
from orderdesk.database.models import OrderRecord, ShipmentRecord
from orderdesk.domain.entities import Order
from orderdesk.services.shipments.repository import shipment_from_record

logger = get_logger(__name__)

ENTITY = "order"


def order_from_row(
    record: OrderRecord, shipment_record: Optional[ShipmentRecord]
) -> Order:
    """Map an ``orders`` row and its joined shipment row to an ``Order``."""
    return Order(
        id=record.id,
        deleted=record.deleted,
        number=record.number,
        order_date=record.order_date,
        customer_name=record.customer_name,
        total=record.total,
        status=record.status,
        shipment=shipment_from_record(shipment_record) if shipment_record else None,
    )


def _apply_fields(record: OrderRecord, order: Order) -> None:
    record.number = order.number.strip()
    record.order_date = order.order_date
    record.customer_name = order.customer_name.strip()
    record.total = order.total
    record.status = order.status


def _hydrated_select() -> Select:
    return (
        select(OrderRecord, ShipmentRecord)
        .outerjoin(
            ShipmentRecord,
            and_(
                ShipmentRecord.order_id == OrderRecord.id,
                ShipmentRecord.deleted.is_(False),
            ),
        )
        .where(OrderRecord.deleted.is_(False))
    )


class OrderRepository:
    """
    Repository for order data access operations.

    Methods flush their changes but never commit; the surrounding session
    scope decides whether the unit of work is committed or rolled back.
    """

    def __init__(self, session: AsyncSession):
        """
        Initialize order repository.

        Args:
            session: Async database session
        """
        self.session = session

    async def _get_record(
        self, order_id: int, include_deleted: bool = False
    ) -> Optional[OrderRecord]:
        stmt = select(OrderRecord).where(OrderRecord.id == order_id)
        if not include_deleted:
            stmt = stmt.where(OrderRecord.deleted.is_(False))
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def _sync_shipment_link(self, order: Order) -> None:
        """
        Make ``shipments.order_id`` match ``order.shipment``.

        Active shipments that point at this order but are no longer its
        shipment get their link cleared; the current shipment, if persisted,
        is pointed at the order.
        """
        keep_id = order.shipment_id

        result = await self.session.execute(
            select(ShipmentRecord).where(
                ShipmentRecord.order_id == order.id,
                ShipmentRecord.deleted.is_(False),
            )
        )
        for linked in result.scalars().all():
            if linked.id != keep_id:
                linked.order_id = None
                logger.info(
                    "Shipment link cleared",
                    order_id=order.id,
                    shipment_id=linked.id,
                )
        # Clear before linking so the one-shipment-per-order index never sees two rows
        await self.session.flush()

        if keep_id is not None:
            shipment_record = await self.session.get(ShipmentRecord, keep_id)
            if shipment_record is None:
                raise NotFoundError(
                    f"Shipment {keep_id} not found",
                    shipment_id=keep_id,
                    order_id=order.id,
                )
            shipment_record.order_id = order.id
            order.shipment.order_id = order.id

        await self.session.flush()

    async def create(self, order: Order) -> Order:
        """
        Insert an order and attach the store-assigned identity.

        If ``order.shipment`` is already persisted its foreign key is pointed
        at the new order in the same flush sequence.

        Args:
            order: Validated order without identity

        Returns:
            The same entity with ``id`` populated

        Raises:
            StoreError: If the insert fails
        """
        with wrap_store_errors("insert", ENTITY):
            record = OrderRecord(deleted=False)
            _apply_fields(record, order)
            self.session.add(record)
            await self.session.flush()

            order.id = record.id
            order.deleted = False

            if order.shipment is not None:
                await self._sync_shipment_link(order)

        logger.info(
            "Order inserted",
            order_id=order.id,
            number=record.number,
            shipment_id=order.shipment_id,
        )
        return order

    async def update(self, order: Order) -> Order:
        """
        Overwrite an active order and synchronize its shipment link.

        Args:
            order: Order carrying its identity and new field values

        Returns:
            The updated entity

        Raises:
            NotFoundError: If no active order has this identity
            StoreError: If the update fails
        """
        with wrap_store_errors("update", ENTITY, order.id):
            record = await self._get_record(order.id)
            if record is None:
                raise NotFoundError(f"Order {order.id} not found", order_id=order.id)
            _apply_fields(record, order)
            await self.session.flush()
            await self._sync_shipment_link(order)

        logger.info(
            "Order updated",
            order_id=order.id,
            shipment_id=order.shipment_id,
        )
        return order

    async def soft_delete(self, order_id: int) -> bool:
        """
        Flag an order as deleted, leaving its shipment untouched.

        Returns:
            True if the flag changed, False if it was already deleted

        Raises:
            NotFoundError: If the identity does not exist at all
            StoreError: If the update fails
        """
        with wrap_store_errors("soft_delete", ENTITY, order_id):
            record = await self._get_record(order_id, include_deleted=True)
            if record is None:
                raise NotFoundError(f"Order {order_id} not found", order_id=order_id)
            if record.is_deleted:
                logger.info("Order already deleted", order_id=order_id)
                return False
            record.soft_delete()
            await self.session.flush()
        return True

    async def get_by_id(self, order_id: int) -> Optional[Order]:
        """
        Get active order by ID with its active shipment resolved.

        Args:
            order_id: Order identifier

        Returns:
            Order if found, None otherwise
        """
        with wrap_store_errors("get", ENTITY, order_id):
            result = await self.session.execute(
                _hydrated_select().where(OrderRecord.id == order_id)
            )
            row = result.first()

        if row is None:
            logger.debug("Order not found", order_id=order_id)
            return None
        return order_from_row(row[0], row[1])

    async def list_active(self) -> list[Order]:
        """Return every active order ordered by identity."""
        with wrap_store_errors("list", ENTITY):
            result = await self.session.execute(
                _hydrated_select().order_by(OrderRecord.id)
            )
            rows = result.all()

        logger.debug("Orders listed", count=len(rows))
        return [order_from_row(row[0], row[1]) for row in rows]

    async def find_active_by_number(self, number: str) -> Optional[Order]:
        """
        Get the active order with exactly this number.

        Args:
            number: Order number, surrounding whitespace ignored

        Returns:
            Order if found, None otherwise
        """
        with wrap_store_errors("find_by_number", ENTITY):
            result = await self.session.execute(
                _hydrated_select().where(OrderRecord.number == number.strip())
            )
            row = result.first()
        return order_from_row(row[0], row[1]) if row else None

    async def search_by_customer_name(self, fragment: str) -> list[Order]:
        """
        Case-insensitive substring search on the customer name.

        Wildcard characters in ``fragment`` are matched literally.

        Args:
            fragment: Part of the customer name

        Returns:
            Matching active orders ordered by identity
        """
        with wrap_store_errors("search_by_customer_name", ENTITY):
            result = await self.session.execute(
                _hydrated_select()
                .where(OrderRecord.customer_name.icontains(fragment.strip(), autoescape=True))
                .order_by(OrderRecord.id)
            )
            rows = result.all()

        logger.debug("Orders searched by customer name", fragment=fragment, count=len(rows))
        return [order_from_row(row[0], row[1]) for row in rows]
