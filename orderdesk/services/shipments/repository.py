"""
Shipment data access repository.

This module implements the ShipmentRepository class providing async methods
for inserting, updating, soft deleting and restoring shipments and for the
point lookups the coordination services need. Rows are mapped to plain
``Shipment`` entities; the owning order is exposed only as ``order_id``.
"""

from datetime import date
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from orderdesk.core.exceptions import NotFoundError
from orderdesk.core.logging import get_logger
from orderdesk.database.errors import wrap_store_errors
from orderdesk.database.models import OrderRecord, ShipmentRecord
from orderdesk.domain.entities import Shipment

logger = get_logger(__name__)

ENTITY = "shipment"


def shipment_from_record(record: ShipmentRecord) -> Shipment:
    """Map a ``shipments`` row to a ``Shipment`` entity."""
    return Shipment(
        id=record.id,
        deleted=record.deleted,
        tracking=record.tracking,
        carrier=record.carrier,
        shipment_type=record.shipment_type,
        cost=record.cost,
        dispatch_date=record.dispatch_date,
        estimated_arrival=record.estimated_arrival,
        status=record.status,
        order_id=record.order_id,
    )


def _apply_fields(record: ShipmentRecord, shipment: Shipment) -> None:
    record.tracking = shipment.tracking.strip()
    record.carrier = shipment.carrier
    record.shipment_type = shipment.shipment_type
    record.cost = shipment.cost
    record.dispatch_date = shipment.dispatch_date
    record.estimated_arrival = shipment.estimated_arrival
    record.status = shipment.status


class ShipmentRepository:
    """
    Repository for shipment data access operations.

    Methods flush their changes but never commit; the surrounding session
    scope decides whether the unit of work is committed or rolled back.
    """

    def __init__(self, session: AsyncSession):
        """
        Initialize shipment repository.

        Args:
            session: Async database session
        """
        self.session = session

    async def _get_record(
        self, shipment_id: int, include_deleted: bool = False
    ) -> Optional[ShipmentRecord]:
        stmt = select(ShipmentRecord).where(ShipmentRecord.id == shipment_id)
        if not include_deleted:
            stmt = stmt.where(ShipmentRecord.deleted.is_(False))
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def create(self, shipment: Shipment) -> Shipment:
        """
        Insert a shipment and attach the store-assigned identity.

        Args:
            shipment: Validated shipment without identity

        Returns:
            The same entity with ``id`` populated

        Raises:
            StoreError: If the insert fails
        """
        with wrap_store_errors("insert", ENTITY):
            record = ShipmentRecord(order_id=shipment.order_id, deleted=False)
            _apply_fields(record, shipment)
            self.session.add(record)
            await self.session.flush()

        shipment.id = record.id
        shipment.deleted = False

        logger.info(
            "Shipment inserted",
            shipment_id=shipment.id,
            tracking=record.tracking,
            order_id=record.order_id,
        )
        return shipment

    async def update(self, shipment: Shipment) -> Shipment:
        """
        Overwrite the fields of an active shipment.

        The order link is left untouched; order writes manage it.

        Args:
            shipment: Shipment carrying its identity and new field values

        Returns:
            The updated entity, with ``order_id`` refreshed from the store

        Raises:
            NotFoundError: If no active shipment has this identity
            StoreError: If the update fails
        """
        with wrap_store_errors("update", ENTITY, shipment.id):
            record = await self._get_record(shipment.id)
            if record is None:
                raise NotFoundError(
                    f"Shipment {shipment.id} not found", shipment_id=shipment.id
                )
            _apply_fields(record, shipment)
            await self.session.flush()

        shipment.order_id = record.order_id
        logger.info("Shipment updated", shipment_id=shipment.id)
        return shipment

    async def soft_delete(self, shipment_id: int) -> bool:
        """
        Flag a shipment as deleted.

        Args:
            shipment_id: Shipment identifier

        Returns:
            True if the flag changed, False if it was already deleted

        Raises:
            NotFoundError: If the identity does not exist at all
            StoreError: If the update fails
        """
        with wrap_store_errors("soft_delete", ENTITY, shipment_id):
            record = await self._get_record(shipment_id, include_deleted=True)
            if record is None:
                raise NotFoundError(
                    f"Shipment {shipment_id} not found", shipment_id=shipment_id
                )
            if record.is_deleted:
                logger.info("Shipment already deleted", shipment_id=shipment_id)
                return False
            record.soft_delete()
            await self.session.flush()
        return True

    async def restore(self, shipment_id: int) -> Shipment:
        """
        Clear the deleted flag of a shipment.

        Raises:
            NotFoundError: If the identity does not exist at all
            StoreError: If the update fails
        """
        with wrap_store_errors("restore", ENTITY, shipment_id):
            record = await self._get_record(shipment_id, include_deleted=True)
            if record is None:
                raise NotFoundError(
                    f"Shipment {shipment_id} not found", shipment_id=shipment_id
                )
            record.restore()
            await self.session.flush()
        return shipment_from_record(record)

    async def get_by_id(
        self, shipment_id: int, include_deleted: bool = False
    ) -> Optional[Shipment]:
        """
        Get shipment by ID.

        Args:
            shipment_id: Shipment identifier
            include_deleted: Also return soft-deleted rows

        Returns:
            Shipment if found, None otherwise
        """
        with wrap_store_errors("get", ENTITY, shipment_id):
            record = await self._get_record(shipment_id, include_deleted=include_deleted)

        if record is None:
            logger.debug("Shipment not found", shipment_id=shipment_id)
            return None
        return shipment_from_record(record)

    async def list_active(self) -> list[Shipment]:
        """Return every active shipment ordered by identity."""
        with wrap_store_errors("list", ENTITY):
            result = await self.session.execute(
                select(ShipmentRecord)
                .where(ShipmentRecord.deleted.is_(False))
                .order_by(ShipmentRecord.id)
            )
            records = result.scalars().all()

        logger.debug("Shipments listed", count=len(records))
        return [shipment_from_record(record) for record in records]

    async def find_active_by_tracking(self, tracking: str) -> Optional[Shipment]:
        """Return the active shipment with exactly this tracking code."""
        with wrap_store_errors("find_by_tracking", ENTITY):
            result = await self.session.execute(
                select(ShipmentRecord).where(
                    ShipmentRecord.tracking == tracking.strip(),
                    ShipmentRecord.deleted.is_(False),
                )
            )
            record = result.scalars().first()
        return shipment_from_record(record) if record else None

    async def find_deleted_by_tracking(self, tracking: str) -> Optional[Shipment]:
        """Return the most recent soft-deleted shipment with this tracking code."""
        with wrap_store_errors("find_by_tracking", ENTITY):
            result = await self.session.execute(
                select(ShipmentRecord)
                .where(
                    ShipmentRecord.tracking == tracking.strip(),
                    ShipmentRecord.deleted.is_(True),
                )
                .order_by(ShipmentRecord.id.desc())
            )
            record = result.scalars().first()
        return shipment_from_record(record) if record else None

    async def find_active_by_order(self, order_id: int) -> Optional[Shipment]:
        """Return the active shipment whose foreign key points at ``order_id``."""
        with wrap_store_errors("find_by_order", ENTITY):
            result = await self.session.execute(
                select(ShipmentRecord).where(
                    ShipmentRecord.order_id == order_id,
                    ShipmentRecord.deleted.is_(False),
                )
            )
            record = result.scalars().first()
        return shipment_from_record(record) if record else None

    async def get_order_date(self, order_id: int) -> Optional[date]:
        """Date of the active order ``order_id``, used for dispatch checks."""
        with wrap_store_errors("get_order_date", "order", order_id):
            result = await self.session.execute(
                select(OrderRecord.order_date).where(
                    OrderRecord.id == order_id,
                    OrderRecord.deleted.is_(False),
                )
            )
            return result.scalar_one_or_none()
