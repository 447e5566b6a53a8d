"""
Shipment service enforcing shipment rules.

This module implements the ShipmentService class: full field validation,
tracking code uniqueness among active shipments, the dispatch date rule
against the owning order, the one-active-shipment-per-order rule, and the
soft delete / restore lifecycle. Status transitions are only checked when
``enforce_shipment_transitions`` is switched on.
"""

from datetime import date
from typing import Optional

from orderdesk.core.config import Settings, get_settings
from orderdesk.core.exceptions import (
    IntegrityError,
    NotFoundError,
    UniquenessError,
    ValidationError,
)
from orderdesk.core.logging import get_logger, log_performance
from orderdesk.domain.entities import Shipment, is_persisted
from orderdesk.domain.enums import (
    Carrier,
    ShipmentStatus,
    ShipmentType,
    get_allowed_shipment_transitions,
    validate_shipment_status_transition,
)
from orderdesk.services.gateways import ShipmentGateway
from orderdesk.services.validation import (
    coerce_enum,
    require_date,
    require_decimal,
    require_positive_id,
    require_text,
)

logger = get_logger(__name__)

TRACKING_MAX_LENGTH = 40


class ShipmentService:
    """
    Shipment service orchestrating validation and persistence.

    Attributes:
        repository: Shipment persistence gateway
        settings: Application settings (transition enforcement flag)
    """

    def __init__(
        self,
        repository: ShipmentGateway,
        settings: Optional[Settings] = None,
    ):
        """
        Initialize shipment service.

        Args:
            repository: Shipment persistence gateway
            settings: Optional settings, defaults to the cached instance
        """
        self.repository = repository
        self.settings = settings or get_settings()

    def validate(self, shipment: Shipment, order_date: Optional[date] = None) -> None:
        """
        Validate and normalize every shipment field in place.

        Args:
            shipment: Shipment to check
            order_date: Date of the owning order, when known

        Raises:
            ValidationError: If any field is missing or out of range
        """
        if shipment is None:
            raise ValidationError("Shipment must not be None")

        shipment.tracking = require_text(shipment.tracking, "tracking", TRACKING_MAX_LENGTH)
        shipment.carrier = coerce_enum(Carrier, shipment.carrier, "carrier")
        shipment.shipment_type = coerce_enum(
            ShipmentType, shipment.shipment_type, "shipment_type"
        )
        shipment.status = coerce_enum(ShipmentStatus, shipment.status, "status")
        shipment.cost = require_decimal(shipment.cost, "cost", inclusive=False)
        shipment.dispatch_date = require_date(shipment.dispatch_date, "dispatch_date")
        shipment.estimated_arrival = require_date(
            shipment.estimated_arrival, "estimated_arrival"
        )

        if shipment.estimated_arrival < shipment.dispatch_date:
            raise ValidationError(
                "Estimated arrival cannot be before the dispatch date",
                dispatch_date=shipment.dispatch_date.isoformat(),
                estimated_arrival=shipment.estimated_arrival.isoformat(),
            )
        if order_date is not None and shipment.dispatch_date < order_date:
            raise ValidationError(
                "Dispatch date cannot be before the order date",
                dispatch_date=shipment.dispatch_date.isoformat(),
                order_date=order_date.isoformat(),
            )

    async def ensure_tracking_available(
        self, tracking: str, exclude_id: Optional[int] = None
    ) -> None:
        """
        Check that no other active shipment uses ``tracking``.

        Raises:
            UniquenessError: If another active shipment has this tracking code
        """
        existing = await self.repository.find_active_by_tracking(tracking)
        if existing is not None and existing.id != exclude_id:
            raise UniquenessError(
                f"A shipment with tracking code {tracking} already exists",
                field="tracking",
                value=tracking,
                existing_id=existing.id,
            )

    async def _ensure_order_accepts_shipment(self, shipment: Shipment) -> date:
        order_date = await self.repository.get_order_date(shipment.order_id)
        if order_date is None:
            raise NotFoundError(
                f"Order {shipment.order_id} not found", order_id=shipment.order_id
            )
        current = await self.repository.find_active_by_order(shipment.order_id)
        if current is not None and current.id != shipment.id:
            raise IntegrityError(
                f"Order {shipment.order_id} already has shipment {current.id}",
                order_id=shipment.order_id,
                shipment_id=current.id,
            )
        return order_date

    async def create(
        self, shipment: Shipment, order_date: Optional[date] = None
    ) -> Shipment:
        """
        Validate and insert a shipment.

        If ``shipment.order_id`` is set, the order must exist, must not have
        another active shipment, and bounds the dispatch date.

        Args:
            shipment: Shipment without identity
            order_date: Date of the owning order, when the caller knows it

        Returns:
            The shipment with its store identity

        Raises:
            ValidationError: If a field is invalid or the shipment is persisted
            UniquenessError: If the tracking code is in use
            NotFoundError: If the referenced order does not exist
            IntegrityError: If the referenced order already has a shipment
            StoreError: If the store fails
        """
        if shipment is None:
            raise ValidationError("Shipment must not be None")

        with log_performance(logger, "shipment.create", tracking=shipment.tracking):
            if is_persisted(shipment):
                raise ValidationError(
                    "Shipment already has an identity, update it instead",
                    shipment_id=shipment.id,
                )
            self.validate(shipment, order_date)
            if shipment.order_id is not None:
                require_positive_id(shipment.order_id, "order_id")
                stored_order_date = await self._ensure_order_accepts_shipment(shipment)
                self.validate(shipment, stored_order_date)
            await self.ensure_tracking_available(shipment.tracking)

            shipment.id = None
            created = await self.repository.create(shipment)

        logger.info(
            "Shipment created",
            shipment_id=created.id,
            tracking=created.tracking,
            order_id=created.order_id,
        )
        return created

    async def update(
        self, shipment: Shipment, order_date: Optional[date] = None
    ) -> Shipment:
        """
        Validate and overwrite an active shipment.

        The shipment row is shared: every reader of the owning order sees
        the new values. The order link itself is not changed here.

        Args:
            shipment: Shipment with identity and new values
            order_date: Date of the owning order, looked up when omitted

        Returns:
            The updated shipment

        Raises:
            ValidationError: If the id or a field is invalid, or the status
                move is not allowed while transitions are enforced
            NotFoundError: If no active shipment has this identity
            UniquenessError: If the tracking code belongs to another shipment
            StoreError: If the store fails
        """
        if shipment is None:
            raise ValidationError("Shipment must not be None")
        require_positive_id(shipment.id, "shipment_id")

        with log_performance(logger, "shipment.update", shipment_id=shipment.id):
            self.validate(shipment, order_date)

            existing = await self.repository.get_by_id(shipment.id)
            if existing is None:
                raise NotFoundError(
                    f"Shipment {shipment.id} not found", shipment_id=shipment.id
                )

            if existing.status != shipment.status:
                allowed = validate_shipment_status_transition(existing.status, shipment.status)
                if not allowed and self.settings.enforce_shipment_transitions:
                    raise ValidationError(
                        f"Cannot move shipment from {existing.status.name} "
                        f"to {shipment.status.name}",
                        shipment_id=shipment.id,
                        allowed=sorted(
                            s.name for s in get_allowed_shipment_transitions(existing.status)
                        ),
                    )
                if not allowed:
                    logger.warning(
                        "Unusual shipment status change",
                        shipment_id=shipment.id,
                        from_status=existing.status.name,
                        to_status=shipment.status.name,
                    )

            if order_date is None and existing.order_id is not None:
                order_date = await self.repository.get_order_date(existing.order_id)
                self.validate(shipment, order_date)

            await self.ensure_tracking_available(shipment.tracking, exclude_id=shipment.id)
            updated = await self.repository.update(shipment)

        return updated

    async def delete(self, shipment_id: int) -> None:
        """
        Soft delete a shipment without looking at referencing orders.

        Deleting a shipment that is already deleted is a no-op, so a failed
        safe delete can be retried.

        Raises:
            ValidationError: If the id is not positive
            NotFoundError: If the shipment does not exist
            StoreError: If the store fails
        """
        require_positive_id(shipment_id, "shipment_id")

        changed = await self.repository.soft_delete(shipment_id)
        if changed:
            logger.info("Shipment deleted", shipment_id=shipment_id)

    async def restore(self, shipment_id: int) -> Shipment:
        """
        Clear the deleted flag of a shipment.

        Raises:
            ValidationError: If the id is not positive
            NotFoundError: If the shipment does not exist
            UniquenessError: If an active shipment now uses its tracking code
            IntegrityError: If its order now has another active shipment
            StoreError: If the store fails
        """
        require_positive_id(shipment_id, "shipment_id")

        existing = await self.repository.get_by_id(shipment_id, include_deleted=True)
        if existing is None:
            raise NotFoundError(f"Shipment {shipment_id} not found", shipment_id=shipment_id)
        if not existing.deleted:
            logger.info("Shipment already active", shipment_id=shipment_id)
            return existing

        await self.ensure_tracking_available(existing.tracking)
        if existing.order_id is not None:
            current = await self.repository.find_active_by_order(existing.order_id)
            if current is not None:
                raise IntegrityError(
                    f"Order {existing.order_id} already has shipment {current.id}",
                    order_id=existing.order_id,
                    shipment_id=current.id,
                )

        restored = await self.repository.restore(shipment_id)
        logger.info("Shipment restored", shipment_id=shipment_id)
        return restored

    async def get_by_id(self, shipment_id: int) -> Optional[Shipment]:
        """Active shipment by ID, or None."""
        require_positive_id(shipment_id, "shipment_id")
        return await self.repository.get_by_id(shipment_id)

    async def get_by_id_including_deleted(self, shipment_id: int) -> Optional[Shipment]:
        """Shipment by ID whether or not it is soft deleted, or None."""
        require_positive_id(shipment_id, "shipment_id")
        return await self.repository.get_by_id(shipment_id, include_deleted=True)

    async def get_all(self) -> list[Shipment]:
        return await self.repository.list_active()

    async def find_by_tracking(self, tracking: str) -> Optional[Shipment]:
        tracking = require_text(tracking, "tracking")
        return await self.repository.find_active_by_tracking(tracking)

    async def find_deleted_by_tracking(self, tracking: str) -> Optional[Shipment]:
        """Soft-deleted shipment with this tracking code, offered for restore."""
        tracking = require_text(tracking, "tracking")
        return await self.repository.find_deleted_by_tracking(tracking)
