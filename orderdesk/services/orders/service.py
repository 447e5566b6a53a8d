"""
Order service coordinating orders with their shipments.

This module implements the OrderService class for creating, updating,
deleting and querying orders. It validates fields, enforces order number
uniqueness among active orders, sequences the order and shipment writes
(shipment first, so the order can reference a stored identity) and owns the
safe shipment delete: clear the order's link, persist the order, then soft
delete the shipment.
"""

from typing import Optional

from orderdesk.core.exceptions import (
    IntegrityError,
    NotFoundError,
    UniquenessError,
    ValidationError,
)
from orderdesk.core.logging import get_logger, log_performance
from orderdesk.domain.entities import Order, Shipment, is_persisted
from orderdesk.domain.enums import OrderStatus
from orderdesk.services.gateways import OrderGateway
from orderdesk.services.shipments.service import ShipmentService
from orderdesk.services.validation import (
    coerce_enum,
    require_date,
    require_decimal,
    require_positive_id,
    require_text,
)

logger = get_logger(__name__)

NUMBER_MAX_LENGTH = 20
CUSTOMER_NAME_MAX_LENGTH = 120


class OrderService:
    """
    Order service orchestrating business rules across orders and shipments.

    Attributes:
        repository: Order persistence gateway
        shipment_service: Shipment service used for every shipment write
    """

    def __init__(self, repository: OrderGateway, shipment_service: ShipmentService):
        """
        Initialize order service.

        Args:
            repository: Order persistence gateway
            shipment_service: Shipment service sharing the same unit of work
        """
        if repository is None:
            raise ValueError("repository must not be None")
        if shipment_service is None:
            raise ValueError("shipment_service must not be None")
        self.repository = repository
        self.shipment_service = shipment_service

    def validate(self, order: Order) -> None:
        """
        Validate and normalize the order's own fields in place.

        Raises:
            ValidationError: If a field is missing or out of range
        """
        if order is None:
            raise ValidationError("Order must not be None")

        order.number = require_text(order.number, "number", NUMBER_MAX_LENGTH)
        order.customer_name = require_text(
            order.customer_name, "customer_name", CUSTOMER_NAME_MAX_LENGTH
        )
        order.total = require_decimal(order.total, "total")
        order.order_date = require_date(order.order_date, "order_date")
        order.status = coerce_enum(OrderStatus, order.status, "status")

    async def _ensure_number_available(
        self, number: str, exclude_id: Optional[int] = None
    ) -> None:
        existing = await self.repository.find_active_by_number(number)
        if existing is not None and existing.id != exclude_id:
            raise UniquenessError(
                f"An order with number {number} already exists",
                field="number",
                value=number,
                existing_id=existing.id,
            )

    async def _get_required(self, order_id: int) -> Order:
        order = await self.repository.get_by_id(order_id)
        if order is None:
            raise NotFoundError(f"Order {order_id} not found", order_id=order_id)
        return order

    async def create(self, order: Order) -> Order:
        """
        Create an order, inserting or updating its shipment first.

        Every check runs before the first write: order fields, number
        uniqueness, shipment fields (dispatch date against the order date)
        and shipment tracking uniqueness.

        Args:
            order: New order, optionally carrying a shipment

        Returns:
            The order with its identity; a new shipment gets its identity too

        Raises:
            ValidationError: If a field is invalid
            UniquenessError: If the order number or tracking code is in use
            NotFoundError: If the carried shipment has an unknown identity
            IntegrityError: If the carried shipment belongs to another order
            StoreError: If the store fails
        """
        with log_performance(logger, "order.create", number=order.number if order else None):
            if order is not None and is_persisted(order):
                raise ValidationError(
                    "Order already has an identity, update it instead", order_id=order.id
                )
            self.validate(order)
            await self._ensure_number_available(order.number)

            shipment = order.shipment
            if shipment is not None:
                self.shipment_service.validate(shipment, order.order_date)
                if is_persisted(shipment):
                    stored = await self.shipment_service.get_by_id(shipment.id)
                    if stored is None:
                        raise NotFoundError(
                            f"Shipment {shipment.id} not found", shipment_id=shipment.id
                        )
                    if stored.order_id is not None:
                        raise IntegrityError(
                            f"Shipment {shipment.id} belongs to order {stored.order_id}",
                            shipment_id=shipment.id,
                            order_id=stored.order_id,
                        )
                    await self.shipment_service.ensure_tracking_available(
                        shipment.tracking, exclude_id=shipment.id
                    )
                else:
                    await self.shipment_service.ensure_tracking_available(shipment.tracking)

            # Writes: shipment first so the order row can reference its identity
            if shipment is not None:
                if is_persisted(shipment):
                    await self.shipment_service.update(shipment, order.order_date)
                else:
                    shipment.order_id = None
                    await self.shipment_service.create(shipment, order.order_date)

            order.id = None
            created = await self.repository.create(order)

        logger.info(
            "Order created",
            order_id=created.id,
            number=created.number,
            shipment_id=created.shipment_id,
        )
        return created

    async def update(self, order: Order) -> Order:
        """
        Update an order's fields and its shipment link.

        Shipment fields are never changed here; use ``update_shipment_of_order``
        or the shipment service for that. ``order.shipment`` decides the
        stored link: None clears it, a persisted shipment is linked.

        Raises:
            ValidationError: If the id, a field, or an unsaved shipment is given
            UniquenessError: If another active order has the same number
            NotFoundError: If the order or the linked shipment does not exist
            IntegrityError: If the shipment belongs to another order
            StoreError: If the store fails
        """
        require_positive_id(order.id if order else None, "order_id")

        with log_performance(logger, "order.update", order_id=order.id):
            self.validate(order)
            await self._get_required(order.id)
            await self._ensure_number_available(order.number, exclude_id=order.id)

            if order.shipment is not None:
                if not is_persisted(order.shipment):
                    raise ValidationError(
                        "Shipment must be created before it can be linked",
                        order_id=order.id,
                    )
                stored = await self.shipment_service.get_by_id(order.shipment.id)
                if stored is None:
                    raise NotFoundError(
                        f"Shipment {order.shipment.id} not found",
                        shipment_id=order.shipment.id,
                    )
                if stored.order_id not in (None, order.id):
                    raise IntegrityError(
                        f"Shipment {stored.id} belongs to order {stored.order_id}",
                        shipment_id=stored.id,
                        order_id=stored.order_id,
                    )
                if stored.dispatch_date < order.order_date:
                    raise ValidationError(
                        "Order date cannot be after the shipment dispatch date",
                        order_date=order.order_date.isoformat(),
                        dispatch_date=stored.dispatch_date.isoformat(),
                    )
                order.shipment = stored

            updated = await self.repository.update(order)

        logger.info("Order updated", order_id=updated.id, shipment_id=updated.shipment_id)
        return updated

    async def delete(self, order_id: int) -> None:
        """
        Soft delete an order; its shipment stays active and linked.

        Raises:
            ValidationError: If the id is not positive
            NotFoundError: If the order does not exist
            StoreError: If the store fails
        """
        require_positive_id(order_id, "order_id")

        changed = await self.repository.soft_delete(order_id)
        if changed:
            logger.info("Order deleted", order_id=order_id)

    async def get_by_id(self, order_id: int) -> Optional[Order]:
        """Active order by ID with its shipment resolved, or None."""
        require_positive_id(order_id, "order_id")
        return await self.repository.get_by_id(order_id)

    async def get_all(self) -> list[Order]:
        return await self.repository.list_active()

    async def find_by_number(self, number: str) -> Optional[Order]:
        """Active order with exactly this number, or None."""
        number = require_text(number, "number")
        return await self.repository.find_active_by_number(number)

    async def find_by_customer_name(self, fragment: str) -> list[Order]:
        """Active orders whose customer name contains ``fragment``, any case."""
        fragment = require_text(fragment, "customer_name")
        return await self.repository.search_by_customer_name(fragment)

    async def delete_shipment_of_order(self, order_id: int, shipment_id: int) -> None:
        """
        Safely delete the shipment of an order.

        Steps, in this order: clear ``order.shipment`` in memory, persist
        the order (the stored link becomes NULL), soft delete the shipment.
        The order never points at a deleted shipment in between.

        Args:
            order_id: Order owning the shipment
            shipment_id: Shipment to delete

        Raises:
            ValidationError: If an id is not positive
            NotFoundError: If the order does not exist
            IntegrityError: If the shipment is not the order's current one;
                nothing is written in that case
            StoreError: If the store fails
        """
        require_positive_id(order_id, "order_id")
        require_positive_id(shipment_id, "shipment_id")

        with log_performance(
            logger, "order.delete_shipment", order_id=order_id, shipment_id=shipment_id
        ):
            order = await self._get_required(order_id)
            if order.shipment is None or order.shipment.id != shipment_id:
                raise IntegrityError(
                    f"Shipment {shipment_id} does not belong to order {order_id}",
                    order_id=order_id,
                    shipment_id=shipment_id,
                    current_shipment_id=order.shipment_id,
                )

            order.shipment = None
            await self.repository.update(order)
            await self.shipment_service.delete(shipment_id)

        logger.info("Shipment of order deleted", order_id=order_id, shipment_id=shipment_id)

    async def attach_shipment(self, order_id: int, shipment: Shipment) -> Shipment:
        """
        Create a new shipment for an existing order without one.

        Raises:
            ValidationError: If the id or a shipment field is invalid, or the
                shipment is already persisted
            NotFoundError: If the order does not exist
            IntegrityError: If the order already has an active shipment
            UniquenessError: If the tracking code is in use
            StoreError: If the store fails
        """
        require_positive_id(order_id, "order_id")
        if shipment is None:
            raise ValidationError("Shipment must not be None")
        if is_persisted(shipment):
            raise ValidationError(
                "Shipment already has an identity", shipment_id=shipment.id
            )

        order = await self._get_required(order_id)
        if order.shipment is not None:
            raise IntegrityError(
                f"Order {order_id} already has shipment {order.shipment.id}",
                order_id=order_id,
                shipment_id=order.shipment.id,
            )

        shipment.order_id = order_id
        created = await self.shipment_service.create(shipment, order.order_date)
        logger.info("Shipment attached", order_id=order_id, shipment_id=created.id)
        return created

    async def update_shipment_of_order(self, order_id: int, shipment: Shipment) -> Shipment:
        """
        Update the shipment currently linked to an order.

        Raises:
            ValidationError: If an id or a shipment field is invalid
            NotFoundError: If the order does not exist
            IntegrityError: If the shipment is not the order's current one
            UniquenessError: If the tracking code belongs to another shipment
            StoreError: If the store fails
        """
        require_positive_id(order_id, "order_id")
        require_positive_id(shipment.id if shipment else None, "shipment_id")

        order = await self._get_required(order_id)
        if order.shipment is None or order.shipment.id != shipment.id:
            raise IntegrityError(
                f"Shipment {shipment.id} does not belong to order {order_id}",
                order_id=order_id,
                shipment_id=shipment.id,
            )
        return await self.shipment_service.update(shipment, order.order_date)
