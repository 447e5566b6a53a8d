"""
Test suite for OrderService business rules.

Runs against in-memory gateways so write ordering and the absence of
writes on failed checks can be asserted directly.
"""

from datetime import date
from decimal import Decimal

import pytest

from orderdesk.core.exceptions import (
    IntegrityError,
    NotFoundError,
    UniquenessError,
    ValidationError,
)
from orderdesk.domain.enums import OrderStatus


# ============================================================================
# Order creation
# ============================================================================


class TestOrderCreation:
    """Test suite for order creation."""

    @pytest.mark.asyncio
    async def test_create_order_without_shipment(self, order_service, make_order, fake_store):
        order = await order_service.create(make_order())

        assert order.id == 1
        assert order.shipment is None
        assert fake_store.writes == [("order.create", 1)]

    @pytest.mark.asyncio
    async def test_create_order_inserts_shipment_first(
        self, order_service, make_order, make_shipment, fake_store
    ):
        order = await order_service.create(make_order(shipment=make_shipment()))

        assert order.id == 1
        assert order.shipment.id == 1
        assert order.shipment.order_id == 1
        assert fake_store.writes == [("shipment.create", 1), ("order.create", 1)]
        assert fake_store.shipments[1].order_id == 1

    @pytest.mark.asyncio
    async def test_create_order_normalizes_fields(self, order_service, make_order):
        order = await order_service.create(
            make_order(number="  A-7 ", customer_name=" Grace ", total=12.5, status="invoiced")
        )

        assert order.number == "A-7"
        assert order.customer_name == "Grace"
        assert order.total == Decimal("12.5")
        assert order.status is OrderStatus.INVOICED

    @pytest.mark.asyncio
    async def test_create_duplicate_number_rejected(self, order_service, make_order, fake_store):
        await order_service.create(make_order(number="A-1"))
        fake_store.writes.clear()

        with pytest.raises(UniquenessError) as exc_info:
            await order_service.create(make_order(number="A-1"))

        assert exc_info.value.field == "number"
        assert fake_store.writes == []

    @pytest.mark.asyncio
    async def test_number_reusable_after_soft_delete(self, order_service, make_order):
        first = await order_service.create(make_order(number="A-1"))
        await order_service.delete(first.id)

        second = await order_service.create(make_order(number="A-1"))

        assert second.id != first.id

    @pytest.mark.parametrize(
        "overrides",
        [
            {"number": ""},
            {"number": "   "},
            {"number": "N" * 21},
            {"customer_name": ""},
            {"customer_name": "c" * 121},
            {"total": Decimal("-0.01")},
            {"total": Decimal("10.005")},
            {"total": None},
            {"order_date": None},
            {"status": "cancelled"},
        ],
    )
    @pytest.mark.asyncio
    async def test_create_invalid_order_rejected(
        self, order_service, make_order, fake_store, overrides
    ):
        with pytest.raises(ValidationError):
            await order_service.create(make_order(**overrides))

        assert fake_store.writes == []

    @pytest.mark.asyncio
    async def test_create_accepts_zero_total(self, order_service, make_order):
        order = await order_service.create(make_order(total=Decimal("0")))

        assert order.total == Decimal("0")

    @pytest.mark.asyncio
    async def test_create_total_with_three_decimals_rejected(
        self, order_service, make_order, fake_store
    ):
        with pytest.raises(ValidationError) as exc_info:
            await order_service.create(make_order(total=Decimal("10.005")))

        assert exc_info.value.context["field"] == "total"
        assert fake_store.writes == []

    @pytest.mark.asyncio
    async def test_create_accepts_trailing_zeros(self, order_service, make_order):
        order = await order_service.create(make_order(total=Decimal("10.500")))

        assert order.total == Decimal("10.50")

    @pytest.mark.asyncio
    async def test_create_rejects_order_with_identity(self, order_service, make_order):
        with pytest.raises(ValidationError):
            await order_service.create(make_order(id=5))

    @pytest.mark.asyncio
    async def test_shipment_dispatched_before_order_rejected(
        self, order_service, make_order, make_shipment, fake_store
    ):
        order = make_order(
            order_date=date(2024, 1, 10),
            shipment=make_shipment(dispatch_date=date(2024, 1, 9)),
        )

        with pytest.raises(ValidationError):
            await order_service.create(order)

        assert fake_store.writes == []

    @pytest.mark.asyncio
    async def test_shipment_arrival_before_dispatch_rejected(
        self, order_service, make_order, make_shipment, fake_store
    ):
        order = make_order(
            shipment=make_shipment(
                dispatch_date=date(2024, 1, 12), estimated_arrival=date(2024, 1, 11)
            )
        )

        with pytest.raises(ValidationError):
            await order_service.create(order)

        assert fake_store.writes == []

    @pytest.mark.asyncio
    async def test_duplicate_tracking_rejected_before_any_write(
        self, order_service, shipment_service, make_order, make_shipment, fake_store
    ):
        await shipment_service.create(make_shipment(tracking="TRK-9"))
        fake_store.writes.clear()

        with pytest.raises(UniquenessError) as exc_info:
            await order_service.create(make_order(shipment=make_shipment(tracking="TRK-9")))

        assert exc_info.value.field == "tracking"
        assert fake_store.writes == []

    @pytest.mark.asyncio
    async def test_create_links_existing_unowned_shipment(
        self, order_service, shipment_service, make_order, make_shipment, fake_store
    ):
        shipment = await shipment_service.create(make_shipment())
        fake_store.writes.clear()

        order = await order_service.create(make_order(shipment=shipment))

        assert fake_store.writes == [("shipment.update", shipment.id), ("order.create", order.id)]
        assert fake_store.shipments[shipment.id].order_id == order.id

    @pytest.mark.asyncio
    async def test_create_rejects_shipment_owned_by_other_order(
        self, order_service, make_order, make_shipment, fake_store
    ):
        first = await order_service.create(make_order(number="A-1", shipment=make_shipment()))
        fake_store.writes.clear()

        with pytest.raises(IntegrityError):
            await order_service.create(make_order(number="A-2", shipment=first.shipment))

        assert fake_store.writes == []

    @pytest.mark.asyncio
    async def test_create_rejects_unknown_shipment_identity(
        self, order_service, make_order, make_shipment
    ):
        with pytest.raises(NotFoundError):
            await order_service.create(make_order(shipment=make_shipment(id=42)))


# ============================================================================
# Order update
# ============================================================================


class TestOrderUpdate:
    """Test suite for order updates."""

    @pytest.mark.asyncio
    async def test_update_fields(self, order_service, make_order):
        order = await order_service.create(make_order())
        order.customer_name = "Grace Hopper"
        order.status = OrderStatus.INVOICED

        await order_service.update(order)
        stored = await order_service.get_by_id(order.id)

        assert stored.customer_name == "Grace Hopper"
        assert stored.status is OrderStatus.INVOICED

    @pytest.mark.asyncio
    async def test_update_keeps_own_number(self, order_service, make_order):
        order = await order_service.create(make_order(number="A-1"))
        order.total = Decimal("99.99")

        updated = await order_service.update(order)

        assert updated.number == "A-1"

    @pytest.mark.asyncio
    async def test_update_number_clash_rejected(self, order_service, make_order, fake_store):
        await order_service.create(make_order(number="A-1"))
        second = await order_service.create(make_order(number="A-2"))
        fake_store.writes.clear()
        second.number = "A-1"

        with pytest.raises(UniquenessError):
            await order_service.update(second)

        assert fake_store.writes == []

    @pytest.mark.parametrize("order_id", [None, 0, -3])
    @pytest.mark.asyncio
    async def test_update_requires_positive_id(self, order_service, make_order, order_id):
        with pytest.raises(ValidationError):
            await order_service.update(make_order(id=order_id))

    @pytest.mark.asyncio
    async def test_update_missing_order(self, order_service, make_order):
        with pytest.raises(NotFoundError):
            await order_service.update(make_order(id=77))

    @pytest.mark.asyncio
    async def test_update_missing_order_with_taken_number(self, order_service, make_order):
        await order_service.create(make_order(number="A-1"))

        with pytest.raises(NotFoundError):
            await order_service.update(make_order(id=77, number="A-1"))

    @pytest.mark.asyncio
    async def test_update_rejects_unsaved_shipment(
        self, order_service, make_order, make_shipment
    ):
        order = await order_service.create(make_order())
        order.shipment = make_shipment()

        with pytest.raises(ValidationError):
            await order_service.update(order)

    @pytest.mark.asyncio
    async def test_update_rejects_shipment_of_other_order(
        self, order_service, make_order, make_shipment
    ):
        first = await order_service.create(make_order(number="A-1", shipment=make_shipment()))
        second = await order_service.create(make_order(number="A-2"))
        second.shipment = first.shipment

        with pytest.raises(IntegrityError):
            await order_service.update(second)

    @pytest.mark.asyncio
    async def test_update_clearing_shipment_unlinks_it(
        self, order_service, make_order, make_shipment, fake_store
    ):
        order = await order_service.create(make_order(shipment=make_shipment()))
        shipment_id = order.shipment.id
        order.shipment = None

        await order_service.update(order)

        assert fake_store.shipments[shipment_id].order_id is None
        assert fake_store.shipments[shipment_id].deleted is False

    @pytest.mark.asyncio
    async def test_update_order_date_after_dispatch_rejected(
        self, order_service, make_order, make_shipment
    ):
        order = await order_service.create(make_order(shipment=make_shipment()))
        order.order_date = date(2024, 2, 1)

        with pytest.raises(ValidationError):
            await order_service.update(order)


# ============================================================================
# Delete and queries
# ============================================================================


class TestOrderDeleteAndQueries:
    """Test suite for soft delete and read operations."""

    @pytest.mark.asyncio
    async def test_delete_keeps_shipment_active(
        self, order_service, shipment_service, make_order, make_shipment
    ):
        order = await order_service.create(make_order(shipment=make_shipment()))

        await order_service.delete(order.id)

        assert await order_service.get_by_id(order.id) is None
        shipment = await shipment_service.get_by_id(order.shipment.id)
        assert shipment is not None
        assert shipment.order_id == order.id

    @pytest.mark.asyncio
    async def test_delete_twice_is_noop(self, order_service, make_order, fake_store):
        order = await order_service.create(make_order())
        await order_service.delete(order.id)
        fake_store.writes.clear()

        await order_service.delete(order.id)

        assert fake_store.writes == []

    @pytest.mark.asyncio
    async def test_delete_missing_order(self, order_service):
        with pytest.raises(NotFoundError):
            await order_service.delete(99)

    @pytest.mark.parametrize("order_id", [0, -1])
    @pytest.mark.asyncio
    async def test_delete_requires_positive_id(self, order_service, order_id):
        with pytest.raises(ValidationError):
            await order_service.delete(order_id)

    @pytest.mark.asyncio
    async def test_get_by_id_missing_returns_none(self, order_service):
        assert await order_service.get_by_id(12) is None

    @pytest.mark.asyncio
    async def test_get_all_excludes_deleted(self, order_service, make_order):
        kept = await order_service.create(make_order(number="A-1"))
        gone = await order_service.create(make_order(number="A-2"))
        await order_service.delete(gone.id)

        orders = await order_service.get_all()

        assert [o.id for o in orders] == [kept.id]

    @pytest.mark.asyncio
    async def test_find_by_customer_name_case_insensitive(self, order_service, make_order):
        await order_service.create(make_order(number="A-1", customer_name="Ada Lovelace"))
        await order_service.create(make_order(number="A-2", customer_name="Alan Turing"))

        found = await order_service.find_by_customer_name("LOVE")

        assert [o.number for o in found] == ["A-1"]

    @pytest.mark.parametrize("fragment", ["", "   ", None])
    @pytest.mark.asyncio
    async def test_find_by_customer_name_blank_rejected(self, order_service, fragment):
        with pytest.raises(ValidationError):
            await order_service.find_by_customer_name(fragment)

    @pytest.mark.asyncio
    async def test_find_by_number(self, order_service, make_order):
        created = await order_service.create(make_order(number="A-5"))

        assert (await order_service.find_by_number(" A-5 ")).id == created.id
        assert await order_service.find_by_number("A-6") is None


# ============================================================================
# Safe shipment delete
# ============================================================================


class TestDeleteShipmentOfOrder:
    """Test suite for removing an order's shipment safely."""

    @pytest.mark.asyncio
    async def test_unlinks_order_before_deleting_shipment(
        self, order_service, shipment_service, make_order, make_shipment, fake_store
    ):
        order = await order_service.create(make_order(shipment=make_shipment()))
        shipment_id = order.shipment.id
        fake_store.writes.clear()

        await order_service.delete_shipment_of_order(order.id, shipment_id)

        assert fake_store.writes == [
            ("order.update", order.id),
            ("shipment.soft_delete", shipment_id),
        ]
        reloaded = await order_service.get_by_id(order.id)
        assert reloaded.shipment is None
        assert await shipment_service.get_by_id(shipment_id) is None
        deleted = await shipment_service.get_by_id_including_deleted(shipment_id)
        assert deleted.deleted is True
        assert deleted.order_id is None

    @pytest.mark.asyncio
    async def test_mismatched_shipment_rejected_without_writes(
        self, order_service, make_order, make_shipment, fake_store
    ):
        first = await order_service.create(make_order(number="A-1", shipment=make_shipment()))
        second = await order_service.create(
            make_order(number="A-2", shipment=make_shipment(tracking="TRK-2"))
        )
        fake_store.writes.clear()

        with pytest.raises(IntegrityError) as exc_info:
            await order_service.delete_shipment_of_order(first.id, second.shipment.id)

        assert isinstance(exc_info.value, ValidationError)
        assert fake_store.writes == []
        assert fake_store.shipments[second.shipment.id].deleted is False

    @pytest.mark.asyncio
    async def test_order_without_shipment_rejected(self, order_service, make_order):
        order = await order_service.create(make_order())

        with pytest.raises(IntegrityError):
            await order_service.delete_shipment_of_order(order.id, 1)

    @pytest.mark.asyncio
    async def test_missing_order_rejected(self, order_service):
        with pytest.raises(NotFoundError):
            await order_service.delete_shipment_of_order(10, 1)

    @pytest.mark.parametrize("order_id,shipment_id", [(0, 1), (1, 0), (-1, -1)])
    @pytest.mark.asyncio
    async def test_non_positive_ids_rejected(self, order_service, order_id, shipment_id):
        with pytest.raises(ValidationError):
            await order_service.delete_shipment_of_order(order_id, shipment_id)


# ============================================================================
# Shipment attachment through the order
# ============================================================================


class TestOrderShipmentManagement:
    """Test suite for attaching and updating an order's shipment."""

    @pytest.mark.asyncio
    async def test_attach_shipment(self, order_service, make_order, make_shipment):
        order = await order_service.create(make_order())

        shipment = await order_service.attach_shipment(order.id, make_shipment())

        assert shipment.order_id == order.id
        assert (await order_service.get_by_id(order.id)).shipment.id == shipment.id

    @pytest.mark.asyncio
    async def test_attach_second_shipment_rejected(
        self, order_service, make_order, make_shipment
    ):
        order = await order_service.create(make_order(shipment=make_shipment()))

        with pytest.raises(IntegrityError):
            await order_service.attach_shipment(order.id, make_shipment(tracking="TRK-2"))

    @pytest.mark.asyncio
    async def test_attach_checks_order_date(self, order_service, make_order, make_shipment):
        order = await order_service.create(make_order(order_date=date(2024, 1, 10)))

        with pytest.raises(ValidationError):
            await order_service.attach_shipment(
                order.id, make_shipment(dispatch_date=date(2024, 1, 1))
            )

    @pytest.mark.asyncio
    async def test_attach_to_missing_order(self, order_service, make_shipment):
        with pytest.raises(NotFoundError):
            await order_service.attach_shipment(3, make_shipment())

    @pytest.mark.asyncio
    async def test_attach_none_rejected(self, order_service, make_order, fake_store):
        order = await order_service.create(make_order())
        fake_store.writes.clear()

        with pytest.raises(ValidationError):
            await order_service.attach_shipment(order.id, None)

        assert fake_store.writes == []

    @pytest.mark.asyncio
    async def test_update_shipment_of_order(self, order_service, make_order, make_shipment):
        order = await order_service.create(make_order(shipment=make_shipment()))
        shipment = order.shipment
        shipment.cost = Decimal("20.00")

        await order_service.update_shipment_of_order(order.id, shipment)

        reloaded = await order_service.get_by_id(order.id)
        assert reloaded.shipment.cost == Decimal("20.00")

    @pytest.mark.asyncio
    async def test_update_foreign_shipment_rejected(
        self, order_service, make_order, make_shipment
    ):
        first = await order_service.create(make_order(number="A-1", shipment=make_shipment()))
        second = await order_service.create(
            make_order(number="A-2", shipment=make_shipment(tracking="TRK-2"))
        )

        with pytest.raises(IntegrityError):
            await order_service.update_shipment_of_order(first.id, second.shipment)
