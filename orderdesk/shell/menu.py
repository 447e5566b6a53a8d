"""
Numbered console menu over the order and shipment services.

Each menu action runs inside its own ``open_services()`` scope, so an
action either commits completely or is rolled back. Domain errors are
printed and logged; the loop then shows the menu again.
"""

from typing import Any, AsyncContextManager, Awaitable, Callable, Optional

from orderdesk.core.exceptions import OrderDeskError
from orderdesk.core.logging import clear_context, get_logger, set_operation_id
from orderdesk.domain.entities import Order, Shipment
from orderdesk.schemas.orders import OrderInput
from orderdesk.schemas.shipments import ShipmentInput
from orderdesk.services import Services, open_services
from orderdesk.shell.prompts import Prompter

logger = get_logger(__name__)

ServicesFactory = Callable[[], AsyncContextManager[Services]]

MENU = (
    ("1", "Create order"),
    ("2", "List or search orders"),
    ("3", "Update order"),
    ("4", "Delete order"),
    ("5", "Create shipment for an order"),
    ("6", "List shipments"),
    ("7", "Update shipment by ID"),
    ("8", "Delete shipment by ID"),
    ("9", "Update shipment of an order"),
    ("10", "Delete shipment of an order"),
    ("11", "Restore deleted shipment"),
    ("0", "Exit"),
)


def describe_order(order: Order) -> str:
    line = (
        f"ID: {order.id}, Number: {order.number}, Date: {order.order_date.isoformat()}, "
        f"Customer: {order.customer_name}, Total: {order.total}, "
        f"Status: {order.status.name}"
    )
    if order.shipment is not None:
        line += f"\n   Shipment {order.shipment.id}: {describe_shipment(order.shipment)}"
    return line


def describe_shipment(shipment: Shipment) -> str:
    return (
        f"{shipment.carrier.name} {shipment.tracking} ({shipment.shipment_type.name}, "
        f"{shipment.status.name}), cost {shipment.cost}, "
        f"dispatch {shipment.dispatch_date.isoformat()}, "
        f"arrival {shipment.estimated_arrival.isoformat()}"
    )


class OrderDeskShell:
    """
    Interactive menu loop.

    Attributes:
        prompter: Console reader/writer
        services_factory: Opens one unit of work per menu action
    """

    def __init__(
        self,
        prompter: Optional[Prompter] = None,
        services_factory: ServicesFactory = open_services,
    ):
        self.prompter = prompter or Prompter()
        self.services_factory = services_factory
        self.running = True
        self.actions: dict[str, Callable[[Services], Awaitable[None]]] = {
            "1": self.create_order,
            "2": self.list_orders,
            "3": self.update_order,
            "4": self.delete_order,
            "5": self.create_shipment,
            "6": self.list_shipments,
            "7": self.update_shipment_by_id,
            "8": self.delete_shipment_by_id,
            "9": self.update_shipment_of_order,
            "10": self.delete_shipment_of_order,
            "11": self.restore_shipment,
        }

    def show_menu(self) -> None:
        self.prompter.say("\n========= MENU =========")
        for key, label in MENU:
            self.prompter.say(f"{key}. {label}")

    async def run(self) -> None:
        """Show the menu and dispatch choices until the user exits."""
        while self.running:
            self.show_menu()
            try:
                choice = self.prompter.ask("Choose an option")
            except EOFError:
                break
            await self.dispatch(choice)

    async def dispatch(self, choice: str) -> None:
        """Run one menu choice inside its own session scope."""
        if choice == "0":
            self.prompter.say("Exiting...")
            self.running = False
            return

        action = self.actions.get(choice)
        if action is None:
            self.prompter.say("Invalid option.")
            return

        operation_id = set_operation_id()
        logger.debug("Menu action started", choice=choice, operation_id=operation_id)
        try:
            async with self.services_factory() as services:
                await action(services)
        except OrderDeskError as e:
            logger.warning(
                "Menu action failed",
                choice=choice,
                error=e.message,
                error_type=type(e).__name__,
                **e.context,
            )
            self.prompter.say(f"Error: {e.message}")
        finally:
            clear_context()

    def _read_shipment_fields(self) -> dict[str, Any]:
        p = self.prompter
        return {
            "tracking": p.ask("Tracking code"),
            "carrier": p.ask("Carrier (CARRIER_A, CARRIER_B, CARRIER_C)"),
            "shipment_type": p.ask("Type (STANDARD, EXPRESS)"),
            "cost": p.ask("Cost"),
            "dispatch_date": p.ask("Dispatch date (YYYY-MM-DD)"),
            "estimated_arrival": p.ask("Estimated arrival (YYYY-MM-DD)"),
            "status": p.ask("Status (PREPARING, IN_TRANSIT, DELIVERED; Enter for PREPARING)"),
        }

    def _edit_shipment_fields(self, shipment: Shipment) -> dict[str, Any]:
        p = self.prompter
        fields: dict[str, Any] = {
            "tracking": p.ask_keep("New tracking code", shipment.tracking) or shipment.tracking,
            "carrier": p.ask_keep("New carrier", shipment.carrier.name) or shipment.carrier,
            "shipment_type": p.ask_keep("New type", shipment.shipment_type.name)
            or shipment.shipment_type,
            "cost": p.ask_keep("New cost", shipment.cost) or shipment.cost,
            "dispatch_date": p.ask_keep("New dispatch date", shipment.dispatch_date.isoformat())
            or shipment.dispatch_date,
            "estimated_arrival": p.ask_keep(
                "New estimated arrival", shipment.estimated_arrival.isoformat()
            )
            or shipment.estimated_arrival,
            "status": p.ask_keep("New status", shipment.status.name) or shipment.status,
        }
        return fields

    async def _offer_restore(self, services: Services, tracking: str) -> Optional[Shipment]:
        """
        Offer to restore a soft-deleted shipment that uses ``tracking``.

        Returns:
            The restored shipment, or None if there is none or the user declines
        """
        deleted = await services.shipments.find_deleted_by_tracking(tracking)
        if deleted is None:
            return None
        if not self.prompter.ask_yes_no(
            f"Tracking {tracking} belongs to deleted shipment {deleted.id}. Restore it instead?"
        ):
            return None
        restored = await services.shipments.restore(deleted.id)
        self.prompter.say(f"Shipment {restored.id} restored.")
        return restored

    async def create_order(self, services: Services) -> None:
        p = self.prompter
        order_input = OrderInput.parse(
            {
                "number": p.ask("Order number"),
                "order_date": p.ask("Order date (YYYY-MM-DD)"),
                "customer_name": p.ask("Customer name"),
                "total": p.ask("Total"),
            }
        )

        shipment: Optional[Shipment] = None
        if p.ask_yes_no("Add a shipment?"):
            fields = self._read_shipment_fields()
            shipment = await self._offer_restore(services, fields["tracking"].strip())
            if shipment is None:
                shipment = ShipmentInput.parse(fields).to_entity()

        order = await services.orders.create(order_input.to_entity(shipment=shipment))
        p.say(f"Order created with ID: {order.id}")
        if order.shipment is not None:
            p.say(f"Shipment linked with ID: {order.shipment.id}")

    async def list_orders(self, services: Services) -> None:
        p = self.prompter
        sub = p.ask("(1) list all, (2) search by customer name, (3) find by number")
        if sub == "1":
            orders = await services.orders.get_all()
        elif sub == "2":
            orders = await services.orders.find_by_customer_name(p.ask("Text to search"))
        elif sub == "3":
            found = await services.orders.find_by_number(p.ask("Order number"))
            orders = [found] if found else []
        else:
            p.say("Invalid option.")
            return

        if not orders:
            p.say("No orders found.")
            return
        for order in orders:
            p.say(describe_order(order))

    async def update_order(self, services: Services) -> None:
        p = self.prompter
        order_id = p.ask_id("Order ID to update")
        order = await services.orders.get_by_id(order_id)
        if order is None:
            p.say("Order not found.")
            return

        order_input = OrderInput.parse(
            {
                "number": p.ask_keep("New order number", order.number) or order.number,
                "order_date": p.ask_keep("New order date", order.order_date.isoformat())
                or order.order_date,
                "customer_name": p.ask_keep("New customer name", order.customer_name)
                or order.customer_name,
                "total": p.ask_keep("New total", order.total) or order.total,
                "status": p.ask_keep("New status", order.status.name) or order.status,
            }
        )
        await services.orders.update(
            order_input.to_entity(shipment=order.shipment, order_id=order.id)
        )
        p.say("Order updated.")

    async def delete_order(self, services: Services) -> None:
        order_id = self.prompter.ask_id("Order ID to delete")
        await services.orders.delete(order_id)
        self.prompter.say("Order deleted. Its shipment, if any, was kept.")

    async def create_shipment(self, services: Services) -> None:
        p = self.prompter
        order_id = p.ask_id("Order ID for the shipment")
        order = await services.orders.get_by_id(order_id)
        if order is None:
            p.say("Order not found.")
            return
        if order.shipment is not None:
            p.say(f"Order {order_id} already has shipment {order.shipment.id}.")
            return

        fields = self._read_shipment_fields()
        restored = await self._offer_restore(services, fields["tracking"].strip())
        if restored is not None:
            order.shipment = restored
            await services.orders.update(order)
            p.say(f"Shipment {restored.id} linked to order {order_id}.")
            return

        shipment = await services.orders.attach_shipment(
            order_id, ShipmentInput.parse(fields).to_entity()
        )
        p.say(f"Shipment created with ID: {shipment.id}")

    async def list_shipments(self, services: Services) -> None:
        shipments = await services.shipments.get_all()
        if not shipments:
            self.prompter.say("No shipments found.")
            return
        for shipment in shipments:
            owner = f"order {shipment.order_id}" if shipment.order_id else "no order"
            self.prompter.say(f"ID: {shipment.id}, {describe_shipment(shipment)}, {owner}")

    async def update_shipment_by_id(self, services: Services) -> None:
        p = self.prompter
        shipment_id = p.ask_id("Shipment ID to update")
        shipment = await services.shipments.get_by_id_including_deleted(shipment_id)
        if shipment is None:
            p.say("Shipment not found.")
            return
        if shipment.deleted:
            if p.ask_yes_no(f"Shipment {shipment_id} is deleted. Restore it?"):
                await services.shipments.restore(shipment_id)
                p.say(f"Shipment {shipment_id} restored.")
            return

        shipment_input = ShipmentInput.parse(self._edit_shipment_fields(shipment))
        await services.shipments.update(
            shipment_input.to_entity(shipment_id=shipment.id, order_id=shipment.order_id)
        )
        p.say("Shipment updated.")

    async def delete_shipment_by_id(self, services: Services) -> None:
        p = self.prompter
        shipment_id = p.ask_id("Shipment ID to delete")
        shipment = await services.shipments.get_by_id(shipment_id)
        if shipment is not None and shipment.order_id is not None:
            p.say(
                f"Warning: shipment {shipment_id} belongs to order {shipment.order_id}. "
                "Option 10 removes it from the order safely."
            )
            if not p.ask_yes_no("Delete anyway?"):
                return
        await services.shipments.delete(shipment_id)
        p.say("Shipment deleted.")

    async def update_shipment_of_order(self, services: Services) -> None:
        p = self.prompter
        order_id = p.ask_id("Order ID")
        order = await services.orders.get_by_id(order_id)
        if order is None:
            p.say("Order not found.")
            return
        if order.shipment is None:
            p.say("The order has no shipment.")
            return

        shipment_input = ShipmentInput.parse(self._edit_shipment_fields(order.shipment))
        await services.orders.update_shipment_of_order(
            order_id,
            shipment_input.to_entity(shipment_id=order.shipment.id, order_id=order_id),
        )
        p.say("Shipment updated.")

    async def delete_shipment_of_order(self, services: Services) -> None:
        p = self.prompter
        order_id = p.ask_id("Order ID")
        order = await services.orders.get_by_id(order_id)
        if order is None:
            p.say("Order not found.")
            return
        if order.shipment is None:
            p.say("The order has no shipment.")
            return

        await services.orders.delete_shipment_of_order(order_id, order.shipment.id)
        p.say(f"Shipment {order.shipment.id} removed from order {order_id} and deleted.")

    async def restore_shipment(self, services: Services) -> None:
        shipment_id = self.prompter.ask_id("Shipment ID to restore")
        restored = await services.shipments.restore(shipment_id)
        self.prompter.say(f"Shipment {restored.id} is active.")
