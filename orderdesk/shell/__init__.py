"""Interactive console shell over the order and shipment services."""

from orderdesk.shell.menu import OrderDeskShell
from orderdesk.shell.prompts import Prompter

__all__ = ["OrderDeskShell", "Prompter"]
