"""Order and shipment coordination with soft delete and a console shell."""

__version__ = "1.0.0"
