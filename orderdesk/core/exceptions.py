"""
Error taxonomy shared by the services, repositories and console shell.

Every error carries a human readable message plus keyword context that is
passed straight to the structured logger.
"""

from typing import Any


class OrderDeskError(Exception):
    """Base exception for all orderdesk errors."""

    def __init__(self, message: str, **context: Any):
        super().__init__(message)
        self.message = message
        self.context = context


class ValidationError(OrderDeskError):
    """Raised when input is malformed, missing or out of range."""

    pass


class NotFoundError(ValidationError):
    """Raised when an identity does not match an active record."""

    pass


class IntegrityError(ValidationError):
    """Raised when an operation would break order/shipment ownership."""

    pass


class UniquenessError(OrderDeskError):
    """Raised when an order number or tracking code is already in use."""

    def __init__(self, message: str, field: str, value: Any, **context: Any):
        super().__init__(message, field=field, value=value, **context)
        self.field = field
        self.value = value


class StoreError(OrderDeskError):
    """Raised when the relational store fails underneath a repository call."""

    def __init__(
        self,
        message: str,
        operation: str,
        entity: str,
        entity_id: Any = None,
        **context: Any,
    ):
        super().__init__(
            message,
            operation=operation,
            entity=entity,
            entity_id=entity_id,
            **context,
        )
        self.operation = operation
        self.entity = entity
        self.entity_id = entity_id
