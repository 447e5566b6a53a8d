"""
Translation of driver failures into ``StoreError``.
"""

from contextlib import contextmanager
from typing import Any, Iterator

from sqlalchemy.exc import IntegrityError as DBIntegrityError
from sqlalchemy.exc import SQLAlchemyError

from orderdesk.core.exceptions import StoreError
from orderdesk.core.logging import get_logger

logger = get_logger(__name__)


@contextmanager
def wrap_store_errors(operation: str, entity: str, entity_id: Any = None) -> Iterator[None]:
    """
    Re-raise any SQLAlchemy error inside the block as ``StoreError``.

    The driver exception is kept as ``__cause__`` and the failure is
    logged with the operation context before it propagates.

    Args:
        operation: Repository operation name, e.g. ``"insert"``
        entity: Entity name, ``"order"`` or ``"shipment"``
        entity_id: Identity involved, when known

    Raises:
        StoreError: If the store fails inside the block
    """
    try:
        yield
    except DBIntegrityError as e:
        logger.error(
            "Store rejected write - integrity violation",
            operation=operation,
            entity=entity,
            entity_id=entity_id,
            error=str(e.orig),
        )
        raise StoreError(
            f"Failed to {operation} {entity}: constraint violation",
            operation=operation,
            entity=entity,
            entity_id=entity_id,
        ) from e
    except SQLAlchemyError as e:
        logger.error(
            "Store operation failed",
            operation=operation,
            entity=entity,
            entity_id=entity_id,
            error=str(e),
            error_type=type(e).__name__,
        )
        raise StoreError(
            f"Failed to {operation} {entity}: database error",
            operation=operation,
            entity=entity,
            entity_id=entity_id,
        ) from e
