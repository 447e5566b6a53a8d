"""
Field level checks shared by the order and shipment services.

Each helper returns the normalized value or raises ``ValidationError``
naming the offending field.
"""

from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Optional, Type, TypeVar

from orderdesk.core.exceptions import ValidationError

E = TypeVar("E", bound=Enum)

MONEY_PLACES = 2


def require_positive_id(value: Any, field: str = "id") -> int:
    """Identities are positive integers; zero, negatives and None are rejected."""
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ValidationError(f"{field} must be a positive integer", field=field, value=value)
    return value


def require_text(value: Any, field: str, max_length: Optional[int] = None) -> str:
    """Return ``value`` stripped, rejecting None, non-strings and blanks."""
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{field} must not be empty", field=field)
    value = value.strip()
    if max_length is not None and len(value) > max_length:
        raise ValidationError(
            f"{field} must be at most {max_length} characters",
            field=field,
            length=len(value),
        )
    return value


def require_decimal(
    value: Any,
    field: str,
    minimum: Decimal = Decimal("0"),
    inclusive: bool = True,
    max_places: int = MONEY_PLACES,
) -> Decimal:
    """
    Coerce ``value`` to ``Decimal`` and check it against ``minimum``.

    Floats go through ``str`` so 1234.5 becomes Decimal("1234.5"). Amounts
    with more than ``max_places`` significant decimals are rejected rather
    than rounded by the store; trailing zeros do not count.
    """
    if value is None or isinstance(value, bool):
        raise ValidationError(f"{field} is required", field=field)
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise ValidationError(f"{field} must be a number", field=field, value=value) from None
    if not amount.is_finite():
        raise ValidationError(f"{field} must be a finite number", field=field, value=value)
    if amount.normalize().as_tuple().exponent < -max_places:
        raise ValidationError(
            f"{field} must have at most {max_places} decimal places",
            field=field,
            value=str(amount),
        )

    if inclusive and amount < minimum:
        raise ValidationError(
            f"{field} must not be less than {minimum}", field=field, value=str(amount)
        )
    if not inclusive and amount <= minimum:
        raise ValidationError(
            f"{field} must be greater than {minimum}", field=field, value=str(amount)
        )
    return amount


def require_date(value: Any, field: str) -> date:
    """Accept a ``date`` (a ``datetime`` is truncated to its date)."""
    if isinstance(value, datetime):
        return value.date()
    if not isinstance(value, date):
        raise ValidationError(f"{field} is required", field=field)
    return value


def coerce_enum(enum_cls: Type[E], value: Any, field: str) -> E:
    """
    Return ``value`` as a member of ``enum_cls``.

    Strings are parsed with the enum's ``from_string``; unknown values are
    rejected, never replaced by a default.
    """
    if isinstance(value, enum_cls):
        return value
    if isinstance(value, str):
        try:
            return enum_cls.from_string(value)
        except ValueError as e:
            raise ValidationError(str(e), field=field, value=value) from e
    raise ValidationError(f"{field} is required", field=field, value=value)
