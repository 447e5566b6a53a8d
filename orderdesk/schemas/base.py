"""
Base class for console input schemas.

Input schemas parse raw prompt answers into typed values and convert
pydantic failures into ``orderdesk.core.exceptions.ValidationError`` so the
shell handles a single error family.
"""

from typing import Any, Type, TypeVar

from pydantic import BaseModel, ConfigDict
from pydantic import ValidationError as PydanticValidationError

from orderdesk.core.exceptions import ValidationError

M = TypeVar("M", bound="InputModel")


def _describe(error: PydanticValidationError) -> str:
    parts = []
    for item in error.errors():
        location = ".".join(str(part) for part in item["loc"]) or "input"
        parts.append(f"{location}: {item['msg']}")
    return "; ".join(parts)


class InputModel(BaseModel):
    """Shared configuration for console input schemas."""

    model_config = ConfigDict(
        str_strip_whitespace=True,
        validate_assignment=True,
        extra="forbid",
    )

    @classmethod
    def parse(cls: Type[M], data: dict[str, Any]) -> M:
        """
        Validate ``data`` into a schema instance.

        Raises:
            ValidationError: If any field fails validation
        """
        try:
            return cls.model_validate(data)
        except PydanticValidationError as e:
            raise ValidationError(
                _describe(e),
                schema=cls.__name__,
                fields=sorted({str(item["loc"][0]) for item in e.errors() if item["loc"]}),
            ) from e
