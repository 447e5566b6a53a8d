"""
SQLAlchemy declarative base and common model mixins.

This module provides the SQLAlchemy DeclarativeBase and the mixins shared by
the ``orders`` and ``shipments`` tables: integer identities, timestamps and
the soft-delete flag.
"""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import Boolean, DateTime, Integer, false, func
from sqlalchemy.ext.asyncio import AsyncAttrs
from sqlalchemy.orm import DeclarativeBase, Mapped, declared_attr, mapped_column

from orderdesk.core.logging import get_logger

logger = get_logger(__name__)


class Base(AsyncAttrs, DeclarativeBase):
    """
    Base class for all SQLAlchemy models with async support.

    Provides common functionality for all database models including
    async attribute loading and utility methods.
    """

    __abstract__ = True

    def __repr__(self) -> str:
        """
        Generate string representation of model instance.

        Returns:
            String representation with primary key values
        """
        pk_values = []
        for column in self.__table__.primary_key.columns:
            value = getattr(self, column.name, None)
            if value is not None:
                pk_values.append(f"{column.name}={value!r}")

        pk_str = ", ".join(pk_values) if pk_values else "no primary key"
        return f"<{self.__class__.__name__}({pk_str})>"


class IntegerIdMixin:
    """
    Mixin for an auto-increment integer primary key.

    The store assigns the identity on insert; repositories flush right
    after ``add`` so the value is available to chained writes.
    """

    @declared_attr
    def id(cls) -> Mapped[int]:
        return mapped_column(
            Integer,
            primary_key=True,
            autoincrement=True,
            comment="Store assigned identifier",
        )


class TimestampMixin:
    """
    Mixin for automatic timestamp management.

    Adds created_at and updated_at columns that are automatically
    managed by the database.
    """

    @declared_attr
    def created_at(cls) -> Mapped[datetime]:
        return mapped_column(
            DateTime(timezone=True),
            nullable=False,
            server_default=func.now(),
            comment="Timestamp when record was created",
        )

    @declared_attr
    def updated_at(cls) -> Mapped[datetime]:
        return mapped_column(
            DateTime(timezone=True),
            nullable=False,
            server_default=func.now(),
            onupdate=func.now(),
            comment="Timestamp when record was last updated",
        )


class SoftDeleteMixin:
    """
    Mixin for soft delete functionality.

    Adds a ``deleted`` flag and a ``deleted_at`` audit timestamp. Rows are
    never removed physically; default reads filter on ``deleted = false``.
    """

    @declared_attr
    def deleted(cls) -> Mapped[bool]:
        """
        Soft-delete flag.

        False indicates the record is active.
        """
        return mapped_column(
            Boolean,
            nullable=False,
            default=False,
            server_default=false(),
            comment="True once the record has been soft deleted",
        )

    @declared_attr
    def deleted_at(cls) -> Mapped[Optional[datetime]]:
        return mapped_column(
            DateTime(timezone=True),
            nullable=True,
            default=None,
            comment="Timestamp when record was soft deleted",
        )

    @property
    def is_deleted(self) -> bool:
        return bool(self.deleted)

    def soft_delete(self) -> None:
        """
        Mark record as deleted.

        Sets the flag and stamps deleted_at with the current time.
        """
        if not self.deleted:
            self.deleted = True
            self.deleted_at = datetime.now(timezone.utc)
            logger.info(
                "Record soft deleted",
                model=self.__class__.__name__,
                record_id=getattr(self, "id", None),
            )

    def restore(self) -> None:
        """
        Restore soft deleted record.

        Clears the flag and the deletion timestamp.
        """
        if self.deleted:
            self.deleted = False
            self.deleted_at = None
            logger.info(
                "Record restored",
                model=self.__class__.__name__,
                record_id=getattr(self, "id", None),
            )


class SoftDeleteModel(Base, IntegerIdMixin, TimestampMixin, SoftDeleteMixin):
    """
    Base model with integer identity, timestamps and soft delete.

    Example:
        class OrderRecord(SoftDeleteModel):
            __tablename__ = "orders"

            number: Mapped[str] = mapped_column(String(20))
    """

    __abstract__ = True
