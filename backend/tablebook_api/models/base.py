"""
Declarative base shared by every table.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime
from typing import Optional

from sqlalchemy import BigInteger, DateTime, Integer, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


# SQLite only autoincrements INTEGER PRIMARY KEY
BigIntPK = BigInteger().with_variant(Integer(), "sqlite")


class Base(DeclarativeBase):
    def __repr__(self) -> str:
        fields = [f"id={getattr(self, 'id', None)}"]
        if (status := getattr(self, "status", None)) is not None:
            fields.append(f"status={status}")
        return f"<{type(self).__name__} {' '.join(fields)}>"


class TimestampMixin:
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), onupdate=func.now(), nullable=True
    )


def in_clause(column: str, values: Iterable[str]) -> str:
    """CHECK constraint text limiting ``column`` to ``values``."""
    return f"{column} IN ({', '.join(repr(str(v)) for v in values)})"
