"""Base model class for SQLAlchemy ORM."""

from __future__ import annotations

from datetime import date, datetime, time
from decimal import Decimal
from typing import Any

from sqlalchemy import DateTime, inspect
from sqlalchemy.orm import DeclarativeBase

from hrdesk.calculators.types import round_to_cents


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    type_annotation_map = {
        datetime: DateTime(timezone=True),
    }

    # Column names never serialized onto the wire
    __private_columns__: frozenset[str] = frozenset()

    def to_dict(self) -> dict[str, Any]:
        """Convert model to a JSON-friendly dictionary keyed by column name."""
        data: dict[str, Any] = {}
        for attr in inspect(self).mapper.column_attrs:
            name = attr.columns[0].name
            if name in self.__private_columns__:
                continue
            value = getattr(self, attr.key)
            if isinstance(value, time):
                value = value.isoformat(timespec="minutes")
            elif isinstance(value, (date, datetime)):
                value = value.isoformat()
            elif isinstance(value, Decimal):
                # Money columns
                value = str(round_to_cents(value))
            data[name] = value
        return data
