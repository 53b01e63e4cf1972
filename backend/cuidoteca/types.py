"""Portable SQL types that work across PostgreSQL and SQLite.

PostgreSQL uses native ARRAY columns for string lists; SQLite falls back to
JSON.  Enum columns are stored as plain VARCHARs holding the enum value.
"""

import enum
from datetime import datetime, timezone

import sqlalchemy as sa
from sqlalchemy import JSON, TypeDecorator


class TextArray(TypeDecorator):
    """PostgreSQL ``ARRAY(Text)`` on PG, JSON list on other dialects.

    Used for weekday lists and free-text caretaker names.
    """

    impl = JSON
    cache_ok = True

    def load_dialect_impl(self, dialect):
        if dialect.name == "postgresql":
            from sqlalchemy.dialects.postgresql import ARRAY

            return dialect.type_descriptor(ARRAY(sa.Text()))
        return dialect.type_descriptor(JSON())

    def process_bind_param(self, value, dialect):
        if value is not None:
            return [str(v.value if isinstance(v, enum.Enum) else v) for v in value]
        return value

    def process_result_value(self, value, dialect):
        if value is None:
            return []
        return list(value)


def enum_type(enum_cls: type[enum.Enum], length: int = 30) -> sa.Enum:
    """Non-native enum column storing ``member.value`` (not the member name)."""
    return sa.Enum(
        enum_cls,
        native_enum=False,
        length=length,
        values_callable=lambda members: [m.value for m in members],
        validate_strings=True,
    )


def utcnow() -> datetime:
    """Timezone-aware ``now`` used as Python-side column default."""
    return datetime.now(timezone.utc)
