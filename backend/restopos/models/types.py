from __future__ import annotations

import uuid
from decimal import Decimal

from sqlalchemy.types import Integer, TypeDecorator

from ..money import from_cents, to_cents, to_money


def new_id() -> str:
    """Globally unique opaque identity for every entity."""
    return str(uuid.uuid4())


class Money(TypeDecorator):
    """
    Currency column: integer cents in the database, Decimal in Python.

    Storing cents keeps SQLite (which has no real DECIMAL) free of float drift
    across repeated read/write cycles.
    """
    impl = Integer
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if not isinstance(value, Decimal):
            value = to_money(value)
        return to_cents(value)

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        return from_cents(value)
