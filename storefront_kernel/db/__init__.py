"""Database layer - engine, base classes, types, locking, and immutability."""

from storefront_kernel.db.base import UUID, Base, TimestampedBase, UUIDString
from storefront_kernel.db.engine import create_tables, get_engine, get_session, session_scope
from storefront_kernel.db.locking import lock_row, lock_rows
from storefront_kernel.db.types import line_total, round_money, validate_currency

__all__ = [
    "get_engine",
    "get_session",
    "session_scope",
    "create_tables",
    "lock_row",
    "lock_rows",
    "Base",
    "TimestampedBase",
    "UUIDString",
    "UUID",
    "line_total",
    "round_money",
    "validate_currency",
]
