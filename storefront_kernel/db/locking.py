"""
Module: storefront_kernel.db.locking
Responsibility: Per-row exclusive locks scoped to a unit of work.  This is the
    one concurrency primitive the kernel relies on: the Inventory Ledger locks
    product rows, the Payment Tracker locks payment rows, status mutators lock
    order rows.
Architecture position: Kernel > DB.  May import from db/base.py, exceptions and
    logging_config.  MUST NOT import from models/, services/, or selectors/.

Invariants enforced:
    - Held until the end of the transaction: a lock taken through lock_rows()
      is released only when the session's outermost transaction commits or
      rolls back.  Check-then-set without holding the lock is not possible
      through this module.
    - Stable acquisition order: lock_rows() always acquires keys in ascending
      string order of the primary key, so two units of work that overlap on
      the same rows cannot deadlock each other.
    - Narrow scope: locks are per (table, primary key), never per table.

How it works:
    PostgreSQL   -> SELECT ... FOR UPDATE (native row lock; the database
                    releases it at COMMIT/ROLLBACK).
    Other        -> SQLite and friends silently drop FOR UPDATE, so an
                    in-process keyed mutex is taken per row and released
                    from the session's after_transaction_end event.  The
                    single-writer transaction boundary of SQLite provides
                    the rest.  This mode is correct only within one
                    process, which is what the test suite and local runs use.

Failure modes:
    - RowLockTimeoutError if the keyed mutex cannot be acquired within the
      configured timeout.  The caller's transaction is rolled back; the
      outcome is "nothing happened".
"""

import threading
from collections.abc import Iterable
from typing import TypeVar
from uuid import UUID

from sqlalchemy import event, select
from sqlalchemy.orm import Session, SessionTransaction

from storefront_kernel.db.base import Base
from storefront_kernel.exceptions import StorefrontError
from storefront_kernel.logging_config import get_logger

logger = get_logger("db.locking")

ModelType = TypeVar("ModelType", bound=Base)

_HELD_LOCKS_KEY = "storefront_row_locks"

DEFAULT_LOCK_TIMEOUT_SECONDS = 30.0


class RowLockTimeoutError(StorefrontError):
    """Row lock could not be acquired in time.  Safe to retry."""

    code: str = "ROW_LOCK_TIMEOUT"

    def __init__(self, table: str, key: str, timeout: float):
        self.table = table
        self.key = key
        self.timeout = timeout
        super().__init__(f"Timed out after {timeout}s waiting for lock on {table}:{key}")


class KeyedMutexRegistry:
    """
    Process-wide registry of mutexes keyed by (table, primary key).

    Contract:
        get() returns the same Lock object for the same key for the life of
        the process.  Creation is guarded so two threads never receive two
        different locks for one key.
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[tuple[str, str], threading.Lock] = {}

    def get(self, table: str, key: str) -> threading.Lock:
        with self._guard:
            lock = self._locks.get((table, key))
            if lock is None:
                lock = threading.Lock()
                self._locks[(table, key)] = lock
            return lock


_registry = KeyedMutexRegistry()
_lock_timeout = DEFAULT_LOCK_TIMEOUT_SECONDS


def set_lock_timeout(seconds: float) -> None:
    """Set the keyed-mutex acquisition timeout (non-native backends only)."""
    global _lock_timeout
    _lock_timeout = seconds


def supports_row_locks(session: Session) -> bool:
    """True when the bound dialect honours SELECT ... FOR UPDATE."""
    return session.get_bind().dialect.name == "postgresql"


def _held(session: Session) -> dict[tuple[str, str], threading.Lock]:
    return session.info.setdefault(_HELD_LOCKS_KEY, {})


def _acquire_keyed(session: Session, table: str, key: str) -> None:
    held = _held(session)
    if (table, key) in held:
        return
    lock = _registry.get(table, key)
    if not lock.acquire(timeout=_lock_timeout):
        logger.warning(
            "row_lock_timeout",
            extra={"table": table, "key": key, "timeout": _lock_timeout},
        )
        raise RowLockTimeoutError(table, key, _lock_timeout)
    held[(table, key)] = lock
    logger.debug("row_lock_acquired", extra={"table": table, "key": key})


def release_session_locks(session: Session) -> None:
    """Release every keyed mutex held by this session's unit of work."""
    held = session.info.pop(_HELD_LOCKS_KEY, None)
    if not held:
        return
    for (table, key), lock in held.items():
        lock.release()
        logger.debug("row_lock_released", extra={"table": table, "key": key})


@event.listens_for(Session, "after_transaction_end")
def _release_on_transaction_end(session: Session, transaction: SessionTransaction) -> None:
    # Only the outermost transaction ends the unit of work.
    if transaction.parent is None:
        release_session_locks(session)


def lock_rows(
    session: Session,
    model: type[ModelType],
    ids: Iterable[UUID],
) -> dict[UUID, ModelType]:
    """
    Lock rows of ``model`` by primary key and return them freshly loaded.

    Preconditions:
        - The caller is inside the unit of work that should own the locks.
    Postconditions:
        - Every returned row is locked until the outermost transaction of
          ``session`` ends.
        - Rows are re-read after the lock is held (populate_existing), so
          the values reflect the latest committed state.
        - Missing ids are simply absent from the returned mapping.

    Returns:
        Mapping of id -> locked entity.
    """
    ordered = sorted(set(ids), key=str)
    if not ordered:
        return {}

    table = model.__tablename__
    if supports_row_locks(session):
        rows = session.execute(
            select(model)
            .where(model.id.in_(ordered))
            .order_by(model.id)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalars().all()
        return {row.id: row for row in rows}

    # Begin the unit of work first so after_transaction_end always fires.
    session.connection()
    for key in ordered:
        _acquire_keyed(session, table, str(key))
    rows = session.execute(
        select(model)
        .where(model.id.in_(ordered))
        .execution_options(populate_existing=True)
    ).scalars().all()
    return {row.id: row for row in rows}


def lock_row(session: Session, model: type[ModelType], id_: UUID) -> ModelType | None:
    """Lock a single row; returns None if it does not exist."""
    return lock_rows(session, model, [id_]).get(id_)
