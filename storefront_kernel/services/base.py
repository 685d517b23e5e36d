"""
BaseService -- abstract base for all kernel services.

Responsibility:
    Common constructor and session contract for every writing service.
    Services persist through ``session.flush()`` and never commit.

Architecture position:
    Kernel > Services -- imperative shell.

Invariants enforced:
    - Transaction boundaries belong to the caller (StorefrontOrchestrator,
      session_scope, or a test).  A service never calls ``commit()`` or
      ``rollback()``, so several services can share one atomic unit of work
      (order header + items + stock + cart clear).

Failure modes:
    - A subclass calling ``session.commit()`` would break order atomicity.
"""

from abc import ABC
from typing import Generic, TypeVar

from sqlalchemy.orm import Session

from storefront_kernel.db.base import Base
from storefront_kernel.domain.clock import Clock, SystemClock

ModelType = TypeVar("ModelType", bound=Base)


class BaseService(ABC, Generic[ModelType]):
    """
    Abstract base class for all kernel services.

    Contract:
        Accepts a SQLAlchemy ``Session`` and an optional ``Clock``; uses
        ``session.flush()`` to persist within the active transaction.

    Non-goals:
        - Does NOT manage transaction lifecycle (commit/rollback).
        - Does NOT provide read-only query methods -- those belong in
          ``storefront_kernel/selectors/``.
    """

    def __init__(self, session: Session, clock: Clock | None = None):
        self.session = session
        self._clock = clock or SystemClock()
