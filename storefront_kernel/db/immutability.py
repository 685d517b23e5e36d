"""
Module: storefront_kernel.db.immutability
Responsibility: ORM-level enforcement of append-only records.
Architecture position: Kernel > DB.  Imports models lazily to avoid the
    models -> db -> models cycle.

Protected entities:

    Entity               | When immutable        | Notes
    ---------------------|-----------------------|--------------------------------
    RoleHistory          | ALWAYS                | Audit trail
    StockHistory         | ALWAYS                | Audit trail
    OrderStatusHistory   | ALWAYS                | Audit trail
    OrderItem            | ALWAYS                | Price snapshot; the database
                         |                       | may still null product_id or
                         |                       | cascade-delete with the order

How it works:

    session.flush()
         |
         v
    [before_update] --> _block_update() --> ImmutabilityViolationError
    [before_delete] --> _block_delete() --> ImmutabilityViolationError
         |
         v
    SQL sent to database (only if checks pass)

Only changes routed through the ORM are intercepted.  Database-side
referential actions (ON DELETE SET NULL / CASCADE) do not pass through here.

Usage:
    register_immutability_listeners()    # once, at startup

    unregister_immutability_listeners()  # TESTS ONLY
"""

from sqlalchemy import event, inspect

from storefront_kernel.exceptions import ImmutabilityViolationError
from storefront_kernel.logging_config import get_logger

logger = get_logger("db.immutability")

_registered = False


def _changed_fields(target) -> list[str]:
    return [attr.key for attr in inspect(target).attrs if attr.history.has_changes()]


def _block_update(mapper, connection, target):
    entity_type = type(target).__name__
    fields = _changed_fields(target)
    logger.error(
        "immutability_violation_blocked",
        extra={
            "entity_type": entity_type,
            "entity_id": str(target.id),
            "operation": "UPDATE",
            "fields": fields,
        },
    )
    raise ImmutabilityViolationError(
        entity_type=entity_type,
        entity_id=str(target.id),
        reason=f"{entity_type} rows are append-only; attempted to modify {', '.join(fields) or 'row'}",
    )


def _block_delete(mapper, connection, target):
    entity_type = type(target).__name__
    logger.error(
        "immutability_violation_blocked",
        extra={
            "entity_type": entity_type,
            "entity_id": str(target.id),
            "operation": "DELETE",
        },
    )
    raise ImmutabilityViolationError(
        entity_type=entity_type,
        entity_id=str(target.id),
        reason=f"{entity_type} rows cannot be deleted",
    )


def _protected_models() -> tuple[type, ...]:
    from storefront_kernel.models.history import HISTORY_MODELS
    from storefront_kernel.models.order import OrderItem

    return (*HISTORY_MODELS, OrderItem)


def register_immutability_listeners() -> None:
    """
    Register the append-only listeners.  Safe to call more than once.

    Call after models are importable and before any unit of work runs.
    """
    global _registered
    for model in _protected_models():
        if not event.contains(model, "before_update", _block_update):
            event.listen(model, "before_update", _block_update)
        if not event.contains(model, "before_delete", _block_delete):
            event.listen(model, "before_delete", _block_delete)
    _registered = True


def _safe_remove_listener(target, event_name, listener_fn):
    if event.contains(target, event_name, listener_fn):
        event.remove(target, event_name, listener_fn)


def unregister_immutability_listeners() -> None:
    """
    Remove the append-only listeners.

    WARNING: Only use this in tests that need to violate immutability on
    purpose.
    """
    global _registered
    for model in _protected_models():
        _safe_remove_listener(model, "before_update", _block_update)
        _safe_remove_listener(model, "before_delete", _block_delete)
    _registered = False


def immutability_listeners_registered() -> bool:
    return _registered
