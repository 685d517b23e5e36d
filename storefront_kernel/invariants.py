"""
Kernel Invariants Contract.

These invariants are structural law for the storefront kernel.  No setting
in storefront_config may switch them off.  This module only declares them;
enforcement is distributed across the Inventory Ledger, the Order Assembler,
the Payment Tracker, the Audit Recorder, database constraints and the ORM
immutability listeners.
"""

from enum import Enum, unique


@unique
class StorefrontInvariant(str, Enum):
    """Non-configurable invariants enforced by the kernel."""

    NON_NEGATIVE_STOCK = "non_negative_stock"
    """Product stock never drops below zero.  Enforced by InventoryLedger
    under a row lock and by the products check constraint."""

    ORDER_TOTAL_MATCHES_LINES = "order_total_matches_lines"
    """total_amount equals the sum of quantity * unit_price over the order's
    items.  Fixed by OrderAssembler at creation."""

    PRICE_SNAPSHOT = "price_snapshot"
    """Order items keep the unit price charged at purchase time.  Enforced
    by OrderItem immutability listeners."""

    ATOMIC_ORDER_CREATION = "atomic_order_creation"
    """An order, its items, the stock decrements and the cart clear commit
    together or not at all.  Enforced by StorefrontOrchestrator."""

    PAYMENT_STATE_MACHINE = "payment_state_machine"
    """Payments move only along PAYMENT_TRANSITIONS; terminal payments are
    never confirmed again.  Enforced by PaymentTracker under a row lock."""

    AUDITED_PRIVILEGED_CHANGES = "audited_privileged_changes"
    """Every real stock, role or order status change writes exactly one
    append-only history row.  Enforced by AuditRecorder."""


ALL_STOREFRONT_INVARIANTS: frozenset[StorefrontInvariant] = frozenset(StorefrontInvariant)

# The kernel package may not import from these packages.
# Enforced by tests/architecture/test_kernel_boundary.py.
FORBIDDEN_KERNEL_IMPORTS: tuple[str, ...] = (
    "storefront_config",
)
