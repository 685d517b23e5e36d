"""
Storefront Kernel

The transactional core of the storefront backend:
- Inventory ledger with a floor-at-zero stock invariant
- Atomic order assembly with price snapshots
- Payment lifecycle that drives order status
- Append-only audit history for privileged mutations
"""

__version__ = "0.1.0"
