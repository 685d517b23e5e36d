"""Kernel services: flush-only writers plus the transaction-owning orchestrator."""

from storefront_kernel.services.audit_recorder import AuditRecorder
from storefront_kernel.services.cart_service import CartService
from storefront_kernel.services.inventory_ledger import InventoryLedger
from storefront_kernel.services.order_assembler import OrderAssembler
from storefront_kernel.services.payment_providers import (
    MockPaymentProvider,
    PaymentProvider,
    ProviderRegistry,
)
from storefront_kernel.services.payment_tracker import PaymentTracker
from storefront_kernel.services.storefront_orchestrator import (
    OperationResult,
    OperationStatus,
    StorefrontOrchestrator,
)
from storefront_kernel.services.user_role_service import UserRoleService

__all__ = [
    "AuditRecorder",
    "CartService",
    "InventoryLedger",
    "OrderAssembler",
    "MockPaymentProvider",
    "PaymentProvider",
    "ProviderRegistry",
    "PaymentTracker",
    "OperationResult",
    "OperationStatus",
    "StorefrontOrchestrator",
    "UserRoleService",
]
