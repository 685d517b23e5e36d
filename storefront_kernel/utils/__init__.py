"""Utility functions for the storefront kernel."""

from storefront_kernel.utils.idempotency import (
    MAX_IDEMPOTENCY_KEY_LENGTH,
    normalize_idempotency_key,
)

__all__ = ["MAX_IDEMPOTENCY_KEY_LENGTH", "normalize_idempotency_key"]
