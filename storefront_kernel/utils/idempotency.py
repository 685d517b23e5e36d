"""
Idempotency key handling for order creation.

A client retrying ``create_order`` sends the same key; the key is stored on
the Order and is unique per user, so the retry returns the first order.
"""

from storefront_kernel.exceptions import ValidationFailureError

MAX_IDEMPOTENCY_KEY_LENGTH = 100


def normalize_idempotency_key(key: str | None) -> str | None:
    """
    Strip surrounding whitespace; a blank key means "no key".

    Raises:
        ValidationFailureError: If the key is not a string or is longer than
            MAX_IDEMPOTENCY_KEY_LENGTH after stripping.

    Example:
        >>> normalize_idempotency_key("  checkout-42 ")
        'checkout-42'
        >>> normalize_idempotency_key("   ") is None
        True
    """
    if key is None:
        return None
    if not isinstance(key, str):
        raise ValidationFailureError(f"idempotency_key must be a string, got {type(key).__name__}")
    key = key.strip()
    if not key:
        return None
    if len(key) > MAX_IDEMPOTENCY_KEY_LENGTH:
        raise ValidationFailureError(
            f"idempotency_key longer than {MAX_IDEMPOTENCY_KEY_LENGTH} characters"
        )
    return key
