"""
Typed Exception Hierarchy for the Storefront Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Callers of the kernel map failures to user-facing responses. Matching on
message text is fragile, so every failure has:
  1. A TYPED exception class (catch by type, not message)
  2. A CODE class attribute (machine-readable, API-safe)
  3. Structured DATA attributes (product_id, current_status, ...)

Example:
    try:
        assembler.create_order(user_id, items, address)
    except InsufficientStockError as e:
        respond(409, code=e.code, product=e.product_id, available=e.available)

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    StorefrontError (base)
    |
    +-- NotFoundError
    |   +-- ProductNotFoundError
    |   +-- OrderNotFoundError
    |   +-- PaymentNotFoundError
    |   +-- UserNotFoundError
    |   +-- CartItemNotFoundError
    |
    +-- InsufficientStockError
    |
    +-- InvalidStateError
    |   +-- InvalidOrderTransitionError
    |   +-- InvalidPaymentTransitionError
    |   +-- OrderCancelledError
    |   +-- IdempotencyKeyConflictError
    |
    +-- ForbiddenError
    |
    +-- ValidationFailureError
    |   +-- EmptyOrderError
    |   +-- InvalidQuantityError
    |   +-- InvalidStockValueError
    |   +-- InvalidStatusError
    |   +-- InvalidRoleError
    |   +-- UnsupportedProviderError
    |
    +-- ImmutabilityViolationError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category        | Code                        | When Raised
----------------|-----------------------------|-----------------------------------------
Not found       | PRODUCT_NOT_FOUND           | Product ID doesn't exist
                | ORDER_NOT_FOUND             | Order missing (or not visible to caller)
                | PAYMENT_NOT_FOUND           | Payment ID doesn't exist
                | USER_NOT_FOUND              | User ID doesn't exist
                | CART_ITEM_NOT_FOUND         | Cart line missing for this user
----------------|-----------------------------|-----------------------------------------
Stock           | INSUFFICIENT_STOCK          | Change would take stock below zero
----------------|-----------------------------|-----------------------------------------
State machine   | INVALID_ORDER_TRANSITION    | Order status edge not in table
                | INVALID_PAYMENT_TRANSITION  | Payment already terminal, etc.
                | ORDER_CANCELLED             | Paying for a cancelled order
----------------|-----------------------------|-----------------------------------------
Ownership       | FORBIDDEN                   | Caller does not own the entity
----------------|-----------------------------|-----------------------------------------
Validation      | EMPTY_ORDER                 | No line items supplied
                | INVALID_QUANTITY            | Quantity not a positive integer
                | INVALID_STOCK_VALUE         | Absolute stock value below zero
                | INVALID_STATUS              | Status not an enumerated value
                | INVALID_ROLE                | Role not an enumerated value
                | UNSUPPORTED_PROVIDER        | No adapter for payment provider
----------------|-----------------------------|-----------------------------------------
Immutability    | IMMUTABILITY_VIOLATION      | UPDATE/DELETE on append-only row

===============================================================================
DESIGN DECISIONS
===============================================================================

1. Categories map one-to-one onto the failure names the calling layer sees
   (NotFound, InsufficientStock, InvalidState, Forbidden, ValidationFailure).
   StorefrontOrchestrator converts a category into an OperationStatus.

2. Codes are class attributes so they are readable without an instance.

3. Any exception raised inside a unit of work rolls the whole transaction
   back before it reaches the caller.

===============================================================================
"""


class StorefrontError(Exception):
    """
    Base exception for all storefront kernel errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "STOREFRONT_ERROR"


# Not-found exceptions


class NotFoundError(StorefrontError):
    """Base exception for missing entities."""

    code: str = "NOT_FOUND"


class ProductNotFoundError(NotFoundError):
    """Product with given ID was not found."""

    code: str = "PRODUCT_NOT_FOUND"

    def __init__(self, product_id: str):
        self.product_id = product_id
        super().__init__(f"Product not found: {product_id}")


class OrderNotFoundError(NotFoundError):
    """Order with given ID was not found (or is not visible to the caller)."""

    code: str = "ORDER_NOT_FOUND"

    def __init__(self, order_id: str):
        self.order_id = order_id
        super().__init__(f"Order not found: {order_id}")


class PaymentNotFoundError(NotFoundError):
    """Payment with given ID was not found."""

    code: str = "PAYMENT_NOT_FOUND"

    def __init__(self, payment_id: str):
        self.payment_id = payment_id
        super().__init__(f"Payment not found: {payment_id}")


class UserNotFoundError(NotFoundError):
    """User with given ID was not found."""

    code: str = "USER_NOT_FOUND"

    def __init__(self, user_id: str):
        self.user_id = user_id
        super().__init__(f"User not found: {user_id}")


class CartItemNotFoundError(NotFoundError):
    """Cart line was not found for this user."""

    code: str = "CART_ITEM_NOT_FOUND"

    def __init__(self, item_id: str, user_id: str):
        self.item_id = item_id
        self.user_id = user_id
        super().__init__(f"Cart item {item_id} not found for user {user_id}")


# Stock


class InsufficientStockError(StorefrontError):
    """
    Requested change would take a product's stock below zero.

    Carries the offending product so the caller can name it.
    """

    code: str = "INSUFFICIENT_STOCK"

    def __init__(
        self,
        product_id: str,
        requested: int,
        available: int,
        product_name: str | None = None,
    ):
        self.product_id = product_id
        self.product_name = product_name
        self.requested = requested
        self.available = available
        label = f"{product_id} ({product_name})" if product_name else product_id
        super().__init__(
            f"Insufficient stock for product {label}: "
            f"requested={requested}, available={available}"
        )


# State machine exceptions


class InvalidStateError(StorefrontError):
    """Base exception for illegal state-machine transitions."""

    code: str = "INVALID_STATE"


class InvalidOrderTransitionError(InvalidStateError):
    """Order status transition is not in the transition table."""

    code: str = "INVALID_ORDER_TRANSITION"

    def __init__(self, order_id: str, current_status: str, requested_status: str):
        self.order_id = order_id
        self.current_status = current_status
        self.requested_status = requested_status
        super().__init__(
            f"Order {order_id} cannot move from {current_status} to {requested_status}"
        )


class InvalidPaymentTransitionError(InvalidStateError):
    """Payment status transition is not allowed (e.g. payment already terminal)."""

    code: str = "INVALID_PAYMENT_TRANSITION"

    def __init__(self, payment_id: str, current_status: str, requested_status: str):
        self.payment_id = payment_id
        self.current_status = current_status
        self.requested_status = requested_status
        super().__init__(
            f"Payment {payment_id} cannot move from {current_status} to {requested_status}"
        )


class OrderCancelledError(InvalidStateError):
    """Operation is not allowed on a cancelled order."""

    code: str = "ORDER_CANCELLED"

    def __init__(self, order_id: str):
        self.order_id = order_id
        super().__init__(f"Order {order_id} is cancelled")


class IdempotencyKeyConflictError(InvalidStateError):
    """
    The idempotency key already belongs to an order with different lines,
    or another request claimed it first.
    """

    code: str = "IDEMPOTENCY_KEY_CONFLICT"

    def __init__(self, idempotency_key: str, order_id: str | None = None):
        self.idempotency_key = idempotency_key
        self.order_id = order_id
        if order_id is not None:
            message = (
                f"Idempotency key {idempotency_key!r} was used for order {order_id} "
                "with different items"
            )
        else:
            message = f"Idempotency key {idempotency_key!r} was claimed by a concurrent request"
        super().__init__(message)


# Ownership


class ForbiddenError(StorefrontError):
    """Caller does not own the entity it is acting on."""

    code: str = "FORBIDDEN"

    def __init__(self, entity_type: str, entity_id: str, user_id: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.user_id = user_id
        super().__init__(
            f"User {user_id} may not act on {entity_type} {entity_id}"
        )


# Validation exceptions


class ValidationFailureError(StorefrontError):
    """Base exception for malformed input caught inside the kernel."""

    code: str = "VALIDATION_FAILURE"


class EmptyOrderError(ValidationFailureError):
    """Order request carried no line items."""

    code: str = "EMPTY_ORDER"

    def __init__(self):
        super().__init__("items must be a non-empty list")


class InvalidQuantityError(ValidationFailureError):
    """Quantity or delta is not a valid integer for the operation."""

    code: str = "INVALID_QUANTITY"

    def __init__(self, product_id: str, quantity: object):
        self.product_id = product_id
        self.quantity = quantity
        super().__init__(f"Invalid quantity {quantity!r} for product {product_id}")


class InvalidStockValueError(ValidationFailureError):
    """Absolute stock value is negative or not an integer."""

    code: str = "INVALID_STOCK_VALUE"

    def __init__(self, product_id: str, value: object):
        self.product_id = product_id
        self.value = value
        super().__init__(f"Invalid stock value {value!r} for product {product_id}")


class InvalidStatusError(ValidationFailureError):
    """Status is not one of the enumerated values."""

    code: str = "INVALID_STATUS"

    def __init__(self, status: object, allowed: tuple[str, ...]):
        self.status = status
        self.allowed = allowed
        super().__init__(f"Invalid status {status!r}; expected one of {', '.join(allowed)}")


class InvalidRoleError(ValidationFailureError):
    """Role is not one of the enumerated values."""

    code: str = "INVALID_ROLE"

    def __init__(self, role: object, allowed: tuple[str, ...]):
        self.role = role
        self.allowed = allowed
        super().__init__(f"Invalid role {role!r}; expected one of {', '.join(allowed)}")


class UnsupportedProviderError(ValidationFailureError):
    """No adapter is registered for the requested payment provider."""

    code: str = "UNSUPPORTED_PROVIDER"

    def __init__(self, provider: str):
        self.provider = provider
        super().__init__(f"Unsupported payment provider: {provider}")


# Immutability


class ImmutabilityViolationError(StorefrontError):
    """
    Attempted to modify or delete an append-only record.

    History rows are immutable from creation; order items are immutable
    once inserted.
    """

    code: str = "IMMUTABILITY_VIOLATION"

    def __init__(self, entity_type: str, entity_id: str, reason: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.reason = reason
        super().__init__(
            f"Immutability violation on {entity_type} {entity_id}: {reason}"
        )
