"""
Order line normalization -- pure input shaping for the Order Assembler.

Responsibility:
    Turn a caller's raw item list and shipping address into the canonical
    form the assembler persists: one LineItemRequest per distinct product
    (quantities summed), and a JSON-object address.

Architecture position:
    Kernel > Domain -- pure, zero I/O.

Failure modes:
    - EmptyOrderError if no items are supplied.
    - InvalidQuantityError if a quantity is not a positive integer.
    - ProductNotFoundError if a product id is not a UUID (it cannot exist).
    - ValidationFailureError if the address is neither a string nor a mapping.
"""

from collections.abc import Iterable, Mapping
from typing import Any
from uuid import UUID

from storefront_kernel.domain.dtos import LineItemRequest
from storefront_kernel.exceptions import (
    EmptyOrderError,
    InvalidQuantityError,
    ProductNotFoundError,
    ValidationFailureError,
)

RawLineItem = LineItemRequest | Mapping[str, Any]


def _coerce_product_id(raw: Any) -> UUID:
    if isinstance(raw, UUID):
        return raw
    try:
        return UUID(str(raw))
    except ValueError:
        raise ProductNotFoundError(str(raw)) from None


def _coerce_quantity(product_id: UUID, raw: Any) -> int:
    # bool is an int subclass; True is not a quantity.
    if isinstance(raw, bool) or not isinstance(raw, int) or raw <= 0:
        raise InvalidQuantityError(str(product_id), raw)
    return raw


def normalize_line_items(items: Iterable[RawLineItem] | None) -> tuple[LineItemRequest, ...]:
    """
    Validate and merge requested lines.

    Lines for the same product are merged by summing quantities; the merged
    line keeps the position of the first occurrence.
    """
    merged: dict[UUID, int] = {}
    for item in items or ():
        if isinstance(item, LineItemRequest):
            product_id, quantity = item.product_id, item.quantity
        else:
            product_id, quantity = item.get("product_id"), item.get("quantity")
        pid = _coerce_product_id(product_id)
        qty = _coerce_quantity(pid, quantity)
        merged[pid] = merged.get(pid, 0) + qty

    if not merged:
        raise EmptyOrderError()

    return tuple(LineItemRequest(product_id=pid, quantity=qty) for pid, qty in merged.items())


def normalize_shipping_address(address: Any) -> dict[str, Any] | None:
    """A bare string becomes ``{"address": <string>}``; mappings are copied."""
    if address is None:
        return None
    if isinstance(address, str):
        return {"address": address}
    if isinstance(address, Mapping):
        return dict(address)
    raise ValidationFailureError(
        f"shipping_address must be a string or an object, got {type(address).__name__}"
    )
