"""
Module: storefront_kernel.db.types
Responsibility: Helpers for monetary and currency values.  Centralizes
    precision and rounding so that every service computes totals the same
    way.
Architecture position: Kernel > DB.  May be imported by models/, domain/,
    services/, and selectors/.  MUST NOT import from any of those layers.

Invariants enforced:
    - Fixed-point currency: Money columns are Numeric(12, 2) and every amount
      the kernel computes is a Decimal.  No floats for prices or totals.
    - round_money() is the only sanctioned rounding function; line totals are
      quantized with it before they are summed into an order total.

Failure modes:
    - InvalidCurrencyError on a currency code that is not three ASCII letters.
"""

from decimal import ROUND_HALF_UP, Decimal

MONEY_DECIMAL_PLACES = 2
DEFAULT_ROUNDING = ROUND_HALF_UP


def round_money(
    value: Decimal,
    decimal_places: int = MONEY_DECIMAL_PLACES,
    rounding: str = DEFAULT_ROUNDING,
) -> Decimal:
    """
    Round a monetary value to the configured number of decimal places.

    Preconditions: value is a Decimal.
    Postconditions: Returns value quantized with ROUND_HALF_UP by default.
    """
    quantize_str = "0." + "0" * decimal_places
    return value.quantize(Decimal(quantize_str), rounding=rounding)


def line_total(unit_price: Decimal, quantity: int) -> Decimal:
    """Price of one order line: unit price times quantity, rounded."""
    return round_money(Decimal(unit_price) * quantity)


class InvalidCurrencyError(ValueError):
    """Raised when a currency code is not a three-letter code."""

    def __init__(self, currency: str):
        self.currency = currency
        super().__init__(f"Invalid currency code: '{currency}'")


def validate_currency(currency: str) -> str:
    """
    Normalize and validate a currency code.

    Returns:
        The uppercase, trimmed code.

    Raises:
        InvalidCurrencyError: If the code is not exactly three ASCII letters.
    """
    if not currency or not isinstance(currency, str):
        raise InvalidCurrencyError(str(currency))

    normalized = currency.upper().strip()
    if len(normalized) != 3 or not (normalized.isascii() and normalized.isalpha()):
        raise InvalidCurrencyError(currency)
    return normalized
