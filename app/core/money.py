"""Decimal helpers for ledger arithmetic. Money is never handled as float."""

from decimal import ROUND_HALF_UP, Decimal

CENT = Decimal("0.01")
ZERO = Decimal("0.00")


def to_decimal(val) -> Decimal:
    if val is None:
        return ZERO
    if isinstance(val, Decimal):
        return val
    # str() first so float values from drivers without native decimals keep their printed digits
    return Decimal(str(val))


def to_money(val) -> Decimal:
    """Quantize to cents."""
    return to_decimal(val).quantize(CENT, rounding=ROUND_HALF_UP)


def line_amount(quantity: int, unit_price) -> Decimal:
    return to_money(to_decimal(unit_price) * quantity)
