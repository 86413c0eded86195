"""Money arithmetic for UPA lines and totals."""

from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Protocol

CENTS = Decimal("0.01")


class PricedLine(Protocol):
    total_price: Decimal


def to_money(value: Decimal | int | str) -> Decimal:
    """Quantize to cents, half-up."""
    return Decimal(value).quantize(CENTS, rounding=ROUND_HALF_UP)


def line_total(quantity: Decimal, unit_price: Decimal) -> Decimal:
    """Total of one line: quantity x unit price, rounded to cents."""
    return to_money(Decimal(quantity) * Decimal(unit_price))


def recompute_total(lines: Iterable[PricedLine]) -> Decimal:
    """
    Sum of line totals across any mix of UPA line categories.

    The only place a UPA total is computed; callers pass every line of the UPA.
    """
    return to_money(sum((Decimal(line.total_price) for line in lines), Decimal("0")))
