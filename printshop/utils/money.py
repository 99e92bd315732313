"""Fixed-point money helpers.

Amounts live as integer cents everywhere inside the ledger. Decimal amounts
only appear at the API boundary, where they are rounded half-up to two places.
"""
from decimal import Decimal, ROUND_HALF_UP
from typing import List, Union

CENT = Decimal("0.01")

Amount = Union[Decimal, int, float, str]


def to_decimal(amount: Amount) -> Decimal:
    """Coerce an amount to Decimal without inheriting float noise."""
    if isinstance(amount, Decimal):
        return amount
    if isinstance(amount, float):
        return Decimal(repr(amount))
    return Decimal(amount)


def to_cents(amount: Amount) -> int:
    """Convert a decimal amount (e.g. ``Decimal("10.005")``) to integer cents."""
    quantized = to_decimal(amount).quantize(CENT, rounding=ROUND_HALF_UP)
    return int(quantized * 100)


def from_cents(cents: int) -> Decimal:
    """Convert integer cents back to a two-place Decimal."""
    return (Decimal(cents) / 100).quantize(CENT)


def line_total_cents(unit_price_cents: int, quantity: Amount) -> int:
    """Price of ``quantity`` units, rounded half-up to the cent."""
    total = Decimal(unit_price_cents) * to_decimal(quantity)
    return int(total.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def percent_of(cents: int, rate: Amount) -> int:
    """``cents * rate / 100`` rounded half-up, e.g. a 10% commission."""
    value = Decimal(cents) * to_decimal(rate) / 100
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def split_cents(total_cents: int, parts: int) -> List[int]:
    """Split a total into ``parts`` slices that add back to it exactly.

    Every slice gets the floored share; the last slice absorbs the remainder.
    ``split_cents(10000, 3) == [3333, 3333, 3334]``.
    """
    if parts < 1:
        raise ValueError("parts must be at least 1")
    base = total_cents // parts
    return [base] * (parts - 1) + [total_cents - base * (parts - 1)]



def format_brl(cents: int) -> str:
    """Display form used in notification messages: ``"R$ 1234,50"``."""
    return "R$ " + f"{from_cents(cents):.2f}".replace(".", ",")
