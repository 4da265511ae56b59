"""
Money helpers.

Amounts are stored as ``NUMERIC(12, 2)`` and every calculation in the
services works on integer cents: convert once, do integer arithmetic,
convert back once. No float ever touches a balance.

    >>> to_cents(Decimal('12.345'))
    1235
    >>> from_cents(1235)
    Decimal('12.35')
"""

from decimal import Decimal, ROUND_HALF_UP

CENT = Decimal('0.01')
ZERO = Decimal('0.00')

# Two amounts within this many cents are treated as equal
TOLERANCE_CENTS = 1


def to_cents(amount) -> int:
    """Convert a Decimal/str/int amount to integer cents (half-up)."""
    if amount is None:
        return 0
    if not isinstance(amount, Decimal):
        amount = Decimal(str(amount))
    return int((amount * 100).quantize(Decimal('1'), rounding=ROUND_HALF_UP))


def from_cents(cents: int) -> Decimal:
    """Convert integer cents back to a two-place Decimal."""
    return (Decimal(cents) / Decimal(100)).quantize(CENT)


def quantize(amount) -> Decimal:
    """Round an amount to whole cents."""
    return from_cents(to_cents(amount))


def within_tolerance(a_cents: int, b_cents: int, tolerance: int = TOLERANCE_CENTS) -> bool:
    return abs(a_cents - b_cents) <= tolerance


def format_money(cents: int) -> str:
    """Human-readable amount for error messages: ``-$1,234.50``."""
    sign = '-' if cents < 0 else ''
    return f"{sign}${from_cents(abs(cents)):,.2f}"
