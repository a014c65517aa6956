"""Fixed-point money helpers.

Amounts are stored as integer minor units (cents) and only become
``Decimal`` at the edges: request/response bodies and gateway calls.
"""

from decimal import ROUND_HALF_UP, Decimal

_CENT = Decimal("0.01")


def to_cents(amount: Decimal | str | int) -> int:
    """Convert a major-unit amount to integer cents, rounding half up."""
    value = Decimal(str(amount)).quantize(_CENT, rounding=ROUND_HALF_UP)
    return int(value * 100)


def from_cents(cents: int) -> Decimal:
    return (Decimal(cents) / 100).quantize(_CENT)


def format_amount(cents: int) -> str:
    """Two-decimal string, the form gateways accept without float rounding."""
    return str(from_cents(cents))
