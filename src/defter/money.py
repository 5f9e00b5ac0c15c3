"""Fixed-point money helpers.

All settlement arithmetic happens on integer cents. Decimals only appear at
the boundary: on the way in (``to_cents``) and on the way out
(``from_cents``).
"""

from decimal import ROUND_HALF_UP, Decimal, localcontext

CENT = Decimal("0.01")

# Two amounts closer than this are the same amount.
EPS_CENTS = 1


def to_cents(amount: Decimal | int | float | str | None) -> int:
    """
    Convert a currency amount to integer cents.
    Uses ROUND_HALF_UP, so 10.005 becomes 1001.

    Args:
        amount: Amount in currency units. ``None`` counts as zero.

    Returns:
        Amount in cents (integer)
    """
    if amount is None:
        return 0
    if not isinstance(amount, Decimal):
        # str() keeps floats like 0.1 from dragging binary noise along
        amount = Decimal(str(amount))
    # exact at any magnitude, not just within the default 28 digits
    with localcontext() as ctx:
        ctx.prec = max(ctx.prec, len(amount.as_tuple().digits) + 3)
        cents = (amount * 100).to_integral_value(rounding=ROUND_HALF_UP)
    return int(cents)


def from_cents(cents: int) -> Decimal:
    """Convert integer cents back to a Decimal with exactly two places."""
    with localcontext() as ctx:
        ctx.prec = max(ctx.prec, len(str(abs(cents))) + 3)
        return (Decimal(cents) / 100).quantize(CENT)


def quantize_amount(amount: Decimal | int | float | str | None) -> Decimal:
    """Round an arbitrary amount to the nearest cent."""
    return from_cents(to_cents(amount))


def amounts_match(left_cents: int, right_cents: int) -> bool:
    """True when two cent amounts differ by no more than ``EPS_CENTS``."""
    return abs(left_cents - right_cents) <= EPS_CENTS


def equal_shares_cents(total_cents: int, count: int) -> list[int]:
    """
    Split ``total_cents`` into ``count`` whole-cent shares.

    Every share is ``total // count`` or one cent more. The leftover
    ``total % count`` cents go to the first shares, so the result always
    sums to ``total_cents`` and depends only on the inputs.

    Raises:
        ValueError: If count is less than one
    """
    if count < 1:
        raise ValueError(f"Cannot split an amount into {count} shares")

    base, remainder = divmod(total_cents, count)
    return [base + 1 if index < remainder else base for index in range(count)]
