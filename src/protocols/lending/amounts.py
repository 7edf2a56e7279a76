"""Human ↔ base-unit amount conversion — pure functions, no I/O."""
from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation, Overflow

from ...errors import ValidationError

U64_MAX = 2**64 - 1


def parse_amount(value: str | int | float | Decimal) -> Decimal:
    """Parse a human-entered amount.

    Floats go through ``str`` so ``0.1`` means 0.1, not its binary expansion.

    Raises:
        ValidationError: non-numeric, non-finite or negative input.
    """
    if isinstance(value, bool):
        raise ValidationError(f"amount must be numeric, got {value!r}")

    try:
        if isinstance(value, float):
            amount = Decimal(str(value))
        elif isinstance(value, str):
            amount = Decimal(value.strip())
        else:
            amount = Decimal(value)
    except (InvalidOperation, TypeError, ValueError) as e:
        raise ValidationError(f"amount must be numeric, got {value!r}") from e

    if not amount.is_finite():
        raise ValidationError(f"amount must be finite, got {value!r}")
    if amount < 0:
        raise ValidationError(f"amount must not be negative, got {value!r}")
    return amount


def to_base_units(value: str | int | float | Decimal, decimals: int) -> int:
    """Convert a human amount to base units: round(amount * 10^decimals).

    Examples:
        to_base_units("100", 6) → 100000000
        to_base_units("0.0000005", 6) → 1
    """
    amount = parse_amount(value)
    # u64 values have at most 20 digits; reject before scaling past Emax.
    if amount and amount.adjusted() + decimals > 20:
        raise ValidationError(f"amount {value!r} exceeds the u64 range")
    try:
        scaled = amount.scaleb(decimals)
    except (Overflow, InvalidOperation) as e:
        raise ValidationError(f"amount {value!r} exceeds the u64 range") from e
    if scaled > U64_MAX:
        raise ValidationError(f"amount {value!r} exceeds the u64 range")
    base = int(scaled.quantize(Decimal(1), rounding=ROUND_HALF_UP))
    if base > U64_MAX:
        raise ValidationError(f"amount {value!r} exceeds the u64 range")
    return base


def to_human_units(base_units: int, decimals: int) -> Decimal:
    """Convert base units back to a human amount."""
    return Decimal(base_units).scaleb(-decimals)
