from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Optional, Union

CENT = Decimal("0.01")
ZERO = Decimal("0")
HUNDRED = Decimal("100")

Number = Union[Decimal, int, float, str, None]


def to_decimal(value: Number) -> Decimal:
    """Coerce a stored amount to Decimal (None counts as zero)."""
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value
    # str() first so floats don't carry binary noise into the ledger
    return Decimal(str(value))


def money(value: Number) -> Decimal:
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def percent_of(amount: Number, rate: Number) -> Decimal:
    """amount × rate / 100, rounded to the centime."""
    return money(to_decimal(amount) * to_decimal(rate) / HUNDRED)


def total(values: Iterable[Number], start: Optional[Decimal] = None) -> Decimal:
    return sum((to_decimal(v) for v in values), start if start is not None else ZERO)
