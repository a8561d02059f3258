from decimal import Decimal, ROUND_HALF_UP
from typing import Union

Number = Union[Decimal, int, float, str]

CENT = Decimal("0.01")
ZERO = Decimal("0.00")


def as_decimal(value: Number) -> Decimal:
    # floats go through str() so 9.99 stays 9.99
    return value if isinstance(value, Decimal) else Decimal(str(value))


def round2(value: Number) -> Decimal:
    """Round half-up to cents."""
    return as_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)
