"""
Rounding helpers shared by the XP and priority engines.

Python's built-in round() uses banker's rounding (round(22.5) == 22). Stored
XP and displayed percentages round half away from zero instead, so
round(15 * 1.5) must give 23.
"""
from decimal import Decimal, ROUND_HALF_UP
from typing import Union

Number = Union[int, float, Decimal]


def round_half_up(value: Number, ndigits: int = 0) -> Union[int, float]:
    """
    Round half away from zero.

    Args:
        value: Number to round
        ndigits: Decimal places to keep

    Returns:
        int when ndigits == 0, float otherwise
    """
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    exponent = Decimal(1).scaleb(-ndigits)
    rounded = value.quantize(exponent, rounding=ROUND_HALF_UP)
    if ndigits == 0:
        return int(rounded)
    return float(rounded)


def clamp(value: float, lower: float, upper: float) -> float:
    return max(lower, min(upper, value))
