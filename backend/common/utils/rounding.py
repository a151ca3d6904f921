"""Half-up rounding for fares and distances."""

from decimal import Decimal, ROUND_HALF_UP
from typing import Union

Number = Union[int, float, Decimal]


def round_half_up(value: Number, digits: int = 0) -> Union[int, float]:
    """
    Round ``value`` half away from zero.

    Python's builtin ``round`` uses banker's rounding, which would turn a
    fare of 62.5 into 62. Returns an int when ``digits`` is 0.
    """
    quantum = Decimal(1).scaleb(-digits)
    rounded = Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP)
    return int(rounded) if digits == 0 else float(rounded)
