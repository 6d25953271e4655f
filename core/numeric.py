from __future__ import annotations

import math
from typing import Any, Optional, Union

Number = Union[int, float]


def coerce_number(value: Any) -> Optional[Number]:
    """Convert ints, floats and numeric strings to a finite number, else None.

    Integral results are returned as ``int`` so they can index tables.
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, int):
        return value
    if isinstance(value, float):
        number = value
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            number = float(text)
        except ValueError:
            return None
    else:
        return None

    if not math.isfinite(number):
        return None
    return int(number) if number.is_integer() else number


def normalize_number(value: Any, modulus: int) -> Optional[Number]:
    """1-based modulo: multiples of ``modulus`` (0 included) map to ``modulus``.

    Negative values use their magnitude, so -9 -> 1 and -8 -> 8 for modulus 8.
    """
    number = coerce_number(value)
    if number is None:
        return None
    remainder = abs(number) % modulus
    return modulus if remainder == 0 else remainder


def is_integral(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)
