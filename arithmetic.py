"""Saturating product over the signed 16-bit domain."""
from typing import Iterable

from config import INT16_MIN, INT16_MAX


def saturate(value: int) -> int:
    return max(INT16_MIN, min(INT16_MAX, value))


def product(elements: Iterable[int]) -> int:
    """Multiply left to right, clamping the accumulator after every step.

    An empty input yields 0, not 1.
    """
    accumulator = None
    for element in elements:
        if accumulator is None:
            accumulator = saturate(element)
        else:
            accumulator = saturate(accumulator * element)
    return 0 if accumulator is None else accumulator
