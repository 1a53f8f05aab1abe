"""Rounding of provider measurements."""

import math


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves go up (8.5 -> 9, -8.5 -> -8)."""
    return math.floor(value + 0.5)
