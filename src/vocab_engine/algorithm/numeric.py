"""Small numeric helpers shared by the scheduling algorithms."""

import math


def clamp(value, lower, upper):
    """Limit value to the closed range [lower, upper]."""
    return max(lower, min(upper, value))


def round_half_up(value: float) -> int:
    """Round to the nearest integer, with .5 going towards +infinity.

    Python's ``round`` uses banker's rounding (``round(0.5) == 0``), which
    would bias rating and interval updates downwards.
    """
    return math.floor(value + 0.5)
