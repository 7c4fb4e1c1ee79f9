"""
Small numeric helpers shared by the scoring modules.
"""

import math


def round_half_up(value: float) -> int:
    """Round to the nearest integer with .5 going up, unlike the builtin round()."""
    return int(math.floor(value + 0.5))


def percentage(part: float, whole: float) -> float:
    """Return part/whole as a percentage, or 0.0 when whole is zero."""
    return (part / whole) * 100 if whole else 0.0
