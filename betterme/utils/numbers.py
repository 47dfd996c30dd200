"""Numeric helpers"""
import math


def round_half_up(value: float) -> int:
    """
    Round to the nearest integer, halves away from zero for positives.

    Python's round() uses banker's rounding (round(0.5) == 0, round(10.5) == 10),
    which would under-award rewards and averages that land exactly on .5.
    """
    return math.floor(value + 0.5)
