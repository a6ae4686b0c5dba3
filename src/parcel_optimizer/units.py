"""Conversion between centimeters and the integer placement unit."""

from __future__ import annotations

import math

# 10 units per cm, i.e. millimeters.
UNITS_PER_CM = 10


def to_units(cm: float) -> int:
    """Convert centimeters to integer units, rounding half up."""
    return int(math.floor(float(cm) * UNITS_PER_CM + 0.5))


def to_cm(units: int) -> float:
    return units / UNITS_PER_CM
