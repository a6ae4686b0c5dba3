from __future__ import annotations

from typing import Iterable

from parcel_optimizer.models import PackingResult, Placement
from parcel_optimizer.units import UNITS_PER_CM


def placement_volume(p: Placement) -> float:
    """Volume of one placement in cubic centimeters."""
    return p.volume / UNITS_PER_CM ** 3


def used_volume(placements: Iterable[Placement]) -> float:
    return sum(placement_volume(p) for p in placements)


def packing_density(result: PackingResult) -> float:
    return compute_metrics(result)[2]


def compute_metrics(result: PackingResult) -> tuple[float, float, float]:
    """(used volume, bounding volume, density) of a packing, volumes in cm3."""
    dims = result.dimensions
    used = used_volume(result.placements)
    bounding_volume = dims.length_cm * dims.width_cm * dims.height_cm
    density = 0.0 if bounding_volume <= 0 else used / bounding_volume
    return used, bounding_volume, density
