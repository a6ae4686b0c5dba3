"""Lexicographic scoring of bounding boxes.

A packing is judged by ``(size_sum, footprint_aspect, max_dim, volume)``,
smaller being better on every key. Values closer than ``EPS`` are treated
as tied so floating-point noise never decides a comparison.
"""

from __future__ import annotations

import math
from typing import Iterable, NamedTuple, Optional, TypeVar

from parcel_optimizer.models import Dimensions
from parcel_optimizer.units import to_cm

EPS = 1e-6

T = TypeVar("T")


class Score(NamedTuple):
    size_sum: float
    footprint_aspect: float
    max_dim: float
    volume: float


def aspect_ratio(a: float, b: float) -> float:
    low, high = min(a, b), max(a, b)
    if low <= 0:
        return math.inf
    return high / low


def score_sizes(length: float, width: float, height: float) -> Score:
    """Score of a bounding box given its edge lengths in centimeters."""
    return Score(
        size_sum=length + width + height,
        footprint_aspect=aspect_ratio(length, width),
        max_dim=max(length, width, height),
        volume=length * width * height,
    )


def score(dims: Dimensions) -> Score:
    return score_sizes(dims.length_cm, dims.width_cm, dims.height_cm)


def score_units(length: int, width: int, height: int) -> Score:
    """Score of a bounding box given its edge lengths in integer units."""
    return score_sizes(to_cm(length), to_cm(width), to_cm(height))


def _tied(a: float, b: float, eps: float) -> bool:
    return a == b or abs(a - b) <= eps


def is_better(candidate: Score, best: Score, eps: float = EPS) -> bool:
    """True when ``candidate`` is strictly better than ``best``."""
    for mine, theirs in zip(candidate, best):
        if _tied(mine, theirs, eps):
            continue
        return mine < theirs - eps
    return False


def best_of(candidates: Iterable[tuple[Score, T]]) -> Optional[tuple[Score, T]]:
    """First candidate no other candidate beats; None for an empty input."""
    best: Optional[tuple[Score, T]] = None
    for candidate in candidates:
        if best is None or is_better(candidate[0], best[0]):
            best = candidate
    return best
