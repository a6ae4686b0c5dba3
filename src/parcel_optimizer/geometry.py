"""Geometry utilities for parcel packing.

All coordinates and extents are integer units (see ``units``). Functions take
anything exposing ``x, y, z, width, depth, height`` so they work on frozen
placements as well as on the mutable records used inside compaction passes.
"""

from __future__ import annotations

from typing import Iterable, Optional, Protocol, Sequence

from parcel_optimizer.models import Dimensions, Placement
from parcel_optimizer.units import to_cm

# (x1, y1, z1, x2, y2, z2)
Bounds = tuple[int, int, int, int, int, int]
Extents = Bounds


class Cuboid(Protocol):
    x: int
    y: int
    z: int
    width: int
    depth: int
    height: int


def boxes_overlap(a: Bounds, b: Bounds) -> bool:
    """
    Axis-aligned bounding box (AABB) overlap test.

    a, b are bounds: (x1, y1, z1, x2, y2, z2)

    Overlap exists only if they overlap on ALL 3 axes with positive volume.
    Touching faces/edges (ax2 == bx1) is NOT considered overlap.
    """
    ax1, ay1, az1, ax2, ay2, az2 = a
    bx1, by1, bz1, bx2, by2, bz2 = b

    return (ax1 < bx2 and ax2 > bx1) and (ay1 < by2 and ay2 > by1) and (az1 < bz2 and az2 > bz1)


def bounds_of(p: Cuboid) -> Bounds:
    return (p.x, p.y, p.z, p.x + p.width, p.y + p.depth, p.z + p.height)


def candidate_bounds(x: int, y: int, z: int, width: int, depth: int, height: int) -> Bounds:
    return (x, y, z, x + width, y + depth, z + height)


def intervals_overlap(a_start: int, a_size: int, b_start: int, b_size: int) -> bool:
    return a_start < b_start + b_size and b_start < a_start + a_size


def overlaps_any(bounds: Bounds, placed: Iterable[Cuboid]) -> bool:
    return any(boxes_overlap(bounds, bounds_of(p)) for p in placed)


def point_inside(point: tuple[int, int, int], p: Cuboid) -> bool:
    """True when the point lies in the half-open volume of ``p``."""
    x, y, z = point
    return (
        p.x <= x < p.x + p.width
        and p.y <= y < p.y + p.depth
        and p.z <= z < p.z + p.height
    )


def top_covers(support: Cuboid, x: int, y: int, z: int, width: int, depth: int) -> bool:
    """True when the top face of ``support`` sits at ``z`` and covers the footprint."""
    return (
        support.z + support.height == z
        and support.x <= x
        and x + width <= support.x + support.width
        and support.y <= y
        and y + depth <= support.y + support.depth
    )


def has_support(placed: Iterable[Cuboid], x: int, y: int, z: int, width: int, depth: int) -> bool:
    if z == 0:
        return True
    return any(top_covers(p, x, y, z, width, depth) for p in placed)


def fits_inside(bounds: Bounds, limits: tuple[int, int, int]) -> bool:
    x1, y1, z1, x2, y2, z2 = bounds
    length, width, height = limits
    return x1 >= 0 and y1 >= 0 and z1 >= 0 and x2 <= length and y2 <= width and z2 <= height


def can_place(
    bounds: Bounds,
    limits: tuple[int, int, int],
    existing: Iterable[Cuboid],
) -> bool:
    """
    Check if a box with the given bounds can be placed:
    - inside the container limits (length, width, height)
    - no overlap with existing placements
    """
    if not fits_inside(bounds, limits):
        return False
    return not overlaps_any(bounds, existing)


def extents_of(placements: Iterable[Cuboid], skip: Optional[int] = None) -> Optional[Extents]:
    """Min/max corners ``(x1, y1, z1, x2, y2, z2)`` of a placement set, or None if empty."""
    found = False
    min_x = min_y = min_z = 0
    max_x = max_y = max_z = 0
    for index, p in enumerate(placements):
        if index == skip:
            continue
        if not found:
            min_x, min_y, min_z = p.x, p.y, p.z
            max_x, max_y, max_z = p.x + p.width, p.y + p.depth, p.z + p.height
            found = True
            continue
        min_x = min(min_x, p.x)
        min_y = min(min_y, p.y)
        min_z = min(min_z, p.z)
        max_x = max(max_x, p.x + p.width)
        max_y = max(max_y, p.y + p.depth)
        max_z = max(max_z, p.z + p.height)
    if not found:
        return None
    return (min_x, min_y, min_z, max_x, max_y, max_z)


def union_extents(extents: Optional[Extents], bounds: Bounds) -> Extents:
    if extents is None:
        return bounds
    return (
        min(extents[0], bounds[0]),
        min(extents[1], bounds[1]),
        min(extents[2], bounds[2]),
        max(extents[3], bounds[3]),
        max(extents[4], bounds[4]),
        max(extents[5], bounds[5]),
    )


def sizes_of(extents: Optional[Extents]) -> tuple[int, int, int]:
    if extents is None:
        return (0, 0, 0)
    return (extents[3] - extents[0], extents[4] - extents[1], extents[5] - extents[2])


def dimensions_of(placements: Sequence[Cuboid], weight_g: int = 0, item_count: int = 0) -> Dimensions:
    """Bounding dimensions of the placement set in centimeters."""
    length, width, height = sizes_of(extents_of(placements))
    return Dimensions(
        length_cm=to_cm(length),
        width_cm=to_cm(width),
        height_cm=to_cm(height),
        weight_g=weight_g,
        item_count=item_count,
    )


def normalize(placements: Sequence[Placement]) -> list[Placement]:
    """Translate placements so the minimum of every axis is zero."""
    extents = extents_of(placements)
    if extents is None:
        return []
    dx, dy, dz = extents[0], extents[1], extents[2]
    if dx == dy == dz == 0:
        return list(placements)
    return [p.moved_to(p.x - dx, p.y - dy, p.z - dz) for p in placements]
