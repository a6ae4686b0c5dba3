# src/parcel_optimizer/packing/extreme_points.py

from __future__ import annotations

from typing import Optional, Sequence

from parcel_optimizer.geometry import (
    Extents,
    candidate_bounds,
    has_support,
    normalize,
    overlaps_any,
    point_inside,
    sizes_of,
    union_extents,
)
from parcel_optimizer.models import Box, Placement
from parcel_optimizer.scoring import Score, is_better, score_units

Point = tuple[int, int, int]


def construction_order(boxes: Sequence[Box]) -> list[Box]:
    """Largest first: volume, then longest edge, then height (all descending)."""
    return sorted(boxes, key=lambda b: (-b.volume, -b.max_dim, -b.height))


def corner_points(p: Placement) -> list[Point]:
    """The 7 corners of ``p`` other than its origin."""
    return [
        (p.x2, p.y, p.z),
        (p.x, p.y2, p.z),
        (p.x, p.y, p.z2),
        (p.x2, p.y2, p.z),
        (p.x2, p.y, p.z2),
        (p.x, p.y2, p.z2),
        (p.x2, p.y2, p.z2),
    ]


def _tie_key(point: Point) -> tuple[int, int, int, int]:
    x, y, z = point
    return (z, x + y, x, y)


def _place(box: Box, x: int, y: int, z: int) -> Placement:
    return Placement(
        box_id=box.id,
        name=box.name,
        x=x,
        y=y,
        z=z,
        width=box.length,
        depth=box.width,
        height=box.height,
        color=box.color,
    )


def _best_point(
    box: Box,
    points: Sequence[Point],
    placed: Sequence[Placement],
    extents: Optional[Extents],
    supported: bool,
    height_cap: Optional[int],
) -> Optional[Point]:
    best: Optional[tuple[Score, Point]] = None
    for point in points:
        x, y, z = point
        bounds = candidate_bounds(x, y, z, box.length, box.width, box.height)
        if supported and not has_support(placed, x, y, z, box.length, box.width):
            continue
        if overlaps_any(bounds, placed):
            continue
        sizes = sizes_of(union_extents(extents, bounds))
        if height_cap is not None and sizes[2] > height_cap:
            continue
        candidate = score_units(*sizes)
        if best is None or is_better(candidate, best[0]):
            best = (candidate, point)
        elif not is_better(best[0], candidate) and _tie_key(point) < _tie_key(best[1]):
            best = (candidate, point)
    return None if best is None else best[1]


def build_extreme_point_packing(
    boxes: Sequence[Box],
    height_cap: Optional[int] = None,
) -> list[Placement]:
    """
    Build a placement from scratch with the extreme-point heuristic.

    Boxes keep the orientation they were given. Each box goes to the extreme
    point with the best resulting score, trying supported points (floor or a
    single top face covering the whole footprint) before unsupported ones.
    When no point works the box is appended after the current right edge.

    ``height_cap`` (integer units) rejects points that would make the
    bounding box taller than the cap; the right-edge fallback ignores it.

    Returns normalized placements in placement order.
    """
    placed: list[Placement] = []
    points: dict[Point, None] = {(0, 0, 0): None}
    extents: Optional[Extents] = None

    for box in construction_order(boxes):
        candidates = list(points)
        point = _best_point(box, candidates, placed, extents, True, height_cap)
        if point is None:
            point = _best_point(box, candidates, placed, extents, False, height_cap)
        if point is None:
            right_edge = max((p.x2 for p in placed), default=0)
            point = (right_edge, 0, 0)

        placement = _place(box, *point)
        placed.append(placement)
        extents = union_extents(extents, candidate_bounds(*point, box.length, box.width, box.height))

        for corner in corner_points(placement):
            points.setdefault(corner, None)
        # Every extreme point stays outside all placed volumes
        points = {
            p: None
            for p in points
            if not any(point_inside(p, q) for q in placed)
        }

    return normalize(placed)


def boxes_from_placements(placements: Sequence[Placement]) -> list[Box]:
    """Boxes fixed in the orientation the placements already use."""
    return [
        Box(
            id=p.box_id,
            name=p.name,
            length=p.width,
            width=p.depth,
            height=p.height,
            color=p.color,
        )
        for p in placements
    ]


def rebuild_with_extreme_points(
    placements: Sequence[Placement],
    height_cap: Optional[int] = None,
) -> list[Placement]:
    """Re-run construction over the oriented extents of an existing placement."""
    return build_extreme_point_packing(boxes_from_placements(placements), height_cap=height_cap)
