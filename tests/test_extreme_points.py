from __future__ import annotations

from parcel_optimizer.geometry import bounds_of, boxes_overlap, has_support
from parcel_optimizer.models import Box
from parcel_optimizer.packing.extreme_points import (
    build_extreme_point_packing,
    construction_order,
    rebuild_with_extreme_points,
)


def box(box_id: str, length: int, width: int, height: int) -> Box:
    return Box(id=box_id, name=box_id, length=length, width=width, height=height)


def assert_no_overlaps(placements):
    bounds = [bounds_of(p) for p in placements]
    for i in range(len(bounds)):
        for j in range(i + 1, len(bounds)):
            assert not boxes_overlap(bounds[i], bounds[j])


def positions(placements):
    return {p.box_id: (p.x, p.y, p.z) for p in placements}


def test_largest_box_goes_first() -> None:
    boxes = [
        box("small", 10, 10, 10),
        box("flat", 40, 20, 20),
        box("tall", 20, 20, 40),
        box("long", 80, 10, 20),
    ]

    order = [b.id for b in construction_order(boxes)]

    # equal volume: the longer edge wins, then the taller box
    assert order == ["long", "tall", "flat", "small"]


def test_identical_flat_boxes_stack_when_that_scores_best() -> None:
    placements = build_extreme_point_packing([box("a", 150, 200, 20), box("b", 150, 200, 20)])

    assert positions(placements) == {"a": (0, 0, 0), "b": (0, 0, 20)}


def test_height_cap_keeps_the_packing_flat() -> None:
    placements = build_extreme_point_packing(
        [box("a", 150, 200, 20), box("b", 150, 200, 20)],
        height_cap=20,
    )

    assert positions(placements) == {"a": (0, 0, 0), "b": (150, 0, 0)}


def test_ties_prefer_smaller_x() -> None:
    """Side by side along x or y scores the same; the smaller x wins."""
    placements = build_extreme_point_packing(
        [box("a", 100, 100, 100), box("b", 100, 100, 100)],
        height_cap=100,
    )

    assert positions(placements) == {"a": (0, 0, 0), "b": (0, 100, 0)}


def test_right_edge_fallback_when_nothing_fits_the_cap() -> None:
    placements = build_extreme_point_packing(
        [box("a", 100, 50, 30), box("b", 100, 50, 30)],
        height_cap=20,
    )

    assert positions(placements) == {"a": (0, 0, 0), "b": (100, 0, 0)}


def test_mixed_boxes_are_supported_and_collision_free() -> None:
    boxes = [
        box("A", 300, 200, 100),
        box("B1", 150, 150, 100),
        box("B2", 150, 150, 100),
        box("C", 100, 100, 50),
        box("E", 50, 50, 30),
    ]

    placements = build_extreme_point_packing(boxes)

    assert_no_overlaps(placements)
    for p in placements:
        others = [q for q in placements if q is not p]
        assert has_support(others, p.x, p.y, p.z, p.width, p.depth)
    assert positions(placements) == {
        "A": (0, 0, 0),
        "B1": (0, 0, 100),
        "B2": (150, 0, 100),
        "C": (0, 0, 200),
        "E": (0, 150, 100),
    }
    assert min(p.x for p in placements) == 0
    assert min(p.y for p in placements) == 0
    assert min(p.z for p in placements) == 0


def test_rebuild_keeps_ids_and_orientation() -> None:
    original = build_extreme_point_packing([box("a", 150, 200, 20), box("b", 20, 150, 200)])

    rebuilt = rebuild_with_extreme_points(original)

    assert sorted(p.box_id for p in rebuilt) == ["a", "b"]
    by_id = {p.box_id: p for p in rebuilt}
    assert (by_id["b"].width, by_id["b"].depth, by_id["b"].height) == (20, 150, 200)
    assert_no_overlaps(rebuilt)


def test_empty_input() -> None:
    assert build_extreme_point_packing([]) == []
