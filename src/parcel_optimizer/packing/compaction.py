"""Local-search compaction of an existing placement.

Every pass copies the placements into pass-local ``_Slot`` records, applies
at most one move per iteration and hands back frozen ``Placement``s. A move
is applied only when the whole set stays collision-free.

relocate_edge_items, slide_to_origin and stack_into_gaps apply strictly
improving moves only. settle_thin_items may trade a little bounding height
for a flatter, mail-sized parcel, so it can make the score worse. Thin items
it has settled stay put afterwards, together with the item carrying them.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional, Sequence

from parcel_optimizer.config import DEFAULT_SETTINGS, PackingSettings
from parcel_optimizer.geometry import (
    Bounds,
    Extents,
    bounds_of,
    boxes_overlap,
    candidate_bounds,
    extents_of,
    intervals_overlap,
    normalize,
    sizes_of,
    top_covers,
    union_extents,
)
from parcel_optimizer.models import Placement
from parcel_optimizer.scoring import Score, is_better, score_units


@dataclass
class _Slot:
    placement: Placement
    x: int
    y: int
    z: int
    width: int
    depth: int
    height: int

    @classmethod
    def thaw(cls, p: Placement) -> "_Slot":
        return cls(p, p.x, p.y, p.z, p.width, p.depth, p.height)

    def freeze(self) -> Placement:
        if (self.x, self.y, self.z) == (self.placement.x, self.placement.y, self.placement.z):
            return self.placement
        return self.placement.moved_to(self.x, self.y, self.z)

    @property
    def x2(self) -> int:
        return self.x + self.width

    @property
    def y2(self) -> int:
        return self.y + self.depth

    @property
    def z2(self) -> int:
        return self.z + self.height

    def at(self, x: int, y: int, z: int) -> Bounds:
        return candidate_bounds(x, y, z, self.width, self.depth, self.height)


@dataclass
class _Move:
    score: Score
    index: int
    position: tuple[int, int, int]


def _thaw(placements: Iterable[Placement]) -> list[_Slot]:
    return [_Slot.thaw(p) for p in placements]


def _freeze(slots: Iterable[_Slot]) -> list[Placement]:
    return [s.freeze() for s in slots]


def _score(extents: Optional[Extents]) -> Score:
    return score_units(*sizes_of(extents))


def _collides(slots: Sequence[_Slot], index: int, bounds: Bounds) -> bool:
    return any(
        boxes_overlap(bounds, bounds_of(other))
        for j, other in enumerate(slots)
        if j != index
    )


def _consider(best: Optional[_Move], current: Score, candidate: Score) -> bool:
    """Strictly better than ``current`` and than the best move found so far."""
    if not is_better(candidate, current):
        return False
    return best is None or is_better(candidate, best.score)


def _apply(slots: list[_Slot], move: _Move) -> None:
    slot = slots[move.index]
    slot.x, slot.y, slot.z = move.position


def _too_tall(extents: Optional[Extents], height_cap: Optional[int]) -> bool:
    return height_cap is not None and sizes_of(extents)[2] > height_cap


def _support_of(slots: Sequence[_Slot], index: int) -> Optional[int]:
    s = slots[index]
    if s.z == 0:
        return None
    for j, o in enumerate(slots):
        if j != index and top_covers(o, s.x, s.y, s.z, s.width, s.depth):
            return j
    return None


def _held(slots: Sequence[_Slot], thin_height: Optional[int]) -> set[int]:
    """Thin items resting on a support, and the supports carrying them."""
    held: set[int] = set()
    if thin_height is None:
        return held
    for i, slot in enumerate(slots):
        if slot.height > thin_height:
            continue
        support = _support_of(slots, i)
        if support is not None:
            held.update((i, support))
    return held


# ---------------------------------------------------------------------------
# Edge relocation
# ---------------------------------------------------------------------------

def _anchors(slots: Sequence[_Slot], index: int) -> tuple[list[int], list[int], list[int]]:
    """Coordinates flush with, just past or just before every other item."""
    moving = slots[index]
    xs, ys, zs = {0}, {0}, {0}
    for j, other in enumerate(slots):
        if j == index:
            continue
        xs.update((other.x, other.x2, other.x - moving.width))
        ys.update((other.y, other.y2, other.y - moving.depth))
        zs.update((other.z, other.z2, other.z - moving.height))
    return (
        sorted(v for v in xs if v >= 0),
        sorted(v for v in ys if v >= 0),
        sorted(v for v in zs if v >= 0),
    )


def _span(low: int, high: int, start: int, size: int) -> int:
    return max(high, start + size) - min(low, start)


def relocate_edge_items(
    placements: Sequence[Placement],
    passes: int = 4,
    height_cap: Optional[int] = None,
    thin_height: Optional[int] = None,
) -> list[Placement]:
    """
    Move items sitting on the bounding box edge to a better anchor.

    An item is on the edge when removing it shrinks the size sum. Anchors
    are the cartesian product of the faces of every other item, offset by
    the moving item's own extent. The target need not be supported.

    ``height_cap`` rejects moves making the bounding box taller than the
    cap. With ``thin_height`` set, thin items resting on a support and the
    supports under them are not moved.
    """
    slots = _thaw(placements)
    if len(slots) < 2:
        return list(placements)

    for _ in range(passes):
        extents = extents_of(slots)
        current = _score(extents)
        full_sum = sum(sizes_of(extents))
        held = _held(slots, thin_height)
        best: Optional[_Move] = None

        for i, slot in enumerate(slots):
            if i in held:
                continue
            others = extents_of(slots, skip=i)
            if others is None or sum(sizes_of(others)) >= full_sum:
                continue
            ox1, oy1, oz1, ox2, oy2, oz2 = others
            xs, ys, zs = _anchors(slots, i)
            for x in xs:
                span_x = _span(ox1, ox2, x, slot.width)
                # Partial size sum already past the current one
                if span_x + (oy2 - oy1) + (oz2 - oz1) > full_sum:
                    continue
                for y in ys:
                    span_xy = span_x + _span(oy1, oy2, y, slot.depth)
                    if span_xy + (oz2 - oz1) > full_sum:
                        continue
                    for z in zs:
                        if (x, y, z) == (slot.x, slot.y, slot.z):
                            continue
                        bounds = slot.at(x, y, z)
                        moved = union_extents(others, bounds)
                        if _too_tall(moved, height_cap):
                            continue
                        candidate = _score(moved)
                        if not _consider(best, current, candidate):
                            continue
                        if _collides(slots, i, bounds):
                            continue
                        best = _Move(candidate, i, (x, y, z))

        if best is None:
            break
        _apply(slots, best)

    return _freeze(slots)


# ---------------------------------------------------------------------------
# Slide to origin
# ---------------------------------------------------------------------------

def _slide_limits(slots: Sequence[_Slot], index: int) -> tuple[int, int, int]:
    """Lowest x, y and z the item can slide to without crossing another item."""
    s = slots[index]
    min_x, min_y, min_z = 0, 0, 0
    for j, o in enumerate(slots):
        if j == index:
            continue
        in_y = intervals_overlap(s.y, s.depth, o.y, o.depth)
        in_z = intervals_overlap(s.z, s.height, o.z, o.height)
        in_x = intervals_overlap(s.x, s.width, o.x, o.width)
        if in_y and in_z and o.x2 <= s.x:
            min_x = max(min_x, o.x2)
        if in_x and in_z and o.y2 <= s.y:
            min_y = max(min_y, o.y2)
        if in_x and in_y and o.z2 <= s.z:
            min_z = max(min_z, o.z2)
    return (min_x, min_y, min_z)


def slide_to_origin(
    placements: Sequence[Placement],
    passes: int = 4,
    height_cap: Optional[int] = None,
    thin_height: Optional[int] = None,
) -> list[Placement]:
    """
    Slide items towards -x, -y and -z as far as neighbours allow.

    Each item tries the combined slide and each single-axis slide; the best
    strictly improving slide across all items is applied per iteration.
    Sliding along x or y can leave an item without support.
    """
    slots = _thaw(placements)
    if len(slots) < 2:
        return list(placements)

    for _ in range(passes):
        current = _score(extents_of(slots))
        held = _held(slots, thin_height)
        best: Optional[_Move] = None

        for i, slot in enumerate(slots):
            if i in held:
                continue
            others = extents_of(slots, skip=i)
            nx, ny, nz = _slide_limits(slots, i)
            options = (
                (nx, ny, nz),
                (nx, slot.y, slot.z),
                (slot.x, ny, slot.z),
                (slot.x, slot.y, nz),
            )
            for position in options:
                if position == (slot.x, slot.y, slot.z):
                    continue
                bounds = slot.at(*position)
                moved = union_extents(others, bounds)
                if _too_tall(moved, height_cap):
                    continue
                candidate = _score(moved)
                if not _consider(best, current, candidate):
                    continue
                if _collides(slots, i, bounds):
                    continue
                best = _Move(candidate, i, position)

        if best is None:
            break
        _apply(slots, best)

    return _freeze(slots)


# ---------------------------------------------------------------------------
# Gap stacking
# ---------------------------------------------------------------------------

def _top_anchors(
    slots: Sequence[_Slot], index: int, support: _Slot
) -> tuple[list[int], list[int]]:
    """x/y anchors on the support's top face where the moving item still fits on it."""
    moving = slots[index]
    xs = {support.x, support.x2 - moving.width}
    ys = {support.y, support.y2 - moving.depth}
    for j, other in enumerate(slots):
        if j == index:
            continue
        xs.update((other.x, other.x2, other.x - moving.width))
        ys.update((other.y, other.y2, other.y - moving.depth))
    return (
        sorted(x for x in xs if support.x <= x and x + moving.width <= support.x2),
        sorted(y for y in ys if support.y <= y and y + moving.depth <= support.y2),
    )


def stack_into_gaps(
    placements: Sequence[Placement],
    passes: int = 4,
    flat_height: int = 30,
    thin_height: Optional[int] = None,
) -> list[Placement]:
    """
    Lift items onto the top face of a larger support.

    Only runs while the bounding height exceeds ``flat_height``; a parcel
    that is already flat is never made taller.
    """
    slots = _thaw(placements)
    if len(slots) < 2:
        return list(placements)

    for _ in range(passes):
        extents = extents_of(slots)
        if sizes_of(extents)[2] <= flat_height:
            break
        current = _score(extents)
        held = _held(slots, thin_height)
        best: Optional[_Move] = None

        for i, slot in enumerate(slots):
            if i in held:
                continue
            others = extents_of(slots, skip=i)
            for j, support in enumerate(slots):
                if j == i or slot.width > support.width or slot.depth > support.depth:
                    continue
                z = support.z2
                xs, ys = _top_anchors(slots, i, support)
                for x in xs:
                    for y in ys:
                        if (x, y, z) == (slot.x, slot.y, slot.z):
                            continue
                        bounds = slot.at(x, y, z)
                        candidate = _score(union_extents(others, bounds))
                        if not _consider(best, current, candidate):
                            continue
                        if _collides(slots, i, bounds):
                            continue
                        best = _Move(candidate, i, (x, y, z))

        if best is None:
            break
        _apply(slots, best)

    return _freeze(slots)


# ---------------------------------------------------------------------------
# Thin items
# ---------------------------------------------------------------------------

def settle_thin_items(
    placements: Sequence[Placement],
    passes: int = 4,
    thin_height: int = 10,
    tolerance: int = 10,
    height_cap: Optional[int] = None,
) -> list[Placement]:
    """
    Put thin items on top of a compatible support.

    A move is taken when it improves the score, or when the bounding height
    stays within ``tolerance`` of the height this pass started from. Items
    already resting on a support stay where they are, and so do the
    supports carrying them.
    """
    slots = _thaw(placements)
    if len(slots) < 2:
        return list(placements)

    height_limit = sizes_of(extents_of(slots))[2] + tolerance

    for _ in range(passes):
        current = _score(extents_of(slots))
        held = _held(slots, thin_height)
        best: Optional[_Move] = None

        for i, slot in enumerate(slots):
            if slot.height > thin_height or i in held:
                continue
            others = extents_of(slots, skip=i)
            for j, support in enumerate(slots):
                if j == i or slot.width > support.width or slot.depth > support.depth:
                    continue
                position = (support.x, support.y, support.z2)
                if position == (slot.x, slot.y, slot.z):
                    continue
                bounds = slot.at(*position)
                extents = union_extents(others, bounds)
                if _too_tall(extents, height_cap):
                    continue
                candidate = _score(extents)
                if not is_better(candidate, current) and sizes_of(extents)[2] > height_limit:
                    continue
                if best is not None and not is_better(candidate, best.score):
                    continue
                if _collides(slots, i, bounds):
                    continue
                best = _Move(candidate, i, position)

        if best is None:
            break
        _apply(slots, best)

    return _freeze(slots)


# ---------------------------------------------------------------------------
# Driver
# ---------------------------------------------------------------------------

def compact(
    placements: Sequence[Placement],
    settings: PackingSettings = DEFAULT_SETTINGS,
) -> list[Placement]:
    """
    Run all compaction passes and normalize the result.

    A round repeats relocation and sliding until neither moves anything,
    then stacks into gaps and settles thin items. Rounds repeat until one
    changes nothing, so compacting the result again finds no move.

    A placement that is already flat (bounding height within
    ``settings.flat_height``) is never made taller than that.
    """
    if len(placements) < 2:
        return normalize(placements)

    passes = settings.compaction_passes
    thin_height = settings.thin_item_height
    height_cap = None
    if sizes_of(extents_of(placements))[2] <= settings.flat_height:
        height_cap = settings.flat_height

    current = normalize(placements)
    for _ in range(settings.max_compaction_rounds):
        round_start = current
        for _ in range(settings.max_compaction_rounds):
            moved = relocate_edge_items(current, passes, height_cap, thin_height)
            moved = normalize(slide_to_origin(moved, passes, height_cap, thin_height))
            if moved == current:
                break
            current = moved
        current = stack_into_gaps(current, passes, settings.flat_height, thin_height)
        current = normalize(settle_thin_items(
            current,
            passes,
            thin_height,
            settings.thin_height_tolerance,
            height_cap,
        ))
        if current == round_start:
            break
    return current
