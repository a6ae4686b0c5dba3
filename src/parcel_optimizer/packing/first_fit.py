# src/parcel_optimizer/packing/first_fit.py

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol, Sequence

from parcel_optimizer.geometry import can_place, candidate_bounds
from parcel_optimizer.models import Box, Container, Placement
from parcel_optimizer.units import to_units


@dataclass
class ContainerPacking:
    """What a placement provider managed to put into one container."""
    container: Container
    placements: list[Placement] = field(default_factory=list)
    unpacked: list[Box] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return not self.unpacked


class PlacementProvider(Protocol):
    """Anything that packs boxes into a container hypothesis, e.g. an external solver."""

    def __call__(self, container: Container, boxes: Sequence[Box]) -> ContainerPacking: ...


def rotations_6(box: Box) -> list[tuple[int, int, int, int]]:
    """
    Return the 6 axis-aligned orientations plus a rotation code 0..5.
    rotation code meaning:
      0:(L,W,H) 1:(L,H,W) 2:(W,L,H) 3:(W,H,L) 4:(H,L,W) 5:(H,W,L)
    """
    L, W, H = box.length, box.width, box.height
    dims = [
        (L, W, H, 0),
        (L, H, W, 1),
        (W, L, H, 2),
        (W, H, L, 3),
        (H, L, W, 4),
        (H, W, L, 5),
    ]
    # Cubes and square prisms repeat orientations
    seen = set()
    out: list[tuple[int, int, int, int]] = []
    for a, b, c, r in dims:
        key = (a, b, c)
        if key not in seen:
            seen.add(key)
            out.append((a, b, c, r))
    return out


def generate_candidate_points(placements: list[Placement]) -> list[tuple[int, int, int]]:
    """
    Extreme-points style candidates:
      start with origin,
      add (x+L, y, z), (x, y+W, z), (x, y, z+H) for each placed box.
    """
    points: set[tuple[int, int, int]] = {(0, 0, 0)}

    for p in placements:
        points.add((p.x2, p.y, p.z))
        points.add((p.x, p.y2, p.z))
        points.add((p.x, p.y, p.z2))

    # Sort by (z, y, x) to enforce floor-first placement: all z=0 candidates before z>0
    return sorted(points, key=lambda t: (t[2], t[1], t[0]))


def pack_boxes(container: Container, boxes: Sequence[Box]) -> ContainerPacking:
    """
    First-fit packer that accepts the FIRST feasible placement for each box.
    - Visits boxes in the order given (callers choose the sort order)
    - Explores candidate points + 6 rotations
    - Accepts first placement that passes geometry and weight constraints
    - Appends AT MOST ONE placement per box
    - Deterministic (no randomness)
    """
    limits = (to_units(container.length), to_units(container.width), to_units(container.height))

    placements: list[Placement] = []
    unpacked: list[Box] = []
    current_weight = 0

    for box in boxes:
        if container.max_weight_g is not None and current_weight + box.weight_g > container.max_weight_g:
            unpacked.append(box)
            continue

        placed = False
        for (x, y, z) in generate_candidate_points(placements):
            for (l, w, h, _rot) in rotations_6(box):
                if not can_place(candidate_bounds(x, y, z, l, w, h), limits, placements):
                    continue

                placements.append(Placement(
                    box_id=box.id,
                    name=box.name,
                    x=x,
                    y=y,
                    z=z,
                    width=l,
                    depth=w,
                    height=h,
                    color=box.color,
                ))
                current_weight += box.weight_g
                placed = True
                break
            if placed:
                break

        if not placed:
            unpacked.append(box)

    return ContainerPacking(container=container, placements=placements, unpacked=unpacked)
