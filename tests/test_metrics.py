from __future__ import annotations

import pytest

from parcel_optimizer.geometry import dimensions_of
from parcel_optimizer.metrics import compute_metrics, packing_density, used_volume
from parcel_optimizer.models import PackingResult, Placement


def card(x: int) -> Placement:
    return Placement(box_id=str(x), name="card", x=x, y=0, z=0, width=150, depth=200, height=20)


def test_side_by_side_cards_fill_their_bounding_box() -> None:
    placements = [card(0), card(150)]
    result = PackingResult(dimensions=dimensions_of(placements), placements=placements)

    used, bounding, density = compute_metrics(result)

    assert used == pytest.approx(1200.0)
    assert bounding == pytest.approx(1200.0)
    assert density == pytest.approx(1.0)


def test_gap_lowers_density() -> None:
    placements = [card(0), card(225)]
    result = PackingResult(dimensions=dimensions_of(placements), placements=placements)

    assert used_volume(placements) == pytest.approx(1200.0)
    assert packing_density(result) == pytest.approx(0.8)


def test_empty_result_has_zero_density() -> None:
    assert packing_density(PackingResult()) == 0.0
