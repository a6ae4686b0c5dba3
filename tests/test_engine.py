from __future__ import annotations

import logging

from parcel_optimizer.containers import get_envelope
from parcel_optimizer.engine import (
    DEFAULT_STRATEGIES,
    Strategy,
    basic_sum,
    can_fit,
    compact_result,
    estimate_packing,
    fits_flat_mail,
    pack_for_envelope,
)
from parcel_optimizer.geometry import bounds_of, boxes_overlap, dimensions_of
from parcel_optimizer.models import Fallback, Item, Packed, PackingResult, Placement
from parcel_optimizer.packing.first_fit import ContainerPacking, pack_boxes
from parcel_optimizer.preprocessing import PALETTE
from parcel_optimizer.scoring import is_better, score


def item(name: str, length: float, width: float, height: float, weight_g: int = 100, **kwargs) -> Item:
    return Item(name=name, length_cm=length, width_cm=width, height_cm=height, weight_g=weight_g, **kwargs)


def assert_no_overlaps(placements):
    bounds = [bounds_of(p) for p in placements]
    for i in range(len(bounds)):
        for j in range(i + 1, len(bounds)):
            assert not boxes_overlap(bounds[i], bounds[j])


def assert_normalized(placements):
    assert min(p.x for p in placements) == 0
    assert min(p.y for p in placements) == 0
    assert min(p.z for p in placements) == 0


def test_two_flat_items_lie_side_by_side_in_nekoposu() -> None:
    items = [item("Card A", 15, 20, 2), item("Card B", 15, 20, 2)]

    result = pack_for_envelope(items, get_envelope("NEKOPOSU"))

    assert result is not None
    assert result.dimensions.height_cm <= 3.0
    assert result.dimensions.size_sum <= 31.2 + 22.8 + 3.0
    assert_no_overlaps(result.placements)


def test_upright_item_is_rotated_to_fit_nekoposu() -> None:
    stand = [item("Acrylic stand", 20, 2, 15)]

    assert can_fit(stand, get_envelope("NEKOPOSU"))
    result = pack_for_envelope(stand, get_envelope("NEKOPOSU"))
    assert result is not None
    assert result.dimensions.height_cm == 2.0


def test_six_tiles_make_a_three_by_two_grid() -> None:
    tiles = [item(f"Tile {i}", 10, 10, 2) for i in range(6)]

    result = pack_for_envelope(tiles, get_envelope("NEKOPOSU"))

    assert result is not None
    dims = result.dimensions
    assert (dims.length_cm, dims.width_cm, dims.height_cm) == (30.0, 20.0, 2.0)
    assert {p.z for p in result.placements} == {0}
    assert dims.item_count == 6
    assert dims.weight_g == 600


def test_oversized_item_does_not_fit() -> None:
    assert not can_fit([item("Poster tube", 40, 30, 5)], get_envelope("NEKOPOSU"))
    assert pack_for_envelope([item("Poster tube", 40, 30, 5)], get_envelope("NEKOPOSU")) is None


def test_empty_cart_fits_anywhere() -> None:
    assert can_fit([], get_envelope("NEKOPOSU"))


def base_cart() -> list[Item]:
    return [
        item("Box A", 30, 20, 10),
        item("Box B", 15, 15, 10),
        item("Box C", 15, 15, 10),
        item("Box D", 10, 10, 5),
    ]


def test_small_extra_item_fills_a_gap() -> None:
    base = estimate_packing(base_cart())
    extended = estimate_packing(base_cart() + [item("Charm", 5, 5, 3)])

    assert isinstance(base, Packed) and isinstance(extended, Packed)
    assert extended.result.dimensions.size_sum <= base.result.dimensions.size_sum + 5.0
    assert extended.result.dimensions.size_sum <= 75.0


def test_japanese_and_english_plush_names_pack_the_same() -> None:
    english = [
        item("Bear plush", 20, 15, 10, category="toys"),
        item("Cat Plush mini", 15, 10, 8, category="toys"),
    ]
    japanese = [
        item("Bear", 20, 15, 10, name_local="くまのぬいぐるみ", category="toys"),
        item("Cat", 15, 10, 8, name_local="ねこのちびぐるみ", category="toys"),
    ]

    a = estimate_packing(english).result.dimensions.size_sum
    b = estimate_packing(japanese).result.dimensions.size_sum

    assert abs(a - b) <= 1.0


def test_plush_packs_smaller_than_catalog_size() -> None:
    cart = [item("Bear plush", 20, 15, 10), item("Cat plush", 15, 10, 8)]
    uncompressed = tuple(s.model_copy(update={"compress": False}) for s in DEFAULT_STRATEGIES)

    squashed = estimate_packing(cart).result.dimensions.size_sum
    catalog = estimate_packing(cart, strategies=uncompressed).result.dimensions.size_sum

    assert squashed < catalog


def test_mixed_cart_result_invariants() -> None:
    cart = [
        item("Book", 21, 15, 3, weight_g=400),
        item("Mug", 12, 9, 10, weight_g=350),
        item("Sticker sheet", 15, 10, 0.5, weight_g=10),
        item("T-shirt", 30, 25, 4, weight_g=200, category="Fashion"),
        item("Keychain", 6, 4, 1.5, weight_g=20),
    ]

    outcome = estimate_packing(cart)

    assert isinstance(outcome, Packed)
    assert outcome.kind == "packed"
    assert outcome.strategy in {s.name for s in DEFAULT_STRATEGIES}
    placements = outcome.result.placements
    assert len(placements) == 5
    assert_no_overlaps(placements)
    assert_normalized(placements)
    assert sorted(p.box_id for p in placements) == ["0", "1", "2", "3", "4"]
    assert {p.box_id: p.color for p in placements}["1"] == PALETTE[1]
    dims = outcome.result.dimensions
    assert dims.weight_g == 980
    assert dims.item_count == 5
    assert dims == dimensions_of(placements, weight_g=980, item_count=5)


def test_compacting_a_result_again_is_never_worse() -> None:
    first = estimate_packing(base_cart()).result

    again = compact_result(first)

    assert not is_better(score(first.dimensions), score(again.dimensions))
    assert_no_overlaps(again.placements)


def test_empty_cart_is_an_empty_packing() -> None:
    outcome = estimate_packing([])

    assert isinstance(outcome, Packed)
    assert outcome.result.placements == []
    assert outcome.result.dimensions.size_sum == 0.0


def failing_provider(container, boxes) -> ContainerPacking:
    return ContainerPacking(container=container, placements=[], unpacked=list(boxes))


def test_no_placement_falls_back_to_stacked_dimensions(caplog) -> None:
    cart = [item("Pouch", 10, 5, 2, weight_g=50), item("Case", 8, 12, 3, weight_g=70)]
    only_container = [Strategy(name="container", use_container_packer=True)]

    with caplog.at_level(logging.WARNING, logger="parcel_optimizer.engine"):
        outcome = estimate_packing(cart, strategies=only_container, provider=failing_provider)

    assert isinstance(outcome, Fallback)
    assert outcome.kind == "fallback"
    dims = outcome.result.dimensions
    assert (dims.length_cm, dims.width_cm, dims.height_cm) == (10, 12, 5)
    assert dims.weight_g == 120
    assert dims.item_count == 2
    assert outcome.result.placements == []
    assert "no usable placement" in caplog.text


def test_fallback_uses_catalog_dimensions() -> None:
    cart = [item("Bear plush", 20, 10, 10), item("Cat plush", 10, 10, 10)]

    stacked = basic_sum(cart)

    assert stacked.dimensions.height_cm == 20
    assert stacked.dimensions.length_cm == 20


def test_zero_volume_candidates_are_discarded() -> None:
    outcome = estimate_packing([item("Paper", 10, 10, 0)])

    assert isinstance(outcome, Fallback)
    assert outcome.result.dimensions.height_cm == 0


def test_container_hypotheses_end_with_the_huge_container() -> None:
    tried: list[str] = []

    def huge_only(container, boxes) -> ContainerPacking:
        tried.append(container.name)
        if container.name != "HUGE":
            return failing_provider(container, boxes)
        return pack_boxes(container, boxes)

    strategy = Strategy(name="huge", use_container_packer=True, rebuild_with_extreme_points=False)
    outcome = estimate_packing(base_cart(), strategies=[strategy], provider=huge_only)

    assert isinstance(outcome, Packed)
    assert outcome.strategy == "huge"
    assert tried[0] == "NEKOPOSU"
    assert tried[-1] == "HUGE"
    assert len(tried) == 11
    assert_no_overlaps(outcome.result.placements)


def test_compact_result_keeps_weight_and_count() -> None:
    placements = [
        Placement(box_id="0", name="support", x=0, y=0, z=0, width=200, depth=200, height=50),
        Placement(box_id="1", name="blocker", x=0, y=0, z=50, width=100, depth=200, height=30),
        Placement(box_id="2", name="mover", x=200, y=0, z=0, width=100, depth=100, height=20),
    ]
    result = PackingResult(
        dimensions=dimensions_of(placements, weight_g=1500, item_count=3),
        placements=placements,
    )

    compacted = compact_result(result)

    assert compacted.dimensions.size_sum < result.dimensions.size_sum
    assert compacted.dimensions.weight_g == 1500
    assert compacted.dimensions.item_count == 3


def test_compact_result_with_one_placement_is_unchanged() -> None:
    result = PackingResult(
        placements=[Placement(box_id="0", name="only", x=0, y=0, z=0, width=10, depth=10, height=10)],
    )

    assert compact_result(result) is result


def test_two_flat_items_are_estimated_side_by_side() -> None:
    outcome = estimate_packing([item("Card A", 15, 20, 2), item("Card B", 15, 20, 2)])

    assert isinstance(outcome, Packed)
    dims = outcome.result.dimensions
    assert dims.height_cm <= 3.0
    assert dims.size_sum <= 31.2 + 22.8 + 3.0
    assert {p.z for p in outcome.result.placements} == {0}


def test_six_tiles_are_estimated_as_a_flat_grid() -> None:
    """A 10x10x12 tower scores better, but only the grid fits flat mail."""
    outcome = estimate_packing([item(f"Tile {i}", 10, 10, 2) for i in range(6)])

    dims = outcome.result.dimensions
    assert sorted((dims.length_cm, dims.width_cm)) == [20.0, 30.0]
    assert dims.height_cm == 2.0
    assert {p.z for p in outcome.result.placements} == {0}


def test_flat_mail_fit_uses_flat_envelopes_only() -> None:
    def slab(width: int, depth: int, height: int) -> list[Placement]:
        return [Placement(box_id="0", name="slab", x=0, y=0, z=0, width=width, depth=depth, height=height)]

    assert fits_flat_mail(slab(200, 300, 20))
    assert not fits_flat_mail(slab(400, 200, 20))
    assert not fits_flat_mail(slab(200, 200, 40))


def test_flat_strategy_skips_tall_items() -> None:
    flat_only = [Strategy(name="flat", flat_profile=True)]

    outcome = estimate_packing(base_cart(), strategies=flat_only)

    assert isinstance(outcome, Fallback)
