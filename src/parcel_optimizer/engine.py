"""Packing estimation: runs every strategy and keeps the best compacted result."""

from __future__ import annotations

import logging
from enum import Enum
from typing import Callable, Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field

from parcel_optimizer.config import DEFAULT_SETTINGS, PackingSettings
from parcel_optimizer.containers import huge_container, standard_envelopes
from parcel_optimizer.geometry import dimensions_of, extents_of, normalize, sizes_of
from parcel_optimizer.models import (
    Box,
    Container,
    Dimensions,
    Fallback,
    Item,
    Packed,
    PackingOutcome,
    PackingResult,
    Placement,
)
from parcel_optimizer.packing.compaction import compact
from parcel_optimizer.packing.extreme_points import (
    build_extreme_point_packing,
    rebuild_with_extreme_points,
)
from parcel_optimizer.packing.first_fit import PlacementProvider, pack_boxes
from parcel_optimizer.preprocessing import to_boxes
from parcel_optimizer.scoring import Score, best_of, score
from parcel_optimizer.units import to_units

logger = logging.getLogger(__name__)


class SortOrder(str, Enum):
    ORIGINAL = "original"
    VOLUME_DESC = "volume_desc"
    VOLUME_ASC = "volume_asc"
    FOOTPRINT_DESC = "footprint_desc"
    HEIGHT_DESC = "height_desc"


_SORT_KEYS: dict[SortOrder, Callable[[Item], float]] = {
    SortOrder.VOLUME_DESC: lambda item: -item.volume_cm3,
    SortOrder.VOLUME_ASC: lambda item: item.volume_cm3,
    SortOrder.FOOTPRINT_DESC: lambda item: -item.footprint_cm2,
    SortOrder.HEIGHT_DESC: lambda item: -item.height_cm,
}


class Strategy(BaseModel):
    """One way of producing a candidate packing."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(description="Label reported with the winning result")
    order: SortOrder = Field(
        default=SortOrder.ORIGINAL,
        description="Order in which boxes are handed to the container packer")
    use_container_packer: bool = Field(
        default=False,
        description="Start from a container packing instead of extreme points")
    rebuild_with_extreme_points: bool = Field(
        default=True,
        description="Re-run extreme-point construction on the container packing")
    compress: bool = Field(default=True, description="Shrink soft items before placement")
    flat_profile: bool = Field(
        default=False,
        description="Keep the bounding height within the flat-mail class")


DEFAULT_STRATEGIES: tuple[Strategy, ...] = (
    Strategy(name="extreme-points"),
    Strategy(name="extreme-points/flat", flat_profile=True),
    *(
        Strategy(name=f"container/{order.value}", order=order, use_container_packer=True)
        for order in (
            SortOrder.VOLUME_DESC,
            SortOrder.VOLUME_ASC,
            SortOrder.FOOTPRINT_DESC,
            SortOrder.HEIGHT_DESC,
        )
    ),
    Strategy(
        name="container/original/compact-only",
        use_container_packer=True,
        rebuild_with_extreme_points=False,
    ),
)


def basic_sum(items: Sequence[Item]) -> PackingResult:
    """Items stacked on top of each other, from their catalog dimensions."""
    return PackingResult(
        dimensions=Dimensions(
            length_cm=max((item.length_cm for item in items), default=0.0),
            width_cm=max((item.width_cm for item in items), default=0.0),
            height_cm=sum(item.height_cm for item in items),
            weight_g=sum(item.weight_g for item in items),
            item_count=len(items),
        ),
        placements=[],
    )


def _finish(placements: Sequence[Placement], weight_g: int, item_count: int) -> PackingResult:
    placements = normalize(placements)
    return PackingResult(
        dimensions=dimensions_of(placements, weight_g=weight_g, item_count=item_count),
        placements=placements,
    )


def _ordered_boxes(items: Sequence[Item], strategy: Strategy, settings: PackingSettings) -> list[Box]:
    # Ids and colors follow the input index whatever the visiting order
    boxes = to_boxes(items, settings.compression, compress=strategy.compress)
    if strategy.order is SortOrder.ORIGINAL:
        return boxes
    key = _SORT_KEYS[strategy.order]
    pairs = sorted(zip(items, boxes), key=lambda pair: key(pair[0]))
    return [box for _, box in pairs]


def _container_packing(
    boxes: Sequence[Box],
    provider: PlacementProvider,
    settings: PackingSettings,
) -> Optional[list[Placement]]:
    for container in [*standard_envelopes(), huge_container(settings.huge_container_size)]:
        packing = provider(container, boxes)
        if packing.success:
            logger.debug(f"container packer fit {len(boxes)} boxes into {container.name}")
            return normalize(packing.placements)
    return None


def _candidate(
    items: Sequence[Item],
    strategy: Strategy,
    settings: PackingSettings,
    provider: PlacementProvider,
) -> Optional[list[Placement]]:
    boxes = _ordered_boxes(items, strategy, settings)
    if strategy.flat_profile and any(box.height > settings.flat_height for box in boxes):
        return None
    if not strategy.use_container_packer:
        height_cap = settings.flat_height if strategy.flat_profile else None
        return compact(build_extreme_point_packing(boxes, height_cap=height_cap), settings)

    placements = _container_packing(boxes, provider, settings)
    if placements is None:
        return None
    if strategy.rebuild_with_extreme_points:
        base_height = sizes_of(extents_of(placements))[2]
        height_cap = base_height if base_height <= settings.flat_height else None
        placements = rebuild_with_extreme_points(placements, height_cap=height_cap)
    return compact(placements, settings)


def fits_flat_mail(placements: Sequence[Placement], settings: PackingSettings = DEFAULT_SETTINGS) -> bool:
    """True when the bounding box fits an envelope no taller than ``settings.flat_height``."""
    length, width, height = sizes_of(extents_of(placements))
    for envelope in standard_envelopes():
        limit_l, limit_w, limit_h = (to_units(envelope.length), to_units(envelope.width), to_units(envelope.height))
        if limit_h > settings.flat_height or height > limit_h:
            continue
        if (length <= limit_l and width <= limit_w) or (width <= limit_l and length <= limit_w):
            return True
    return False


def estimate_packing(
    items: Sequence[Item],
    strategies: Optional[Sequence[Strategy]] = None,
    settings: Optional[PackingSettings] = None,
    provider: Optional[PlacementProvider] = None,
) -> PackingOutcome:
    """
    Estimate the smallest bounding box the items pack into.

    Every strategy produces a compacted candidate; the best-scoring one
    wins, earlier strategies winning ties. Candidates fitting a flat-mail
    envelope beat every taller candidate whatever their score. When no
    strategy yields a usable placement the items are reported stacked, as
    a ``Fallback``.
    """
    settings = settings or DEFAULT_SETTINGS
    strategies = DEFAULT_STRATEGIES if strategies is None else strategies
    provider = provider or pack_boxes

    if not items:
        return Packed(result=PackingResult())

    weight_g = sum(item.weight_g for item in items)
    candidates: list[tuple[Score, tuple[Strategy, list[Placement]]]] = []
    for strategy in strategies:
        placements = _candidate(items, strategy, settings, provider)
        if placements is None:
            logger.debug(f"strategy {strategy.name}: no placement")
            continue
        dims = dimensions_of(placements)
        candidate = score(dims)
        if candidate.volume <= 0:
            logger.debug(f"strategy {strategy.name}: discarded, zero volume")
            continue
        logger.debug(f"strategy {strategy.name}: size_sum={dims.size_sum:.1f} score={tuple(candidate)}")
        candidates.append((candidate, (strategy, placements)))

    flat = [c for c in candidates if fits_flat_mail(c[1][1], settings)]
    if flat:
        logger.debug(f"{len(flat)} of {len(candidates)} candidates fit flat mail")
    best = best_of(flat or candidates)
    if best is None:
        logger.warning(f"no usable placement for {len(items)} items, reporting stacked dimensions")
        return Fallback(result=basic_sum(items))

    strategy, placements = best[1]
    result = _finish(placements, weight_g, len(items))
    logger.info(
        f"strategy={strategy.name}, "
        f"items={len(items)}, "
        f"size_sum={result.dimensions.size_sum:.1f}"
    )
    return Packed(result=result, strategy=strategy.name)


def compact_result(result: PackingResult, settings: Optional[PackingSettings] = None) -> PackingResult:
    """Compact an externally supplied packing, keeping its weight and item count."""
    if len(result.placements) < 2:
        return result
    placements = compact(result.placements, settings or DEFAULT_SETTINGS)
    return _finish(placements, result.dimensions.weight_g, result.dimensions.item_count)


def pack_for_envelope(
    items: Sequence[Item],
    container: Container,
    provider: Optional[PlacementProvider] = None,
) -> Optional[PackingResult]:
    """
    Pack uncompressed items into one envelope, largest first.

    Returns None when something does not fit.
    """
    provider = provider or pack_boxes
    if not items:
        return PackingResult()
    boxes = to_boxes(items, compress=False, orient=False)
    boxes = sorted(boxes, key=lambda b: -b.volume)
    packing = provider(container, boxes)
    if not packing.success:
        return None
    return _finish(packing.placements, sum(item.weight_g for item in items), len(items))


def can_fit(
    items: Sequence[Item],
    container: Container,
    provider: Optional[PlacementProvider] = None,
) -> bool:
    """True when every item fits into the container as listed (no shrinking)."""
    return pack_for_envelope(items, container, provider) is not None
