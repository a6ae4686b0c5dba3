"""Item preprocessing: compressibility classification, shrink and orientation.

Soft goods ship smaller than their catalog size. Plush toys squash evenly,
folded clothing mostly loses height. Classification is a pure lookup over a
configurable keyword/category table so no language-specific logic lives next
to the geometry code.
"""

from __future__ import annotations

from enum import Enum
from typing import Iterable, Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field

from parcel_optimizer.models import Box, CartLine, Item
from parcel_optimizer.units import to_units

PALETTE = ("#4ade80", "#60a5fa", "#f472b6", "#facc15", "#a78bfa", "#fb923c")


class Compressibility(str, Enum):
    PLUSH = "plush"
    FASHION = "fashion"
    RIGID = "rigid"


class CompressionRules(BaseModel):
    """Keyword and category table deciding how an item may be squashed."""

    model_config = ConfigDict(frozen=True)

    plush_keywords: tuple[str, ...] = Field(
        default=("plush", "ぬいぐるみ", "ちびぐるみ"),
        description="Substrings of a name (any language) marking a plush toy")
    fashion_categories: tuple[str, ...] = Field(
        default=("fashion",),
        description="Whole category names marking clothing, ignoring case")
    fashion_category_fragments: tuple[str, ...] = Field(
        default=("ファッション",),
        description="Substrings of a localized category marking clothing")
    plush_factor: float = Field(default=0.6, gt=0, le=1)
    fashion_height_factor: float = Field(default=0.8, gt=0, le=1)


DEFAULT_RULES = CompressionRules()


def _mentions(value: Optional[str], needles: Iterable[str]) -> bool:
    if value is None or not value.strip():
        return False
    folded = value.casefold()
    return any(needle.casefold() in folded for needle in needles if needle)


def _named(value: Optional[str], names: Iterable[str]) -> bool:
    if value is None:
        return False
    folded = value.strip().casefold()
    return any(folded == name.casefold() for name in names if name)


def classify(item: Item, rules: CompressionRules = DEFAULT_RULES) -> Compressibility:
    if _mentions(item.name, rules.plush_keywords) or _mentions(item.name_local, rules.plush_keywords):
        return Compressibility.PLUSH
    if _named(item.category, rules.fashion_categories) or _mentions(
            item.category, rules.fashion_category_fragments):
        return Compressibility.FASHION
    return Compressibility.RIGID


def compressed_size(item: Item, rules: CompressionRules = DEFAULT_RULES) -> tuple[float, float, float]:
    """Dimensions (cm) actually fed to placement."""
    length, width, height = item.length_cm, item.width_cm, item.height_cm
    kind = classify(item, rules)
    if kind is Compressibility.PLUSH:
        factor = rules.plush_factor
        return (length * factor, width * factor, height * factor)
    if kind is Compressibility.FASHION:
        return (length, width, height * rules.fashion_height_factor)
    return (length, width, height)


def orient_flat(length: float, width: float, height: float) -> tuple[float, float, float]:
    """Lay an item flat: longest side along x, shortest side up."""
    a, b, c = sorted((length, width, height), reverse=True)
    return (a, b, c)


def expand_cart(lines: Iterable[CartLine]) -> list[Item]:
    items: list[Item] = []
    for line in lines:
        if line.quantity <= 0:
            continue
        items.extend([line.item] * line.quantity)
    return items


def to_boxes(
    items: Sequence[Item],
    rules: CompressionRules = DEFAULT_RULES,
    compress: bool = True,
    orient: bool = True,
) -> list[Box]:
    """
    Convert catalog items into placement boxes.

    Box ids are the input index, so placements can always be traced back to
    the item they came from; colors cycle through the display palette in
    input order.
    """
    boxes: list[Box] = []
    for index, item in enumerate(items):
        if compress:
            dims = compressed_size(item, rules)
        else:
            dims = (item.length_cm, item.width_cm, item.height_cm)
        if orient:
            dims = orient_flat(*dims)
        boxes.append(Box(
            id=str(index),
            name=item.name,
            length=to_units(dims[0]),
            width=to_units(dims[1]),
            height=to_units(dims[2]),
            weight_g=item.weight_g,
            color=PALETTE[index % len(PALETTE)],
        ))
    return boxes
