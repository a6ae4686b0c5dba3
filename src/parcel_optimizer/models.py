from __future__ import annotations

from typing import Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, computed_field


class Item(BaseModel):
    """Catalog product to be packed (dimensions in cm, weight in grams)."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(description="Display name of the product")
    name_local: Optional[str] = Field(
        default=None,
        description="Localized name of the product")
    category: Optional[str] = Field(default=None, description="Catalog category")
    length_cm: float = Field(ge=0, description="Length in centimeters")
    width_cm: float = Field(ge=0, description="Width in centimeters")
    height_cm: float = Field(ge=0, description="Height in centimeters")
    weight_g: int = Field(default=0, ge=0, description="Weight in grams")

    @property
    def volume_cm3(self) -> float:
        return self.length_cm * self.width_cm * self.height_cm

    @property
    def footprint_cm2(self) -> float:
        return self.length_cm * self.width_cm


class CartLine(BaseModel):
    """An item and how many of it are in the cart."""

    item: Item
    quantity: int = Field(default=1, ge=0)


class Box(BaseModel):
    """Item prepared for placement, sized in integer units (10 per cm)."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(description="Unique identifier for the box")
    name: str = Field(description="Label carried onto the placement")
    length: int = Field(ge=0, description="Extent along x")
    width: int = Field(ge=0, description="Extent along y")
    height: int = Field(ge=0, description="Extent along z")
    weight_g: int = Field(default=0, ge=0)
    color: str = Field(default="#4ade80", description="Display color")

    @property
    def volume(self) -> int:
        return self.length * self.width * self.height

    @property
    def max_dim(self) -> int:
        return max(self.length, self.width, self.height)


class Container(BaseModel):
    """Container (parcel envelope) with inner dimensions in centimeters."""

    name: str = Field(default="", description="Envelope or carrier name")
    length: float = Field(gt=0, description="Length of the container in cm")
    width: float = Field(gt=0, description="Width of the container in cm")
    height: float = Field(gt=0, description="Height of the container in cm")
    max_weight_g: Optional[int] = Field(
        default=None,
        gt=0,
        description="Maximum load in grams")


class Placement(BaseModel):
    """Box bound to a position, with the extents actually used after rotation."""

    model_config = ConfigDict(frozen=True)

    box_id: str = Field(description="Identifier of the placed box")
    name: str = Field(description="Display label")
    x: int = Field(ge=0, description="X coordinate of the box position")
    y: int = Field(ge=0, description="Y coordinate of the box position")
    z: int = Field(ge=0, description="Z coordinate of the box position")

    # Oriented extents: width along x, depth along y, height along z.
    width: int = Field(ge=0)
    depth: int = Field(ge=0)
    height: int = Field(ge=0)
    color: str = Field(default="#4ade80")

    @property
    def x2(self) -> int:
        return self.x + self.width

    @property
    def y2(self) -> int:
        return self.y + self.depth

    @property
    def z2(self) -> int:
        return self.z + self.height

    @property
    def volume(self) -> int:
        return self.width * self.depth * self.height

    def moved_to(self, x: int, y: int, z: int) -> "Placement":
        return self.model_copy(update={"x": x, "y": y, "z": z})


class Dimensions(BaseModel):
    """Bounding dimensions of a packing, in centimeters."""

    length_cm: float = 0.0
    width_cm: float = 0.0
    height_cm: float = 0.0
    weight_g: int = 0
    item_count: int = 0

    @computed_field  # type: ignore[prop-decorator]
    @property
    def size_sum(self) -> float:
        return self.length_cm + self.width_cm + self.height_cm

    @computed_field  # type: ignore[prop-decorator]
    @property
    def weight_kg(self) -> float:
        return self.weight_g / 1000.0


class PackingResult(BaseModel):
    """Bounding dimensions plus the ordered placements that produce them."""

    dimensions: Dimensions = Field(default_factory=Dimensions)
    placements: list[Placement] = Field(default_factory=list)


class Packed(BaseModel):
    """Outcome of a successful optimization."""

    kind: Literal["packed"] = "packed"
    result: PackingResult
    strategy: Optional[str] = Field(
        default=None,
        description="Name of the strategy that produced the result")


class Fallback(BaseModel):
    """Degraded outcome: items stacked on top of each other, no placements."""

    kind: Literal["fallback"] = "fallback"
    result: PackingResult


PackingOutcome = Union[Packed, Fallback]
