"""Packing settings; loads .env locally via python-dotenv."""

from __future__ import annotations

import os
from typing import Any, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field

from parcel_optimizer.preprocessing import CompressionRules

# Environment variable -> settings field. Lengths are integer units (mm).
_ENV_FIELDS: dict[str, str] = {
    "PARCEL_COMPACTION_PASSES": "compaction_passes",
    "PARCEL_MAX_COMPACTION_ROUNDS": "max_compaction_rounds",
    "PARCEL_THIN_ITEM_HEIGHT": "thin_item_height",
    "PARCEL_THIN_HEIGHT_TOLERANCE": "thin_height_tolerance",
    "PARCEL_FLAT_HEIGHT": "flat_height",
    "PARCEL_HUGE_CONTAINER_SIZE": "huge_container_size",
}

_ENV_RULES: dict[str, str] = {
    "PARCEL_PLUSH_KEYWORDS": "plush_keywords",
    "PARCEL_FASHION_CATEGORIES": "fashion_categories",
    "PARCEL_FASHION_CATEGORY_FRAGMENTS": "fashion_category_fragments",
}


class PackingSettings(BaseModel):
    """Tunables of the refinement engine."""

    model_config = ConfigDict(frozen=True)

    compaction_passes: int = Field(
        default=4,
        ge=0,
        description="Maximum applied moves per compaction pass")
    max_compaction_rounds: int = Field(
        default=16,
        ge=1,
        description="Upper bound on repeated pass sequences")
    thin_item_height: int = Field(
        default=10,
        ge=0,
        description="Items this tall or thinner are moved onto supports")
    thin_height_tolerance: int = Field(
        default=10,
        ge=0,
        description="Bounding height growth allowed when settling thin items")
    flat_height: int = Field(
        default=30,
        ge=0,
        description="Bounding height considered flat-mail class")
    huge_container_size: int = Field(
        default=3000,
        gt=0,
        description="Edge of the last-resort cubic container")
    compression: CompressionRules = Field(default_factory=CompressionRules)


DEFAULT_SETTINGS = PackingSettings()


def _split(value: str) -> tuple[str, ...]:
    return tuple(part.strip() for part in value.split(",") if part.strip())


def load_settings(env_file: Optional[str] = None) -> PackingSettings:
    """
    Build settings from the environment.

    A .env file is loaded first when present; variables already set in the
    process environment win. Unset variables keep their defaults.
    """
    load_dotenv(env_file)

    overrides: dict[str, Any] = {}
    for var, field_name in _ENV_FIELDS.items():
        value = os.getenv(var)
        if value is not None and value.strip():
            overrides[field_name] = value.strip()

    rules: dict[str, Any] = {}
    for var, field_name in _ENV_RULES.items():
        value = os.getenv(var)
        if value is not None and value.strip():
            rules[field_name] = _split(value)
    if rules:
        overrides["compression"] = CompressionRules(**rules)

    return PackingSettings(**overrides)
