# src/parcel_optimizer/containers.py
from __future__ import annotations

from parcel_optimizer.models import Container
from parcel_optimizer.units import to_cm

# Inner dims (cm) of common Japanese parcel services, used as container
# hypotheses when estimating a packing.
ENVELOPE_PRESETS_CM: dict[str, dict[str, float]] = {
    "NEKOPOSU":         {"length": 31.2, "width": 22.8, "height": 3.0},
    "YU-PACKET POST":   {"length": 32.7, "width": 22.8, "height": 3.0},
    "COMPACT":          {"length": 25.0, "width": 20.0, "height": 5.0},
    "LETTER PACK PLUS": {"length": 34.0, "width": 24.8, "height": 7.0},
    "SIZE 60":          {"length": 25.0, "width": 20.0, "height": 15.0},
    "SIZE 80":          {"length": 35.0, "width": 25.0, "height": 20.0},
    "SIZE 100":         {"length": 45.0, "width": 35.0, "height": 20.0},
    "SIZE 120":         {"length": 55.0, "width": 40.0, "height": 25.0},
    "SIZE 140":         {"length": 60.0, "width": 45.0, "height": 35.0},
    "SIZE 160":         {"length": 70.0, "width": 50.0, "height": 40.0},
}


def get_envelope(preset: str) -> Container:
    key = preset.strip().upper()
    if key not in ENVELOPE_PRESETS_CM:
        raise ValueError(f"Unknown envelope preset '{preset}'. Valid: {sorted(ENVELOPE_PRESETS_CM.keys())}")
    return Container(name=key, **ENVELOPE_PRESETS_CM[key])


def standard_envelopes() -> list[Container]:
    """All presets in catalog order: flat mail services first, then box sizes."""
    return [get_envelope(name) for name in ENVELOPE_PRESETS_CM]


def huge_container(size: int = 3000) -> Container:
    """Last-resort cube with edge ``size`` in integer units."""
    edge = to_cm(size)
    return Container(name="HUGE", length=edge, width=edge, height=edge)
