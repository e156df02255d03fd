from __future__ import annotations

import hashlib
from dataclasses import asdict
from typing import Any

from .types import Coordinates, Property, Structures, Utilities, WaterFeatures

# identity/provenance fields always present on a record
_BASE_COMPLETENESS = 5

_SCALAR_COMPARABLE = (
    "source",
    "source_id",
    "url",
    "title",
    "description",
    "acres",
    "price",
    "state",
    "county",
    "city",
    "address",
    "distance_to_town_minutes",
)

_NESTED_COMPARABLE = (
    "coordinates",
    "water_features",
    "structures",
    "utilities",
    "terrain_tags",
    "images",
)

COMPARABLE_FIELDS = _SCALAR_COMPARABLE + _NESTED_COMPARABLE


def generate_property_id(source: str, source_id: str) -> str:
    """Stable 16-hex-char id for a (source, source_id) pair."""
    digest = hashlib.sha256(f"{source}:{source_id}".encode("utf-8")).hexdigest()
    return digest[:16]


def field_completeness(p: Property) -> int:
    """
    Count of populated optional fields, plus a fixed base for identity.

    Only a tiebreak proxy for canonical selection; it says nothing about
    whether the populated values are any good.
    """
    count = _BASE_COMPLETENESS

    if p.description:
        count += 1
    for value in (p.acres, p.price, p.state, p.county, p.city, p.address, p.coordinates):
        if value is not None:
            count += 1

    wf = p.water_features
    if wf is not None and wf.has_water:
        count += 1
        if wf.types:
            count += 1
        if wf.year_round is not None:
            count += 1

    st = p.structures
    if st is not None and st.has_structures is not None:
        count += 1
        if st.type:
            count += 1
        if st.count is not None:
            count += 1

    if p.utilities is not None:
        u = p.utilities
        count += sum(1 for flag in (u.power, u.water, u.sewer, u.internet, u.gas) if flag is not None)

    if p.distance_to_town_minutes is not None:
        count += 1
    if p.terrain_tags:
        count += 1
    if p.images:
        count += 1

    return count


def _plain(value: Any) -> Any:
    if value is None:
        return None
    if isinstance(value, (Coordinates, WaterFeatures, Structures, Utilities)):
        return asdict(value)
    if isinstance(value, list):
        return list(value)
    return value


def comparable_fields(p: Property) -> dict[str, Any]:
    """Plain-data view of everything that participates in change detection."""
    return {name: _plain(getattr(p, name)) for name in COMPARABLE_FIELDS}


def properties_differ(a: Property, b: Property) -> bool:
    return comparable_fields(a) != comparable_fields(b)


# -----------------------------
# Nested value (de)serialization for JSON columns
# -----------------------------
def water_features_from_dict(d: dict[str, Any] | None) -> WaterFeatures | None:
    if not d:
        return None
    return WaterFeatures(
        has_water=bool(d.get("has_water")),
        types=list(d.get("types") or []),
        year_round=d.get("year_round"),
    )


def structures_from_dict(d: dict[str, Any] | None) -> Structures | None:
    if not d:
        return None
    return Structures(
        has_structures=bool(d.get("has_structures")),
        type=d.get("type"),
        count=d.get("count"),
    )


def utilities_from_dict(d: dict[str, Any] | None) -> Utilities | None:
    if d is None:
        return None
    return Utilities(
        power=d.get("power"),
        water=d.get("water"),
        sewer=d.get("sewer"),
        internet=d.get("internet"),
        gas=d.get("gas"),
    )
