from __future__ import annotations

import math
import re
from typing import Any, Iterable, Protocol

from .property import field_completeness
from .types import Property, DuplicateMatch

EARTH_RADIUS_M = 6_371_000.0

# (max distance in meters, confidence), tightest first
PROXIMITY_TIERS: tuple[tuple[float, float], ...] = (
    (10.0, 1.0),
    (50.0, 0.9),
    (100.0, 0.7),
)

_LISTING_NUMBER_KEYS = ("mlsNumber", "mls_number", "mls")
_LISTING_NUMBER_RE = re.compile(r"MLS[#:\s]*([A-Z0-9-]+)", re.IGNORECASE)


class DuplicateMatcher(Protocol):
    name: str
    description: str

    def find_duplicates(self, record: Property, candidates: Iterable[Property]) -> list[DuplicateMatch]:
        ...


def haversine_m(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance in meters."""
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    dphi = math.radians(lat2 - lat1)
    dlmb = math.radians(lon2 - lon1)

    a = math.sin(dphi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(dlmb / 2) ** 2
    return EARTH_RADIUS_M * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def proximity_confidence(distance_m: float) -> float:
    for limit, confidence in PROXIMITY_TIERS:
        if distance_m <= limit:
            return confidence
    return 0.0


def extract_listing_number(record: Property) -> str | None:
    """
    Normalized MLS-style number for a record.

    Structured payload keys win; the free-text description is the fallback.
    """
    raw: dict[str, Any] = record.raw_data or {}
    for key in _LISTING_NUMBER_KEYS:
        value = raw.get(key)
        if value is None:
            continue
        s = str(value).strip().upper()
        if s:
            return s

    if record.description:
        m = _LISTING_NUMBER_RE.search(record.description.upper())
        if m:
            return m.group(1)
    return None


class IdentifierMatcher:
    name = "mls-matcher"
    description = "Matches records that carry the same MLS listing number"

    def find_duplicates(self, record: Property, candidates: Iterable[Property]) -> list[DuplicateMatch]:
        number = extract_listing_number(record)
        if not number:
            return []

        out: list[DuplicateMatch] = []
        for other in candidates:
            if other.id == record.id:
                continue
            if extract_listing_number(other) == number:
                out.append(DuplicateMatch(property_id=other.id, confidence=1.0))
        return out


class ProximityMatcher:
    name = "coordinate-matcher"
    description = "Matches records whose coordinates are within 100 meters"

    def find_duplicates(self, record: Property, candidates: Iterable[Property]) -> list[DuplicateMatch]:
        here = record.coordinates
        if here is None:
            return []

        out: list[DuplicateMatch] = []
        for other in candidates:
            if other.id == record.id or other.coordinates is None:
                continue
            there = other.coordinates
            dist = haversine_m(here.latitude, here.longitude, there.latitude, there.longitude)
            confidence = proximity_confidence(dist)
            if confidence > 0:
                out.append(DuplicateMatch(property_id=other.id, confidence=confidence))
        return out


def select_canonical(a: Property, b: Property) -> Property:
    """
    Higher field completeness wins; ties go to the lexicographically smaller id
    so the choice does not depend on argument order.
    """
    ca = a.field_completeness if a.field_completeness is not None else field_completeness(a)
    cb = b.field_completeness if b.field_completeness is not None else field_completeness(b)
    if ca != cb:
        return a if ca > cb else b
    return a if a.id <= b.id else b
