from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any


class WaterType(str, Enum):
    creek = "creek"
    pond = "pond"
    lake = "lake"
    well = "well"
    river = "river"
    spring = "spring"


class StructureType(str, Enum):
    house = "house"
    cabin = "cabin"
    barn = "barn"
    raw_land = "raw-land"


class TerrainType(str, Enum):
    forested = "forested"
    mountain = "mountain"
    green = "green"
    desert = "desert"
    prairie = "prairie"


@dataclass(frozen=True)
class Coordinates:
    latitude: float
    longitude: float


@dataclass
class WaterFeatures:
    has_water: bool
    types: list[str] = field(default_factory=list)
    year_round: bool | None = None


@dataclass
class Structures:
    has_structures: bool
    type: str | None = None
    count: int | None = None


@dataclass
class Utilities:
    power: bool | None = None
    water: bool | None = None
    sewer: bool | None = None
    internet: bool | None = None
    gas: bool | None = None


@dataclass
class Property:
    """
    One normalized listing from one source.

    Adapters fill the identity/provenance and informational fields.
    `score` and `field_completeness` are computed by the search pipeline,
    the three timestamps are owned by the repository.
    """

    id: str
    source: str
    source_id: str
    url: str
    title: str

    description: str | None = None
    acres: float | None = None
    price: float | None = None
    state: str | None = None
    county: str | None = None
    city: str | None = None
    address: str | None = None
    coordinates: Coordinates | None = None
    water_features: WaterFeatures | None = None
    structures: Structures | None = None
    utilities: Utilities | None = None
    distance_to_town_minutes: float | None = None
    terrain_tags: list[str] | None = None
    images: list[str] | None = None

    # source-specific payload; used for identifier extraction, never compared
    raw_data: dict[str, Any] | None = None

    score: float | None = None
    field_completeness: int | None = None

    first_seen: datetime | None = None
    last_seen: datetime | None = None
    last_checked: datetime | None = None


@dataclass(frozen=True)
class Snapshot:
    property_id: str
    scraped_at: datetime
    fields: dict[str, Any]


@dataclass(frozen=True)
class PriceChange:
    record: Property
    old_price: float | None
    new_price: float | None
    recorded_at: datetime

    @property
    def change(self) -> float:
        return (self.new_price or 0.0) - (self.old_price or 0.0)


@dataclass(frozen=True)
class DuplicateMatch:
    property_id: str
    confidence: float


@dataclass(frozen=True)
class DuplicateLinkView:
    canonical_id: str
    duplicate_id: str
    match_method: str
    confidence: float
    detected_at: datetime


@dataclass(frozen=True)
class PriceHistoryEntry:
    property_id: str
    price: float
    previous_price: float | None
    recorded_at: datetime
