from __future__ import annotations

from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .types import TerrainType


class WaterPreferenceType(str, Enum):
    year_round_water = "year-round-water"
    pond_lake = "pond-lake"
    well = "well"
    creek = "creek"
    any_water = "any-water"


class StructurePreference(str, Enum):
    raw_land = "raw-land"
    with_cabin = "with-cabin"
    with_house = "with-house"
    any = "any"


class _CamelModel(BaseModel):
    # profile files are written with camelCase keys
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class PriceBand(_CamelModel):
    min: float | None = None
    max: float | None = None


class PriceRange(_CamelModel):
    default: PriceBand = Field(default_factory=PriceBand)
    by_region: dict[str, PriceBand] = Field(default_factory=dict)


class DistanceRange(_CamelModel):
    min: float
    max: float
    unit: Literal["minutes"] = "minutes"


class WaterPreference(_CamelModel):
    type: WaterPreferenceType
    weight: float


class UtilityWeights(_CamelModel):
    power: float = 0.0
    water: float = 0.0
    internet: float = 0.0
    sewer: float = 0.0


class SearchCriteria(_CamelModel):
    min_acres: float = 0.0
    max_acres: float | None = None
    states: list[str] = Field(default_factory=list)
    price_range: PriceRange = Field(default_factory=PriceRange)
    distance_to_town: DistanceRange | None = None
    water_preferences: list[WaterPreference] = Field(default_factory=list)
    structure_preference: StructurePreference | None = None
    terrain: list[TerrainType] = Field(default_factory=list)
    utility_weights: UtilityWeights | None = None

    def price_for_state(self, state: str) -> PriceBand:
        """Regional band for `state`; missing ends fall back to the default band."""
        region = self.price_range.by_region.get(state)
        default = self.price_range.default
        if region is None:
            return default
        return PriceBand(
            min=region.min if region.min is not None else default.min,
            max=region.max if region.max is not None else default.max,
        )


class PluginSettings(_CamelModel):
    # a source runs only when its entry says enabled: true
    enabled: bool = False
    priority: int = 0


class Profile(_CamelModel):
    name: str
    description: str = ""
    criteria: SearchCriteria
    plugins: dict[str, PluginSettings] = Field(default_factory=dict)


class ScrapingSettings(_CamelModel):
    # None falls back to the environment settings
    default_rate_limit_ms: int | None = None
    headless: bool | None = None
    user_agent: str | None = None


class ProfilesFile(_CamelModel):
    profiles: dict[str, Profile]
    active_profile: str
    scraping: ScrapingSettings = Field(default_factory=ScrapingSettings)
