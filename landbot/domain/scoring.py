from __future__ import annotations

from dataclasses import dataclass

from .criteria import SearchCriteria, StructurePreference, WaterPreferenceType
from .types import Property

_RAW_LAND_BONUS = 10.0
_STRUCTURE_MATCH_BONUS = 15.0
_TERRAIN_TAG_POINTS = 5.0
_DISTANCE_PEAK = 10.0
_TOO_CLOSE_PENALTY = -10.0
_TOO_FAR_PENALTY = -5.0

_CREEK_LIKE = {"creek", "river", "spring"}
_POND_LIKE = {"pond", "lake"}


@dataclass(frozen=True)
class ScoreBreakdown:
    water: float
    structures: float
    terrain: float
    utilities: float
    distance: float

    @property
    def total(self) -> float:
        raw = self.water + self.structures + self.terrain + self.utilities + self.distance
        return round(raw, 2)

    @property
    def explain(self) -> str:
        return (
            f"water={self.water:g} structures={self.structures:g} terrain={self.terrain:g} "
            f"utilities={self.utilities:g} distance={self.distance:g}"
        )


def _water_score(p: Property, criteria: SearchCriteria) -> float:
    prefs = criteria.water_preferences
    wf = p.water_features
    if not prefs or wf is None or not wf.has_water:
        return 0.0

    types = set(wf.types or [])
    score = 0.0
    for pref in prefs:
        if pref.type == WaterPreferenceType.year_round_water:
            matched = wf.year_round is True
        elif pref.type == WaterPreferenceType.pond_lake:
            matched = bool(types & _POND_LIKE)
        elif pref.type == WaterPreferenceType.well:
            matched = "well" in types
        elif pref.type == WaterPreferenceType.creek:
            matched = bool(types & _CREEK_LIKE)
        else:  # any-water
            matched = True
        if matched:
            score += pref.weight
    return score


def _structure_score(p: Property, criteria: SearchCriteria) -> float:
    pref = criteria.structure_preference
    if pref is None or pref == StructurePreference.any:
        return 0.0

    has_structures = p.structures is not None and p.structures.has_structures
    if pref == StructurePreference.raw_land:
        return 0.0 if has_structures else _RAW_LAND_BONUS

    wanted = "cabin" if pref == StructurePreference.with_cabin else "house"
    if has_structures and p.structures.type == wanted:
        return _STRUCTURE_MATCH_BONUS
    return 0.0


def _terrain_score(p: Property, criteria: SearchCriteria) -> float:
    if not criteria.terrain or not p.terrain_tags:
        return 0.0
    tags = set(p.terrain_tags)
    matches = sum(1 for t in criteria.terrain if t.value in tags)
    return _TERRAIN_TAG_POINTS * matches


def _utility_score(p: Property, criteria: SearchCriteria) -> float:
    weights = criteria.utility_weights
    u = p.utilities
    if weights is None or u is None:
        return 0.0
    score = 0.0
    if u.power is True:
        score += weights.power
    if u.water is True:
        score += weights.water
    if u.internet is True:
        score += weights.internet
    if u.sewer is True:
        score += weights.sewer
    return score


def _distance_score(p: Property, criteria: SearchCriteria) -> float:
    pref = criteria.distance_to_town
    d = p.distance_to_town_minutes
    if pref is None or d is None:
        return 0.0

    if d < pref.min:
        return _TOO_CLOSE_PENALTY
    if d > pref.max:
        return _TOO_FAR_PENALTY

    mid = (pref.min + pref.max) / 2
    half = (pref.max - pref.min) / 2
    if half == 0:
        return _DISTANCE_PEAK if d == mid else 0.0
    return max(0.0, _DISTANCE_PEAK * (1 - abs(d - mid) / half))


def score_breakdown(p: Property, criteria: SearchCriteria) -> ScoreBreakdown:
    return ScoreBreakdown(
        water=_water_score(p, criteria),
        structures=_structure_score(p, criteria),
        terrain=_terrain_score(p, criteria),
        utilities=_utility_score(p, criteria),
        distance=_distance_score(p, criteria),
    )


def score_property(p: Property, criteria: SearchCriteria) -> float:
    """Desirability of `p` under `criteria`. Pure; no I/O."""
    return score_breakdown(p, criteria).total
