from __future__ import annotations

from .criteria import SearchCriteria
from .types import Property


def matches_local_filters(p: Property, criteria: SearchCriteria) -> bool:
    """
    Client-side filtering for criteria a site cannot apply itself.

    A missing value never fails a filter: a listing without a price, acreage,
    distance or terrain tags is kept.
    """
    if criteria.states and p.state is not None and p.state.upper() not in {s.upper() for s in criteria.states}:
        return False

    if p.acres is not None:
        if p.acres < criteria.min_acres:
            return False
        if criteria.max_acres is not None and p.acres > criteria.max_acres:
            return False

    if p.price is not None:
        band = criteria.price_for_state(p.state) if p.state else criteria.price_range.default
        if band.min is not None and p.price < band.min:
            return False
        if band.max is not None and p.price > band.max:
            return False

    dist = criteria.distance_to_town
    if dist is not None and p.distance_to_town_minutes is not None:
        if not (dist.min <= p.distance_to_town_minutes <= dist.max):
            return False

    if criteria.terrain and p.terrain_tags:
        wanted = {t.value for t in criteria.terrain}
        if not wanted & set(p.terrain_tags):
            return False

    return True
