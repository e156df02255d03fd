# landbot/adapters/sources/stub_json.py
from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any, AsyncIterator, ClassVar

from ...config import settings
from ...domain.criteria import SearchCriteria
from ...domain.filters import matches_local_filters
from ...domain.property import (
    generate_property_id,
    structures_from_dict,
    utilities_from_dict,
    water_features_from_dict,
)
from ...domain.types import Coordinates, Property
from .base import SearchCallbacks, SourceMetadata, SupportedFilters

if TYPE_CHECKING:
    from ..browser.pool import BrowserPool

log = logging.getLogger(__name__)

SOURCE_NAME = "stub_json"


def _as_list_of_dicts(payload: Any) -> list[dict[str, Any]]:
    """
    Accept either:
      - list[dict]
      - {"listings": list[dict]}
    """
    if isinstance(payload, list):
        return [x for x in payload if isinstance(x, dict)]
    if isinstance(payload, dict):
        v = payload.get("listings")
        if isinstance(v, list):
            return [x for x in v if isinstance(x, dict)]
    return []


def _pick(it: dict[str, Any], *keys: str) -> Any:
    for k in keys:
        if it.get(k) is not None:
            return it[k]
    return None


def _coerce_str(x: Any) -> str | None:
    if x is None:
        return None
    s = str(x).strip()
    return s if s else None


def _coerce_float(x: Any) -> float | None:
    if x is None or x == "":
        return None
    if isinstance(x, str):
        x = x.replace("$", "").replace(",", "").strip()
    return float(x)


def _snake_keys(d: dict[str, Any] | None) -> dict[str, Any] | None:
    # fixtures may use either hasWater or has_water style keys
    if d is None:
        return None
    out: dict[str, Any] = {}
    for k, v in d.items():
        snake = "".join("_" + c.lower() if c.isupper() else c for c in k)
        out[snake] = v
    return out


@dataclass
class StubJsonSource:
    """
    Offline source for development and demos.

    Reads one fixture per state:
      <STUB_LISTINGS_DIR>/<STATE>.json
    """

    fixtures_dir: Path
    metadata: ClassVar[SourceMetadata] = SourceMetadata(
        name=SOURCE_NAME,
        display_name="Stub JSON fixtures",
        version="1.0.0",
        description="Serves listings from local JSON fixtures, one file per state.",
        supported_filters=SupportedFilters(states=True),
    )

    @classmethod
    def from_settings(cls) -> "StubJsonSource":
        return cls(fixtures_dir=Path(settings.STUB_LISTINGS_DIR))

    async def search(
        self,
        criteria: SearchCriteria,
        *,
        callbacks: SearchCallbacks | None = None,
        pool: "BrowserPool | None" = None,
    ) -> AsyncIterator[Property]:
        cb = callbacks or SearchCallbacks()

        for state in criteria.states:
            path = self.fixtures_dir / f"{state.upper()}.json"
            if not path.exists():
                # missing fixture means "no listings"
                cb.progress(f"[{SOURCE_NAME}] No fixture for {state}")
                continue

            items = _as_list_of_dicts(json.loads(path.read_text(encoding="utf-8")))
            cb.progress(f"[{SOURCE_NAME}] {len(items)} listings in {path.name}")

            for it in items:
                try:
                    p = self._canonicalize(it, fallback_state=state.upper())
                except (AttributeError, KeyError, TypeError, ValueError) as e:
                    log.debug("[%s] skipping malformed listing: %s", SOURCE_NAME, e)
                    continue

                if not matches_local_filters(p, criteria):
                    continue
                cb.property_found(p)
                yield p

    # -------------------------
    # Canonicalization
    # -------------------------

    def _canonicalize(self, it: dict[str, Any], *, fallback_state: str) -> Property:
        source_id = _coerce_str(_pick(it, "source_id", "sourceId", "listingId", "id"))
        url = _coerce_str(_pick(it, "url", "link"))
        title = _coerce_str(_pick(it, "title", "name"))
        if not (source_id and url and title):
            raise ValueError(f"missing identity fields: {source_id=}, {url=}, {title=}")

        lat = _coerce_float(_pick(it, "latitude", "lat"))
        lon = _coerce_float(_pick(it, "longitude", "lon", "lng"))
        coords = Coordinates(latitude=lat, longitude=lon) if lat is not None and lon is not None else None

        terrain = _pick(it, "terrain_tags", "terrainTags")
        images = _pick(it, "images")

        return Property(
            id=generate_property_id(SOURCE_NAME, source_id),
            source=SOURCE_NAME,
            source_id=source_id,
            url=url,
            title=title,
            description=_coerce_str(it.get("description")),
            acres=_coerce_float(_pick(it, "acres", "acreage")),
            price=_coerce_float(_pick(it, "price", "listPrice")),
            state=_coerce_str(it.get("state")) or fallback_state,
            county=_coerce_str(it.get("county")),
            city=_coerce_str(it.get("city")),
            address=_coerce_str(it.get("address")),
            coordinates=coords,
            water_features=water_features_from_dict(_snake_keys(_pick(it, "water_features", "waterFeatures"))),
            structures=structures_from_dict(_snake_keys(it.get("structures"))),
            utilities=utilities_from_dict(_snake_keys(it.get("utilities"))),
            distance_to_town_minutes=_coerce_float(_pick(it, "distance_to_town_minutes", "distanceToTownMinutes")),
            terrain_tags=[str(t) for t in terrain] if terrain else None,
            images=[str(i) for i in images] if images else None,
            # keep the original around for identifier extraction
            raw_data=it,
        )
