# landbot/service_layer/export.py
from __future__ import annotations

import csv
import io
import json
from dataclasses import asdict
from datetime import datetime
from typing import Any, Iterable

from ..domain.types import Property

EXPORT_FORMATS = ("csv", "json")

CSV_COLUMNS = [
    "id",
    "source",
    "source_id",
    "url",
    "title",
    "description",
    "state",
    "county",
    "city",
    "address",
    "latitude",
    "longitude",
    "acres",
    "price",
    "score",
    "field_completeness",
    "has_water",
    "water_types",
    "year_round_water",
    "has_structures",
    "structure_type",
    "structure_count",
    "has_power",
    "has_water_utility",
    "has_internet",
    "has_sewer",
    "has_gas",
    "distance_to_town_minutes",
    "terrain_tags",
    "first_seen",
    "last_seen",
    "last_checked",
]


def _iso(dt: datetime | None) -> str | None:
    return dt.isoformat() if dt else None


def csv_row(p: Property) -> dict[str, Any]:
    """Flat row for one record; list fields joined with '; '."""
    wf = p.water_features
    st = p.structures
    ut = p.utilities
    return {
        "id": p.id,
        "source": p.source,
        "source_id": p.source_id,
        "url": p.url,
        "title": p.title,
        "description": p.description,
        "state": p.state,
        "county": p.county,
        "city": p.city,
        "address": p.address,
        "latitude": p.coordinates.latitude if p.coordinates else None,
        "longitude": p.coordinates.longitude if p.coordinates else None,
        "acres": p.acres,
        "price": p.price,
        "score": p.score,
        "field_completeness": p.field_completeness,
        "has_water": wf.has_water if wf else None,
        "water_types": "; ".join(wf.types or []) if wf else None,
        "year_round_water": wf.year_round if wf else None,
        "has_structures": st.has_structures if st else None,
        "structure_type": st.type if st else None,
        "structure_count": st.count if st else None,
        "has_power": ut.power if ut else None,
        "has_water_utility": ut.water if ut else None,
        "has_internet": ut.internet if ut else None,
        "has_sewer": ut.sewer if ut else None,
        "has_gas": ut.gas if ut else None,
        "distance_to_town_minutes": p.distance_to_town_minutes,
        "terrain_tags": "; ".join(p.terrain_tags or []),
        "first_seen": _iso(p.first_seen),
        "last_seen": _iso(p.last_seen),
        "last_checked": _iso(p.last_checked),
    }


def to_csv(properties: Iterable[Property]) -> str:
    buf = io.StringIO()
    writer = csv.DictWriter(buf, fieldnames=CSV_COLUMNS, lineterminator="\n")
    writer.writeheader()
    for p in properties:
        writer.writerow({k: ("" if v is None else v) for k, v in csv_row(p).items()})
    return buf.getvalue()


def to_json(properties: Iterable[Property]) -> str:
    out = []
    for p in properties:
        d = asdict(p)
        d.pop("raw_data", None)
        out.append(d)
    return json.dumps(out, indent=2, default=str)


def export_properties(properties: Iterable[Property], fmt: str) -> str:
    fmt = fmt.lower()
    if fmt == "csv":
        return to_csv(properties)
    if fmt == "json":
        return to_json(properties)
    raise ValueError(f"Unsupported export format: {fmt!r} (expected csv or json)")
