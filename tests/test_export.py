import csv
import io
import json
from datetime import datetime

import pytest

from landbot.domain.types import Coordinates, Structures, Utilities, WaterFeatures
from landbot.service_layer.export import CSV_COLUMNS, export_properties
from fakes import make_property


@pytest.fixture
def ranch():
    return make_property(
        "landwatch",
        "412345678",
        title='160 Acre "Creekside" Ranch, Helena',
        state="MT",
        acres=160.5,
        price=1150000.0,
        coordinates=Coordinates(46.6, -112.0),
        water_features=WaterFeatures(has_water=True, types=["creek", "well"], year_round=True),
        structures=Structures(has_structures=True, type="barn", count=2),
        utilities=Utilities(power=True, gas=False),
        terrain_tags=["prairie", "green"],
        raw_data={"mlsNumber": "30055555"},
        first_seen=datetime(2024, 5, 1, 12, 0),
    )


def test_csv_flattens_nested_fields_and_quotes(ranch):
    text = export_properties([ranch], "csv")
    rows = list(csv.DictReader(io.StringIO(text)))

    assert list(rows[0].keys()) == CSV_COLUMNS
    row = rows[0]
    assert row["title"] == '160 Acre "Creekside" Ranch, Helena'
    assert row["water_types"] == "creek; well"
    assert row["structure_count"] == "2"
    assert row["has_power"] == "True"
    assert row["has_gas"] == "False"
    assert row["has_sewer"] == ""
    assert row["terrain_tags"] == "prairie; green"
    assert row["first_seen"] == "2024-05-01T12:00:00"


def test_json_keeps_nested_shape_without_raw_payload(ranch):
    data = json.loads(export_properties([ranch], "JSON"))

    assert data[0]["coordinates"] == {"latitude": 46.6, "longitude": -112.0}
    assert data[0]["water_features"]["types"] == ["creek", "well"]
    assert "raw_data" not in data[0]


def test_unknown_format():
    with pytest.raises(ValueError, match="xml"):
        export_properties([], "xml")
