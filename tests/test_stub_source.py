import json
from pathlib import Path

from landbot.adapters.sources.base import SearchCallbacks
from landbot.adapters.sources.stub_json import StubJsonSource
from landbot.domain.criteria import PriceBand, PriceRange, SearchCriteria

FIXTURES = Path(__file__).resolve().parents[1] / "data" / "stub_listings"


async def _collect(source, criteria, callbacks=None):
    return [p async for p in source.search(criteria, callbacks=callbacks)]


async def test_bundled_montana_fixture():
    source = StubJsonSource(fixtures_dir=FIXTURES)
    found = []
    out = await _collect(source, SearchCriteria(states=["MT"]), SearchCallbacks(on_property_found=found.append))

    # the listing without a url is malformed and skipped
    assert len(out) == 5
    assert found == out
    assert {p.source for p in out} == {"stub_json"}

    cabin = next(p for p in out if p.source_id == "mt-1001")
    assert cabin.acres == 40
    assert cabin.water_features.year_round is True
    assert cabin.water_features.types == ["creek"]
    assert cabin.structures.type == "cabin"
    assert cabin.utilities.power is True
    assert cabin.coordinates.latitude == 46.3321
    assert cabin.terrain_tags == ["forested", "mountain"]
    assert cabin.raw_data["sourceId"] == "mt-1001"


async def test_local_filters_applied():
    source = StubJsonSource(fixtures_dir=FIXTURES)
    criteria = SearchCriteria(
        states=["MT"],
        min_acres=20,
        price_range=PriceRange(default=PriceBand(max=1200000)),
    )
    out = await _collect(source, criteria)
    assert sorted(p.source_id for p in out) == ["mt-1001", "mt-1002", "mt-1003"]


async def test_missing_state_fixture_yields_nothing(tmp_path):
    progress: list[str] = []
    source = StubJsonSource(fixtures_dir=tmp_path)
    out = await _collect(source, SearchCriteria(states=["WY"]), SearchCallbacks(on_progress=progress.append))
    assert out == []
    assert any("No fixture for WY" in m for m in progress)


async def test_accepts_plain_list_and_snake_case_keys(tmp_path):
    (tmp_path / "ID.json").write_text(
        json.dumps(
            [
                {
                    "source_id": "id-1",
                    "url": "https://example.com/id-1",
                    "title": "Idaho Timber",
                    "price": "$125,000",
                    "acres": "12.5",
                    "water_features": {"has_water": True, "types": ["spring"]},
                },
                {"source_id": "id-2", "url": "https://example.com/id-2", "title": "Bad price", "price": "call"},
            ]
        ),
        encoding="utf-8",
    )
    out = await _collect(StubJsonSource(fixtures_dir=tmp_path), SearchCriteria(states=["id"]))
    assert len(out) == 1
    p = out[0]
    assert p.state == "ID"
    assert p.price == 125000
    assert p.acres == 12.5
    assert p.water_features.has_water is True
