import httpx
import pytest

from landbot.adapters.profiles import ProfileStore
from landbot.config import settings
from landbot.db import get_session
from landbot.domain.criteria import PluginSettings, ProfilesFile
from landbot.domain.types import Coordinates
from landbot.entrypoints.fastapi_app import create_app
from landbot.registry import PluginRegistry
from fakes import FakePool, FakeSource, make_profile, make_property


@pytest.fixture
def source() -> FakeSource:
    return FakeSource(
        "alpha",
        [
            make_property("alpha", "1", state="MT", price=100000.0, acres=40.0, coordinates=Coordinates(46.0, -113.0)),
            make_property("alpha", "2", state="MT", price=250000.0, acres=80.0),
        ],
    )


@pytest.fixture
def app(async_session_maker, tmp_path, source):
    profiles = ProfileStore(path=tmp_path / "profiles.json")
    profiles.save(
        ProfilesFile(
            profiles={"montana": make_profile("montana", states=["MT"], plugins={"alpha": PluginSettings(enabled=True)})},
            active_profile="montana",
        )
    )
    registry = PluginRegistry()
    registry.register_source(source)

    app = create_app(registry=registry, profiles=profiles)

    async def pool_factory():
        return FakePool()

    app.state.pool_factory = pool_factory
    app.state.notifiers = []

    async def _session():
        async with async_session_maker() as session:
            yield session

    app.dependency_overrides[get_session] = _session
    return app


@pytest.fixture
async def client(app):
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


async def test_health(client):
    r = await client.get("/health")
    assert r.status_code == 200
    assert r.json() == {"status": "ok"}


async def test_search_then_browse(client):
    r = await client.post("/searches", params={"profile": "montana"})
    assert r.status_code == 200
    body = r.json()
    assert body["properties_found"] == 2
    assert body["inserted"] == 2
    assert body["errors"] == []
    assert body["sources_used"] == ["alpha"]

    r = await client.get("/properties", params={"state": "mt", "max_price": 150000})
    assert r.status_code == 200
    rows = r.json()
    assert [p["source_id"] for p in rows] == ["1"]
    assert rows[0]["latitude"] == 46.0

    pid = rows[0]["id"]
    r = await client.get(f"/properties/{pid}")
    assert r.status_code == 200
    detail = r.json()
    assert detail["property"]["id"] == pid
    assert len(detail["snapshots"]) == 1
    assert detail["price_history"] == []
    assert detail["duplicates"] == []

    r = await client.get("/searches/last", params={"profile": "montana"})
    assert r.json()["completed_at"] is not None

    r = await client.get("/properties/new", params={"since": "2000-01-01T00:00:00Z"})
    assert len(r.json()) == 2


async def test_price_changes_endpoint(client, source):
    await client.post("/searches")
    source.records = [
        make_property("alpha", "1", state="MT", price=95000.0, acres=40.0, coordinates=Coordinates(46.0, -113.0))
    ]
    await client.post("/searches")

    r = await client.get("/properties/price-changes")
    assert r.status_code == 200
    changes = r.json()
    assert len(changes) == 1
    assert changes[0]["old_price"] == 100000.0
    assert changes[0]["new_price"] == 95000.0
    assert changes[0]["change"] == -5000.0


async def test_show_unknown_property(client):
    r = await client.get("/properties/ffffffffffffffff")
    assert r.status_code == 404


async def test_unknown_profile(client):
    r = await client.post("/searches", params={"profile": "nowhere"})
    assert r.status_code == 404


async def test_mutations_require_api_key_when_configured(client, monkeypatch):
    monkeypatch.setattr(settings, "API_KEY", "k1")

    r = await client.post("/searches")
    assert r.status_code == 401

    r = await client.post("/searches", headers={"X-API-Key": "k1"})
    assert r.status_code == 200


async def test_monitoring_job_lifecycle(client):
    r = await client.post(
        "/monitoring/jobs",
        json={"profile_name": "montana", "schedule": "0 */6 * * *", "notification_channels": ["console"]},
    )
    assert r.status_code == 201
    job = r.json()
    assert job["enabled"] is True

    r = await client.post("/monitoring/jobs", json={"profile_name": "montana", "schedule": "sometimes"})
    assert r.status_code == 400
    r = await client.post("/monitoring/jobs", json={"profile_name": "nowhere", "schedule": "0 * * * *"})
    assert r.status_code == 404

    r = await client.post(f"/monitoring/jobs/{job['id']}/disable")
    assert r.json()["enabled"] is False
    r = await client.post(f"/monitoring/jobs/{job['id']}/enable")
    assert r.json()["enabled"] is True

    r = await client.patch(f"/monitoring/jobs/{job['id']}", json={"schedule": "30 2 * * *"})
    assert r.json()["schedule"] == "30 2 * * *"

    r = await client.post(f"/monitoring/jobs/{job['id']}/run")
    assert r.status_code == 200
    run = r.json()
    assert run["status"] == "completed"
    assert run["total_properties"] == 2

    r = await client.get(f"/monitoring/jobs/{job['id']}/runs")
    assert len(r.json()) == 1

    r = await client.get("/monitoring/jobs")
    assert [j["id"] for j in r.json()] == [job["id"]]

    r = await client.delete(f"/monitoring/jobs/{job['id']}")
    assert r.status_code == 204
    r = await client.delete(f"/monitoring/jobs/{job['id']}")
    assert r.status_code == 404


async def test_detail_explains_score_with_active_profile(client):
    await client.post("/searches")
    pid = (await client.get("/properties", params={"max_price": 150000})).json()[0]["id"]

    r = await client.get(f"/properties/{pid}")
    breakdown = r.json()["score_breakdown"]
    assert breakdown["profile"] == "montana"
    assert breakdown["total"] == 0
    assert breakdown["explain"].startswith("water=0 structures=0")

    r = await client.get(f"/properties/{pid}", params={"profile": "nowhere"})
    assert r.status_code == 404


async def test_manual_merge(client):
    await client.post("/searches")
    ids = [p["id"] for p in (await client.get("/properties")).json()]
    canonical, duplicate = ids

    r = await client.post(f"/properties/{canonical}/duplicates/{duplicate}")
    assert r.status_code == 200
    assert r.json() == {"canonical_id": canonical, "duplicate_id": duplicate, "created": True}

    # reverse direction is the same pair
    r = await client.post(f"/properties/{duplicate}/duplicates/{canonical}")
    assert r.json()["created"] is False

    links = (await client.get(f"/properties/{duplicate}")).json()["duplicates"]
    assert [(d["canonical_id"], d["match_method"], d["confidence"]) for d in links] == [(canonical, "manual", 1.0)]

    r = await client.post(f"/properties/{canonical}/duplicates/ffffffffffffffff")
    assert r.status_code == 404
    r = await client.post(f"/properties/ffffffffffffffff/duplicates/{duplicate}")
    assert r.status_code == 404
    r = await client.post(f"/properties/{canonical}/duplicates/{canonical}")
    assert r.status_code == 400


async def test_export_csv_and_json(client):
    r = await client.get("/properties/export")
    assert r.status_code == 404

    await client.post("/searches")

    r = await client.get("/properties/export", params={"format": "csv", "min_acres": 50})
    assert r.status_code == 200
    assert r.headers["content-type"].startswith("text/csv")
    lines = r.text.strip().splitlines()
    assert lines[0].startswith("id,source,source_id,url,title")
    assert len(lines) == 2
    assert ",alpha,2," in lines[1]

    r = await client.get("/properties/export", params={"format": "json", "limit": 1})
    assert r.headers["content-type"].startswith("application/json")
    assert len(r.json()) == 1

    r = await client.get("/properties/export", params={"format": "xml"})
    assert r.status_code == 422


async def test_profile_routes(client):
    r = await client.get("/profiles")
    assert r.json() == [{"name": "montana", "description": "", "active": True}]

    r = await client.post("/profiles", json={"name": "montana-north", "description": "North of I-90"})
    assert r.status_code == 201
    created = r.json()
    assert created["name"] == "montana-north"
    assert created["criteria"]["states"] == ["MT"]
    assert created["plugins"]["alpha"]["enabled"] is True

    r = await client.post("/profiles", json={"name": "montana"})
    assert r.status_code == 409
    r = await client.post("/profiles", json={"name": "x", "from_profile": "nowhere"})
    assert r.status_code == 404

    r = await client.post("/profiles/montana-north/activate")
    assert r.json()["active"] is True
    r = await client.get("/profiles")
    assert {p["name"]: p["active"] for p in r.json()} == {"montana": False, "montana-north": True}

    r = await client.get("/profiles/montana-north")
    assert r.json()["description"] == "North of I-90"
    r = await client.get("/profiles/nowhere")
    assert r.status_code == 404
