from __future__ import annotations

from world3.api import app as app_mod
from world3.utils.errors import DivergedError

API = "/api/v1"


def test_health(client):
    resp = client.get(f"{API}/health")
    assert resp.status_code == 200
    assert resp.json == {"ok": True}


def test_params_schema(client):
    resp = client.get(f"{API}/params/schema")
    assert resp.status_code == 200
    fields = {d["field"] for d in resp.json}
    assert "pollution_control" in fields
    assert len(resp.json) == 12


def test_presets_listed(client):
    resp = client.get(f"{API}/presets")
    assert {p["id"] for p in resp.json} == {"bau", "technology", "stabilized"}
    assert all(p["is_preset"] for p in resp.json)


def test_create_get_delete(client):
    resp = client.post(
        f"{API}/scenarios",
        json={"meta": {"name": "mine", "id": "bau"}, "end_year": 1920},
    )
    assert resp.status_code == 201
    sid = resp.json["id"]
    assert sid != "bau"  # ids are server-assigned
    assert resp.json["params"]["end_year"] == 1920.0

    assert client.get(f"{API}/scenarios/{sid}").json["name"] == "mine"
    assert len(client.get(f"{API}/scenarios").json) == 4

    assert client.delete(f"{API}/scenarios/{sid}").status_code == 200
    assert client.get(f"{API}/scenarios/{sid}").status_code == 404


def test_unknown_scenario_is_404(client):
    resp = client.get(f"{API}/scenarios/nope")
    assert resp.status_code == 404
    assert resp.json == {"error": "Scenario 'nope' not found", "scenario_id": "nope"}


def test_delete_preset_is_403(client):
    resp = client.delete(f"{API}/scenarios/bau")
    assert resp.status_code == 403
    assert resp.json["scenario_id"] == "bau"


def test_invalid_params_is_400(client):
    resp = client.post(f"{API}/scenarios", json={"time_step": -1})
    assert resp.status_code == 400
    assert resp.json["error"] == "invalid parameters"

    resp = client.put(f"{API}/scenarios/bau/params", json={"end_year": 1800})
    assert resp.status_code == 400

    resp = client.put(f"{API}/scenarios/bau/params", data='{"end_year": NaN}',
                      content_type="application/json")
    assert resp.status_code == 400


def test_update_params(client):
    resp = client.put(f"{API}/scenarios/bau/params", json={"end_year": 1950})
    assert resp.status_code == 200
    assert resp.json["id"] == "bau"
    assert client.get(f"{API}/scenarios/bau").json["params"]["end_year"] == 1950.0

    assert client.put(f"{API}/scenarios/nope/params", json={}).status_code == 404


def test_run_scenario(client):
    client.put(f"{API}/scenarios/bau/params", json={"end_year": 1910})
    resp = client.post(f"{API}/scenarios/bau/run")
    assert resp.status_code == 200
    body = resp.json
    assert body["scenario_id"] == "bau"
    assert len(body["states"]) == 11
    assert body["timeline"][-1] == 1910.0


def test_run_divergence_is_422(client, monkeypatch):
    def boom(params, initial_state=None):
        raise DivergedError(1950.0, "population.population", 2e13)

    monkeypatch.setattr(app_mod.SOLVER, "run_batch", boom)
    resp = client.post(f"{API}/scenarios/bau/run")
    assert resp.status_code == 422
    assert resp.json["kind"] == "diverged"
    assert resp.json["error"].startswith("State diverged at year 1950.0")


def test_update_without_meta_keeps_name(client):
    client.put(f"{API}/scenarios/bau/params", json={"end_year": 1950})
    assert client.get(f"{API}/scenarios/bau").json["name"] == "Business as Usual"
