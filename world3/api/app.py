# world3/api/app.py
from __future__ import annotations

import threading

from flask import Flask, jsonify, request

from world3.api.decorators import handle_scenario_errors
from world3.model.params import ScenarioMeta, ScenarioParams, parameter_descriptors
from world3.solver.run import Rk4Solver
from world3.store.scenario_store import ScenarioEntry, ScenarioStore
from world3.utils.logger import logs

app = Flask(__name__)

# one registry per process: the streaming server started by `world3 serve`
# is handed this same instance
STORE = ScenarioStore()
SOLVER = Rk4Solver()

PREFIX = "/api/v1"


def _detail(entry: ScenarioEntry) -> dict:
    data = entry.summary()
    data["params"] = entry.params.model_dump()
    return data


def _params_from_request(keep_meta: ScenarioMeta | None = None) -> ScenarioParams:
    payload = request.get_json(force=True) or {}
    if keep_meta is not None and "meta" not in payload:
        payload["meta"] = keep_meta.model_dump()
    # ids are assigned by the server
    meta = payload.get("meta")
    if isinstance(meta, dict):
        meta.pop("id", None)
    return ScenarioParams.model_validate(payload)


@app.get(f"{PREFIX}/health")
def health():
    return jsonify({"ok": True})


@app.get(f"{PREFIX}/params/schema")
def params_schema():
    return jsonify([d.model_dump() for d in parameter_descriptors()])


@app.get(f"{PREFIX}/presets")
def list_presets():
    return jsonify([e.summary() for e in STORE.presets()])


@app.get(f"{PREFIX}/scenarios")
def list_scenarios():
    return jsonify([e.summary() for e in STORE.list()])


@app.post(f"{PREFIX}/scenarios")
@handle_scenario_errors
def create_scenario():
    entry = STORE.create(_params_from_request())
    return jsonify(_detail(entry)), 201


@app.get(f"{PREFIX}/scenarios/<scenario_id>")
@handle_scenario_errors
def get_scenario(scenario_id: str):
    return jsonify(_detail(STORE.get(scenario_id)))


@app.delete(f"{PREFIX}/scenarios/<scenario_id>")
@handle_scenario_errors
def delete_scenario(scenario_id: str):
    STORE.delete(scenario_id)
    return jsonify({"deleted": scenario_id})


@app.put(f"{PREFIX}/scenarios/<scenario_id>/params")
@handle_scenario_errors
def update_params(scenario_id: str):
    existing = STORE.get(scenario_id)
    entry = STORE.update_params(scenario_id, _params_from_request(existing.params.meta))
    return jsonify(_detail(entry))


@app.post(f"{PREFIX}/scenarios/<scenario_id>/run")
@handle_scenario_errors
def run_scenario(scenario_id: str):
    params = STORE.get_params(scenario_id)
    logs.info(f"[API] run {scenario_id}")
    output = SOLVER.run_batch(params)
    return jsonify(output.to_dict())


def start_in_thread(host: str, port: int) -> threading.Thread:
    """Serve the API from a daemon thread of the current process (shares STORE)."""
    t = threading.Thread(
        target=app.run,
        kwargs=dict(host=host, port=port, threaded=True, use_reloader=False),
        name="world3-api",
        daemon=True,
    )
    t.start()
    logs.info(f"[API] listening on {host}:{port}")
    return t


if __name__ == "__main__":
    # python -m world3.api.app
    app.run(host="127.0.0.1", port=8080)
