"""
HTTP API 与 streaming server 共用 api.app.STORE。
"""
from __future__ import annotations

import asyncio
import json

from world3.api.app import STORE
from world3.streaming.server import StreamServer

API = "/api/v1"


async def _exchange(port, requests, stop_types=("sim_complete", "sim_error")):
    reader, writer = await asyncio.open_connection("127.0.0.1", port)
    out = []
    try:
        for req in requests:
            writer.write(json.dumps(req).encode() + b"\n")
        await writer.drain()
        for _ in range(500):
            line = await asyncio.wait_for(reader.readline(), 30)
            if not line:
                break
            msg = json.loads(line)
            out.append(msg)
            if msg["type"] in stop_types:
                break
    finally:
        writer.close()
        await writer.wait_closed()
    return out


def _stream(requests):
    async def scenario():
        server = StreamServer(STORE)
        await server.start("127.0.0.1", 0)
        try:
            return await _exchange(server.port, requests)
        finally:
            await server.close()

    return asyncio.run(scenario())


def test_scenario_created_over_http_streams_by_id(client):
    resp = client.post(
        f"{API}/scenarios",
        json={"meta": {"name": "Short"}, "start_year": 1900, "end_year": 1905},
    )
    assert resp.status_code == 201
    scenario_id = resp.json["id"]

    messages = _stream([{"type": "start_simulation", "scenario_id": scenario_id}])

    steps = [m for m in messages if m["type"] == "sim_step"]
    assert [m["year"] for m in steps] == [1900.0, 1901.0, 1902.0, 1903.0, 1904.0, 1905.0]
    assert messages[-1] == {"type": "sim_complete", "scenario_id": scenario_id, "total_steps": 6}


def test_stream_update_is_visible_over_http(client):
    update = {
        "type": "update_params",
        "scenario_id": "bau",
        "params": {"end_year": 1903, "pollution_control": 0.4},
    }
    messages = _stream([update])

    assert messages[0] == {"type": "params_ack", "scenario_id": "bau"}
    assert messages[-1]["type"] == "sim_complete"

    resp = client.get(f"{API}/scenarios/bau")
    assert resp.status_code == 200
    assert resp.json["params"]["end_year"] == 1903
    assert resp.json["params"]["pollution_control"] == 0.4
