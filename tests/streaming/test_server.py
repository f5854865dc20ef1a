import asyncio
import json

from world3.store.scenario_store import ScenarioStore
from world3.streaming.server import StreamServer


async def _read_until_complete(reader, limit=200):
    out = []
    for _ in range(limit):
        line = await asyncio.wait_for(reader.readline(), 30)
        if not line:
            break
        msg = json.loads(line)
        out.append(msg)
        if msg["type"] in ("sim_complete", "sim_error"):
            break
    return out


def test_stream_round_trip_over_tcp():
    """真实 TCP：start → sim_step * 11 → sim_complete"""

    async def scenario():
        server = StreamServer(ScenarioStore())
        await server.start("127.0.0.1", 0)
        try:
            reader, writer = await asyncio.open_connection("127.0.0.1", server.port)
            start = {"type": "start_simulation", "scenario_id": "bau", "params": {"end_year": 1910}}
            writer.write(json.dumps(start).encode() + b"\n")
            await writer.drain()

            messages = await _read_until_complete(reader)

            writer.write(b"this is not json\n")
            await writer.drain()
            error = json.loads(await asyncio.wait_for(reader.readline(), 30))

            writer.close()
            await writer.wait_closed()
            return messages, error
        finally:
            await server.close()

    messages, error = asyncio.run(scenario())

    steps = [m for m in messages if m["type"] == "sim_step"]
    assert [m["year"] for m in steps] == [1900.0 + i for i in range(11)]
    assert steps[0]["state"]["population"]["population"] > 1e9
    assert messages[-1] == {"type": "sim_complete", "scenario_id": "bau", "total_steps": 11}
    assert error["type"] == "sim_error"
    assert error["message"].startswith("Invalid message:")


def test_oversized_line_is_rejected_and_connection_survives():
    async def scenario():
        server = StreamServer(ScenarioStore(), line_limit=1024)
        await server.start("127.0.0.1", 0)
        try:
            reader, writer = await asyncio.open_connection("127.0.0.1", server.port)
            huge = {"type": "stop_simulation", "padding": "x" * 5000}
            start = {"type": "start_simulation", "scenario_id": "bau", "params": {"end_year": 1905}}
            writer.write(json.dumps(huge).encode() + b"\n")
            writer.write(json.dumps(start).encode() + b"\n")
            await writer.drain()

            messages = []
            for _ in range(10):
                messages += await _read_until_complete(reader)
                if messages and messages[-1]["type"] == "sim_complete":
                    break

            writer.close()
            await writer.wait_closed()
            return messages
        finally:
            await server.close()

    messages = asyncio.run(scenario())

    errors = [m for m in messages if m["type"] == "sim_error"]
    assert {"type": "sim_error", "message": "Invalid message: line too long"} in errors
    assert all(e["message"].startswith("Invalid message:") for e in errors)
    assert [m["year"] for m in messages if m["type"] == "sim_step"] == [1900.0 + i for i in range(6)]
    assert messages[-1] == {"type": "sim_complete", "scenario_id": "bau", "total_steps": 6}
