import json

import pytest
from pydantic import ValidationError

from world3.model.initial import initial_conditions_1900
from world3.streaming.messages import (
    ParamsAck,
    SimComplete,
    SimError,
    SimStep,
    StartSimulation,
    StopSimulation,
    UpdateParams,
    decode_client,
    decode_server,
    encode,
)


def test_decode_start_without_params():
    msg = decode_client('{"type": "start_simulation", "scenario_id": "bau"}')
    assert isinstance(msg, StartSimulation)
    assert msg.scenario_id == "bau"
    assert msg.params is None


def test_decode_update_with_partial_params():
    raw = json.dumps({"type": "update_params", "scenario_id": "x", "params": {"end_year": 1950}})
    msg = decode_client(raw)
    assert isinstance(msg, UpdateParams)
    assert msg.params.end_year == 1950.0
    assert msg.params.start_year == 1900.0


def test_decode_stop():
    assert isinstance(decode_client('{"type": "stop_simulation"}'), StopSimulation)


@pytest.mark.parametrize(
    "raw",
    [
        "not json",
        '{"type": "launch_rockets"}',
        '{"scenario_id": "bau"}',
        '{"type": "update_params", "scenario_id": "bau", "params": {"time_step": -1}}',
        '{"type": "start_simulation", "scenario_id": "bau", "params": {"end_year": NaN}}',
        '{"type": "update_params", "scenario_id": "bau", "params": {"time_step": Infinity}}',
    ],
)
def test_invalid_client_messages(raw):
    with pytest.raises(ValidationError):
        decode_client(raw)


def test_sim_step_carries_full_state():
    msg = SimStep.of(1900.0, initial_conditions_1900())
    data = json.loads(encode(msg))
    assert data["type"] == "sim_step"
    assert data["year"] == 1900.0
    assert set(data["state"]) == {
        "time", "population", "capital", "agriculture", "resources", "pollution"
    }
    assert data["state"]["population"]["cohort_15_44"] == 0.65e9


@pytest.mark.parametrize(
    "msg",
    [
        SimComplete(scenario_id="bau", total_steps=201),
        SimError(message="boom"),
        ParamsAck(scenario_id="bau"),
    ],
)
def test_server_messages_encode_with_type(msg):
    decoded = decode_server(encode(msg))
    assert decoded == msg
