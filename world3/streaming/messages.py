# world3/streaming/messages.py
"""
Wire messages of the streaming protocol (one JSON object per message).

Every message carries a `type` discriminator:

    client -> server : start_simulation | update_params | stop_simulation
    server -> client : sim_step | sim_complete | sim_error | params_ack
"""
from __future__ import annotations

from typing import Annotated, Any, Dict, Literal, Optional, Union

from pydantic import BaseModel, Field, TypeAdapter

from world3.model.params import ScenarioParams
from world3.model.state import WorldState


# ---------------- client -> server ----------------
class StartSimulation(BaseModel):
    type: Literal["start_simulation"] = "start_simulation"
    scenario_id: str
    params: Optional[ScenarioParams] = None


class UpdateParams(BaseModel):
    type: Literal["update_params"] = "update_params"
    scenario_id: str
    params: ScenarioParams


class StopSimulation(BaseModel):
    type: Literal["stop_simulation"] = "stop_simulation"


ClientMessage = Annotated[
    Union[StartSimulation, UpdateParams, StopSimulation],
    Field(discriminator="type"),
]

_CLIENT_ADAPTER: TypeAdapter = TypeAdapter(ClientMessage)


# ---------------- server -> client ----------------
class SimStep(BaseModel):
    type: Literal["sim_step"] = "sim_step"
    year: float
    state: Dict[str, Any]

    @classmethod
    def of(cls, year: float, state: WorldState) -> "SimStep":
        return cls(year=year, state=state.to_dict())


class SimComplete(BaseModel):
    type: Literal["sim_complete"] = "sim_complete"
    scenario_id: str
    total_steps: int


class SimError(BaseModel):
    type: Literal["sim_error"] = "sim_error"
    message: str


class ParamsAck(BaseModel):
    type: Literal["params_ack"] = "params_ack"
    scenario_id: str


ServerMessage = Annotated[
    Union[SimStep, SimComplete, SimError, ParamsAck],
    Field(discriminator="type"),
]

_SERVER_ADAPTER: TypeAdapter = TypeAdapter(ServerMessage)


def decode_client(raw: Union[str, bytes]):
    """Parse one client message; raises pydantic.ValidationError on bad input."""
    return _CLIENT_ADAPTER.validate_json(raw)


def decode_server(raw: Union[str, bytes]):
    return _SERVER_ADAPTER.validate_json(raw)


def encode(message: BaseModel) -> str:
    return message.model_dump_json()
