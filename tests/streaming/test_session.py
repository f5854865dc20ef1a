import asyncio

import pytest

from world3.config.simulation_config import SimulationConfig
from world3.model.params import bau
from world3.store.scenario_store import ScenarioStore
from world3.streaming import session as session_mod
from world3.streaming.messages import ParamsAck, SimComplete, SimError, SimStep
from world3.streaming.session import SessionState, SimulationSession
from world3.utils.errors import DivergedError

WAIT = 60.0


def _make(store=None, **config):
    sent = []

    async def send(msg):
        sent.append(msg)

    s = SimulationSession(store or ScenarioStore(), send, config=SimulationConfig(**config))
    return s, sent


def _of(sent, kind):
    return [m for m in sent if isinstance(m, kind)]


def test_start_runs_to_completion():
    async def scenario():
        session, sent = _make()
        await session.start_simulation("bau", bau().with_overrides(end_year=1920.0))
        assert session.state == SessionState.RUNNING
        await asyncio.wait_for(session.wait_idle(), WAIT)
        return session, sent

    session, sent = asyncio.run(scenario())

    steps = _of(sent, SimStep)
    assert [m.year for m in steps] == [1900.0 + i for i in range(21)]
    assert _of(sent, SimComplete) == [SimComplete(scenario_id="bau", total_steps=21)]
    assert isinstance(sent[-1], SimComplete)
    assert session.state == SessionState.IDLE


def test_rapid_updates_last_write_wins():
    """start + 三次快速 update → 只有最后一组参数跑完，只有一个 sim_complete"""
    store = ScenarioStore()

    async def scenario():
        session, sent = _make(store)
        await session.start_simulation("bau")
        for end in (1950.0, 1960.0, 1970.0):
            await session.update_params("bau", bau().with_overrides(end_year=end))
        assert session.state == SessionState.DEBOUNCING
        assert session.pending_params.end_year == 1970.0
        await asyncio.wait_for(session.wait_idle(), WAIT)
        return sent

    sent = asyncio.run(scenario())

    assert len(_of(sent, ParamsAck)) == 3
    years = [m.year for m in _of(sent, SimStep)]
    assert years == [1900.0 + i for i in range(71)]
    assert _of(sent, SimComplete) == [SimComplete(scenario_id="bau", total_steps=71)]
    assert _of(sent, SimError) == []
    assert store.get_params("bau").end_year == 1970.0


def test_updates_mid_stream_discard_the_running_trajectory():
    """run 已经在推送 sim_step 时再三次 update：ack 之后只有新 run 的 1900..1970"""
    store = ScenarioStore()
    sent = []

    async def slow_send(msg):
        await asyncio.sleep(0.005)
        sent.append(msg)

    async def scenario():
        session = SimulationSession(store, slow_send, config=SimulationConfig())
        await session.start_simulation("bau")
        for _ in range(2000):
            if len(_of(sent, SimStep)) >= 20:
                break
            await asyncio.sleep(0.005)
        assert session.state == SessionState.RUNNING

        for tech in (0.01, 0.02, 0.03):
            await session.update_params(
                "bau", bau().with_overrides(end_year=1970.0, technology_growth_rate=tech)
            )
        await asyncio.wait_for(session.wait_idle(), WAIT)
        return sent

    asyncio.run(scenario())

    first_ack = next(i for i, m in enumerate(sent) if isinstance(m, ParamsAck))
    before, after = sent[:first_ack], sent[first_ack:]

    old_years = [m.year for m in before if isinstance(m, SimStep)]
    assert len(old_years) >= 20
    assert old_years == [1900.0 + i for i in range(len(old_years))]
    assert not any(isinstance(m, (SimComplete, SimError)) for m in before)

    assert [type(m) for m in after[:3]] == [ParamsAck] * 3
    assert [m.year for m in _of(after, SimStep)] == [1900.0 + i for i in range(71)]
    assert _of(sent, SimComplete) == [SimComplete(scenario_id="bau", total_steps=71)]
    assert isinstance(sent[-1], SimComplete)
    assert store.get_params("bau").technology_growth_rate == 0.03


def test_ack_is_sent_before_any_step_of_new_run():
    async def scenario():
        session, sent = _make()
        await session.update_params("bau", bau().with_overrides(end_year=1905.0))
        assert isinstance(sent[-1], ParamsAck)
        await asyncio.wait_for(session.wait_idle(), WAIT)
        return sent

    sent = asyncio.run(scenario())
    assert isinstance(sent[0], ParamsAck)
    assert len(_of(sent, SimStep)) == 6


def test_stop_silences_the_run():
    async def scenario():
        session, sent = _make()
        await session.start_simulation("bau")
        await session.stop_simulation()
        await asyncio.sleep(0.2)
        return session, sent

    session, sent = asyncio.run(scenario())
    assert _of(sent, SimStep) == []
    assert _of(sent, SimComplete) == []
    assert session.state == SessionState.IDLE
    assert session.current_run_id is None


def test_stop_during_debounce_cancels_timer():
    async def scenario():
        session, sent = _make()
        await session.update_params("bau", bau().with_overrides(end_year=1910.0))
        await session.stop_simulation()
        await asyncio.sleep(0.2)
        return session, sent

    session, sent = asyncio.run(scenario())
    assert [type(m) for m in sent] == [ParamsAck]
    assert session.state == SessionState.IDLE


def test_unknown_scenario_sends_one_error():
    async def scenario():
        session, sent = _make()
        await session.start_simulation("missing")
        return session, sent

    session, sent = asyncio.run(scenario())
    assert sent == [SimError(message="Scenario 'missing' not found")]
    assert session.state == SessionState.IDLE


def test_solver_failure_becomes_sim_error(monkeypatch):
    def failing(initial, params, tables, population_bound):
        yield params.start_year, initial
        raise DivergedError(1901.0, "population.population", 2e13, initial)

    monkeypatch.setattr(session_mod, "simulate", failing)

    async def scenario():
        session, sent = _make()
        await session.start_simulation("bau")
        await asyncio.wait_for(session.wait_idle(), WAIT)
        # the session stays usable after a failure
        monkeypatch.undo()
        await session.start_simulation("bau", bau().with_overrides(end_year=1902.0))
        await asyncio.wait_for(session.wait_idle(), WAIT)
        return sent

    sent = asyncio.run(scenario())
    kinds = [type(m) for m in sent]
    assert kinds == [SimStep, SimError, SimStep, SimStep, SimStep, SimComplete]
    assert sent[1].message.startswith("State diverged at year 1901.0")


def test_invalid_message_is_reported():
    async def scenario():
        session, sent = _make()
        await session.handle_text("{not json")
        await session.handle_text('{"type": "stop_simulation"}')
        return sent

    sent = asyncio.run(scenario())
    assert len(sent) == 1
    assert sent[0].message.startswith("Invalid message:")


def test_small_channel_applies_backpressure_without_loss():
    async def scenario():
        session, sent = _make(channel_capacity=1)
        await session.start_simulation("bau", bau().with_overrides(end_year=1950.0))
        await asyncio.wait_for(session.wait_idle(), WAIT)
        return sent

    sent = asyncio.run(scenario())
    assert [m.year for m in _of(sent, SimStep)] == [1900.0 + i for i in range(51)]
    assert _of(sent, SimComplete)[0].total_steps == 51


def test_close_emits_nothing_further():
    async def scenario():
        session, sent = _make()
        await session.start_simulation("bau")
        await session.close()
        await asyncio.sleep(0.2)
        await session.handle_text("garbage")
        return sent

    assert asyncio.run(scenario()) == []


class _DeletedDuringUpdate(ScenarioStore):
    """The scenario disappears between the session's call and the store write."""

    def update_params(self, scenario_id, params):
        self.delete(scenario_id)
        return super().update_params(scenario_id, params)


def test_update_for_concurrently_deleted_scenario_still_runs():
    store = _DeletedDuringUpdate()
    sid = store.create(bau()).scenario_id

    async def scenario():
        session, sent = _make(store)
        raw = (
            '{"type": "update_params", "scenario_id": "%s", "params": {"end_year": 1904}}' % sid
        )
        await session.handle_text(raw)
        await asyncio.wait_for(session.wait_idle(), WAIT)
        return sent

    sent = asyncio.run(scenario())

    assert sent[0] == ParamsAck(scenario_id=sid)
    assert len(_of(sent, SimStep)) == 5
    assert _of(sent, SimComplete) == [SimComplete(scenario_id=sid, total_steps=5)]
    assert sid not in store


def test_nan_params_are_rejected_before_any_run():
    async def scenario():
        session, sent = _make()
        await session.handle_text(
            '{"type": "start_simulation", "scenario_id": "bau", "params": {"end_year": NaN}}'
        )
        return session, sent

    session, sent = asyncio.run(scenario())
    assert len(sent) == 1
    assert sent[0].message.startswith("Invalid message:")
    assert session.state == SessionState.IDLE
