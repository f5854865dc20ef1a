# world3/streaming/session.py
"""
Streaming Session: one live, steerable simulation slot per client.

State machine
-------------
    IDLE --start--> RUNNING --complete/error--> IDLE
    any  --update--> DEBOUNCING --timer--> RUNNING
    any  --stop-->   IDLE

Threads
-------
- event loop   : dispatch, debounce timer, forwarding to the client
- worker thread: integrates one run, pushes steps into a bounded queue

Ordering contract:
- at most one run is current; a superseded run's queue is drained and
  nothing it produced (steps, completion, errors) reaches the client
- steps reach the client in increasing time order, once each
- the worker blocks when the queue is full (client backpressure) and
  notices cancellation while blocked
"""
from __future__ import annotations

import asyncio
import concurrent.futures
import itertools
import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Optional, Tuple

from pydantic import BaseModel, ValidationError

from world3.config.simulation_config import SimulationConfig
from world3.lookup.tables import WorldLookupTables, load_world_tables
from world3.model.initial import initial_conditions_1900
from world3.model.params import ScenarioParams
from world3.solver.run import simulate
from world3.store.scenario_store import ScenarioStore
from world3.streaming.messages import (
    ParamsAck,
    SimComplete,
    SimError,
    SimStep,
    StartSimulation,
    StopSimulation,
    UpdateParams,
    decode_client,
)
from world3.utils.errors import RunCancelled, ScenarioNotFound, SolverError
from world3.utils.logger import logs

Send = Callable[[BaseModel], Awaitable[None]]

# how often a worker blocked on a full queue re-checks its cancel token [s]
_PUT_POLL_SECONDS = 0.1


class SessionState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    DEBOUNCING = "debouncing"


@dataclass
class _Run:
    run_id: int
    scenario_id: str
    queue: asyncio.Queue
    cancel: threading.Event = field(default_factory=threading.Event)
    worker: Optional[asyncio.Future] = None
    forwarder: Optional[asyncio.Task] = None


class SimulationSession:
    def __init__(
        self,
        store: ScenarioStore,
        send: Send,
        *,
        config: Optional[SimulationConfig] = None,
        tables: Optional[WorldLookupTables] = None,
        executor: Optional[concurrent.futures.Executor] = None,
    ):
        self._store = store
        self._send_raw = send
        self._config = config or SimulationConfig()
        self._tables = tables if tables is not None else load_world_tables()
        self._executor = executor

        self._state = SessionState.IDLE
        self._run: Optional[_Run] = None
        self._last_run_id: Optional[int] = None
        self._timer: Optional[asyncio.TimerHandle] = None
        self._pending: Optional[Tuple[str, ScenarioParams]] = None

        self._run_ids = itertools.count(1)
        self._send_lock = asyncio.Lock()
        self._idle = asyncio.Event()
        self._idle.set()
        self._closed = False

    # ---------------------------------------------------------
    # Introspection
    # ---------------------------------------------------------
    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def current_run_id(self) -> Optional[int]:
        return self._run.run_id if self._run else None

    @property
    def pending_params(self) -> Optional[ScenarioParams]:
        return self._pending[1] if self._pending else None

    async def wait_idle(self) -> None:
        await self._idle.wait()

    # ---------------------------------------------------------
    # Client operations
    # ---------------------------------------------------------
    async def handle_text(self, raw: str) -> None:
        """Decode one client message and dispatch it."""
        try:
            msg = decode_client(raw)
        except ValidationError as e:
            logs.debug(f"[Session] invalid message: {e}")
            await self.reject(_first_error(e))
            return
        await self.dispatch(msg)

    async def reject(self, reason: str) -> None:
        """Answer an unusable client message; the session state is untouched."""
        await self._send(SimError(message=f"Invalid message: {reason}"))

    async def dispatch(self, msg: Any) -> None:
        if isinstance(msg, StartSimulation):
            await self.start_simulation(msg.scenario_id, msg.params)
        elif isinstance(msg, UpdateParams):
            await self.update_params(msg.scenario_id, msg.params)
        elif isinstance(msg, StopSimulation):
            await self.stop_simulation()
        else:
            raise TypeError(f"unsupported client message: {type(msg).__name__}")

    async def start_simulation(
        self, scenario_id: str, params: Optional[ScenarioParams] = None
    ) -> None:
        self._cancel_timer()
        self._cancel_run()

        if params is None:
            entry = self._store.find(scenario_id)
            if entry is None:
                self._set_idle()
                await self._send(SimError(message=str(ScenarioNotFound(scenario_id))))
                return
            params = entry.params

        self._launch(scenario_id, params)

    async def update_params(self, scenario_id: str, params: ScenarioParams) -> None:
        """
        Persist, acknowledge, and (re)arm the debounce timer.

        Only the latest params are kept; each call restarts the delay.
        """
        self._cancel_timer()
        self._cancel_run()

        try:
            self._store.update_params(scenario_id, params)
        except ScenarioNotFound:
            logs.debug(f"[Session] update for unknown scenario {scenario_id}, not persisted")

        self._pending = (scenario_id, params)
        self._state = SessionState.DEBOUNCING
        self._idle.clear()

        loop = asyncio.get_running_loop()
        self._timer = loop.call_later(self._config.debounce_seconds, self._on_debounce)

        await self._send(ParamsAck(scenario_id=scenario_id))

    async def stop_simulation(self) -> None:
        self._cancel_timer()
        self._cancel_run()
        self._set_idle()

    async def close(self) -> None:
        """Client disconnected: cancel everything, emit nothing."""
        self._closed = True
        await self.stop_simulation()

    # ---------------------------------------------------------
    # Run lifecycle (event loop side)
    # ---------------------------------------------------------
    def _on_debounce(self) -> None:
        self._timer = None
        if self._pending is None:
            return
        scenario_id, params = self._pending
        self._launch(scenario_id, params)

    def _launch(self, scenario_id: str, params: ScenarioParams) -> None:
        loop = asyncio.get_running_loop()

        params = params.private_copy()
        run = _Run(
            run_id=next(self._run_ids),
            scenario_id=scenario_id,
            queue=asyncio.Queue(maxsize=self._config.channel_capacity),
        )
        self._run = run
        self._last_run_id = run.run_id
        self._pending = None
        self._state = SessionState.RUNNING
        self._idle.clear()

        logs.info(f"[Session] run {run.run_id} start scenario={scenario_id}")

        run.worker = loop.run_in_executor(
            self._executor, self._produce, run, params, loop
        )
        run.forwarder = loop.create_task(self._forward(run))

    def _cancel_run(self) -> None:
        run = self._run
        if run is None:
            return
        self._run = None

        run.cancel.set()
        if run.forwarder is not None:
            run.forwarder.cancel()
        # unblock a worker waiting on a full queue
        while not run.queue.empty():
            run.queue.get_nowait()

        logs.debug(f"[Session] run {run.run_id} cancelled")

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        self._pending = None

    def _set_idle(self) -> None:
        self._state = SessionState.IDLE
        self._idle.set()

    def _finish(self, run: _Run) -> bool:
        """Retire `run` if it is still current. False means it was superseded."""
        if self._run is not run:
            return False
        self._run = None
        self._set_idle()
        return True

    async def _forward(self, run: _Run) -> None:
        try:
            await self._forward_items(run)
        except ConnectionError as e:
            # client went away mid-run: stop producing, nothing left to send to
            logs.debug(f"[Session] run {run.run_id} transport lost: {e!r}")
            if self._run is run:
                self._run = None
                run.cancel.set()
                while not run.queue.empty():
                    run.queue.get_nowait()
                self._set_idle()

    async def _forward_items(self, run: _Run) -> None:
        while True:
            kind, *payload = await run.queue.get()

            if self._run is not run:
                return

            if kind == "step":
                year, state = payload
                await self._send(SimStep.of(year, state))
            elif kind == "complete":
                (total,) = payload
                self._finish(run)
                logs.info(f"[Session] run {run.run_id} complete steps={total}")
                await self._send(SimComplete(scenario_id=run.scenario_id, total_steps=total))
                return
            else:
                (message,) = payload
                self._finish(run)
                logs.warning(f"[Session] run {run.run_id} failed: {message}")
                await self._send(SimError(message=message))
                return

    async def _send(self, msg: BaseModel) -> None:
        if self._closed:
            return
        async with self._send_lock:
            await self._send_raw(msg)

    # ---------------------------------------------------------
    # Worker thread
    # ---------------------------------------------------------
    def _produce(self, run: _Run, params: ScenarioParams, loop: asyncio.AbstractEventLoop) -> None:
        steps = 0
        try:
            initial = initial_conditions_1900(params)
            for year, state in simulate(
                initial, params, self._tables, self._config.population_bound
            ):
                if run.cancel.is_set():
                    raise RunCancelled()
                self._put(run, loop, ("step", year, state))
                steps += 1
            self._put(run, loop, ("complete", steps))
        except RunCancelled:
            return
        except SolverError as e:
            self._put_quietly(run, loop, ("error", str(e)))
        except Exception as e:
            logs.exception(f"[Session] run {run.run_id} crashed")
            self._put_quietly(run, loop, ("error", f"Simulation failed: {e}"))

    @staticmethod
    def _put(run: _Run, loop: asyncio.AbstractEventLoop, item: Tuple) -> None:
        """Blocking put into the run's queue; raises RunCancelled once cancelled."""
        if run.cancel.is_set():
            raise RunCancelled()

        fut = asyncio.run_coroutine_threadsafe(run.queue.put(item), loop)
        while True:
            try:
                fut.result(timeout=_PUT_POLL_SECONDS)
                return
            except concurrent.futures.TimeoutError:
                if run.cancel.is_set():
                    fut.cancel()
                    raise RunCancelled() from None
            except concurrent.futures.CancelledError:
                raise RunCancelled() from None

    def _put_quietly(self, run: _Run, loop: asyncio.AbstractEventLoop, item: Tuple) -> None:
        try:
            self._put(run, loop, item)
        except RunCancelled:
            pass


def _first_error(e: ValidationError) -> str:
    errors = e.errors()
    if not errors:
        return str(e)
    err = errors[0]
    loc = ".".join(str(p) for p in err.get("loc", ()))
    return f"{loc}: {err.get('msg')}" if loc else str(err.get("msg"))
