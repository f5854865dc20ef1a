# world3/streaming/server.py
"""
Newline-delimited JSON transport for streaming sessions.

One TCP connection == one SimulationSession. Each line from the client is a
client message; each server message is written as one line.
"""
from __future__ import annotations

import asyncio
from concurrent.futures import ThreadPoolExecutor
from typing import Optional

from pydantic import BaseModel

from world3.config.simulation_config import SimulationConfig
from world3.lookup.tables import WorldLookupTables, load_world_tables
from world3.store.scenario_store import ScenarioStore
from world3.streaming.messages import encode
from world3.streaming.session import SimulationSession
from world3.utils.logger import logs

# longest accepted client line [bytes]; asyncio.StreamReader's default
MAX_LINE_BYTES = 2 ** 16


class StreamServer:
    def __init__(
        self,
        store: ScenarioStore,
        config: Optional[SimulationConfig] = None,
        tables: Optional[WorldLookupTables] = None,
        line_limit: int = MAX_LINE_BYTES,
    ):
        self.store = store
        self.line_limit = line_limit
        self.config = config or SimulationConfig()
        self.tables = tables if tables is not None else load_world_tables()

        # shared by all sessions; one worker per concurrently running client
        self.executor = ThreadPoolExecutor(
            max_workers=self.config.max_workers, thread_name_prefix="world3-sim"
        )
        self._server: Optional[asyncio.AbstractServer] = None

    async def start(self, host: str, port: int) -> asyncio.AbstractServer:
        self._server = await asyncio.start_server(
            self.handle_client, host, port, limit=self.line_limit
        )
        for sock in self._server.sockets:
            logs.info(f"[StreamServer] listening on {sock.getsockname()}")
        return self._server

    @property
    def port(self) -> int:
        if self._server is None or not self._server.sockets:
            raise RuntimeError("server not started")
        return self._server.sockets[0].getsockname()[1]

    async def close(self) -> None:
        if self._server is not None:
            self._server.close()
            await self._server.wait_closed()
            self._server = None
        self.executor.shutdown(wait=False, cancel_futures=True)

    async def handle_client(
        self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter
    ) -> None:
        addr = writer.get_extra_info("peername")
        logs.info(f"[StreamServer] client connected: {addr}")

        async def send(msg: BaseModel) -> None:
            writer.write(encode(msg).encode() + b"\n")
            await writer.drain()

        session = SimulationSession(
            self.store,
            send,
            config=self.config,
            tables=self.tables,
            executor=self.executor,
        )
        try:
            while True:
                try:
                    line = await reader.readline()
                except ValueError:
                    # over line_limit: the reader already dropped the oversized data
                    logs.debug(f"[StreamServer] oversized line from {addr}")
                    await session.reject("line too long")
                    continue
                if not line:
                    break
                text = line.decode(errors="replace").strip()
                if text:
                    await session.handle_text(text)
        except (ConnectionError, asyncio.IncompleteReadError) as e:
            logs.debug(f"[StreamServer] connection lost {addr}: {e!r}")
        finally:
            await session.close()
            writer.close()
            try:
                await writer.wait_closed()
            except ConnectionError:
                pass
            logs.info(f"[StreamServer] client disconnected: {addr}")


async def serve(
    host: str,
    port: int,
    store: ScenarioStore,
    config: Optional[SimulationConfig] = None,
) -> None:
    """
    Run the streaming server until cancelled.

    `store` is the process-wide registry (the HTTP API passes its own), so
    scenarios created or updated through either surface are visible to both.
    """
    server = StreamServer(store, config)
    srv = await server.start(host, port)
    try:
        async with srv:
            await srv.serve_forever()
    finally:
        await server.close()
