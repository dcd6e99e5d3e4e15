"""MCP stdio proxy that hides tools from the client.

The proxy:
- Spawns the target MCP server as a subprocess
- Relays client bytes to the target unmodified
- Relays target output line by line, rewriting tool-list responses
- Shuts the target down when either side goes away

Requests are never filtered, so a client that already knows a hidden tool's
name can still call it. This is visibility control, not access control.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import sys
from dataclasses import dataclass, field
from enum import Enum

from toolveil.config import ProxyConfig
from toolveil.errors import ProcessAlreadyRunning
from toolveil.mcp.framing import ENCODING, ENCODING_ERRORS, READ_CHUNK_BYTES, iter_lines
from toolveil.mcp.message_filter import filter_message
from toolveil.mcp.target import STDIO_STREAM_LIMIT, TargetServerManager, TargetServerProcess

logger = logging.getLogger(__name__)

DRAIN_TIMEOUT_S = 5.0


class ProxyState(str, Enum):
    idle = "idle"
    starting = "starting"
    running = "running"
    stopping = "stopping"
    stopped = "stopped"


async def connect_stdin_reader() -> asyncio.StreamReader:
    """Return a non-blocking reader over this process's stdin."""
    loop = asyncio.get_running_loop()
    reader = asyncio.StreamReader(limit=STDIO_STREAM_LIMIT)
    protocol = asyncio.StreamReaderProtocol(reader)
    await loop.connect_read_pipe(lambda: protocol, sys.stdin.buffer)
    return reader


async def connect_stdout_writer() -> asyncio.StreamWriter:
    """Return a non-blocking writer over this process's stdout."""
    loop = asyncio.get_running_loop()
    transport, protocol = await loop.connect_write_pipe(
        asyncio.streams.FlowControlMixin, sys.stdout.buffer
    )
    return asyncio.StreamWriter(transport, protocol, None, loop)


@dataclass
class ToolFilterProxy:
    """Relays one client session to one target server.

    ``client_reader`` and ``client_writer`` default to this process's
    stdin/stdout; tests inject their own.
    """

    config: ProxyConfig
    client_reader: asyncio.StreamReader | None = None
    client_writer: asyncio.StreamWriter | None = None

    _targets: TargetServerManager = field(default_factory=TargetServerManager, init=False)
    _state: ProxyState = field(default=ProxyState.idle, init=False)
    _client_pump: asyncio.Task[None] | None = field(default=None, init=False)
    _target_pump: asyncio.Task[None] | None = field(default=None, init=False)

    @property
    def state(self) -> ProxyState:
        return self._state

    @property
    def targets(self) -> TargetServerManager:
        return self._targets

    async def start(self) -> None:
        """Spawn the target and schedule both forwarding pumps."""
        if self._state is not ProxyState.idle:
            raise ProcessAlreadyRunning(f"Proxy cannot start from state {self._state.value}")

        self._state = ProxyState.starting
        try:
            target = await self._targets.start(self.config)
            client_reader = self.client_reader
            if client_reader is None:
                client_reader = await connect_stdin_reader()
            client_writer = self.client_writer
            if client_writer is None:
                client_writer = await connect_stdout_writer()
        except BaseException:
            await self._targets.stop()
            self._state = ProxyState.stopped
            raise

        self.client_reader = client_reader
        self.client_writer = client_writer
        # Every forwarded line is handed to the client before the next one is read.
        client_writer.transport.set_write_buffer_limits(high=0)

        self._state = ProxyState.running
        self._client_pump = asyncio.create_task(
            self._pump_client_to_target(client_reader, target), name="toolveil-client-to-target"
        )
        self._target_pump = asyncio.create_task(
            self._pump_target_to_client(target, client_writer), name="toolveil-target-to-client"
        )
        logger.info("Proxy running (target pid=%s)", target.pid)

    async def run(self) -> int | None:
        """Proxy until the client closes stdin or the target exits.

        Returns:
            The target's exit code, when it is known.
        """
        await self.start()
        target = self._targets.current()
        client_pump, target_pump = self._client_pump, self._target_pump
        if client_pump is None or target_pump is None:
            raise RuntimeError("Proxy started without its forwarding tasks")

        await asyncio.wait({client_pump, target_pump}, return_when=asyncio.FIRST_COMPLETED)
        await self.stop()

        # The target's remaining output is still forwarded before returning.
        try:
            await asyncio.wait_for(target_pump, timeout=DRAIN_TIMEOUT_S)
        except TimeoutError:
            logger.warning("Target output did not close after shutdown; abandoning it")

        if not client_pump.done():
            client_pump.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await client_pump

        return target.returncode if target is not None else None

    async def stop(self) -> None:
        """Stop the target. Idempotent and never raises."""
        if self._state in (ProxyState.idle, ProxyState.stopping, ProxyState.stopped):
            return

        self._state = ProxyState.stopping
        await self._targets.stop()
        self._state = ProxyState.stopped
        logger.info("Proxy stopped")

    async def _pump_client_to_target(
        self, client_reader: asyncio.StreamReader, target: TargetServerProcess
    ) -> None:
        while True:
            chunk = await client_reader.read(READ_CHUNK_BYTES)
            if not chunk:
                logger.debug("Client closed stdin")
                return
            if self._targets.current() is not target:
                return
            try:
                target.stdin.write(chunk)
                await target.stdin.drain()
            except ConnectionError as exc:
                logger.debug("Target stdin closed: %s", exc)
                return

    async def _pump_target_to_client(
        self, target: TargetServerProcess, client_writer: asyncio.StreamWriter
    ) -> None:
        async for line in iter_lines(target.stdout):
            forwarded = filter_message(line, self.config)
            try:
                client_writer.write((forwarded + "\n").encode(ENCODING, ENCODING_ERRORS))
                await client_writer.drain()
            except ConnectionError as exc:
                logger.debug("Client output closed: %s", exc)
                return
        logger.debug("Target closed stdout (returncode=%s)", target.returncode)
