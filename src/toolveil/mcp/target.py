"""Lifecycle of the single target MCP server subprocess."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from dataclasses import dataclass

from toolveil.config import ProxyConfig
from toolveil.errors import ProcessAlreadyRunning, SpawnFailure

logger = logging.getLogger(__name__)

STDIO_STREAM_LIMIT = 16 * 1024 * 1024
TERMINATE_GRACE_S = 5.0


@dataclass
class TargetServerProcess:
    """A running target server and its stdio pipes."""

    process: asyncio.subprocess.Process
    stdin: asyncio.StreamWriter
    stdout: asyncio.StreamReader

    @property
    def pid(self) -> int:
        return self.process.pid

    @property
    def returncode(self) -> int | None:
        return self.process.returncode


class TargetServerManager:
    """Spawns, tracks and tears down at most one target server at a time.

    The child's stderr is inherited so its diagnostics reach the operator
    unfiltered.
    """

    def __init__(self) -> None:
        self._target: TargetServerProcess | None = None

    async def start(self, config: ProxyConfig) -> TargetServerProcess:
        if self._target is not None:
            raise ProcessAlreadyRunning("Target server is already running")

        command, *args = config.target_command
        logger.info("Starting target server: %s", " ".join(config.target_command))
        try:
            process = await asyncio.create_subprocess_exec(
                command,
                *args,
                stdin=asyncio.subprocess.PIPE,
                stdout=asyncio.subprocess.PIPE,
                stderr=None,
                limit=STDIO_STREAM_LIMIT,
            )
        except OSError as e:
            raise SpawnFailure(f"Failed to start target server {command!r}: {e}") from e

        if process.stdin is None or process.stdout is None:
            process.kill()
            await process.wait()
            raise RuntimeError("Target server started without stdio pipes")
        self._target = TargetServerProcess(
            process=process, stdin=process.stdin, stdout=process.stdout
        )
        logger.debug("Target server started (pid=%s)", process.pid)
        return self._target

    async def stop(self) -> None:
        """Close stdin, terminate and reap the child. Never raises."""
        target = self._target
        if target is None:
            return
        self._target = None

        try:
            target.stdin.close()
            if target.process.returncode is None:
                with contextlib.suppress(ProcessLookupError):
                    target.process.terminate()
            try:
                await asyncio.wait_for(target.process.wait(), timeout=TERMINATE_GRACE_S)
            except TimeoutError:
                with contextlib.suppress(ProcessLookupError):
                    target.process.kill()
                await target.process.wait()
        except Exception as exc:
            logger.debug("Ignoring error while stopping target server: %s", exc)

        logger.debug("Target server stopped (pid=%s, returncode=%s)", target.pid, target.returncode)

    def is_running(self) -> bool:
        return self._target is not None

    def current(self) -> TargetServerProcess | None:
        return self._target
