"""Tests for the target server lifecycle."""

from __future__ import annotations

import asyncio
import os
import sys
from pathlib import Path

import pytest

from toolveil.config import ProxyConfig, build_proxy_config
from toolveil.errors import ProcessAlreadyRunning, SpawnFailure
from toolveil.mcp.target import TargetServerManager

SCRIPTED_SERVER = Path(__file__).parent / "fixtures" / "scripted_mcp_server.py"


@pytest.fixture
def scripted_config() -> ProxyConfig:
    return build_proxy_config([sys.executable, str(SCRIPTED_SERVER)])


def test_manager_starts_idle() -> None:
    manager = TargetServerManager()
    assert manager.is_running() is False
    assert manager.current() is None


@pytest.mark.asyncio
async def test_start_and_stop(scripted_config: ProxyConfig) -> None:
    manager = TargetServerManager()
    target = await manager.start(scripted_config)
    try:
        assert manager.is_running()
        assert manager.current() is target
        assert target.returncode is None
    finally:
        await manager.stop()

    assert not manager.is_running()
    assert manager.current() is None
    assert target.returncode is not None


@pytest.mark.asyncio
async def test_second_start_is_rejected(scripted_config: ProxyConfig) -> None:
    manager = TargetServerManager()
    first = await manager.start(scripted_config)
    try:
        with pytest.raises(ProcessAlreadyRunning):
            await manager.start(scripted_config)
        assert manager.current() is first
    finally:
        await manager.stop()


@pytest.mark.asyncio
async def test_stop_is_idempotent(scripted_config: ProxyConfig) -> None:
    manager = TargetServerManager()
    await manager.stop()

    await manager.start(scripted_config)
    await manager.stop()
    await manager.stop()

    assert not manager.is_running()


@pytest.mark.asyncio
async def test_stop_after_target_already_exited(scripted_config: ProxyConfig) -> None:
    manager = TargetServerManager()
    target = await manager.start(scripted_config)
    target.stdin.close()
    await target.process.wait()

    await manager.stop()

    assert target.returncode == 0
    assert not manager.is_running()


@pytest.mark.asyncio
async def test_restart_after_stop(scripted_config: ProxyConfig) -> None:
    manager = TargetServerManager()
    first = await manager.start(scripted_config)
    await manager.stop()
    second = await manager.start(scripted_config)
    try:
        assert second is not first
        assert manager.current() is second
    finally:
        await manager.stop()


@pytest.mark.asyncio
async def test_missing_executable_is_spawn_failure() -> None:
    manager = TargetServerManager()
    config = build_proxy_config(["toolveil-definitely-not-a-real-command"])

    with pytest.raises(SpawnFailure) as excinfo:
        await manager.start(config)

    assert isinstance(excinfo.value.__cause__, OSError)
    assert not manager.is_running()


@pytest.mark.asyncio
async def test_target_receives_arguments(tmp_path: Path) -> None:
    pid_file = tmp_path / "pid"
    manager = TargetServerManager()
    config = build_proxy_config([sys.executable, str(SCRIPTED_SERVER), "ok", str(pid_file)])
    target = await manager.start(config)
    try:
        # The fixture only writes its pid when it saw both arguments.
        for _ in range(100):
            if pid_file.exists() and pid_file.read_text():
                break
            await asyncio.sleep(0.05)
        assert int(pid_file.read_text()) == target.pid
    finally:
        await manager.stop()

    assert not _pid_alive(target.pid)


def _pid_alive(pid: int) -> bool:
    try:
        os.kill(pid, 0)
    except ProcessLookupError:
        return False
    except PermissionError:
        return True
    return True
