"""One-shot tool listing.

Drives the smallest handshake a server will answer (``initialize``, the
``initialized`` notification, ``tools/list``) against the target directly and
returns the visible tools. The target is always stopped afterwards.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from mcp import types
from pydantic import ValidationError

from toolveil.config import ProxyConfig
from toolveil.errors import InitializeFailed, ListTimeout, ToolsListFailed
from toolveil.mcp.framing import ENCODING, ENCODING_ERRORS, READ_CHUNK_BYTES, LineFramer
from toolveil.mcp.messages import MessageKind, ParsedMessage, error_message, parse_message
from toolveil.mcp.target import TargetServerManager, TargetServerProcess
from toolveil.models.tools import ToolDescriptor
from toolveil.policy.visibility import select_visible_tools

logger = logging.getLogger(__name__)

INITIALIZE_REQUEST_ID = 1
TOOLS_LIST_REQUEST_ID = 2
NO_DESCRIPTION = "No description"


def format_tool_line(tool: ToolDescriptor) -> str:
    """Render a tool as ``"<name>: <description>"``."""
    return f"{tool.name}: {tool.description or NO_DESCRIPTION}"


def _initialize_request(config: ProxyConfig) -> types.JSONRPCRequest:
    params = types.InitializeRequestParams(
        protocolVersion=types.LATEST_PROTOCOL_VERSION,
        capabilities=types.ClientCapabilities(),
        clientInfo=types.Implementation(name=config.server_name, version=config.server_version),
    )
    return types.JSONRPCRequest(
        jsonrpc="2.0",
        id=INITIALIZE_REQUEST_ID,
        method="initialize",
        params=params.model_dump(by_alias=True, mode="json", exclude_none=True),
    )


def _initialized_notification() -> types.JSONRPCNotification:
    return types.JSONRPCNotification(jsonrpc="2.0", method="notifications/initialized")


def _tools_list_request() -> types.JSONRPCRequest:
    return types.JSONRPCRequest(jsonrpc="2.0", id=TOOLS_LIST_REQUEST_ID, method="tools/list")


class _TargetChannel:
    """Request/response helper over the target's pipes."""

    def __init__(self, target: TargetServerProcess, timeout_s: float | None) -> None:
        self._target = target
        self._timeout_s = timeout_s
        self._framer = LineFramer()
        self._lines: list[str] = []

    async def send(self, message: types.JSONRPCRequest | types.JSONRPCNotification) -> None:
        payload = message.model_dump_json(by_alias=True, exclude_none=True) + "\n"
        self._target.stdin.write(payload.encode(ENCODING, ENCODING_ERRORS))
        await self._target.stdin.drain()

    async def next_line(self) -> str | None:
        """Next complete output line, or None at EOF."""
        while not self._lines:
            chunk = await self._target.stdout.read(READ_CHUNK_BYTES)
            if not chunk:
                return None
            self._lines.extend(self._framer.feed(chunk))
        return self._lines.pop(0)

    async def _wait_for_response(self, request_id: int) -> ParsedMessage | None:
        while True:
            line = await self.next_line()
            if line is None:
                return None
            parsed = parse_message(line)
            if parsed is None:
                logger.debug("Skipping non JSON-RPC output line: %.200s", line)
                continue
            if parsed.kind in (MessageKind.response, MessageKind.error) and parsed.id == request_id:
                return parsed
            logger.debug("Skipping unrelated %s message", parsed.kind.value)

    async def wait_for_response(self, request_id: int) -> ParsedMessage | None:
        if self._timeout_s is None:
            return await self._wait_for_response(request_id)
        try:
            return await asyncio.wait_for(self._wait_for_response(request_id), self._timeout_s)
        except TimeoutError as e:
            raise ListTimeout(
                f"No response to request id={request_id} within {self._timeout_s:g}s"
            ) from e


async def _handshake(channel: _TargetChannel, config: ProxyConfig) -> None:
    try:
        await channel.send(_initialize_request(config))
        response = await channel.wait_for_response(INITIALIZE_REQUEST_ID)
    except ConnectionError as e:
        raise InitializeFailed(f"Target server closed its input: {e}") from e

    if response is None:
        raise InitializeFailed("Target server exited before answering initialize")
    if response.kind is MessageKind.error:
        raise InitializeFailed(error_message(response))

    try:
        await channel.send(_initialized_notification())
    except ConnectionError as e:
        # A target that is gone is reported by the tools/list exchange.
        logger.debug("Could not send initialized notification: %s", e)


async def _fetch_tools(channel: _TargetChannel) -> list[ToolDescriptor]:
    try:
        await channel.send(_tools_list_request())
        response = await channel.wait_for_response(TOOLS_LIST_REQUEST_ID)
    except ConnectionError as e:
        raise ToolsListFailed(f"Target server closed its input: {e}") from e

    if response is None:
        raise ToolsListFailed("Target server exited before answering tools/list")
    if response.kind is MessageKind.error:
        raise ToolsListFailed(error_message(response))

    result: Any = response.raw.get("result")
    raw_tools = result.get("tools") if isinstance(result, dict) else None
    if not isinstance(raw_tools, list):
        return []

    tools: list[ToolDescriptor] = []
    for raw_tool in raw_tools:
        if not isinstance(raw_tool, dict):
            continue
        try:
            tools.append(ToolDescriptor.model_validate(raw_tool))
        except ValidationError:
            logger.debug("Skipping malformed tool entry: %r", raw_tool)
    return tools


async def list_tools(
    config: ProxyConfig, *, manager: TargetServerManager | None = None
) -> list[ToolDescriptor]:
    """Return the tools the configured filter leaves visible.

    Raises:
        SpawnFailure: If the target cannot be launched.
        InitializeFailed: If the target rejects or never answers ``initialize``.
        ToolsListFailed: If the target rejects or never answers ``tools/list``.
        ListTimeout: If ``config.response_timeout_s`` elapses while waiting.
    """
    manager = manager or TargetServerManager()
    target = await manager.start(config)
    try:
        channel = _TargetChannel(target, config.response_timeout_s)
        await _handshake(channel, config)
        tools = await _fetch_tools(channel)
    finally:
        await manager.stop()

    return select_visible_tools(tools, config.tools)
