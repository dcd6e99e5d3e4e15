"""Typed view over JSON-RPC lines.

``parse_message`` validates the envelope against the MCP SDK's
``JSONRPCMessage`` union and tags it with its kind. ``as_tool_list_result``
projects a response onto ``ToolListResult`` and returns None on any shape
mismatch, so callers never need to catch anything.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any

from mcp import types
from pydantic import TypeAdapter, ValidationError

from toolveil.mcp.framing import ENCODING, ENCODING_ERRORS
from toolveil.models.tools import ToolListResult

logger = logging.getLogger(__name__)

JSONRPC_MESSAGE_ADAPTER: TypeAdapter[types.JSONRPCMessage] = TypeAdapter(types.JSONRPCMessage)


class MessageKind(str, Enum):
    request = "request"
    notification = "notification"
    response = "response"
    error = "error"


@dataclass(frozen=True)
class ParsedMessage:
    """A JSON-RPC message together with the object it was parsed from."""

    kind: MessageKind
    raw: dict[str, Any]
    message: types.JSONRPCMessage

    @property
    def id(self) -> Any:
        return self.raw.get("id")


def _kind_of(raw: dict[str, Any]) -> MessageKind | None:
    if "method" in raw:
        return MessageKind.request if "id" in raw else MessageKind.notification
    if "error" in raw:
        return MessageKind.error
    if "result" in raw:
        return MessageKind.response
    return None


def parse_message(line: str) -> ParsedMessage | None:
    """Parse one line as a JSON-RPC message, or return None if it is not one."""
    try:
        raw = json.loads(line)
    except ValueError:
        return None
    if not isinstance(raw, dict):
        return None

    kind = _kind_of(raw)
    if kind is None:
        return None

    try:
        message = JSONRPC_MESSAGE_ADAPTER.validate_python(raw)
    except ValidationError:
        logger.debug("Line is JSON but not a JSON-RPC message")
        return None

    return ParsedMessage(kind=kind, raw=raw, message=message)


def as_tool_list_result(parsed: ParsedMessage) -> ToolListResult | None:
    """View a successful response's result as a tool list, if it is shaped like one."""
    if parsed.kind is not MessageKind.response:
        return None

    result = parsed.raw.get("result")
    if not isinstance(result, dict) or not isinstance(result.get("tools"), list):
        return None

    try:
        return ToolListResult.model_validate(result)
    except ValidationError:
        return None


def error_message(parsed: ParsedMessage) -> str:
    """Best-effort human readable message from an error response."""
    error = parsed.raw.get("error")
    if isinstance(error, dict):
        message = error.get("message")
        if isinstance(message, str) and message.strip():
            return message.strip()
    return json.dumps(error)


def dump_message(raw: dict[str, Any]) -> str:
    """Serialize a message as a single compact JSON line (no newline)."""
    text = json.dumps(raw, ensure_ascii=False, separators=(",", ":"))
    try:
        text.encode(ENCODING, ENCODING_ERRORS)
    except UnicodeEncodeError:
        # Lone surrogates from ``\ud800``-style escapes only survive as escapes.
        return json.dumps(raw, separators=(",", ":"))
    return text
