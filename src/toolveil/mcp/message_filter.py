"""Rewrite ``tools/list`` responses so hidden tools never reach the client.

Fail-open: anything that is not a recognisable tool-list response, including
lines that are not JSON at all, comes back exactly as it went in.
"""

from __future__ import annotations

import logging

from toolveil.config import ProxyConfig
from toolveil.mcp.messages import as_tool_list_result, dump_message, parse_message
from toolveil.policy.visibility import select_visible_tools

logger = logging.getLogger(__name__)


def filter_message(line: str, config: ProxyConfig) -> str:
    """Return ``line`` with hidden tools removed from a tool-list response."""
    parsed = parse_message(line)
    if parsed is None:
        return line

    if as_tool_list_result(parsed) is None:
        return line

    result = parsed.raw["result"]
    tools = result["tools"]
    visible = select_visible_tools(tools, config.tools)

    if len(visible) != len(tools):
        kept = {id(tool) for tool in visible}
        hidden = [tool["name"] for tool in tools if id(tool) not in kept]
        logger.debug("Hiding %d tool(s) from response id=%s: %s", len(hidden), parsed.id, hidden)

    rewritten = {**parsed.raw, "result": {**result, "tools": visible}}
    return dump_message(rewritten)
