"""MCP stdio proxy module.

Provides the tool-hiding proxy, the one-shot lister and their building blocks.
"""

from toolveil.mcp.framing import LineFramer, iter_lines
from toolveil.mcp.lister import format_tool_line, list_tools
from toolveil.mcp.message_filter import filter_message
from toolveil.mcp.proxy import ProxyState, ToolFilterProxy
from toolveil.mcp.target import TargetServerManager, TargetServerProcess

__all__ = [
    "LineFramer",
    "ProxyState",
    "TargetServerManager",
    "TargetServerProcess",
    "ToolFilterProxy",
    "filter_message",
    "format_tool_line",
    "iter_lines",
    "list_tools",
]
