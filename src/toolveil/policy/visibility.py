"""Include/exclude selection of tools, shared by the message filter and the lister."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any, TypeVar

from toolveil.config.settings import ToolFilterConfig
from toolveil.models.tools import ToolDescriptor
from toolveil.policy.patterns import matches_any

T = TypeVar("T", ToolDescriptor, dict[str, Any])


def is_tool_visible(name: str, tool_filter: ToolFilterConfig) -> bool:
    """Return True if a tool named ``name`` should be shown to the client.

    Include patterns win when set (OR across patterns); otherwise exclude
    patterns hide any match. With neither set every tool is visible.
    """
    if tool_filter.include is not None:
        return matches_any(name, tool_filter.include)
    if tool_filter.exclude is not None:
        return not matches_any(name, tool_filter.exclude)
    return True


def select_visible_tools(tools: Sequence[T], tool_filter: ToolFilterConfig) -> list[T]:
    """Keep the visible entries of ``tools`` in their original order.

    Entries may be ``ToolDescriptor`` models or raw tool objects; raw objects
    without a string ``name`` are dropped.
    """
    visible: list[T] = []
    for tool in tools:
        name = tool.get("name") if isinstance(tool, dict) else tool.name
        if isinstance(name, str) and is_tool_visible(name, tool_filter):
            visible.append(tool)
    return visible
