"""Tests for include/exclude tool selection."""

from __future__ import annotations

from typing import Any

from toolveil.config import ToolFilterConfig
from toolveil.models.tools import ToolDescriptor
from toolveil.policy.visibility import is_tool_visible, select_visible_tools

RAW_TOOLS: list[dict[str, Any]] = [
    {"name": "add", "inputSchema": {"type": "object"}},
    {"name": "get-args"},
    {"name": "get-env", "description": "Environment"},
]


def test_no_filter_shows_every_tool() -> None:
    assert is_tool_visible("anything", ToolFilterConfig())


def test_include_wins_over_absent_exclude() -> None:
    tool_filter = ToolFilterConfig(include=["add", "get-*"])
    assert is_tool_visible("get-env", tool_filter)
    assert not is_tool_visible("subtract", tool_filter)


def test_exclude_hides_matches() -> None:
    tool_filter = ToolFilterConfig(exclude=["get-*"])
    assert not is_tool_visible("get-env", tool_filter)
    assert is_tool_visible("add", tool_filter)


def test_raw_tools_keep_identity_and_order() -> None:
    visible = select_visible_tools(RAW_TOOLS, ToolFilterConfig(include=["get-*"]))

    assert visible == RAW_TOOLS[1:]
    assert all(kept is original for kept, original in zip(visible, RAW_TOOLS[1:], strict=True))


def test_raw_tools_without_string_name_are_dropped() -> None:
    tools: list[dict[str, Any]] = [{"name": 3}, {"description": "nameless"}, {"name": "add"}]
    assert select_visible_tools(tools, ToolFilterConfig()) == [{"name": "add"}]


def test_descriptors_are_selected_by_name() -> None:
    tools = [ToolDescriptor(name="add"), ToolDescriptor(name="get-args")]

    visible = select_visible_tools(tools, ToolFilterConfig(exclude=["add"]))

    assert [tool.name for tool in visible] == ["get-args"]
