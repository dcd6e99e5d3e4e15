from toolveil.policy.patterns import matches_any, matches_pattern
from toolveil.policy.visibility import is_tool_visible, select_visible_tools

__all__ = [
    "is_tool_visible",
    "matches_any",
    "matches_pattern",
    "select_visible_tools",
]
