"""Tool-name pattern matching.

A pattern without ``*`` is an exact, case-sensitive name. A pattern with ``*``
matches the whole name, where each ``*`` stands for any run of characters
(including none) and every other character is literal.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from functools import lru_cache

WILDCARD = "*"


@lru_cache(maxsize=256)
def _compile(pattern: str) -> re.Pattern[str]:
    literal_parts = (re.escape(part) for part in pattern.split(WILDCARD))
    return re.compile(".*".join(literal_parts), re.DOTALL)


def has_wildcard(pattern: str) -> bool:
    return WILDCARD in pattern


def matches_pattern(name: str, pattern: str) -> bool:
    """Return True if ``name`` is selected by ``pattern``."""
    if not has_wildcard(pattern):
        return name == pattern
    return _compile(pattern).fullmatch(name) is not None


def matches_any(name: str, patterns: Iterable[str]) -> bool:
    return any(matches_pattern(name, pattern) for pattern in patterns)
