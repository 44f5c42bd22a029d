from __future__ import annotations

import re
from fnmatch import fnmatchcase

__all__ = ["LabelPattern", "matches_pattern"]

type LabelPattern = str | re.Pattern[str]

_GLOB_CHARS = ("*", "?", "[")


def matches_pattern(value: str, pattern: LabelPattern) -> bool:
    """Whether `value` matches an exact string, a glob string or a compiled regex."""
    if isinstance(pattern, re.Pattern):
        return pattern.fullmatch(value) is not None
    if any(c in pattern for c in _GLOB_CHARS):
        return fnmatchcase(value, pattern)
    return value == pattern
