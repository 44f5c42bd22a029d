"""Semantic versions with prerelease identifiers.

Ordering follows SemVer 2.0 precedence. `inc` follows the increment rules of
the npm `semver` package, which is what the published packages are versioned
with (e.g. `inc("prerelease")` on `1.2.3` yields `1.2.4-0`).
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from functools import total_ordering
from typing import Literal

__all__ = ["ReleaseType", "Version", "parse_version"]

type ReleaseType = Literal["major", "minor", "patch", "prerelease"]
type Identifier = str | int

_VERSION_RE = re.compile(
    r"^v?(0|[1-9]\d*)\.(0|[1-9]\d*)\.(0|[1-9]\d*)"
    r"(?:-([0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*))?"
    r"(?:\+[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*)?$"
)


def _identifier(raw: str) -> Identifier:
    if raw.isdigit() and (raw == "0" or not raw.startswith("0")):
        return int(raw)
    return raw


def _compare_identifiers(a: Identifier, b: Identifier) -> int:
    match (a, b):
        case (int(), int()):
            return (a > b) - (a < b)
        case (int(), str()):
            return -1
        case (str(), int()):
            return 1
        case _:
            sa, sb = str(a), str(b)
            return (sa > sb) - (sa < sb)


@total_ordering
@dataclass(frozen=True, slots=True)
class Version:
    major: int
    minor: int
    patch: int
    prerelease: tuple[Identifier, ...] = ()

    @classmethod
    def parse(cls, text: str) -> Version:
        """Parse `text`, raising ValueError when it is not a valid version."""
        parsed = parse_version(text)
        if parsed is None:
            raise ValueError(f"Invalid version: {text!r}")
        return parsed

    def __str__(self) -> str:
        base = f"{self.major}.{self.minor}.{self.patch}"
        if not self.prerelease:
            return base
        return base + "-" + ".".join(str(p) for p in self.prerelease)

    def format(self) -> str:
        return str(self)

    @property
    def is_prerelease(self) -> bool:
        return bool(self.prerelease)

    def compare(self, other: Version) -> int:
        main = (self.major, self.minor, self.patch)
        other_main = (other.major, other.minor, other.patch)
        if main != other_main:
            return -1 if main < other_main else 1

        # A version without prerelease has higher precedence.
        if not self.prerelease or not other.prerelease:
            return (not self.prerelease) - (not other.prerelease)

        for a, b in zip(self.prerelease, other.prerelease):
            cmp = _compare_identifiers(a, b)
            if cmp != 0:
                return cmp
        return (len(self.prerelease) > len(other.prerelease)) - (
            len(self.prerelease) < len(other.prerelease)
        )

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self.compare(other) < 0

    def inc(self, release: ReleaseType, identifier: str | None = None) -> Version:
        """Return the version incremented by the given release type."""
        match release:
            case "major":
                if self.minor != 0 or self.patch != 0 or not self.prerelease:
                    return Version(self.major + 1, 0, 0)
                return Version(self.major, 0, 0)
            case "minor":
                if self.patch != 0 or not self.prerelease:
                    return Version(self.major, self.minor + 1, 0)
                return Version(self.major, self.minor, 0)
            case "patch":
                if not self.prerelease:
                    return Version(self.major, self.minor, self.patch + 1)
                return Version(self.major, self.minor, self.patch)
            case "prerelease":
                base = self
                if not self.prerelease:
                    base = Version(self.major, self.minor, self.patch + 1)
                prerelease = _next_prerelease(base.prerelease, identifier)
                return Version(base.major, base.minor, base.patch, prerelease)
            case _:
                raise AssertionError(f"unexpected release type: {release}")


def _next_prerelease(
    current: tuple[Identifier, ...], identifier: str | None
) -> tuple[Identifier, ...]:
    if not current:
        bumped: tuple[Identifier, ...] = (0,)
    else:
        parts = list(current)
        for i in range(len(parts) - 1, -1, -1):
            part = parts[i]
            if isinstance(part, int):
                parts[i] = part + 1
                break
        else:
            parts.append(0)
        bumped = tuple(parts)

    if identifier is None:
        return bumped
    if current and current[0] == identifier:
        if len(current) > 1 and isinstance(current[1], int):
            return bumped
    return (identifier, 0)


def parse_version(text: str) -> Version | None:
    m = _VERSION_RE.match(text.strip())
    if m is None:
        return None
    prerelease = m.group(4)
    ids = tuple(_identifier(p) for p in prerelease.split(".")) if prerelease else ()
    return Version(int(m.group(1)), int(m.group(2)), int(m.group(3)), ids)
