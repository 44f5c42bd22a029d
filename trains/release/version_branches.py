"""Version branches (`MAJOR.MINOR.x`) and the versions they declare.

The version of a branch is the `version` field of the `package.json` at the
head of that branch, read through the GitHub contents API.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from typing import Protocol

from trains.core.structured import as_str_dict, get_str
from trains.github.client import GithubClient
from trains.release.semver import Version, parse_version
from trains.release.trains import ReleaseTrainError

__all__ = [
    "PACKAGE_JSON_PATH",
    "GithubVersionBranchSource",
    "VersionBranch",
    "VersionBranchSource",
    "get_branches_for_major_versions",
    "is_version_branch",
    "version_for_version_branch",
]

PACKAGE_JSON_PATH = "package.json"

_VERSION_BRANCH_RE = re.compile(r"^(\d+)\.(\d+)\.x$")


@dataclass(frozen=True, slots=True)
class VersionBranch:
    """A version branch with the train version encoded in its name (`10.5.x` -> 10.5.0)."""

    name: str
    parsed: Version


class VersionBranchSource(Protocol):
    def list_branch_names(self) -> list[str]:
        """Names of the branches release trains may live in."""
        ...

    def get_version_of_branch(self, branch_name: str) -> Version: ...


def is_version_branch(branch_name: str) -> bool:
    return _VERSION_BRANCH_RE.match(branch_name) is not None


def version_for_version_branch(branch_name: str) -> Version | None:
    m = _VERSION_BRANCH_RE.match(branch_name)
    if m is None:
        return None
    return Version(int(m.group(1)), int(m.group(2)), 0)


def get_branches_for_major_versions(
    source: VersionBranchSource, majors: list[int]
) -> list[VersionBranch]:
    """Version branches of the given majors, most recent first."""
    branches: list[VersionBranch] = []
    for name in source.list_branch_names():
        parsed = version_for_version_branch(name)
        if parsed is not None and parsed.major in majors:
            branches.append(VersionBranch(name=name, parsed=parsed))
    branches.sort(key=lambda b: b.parsed, reverse=True)
    return branches


class GithubVersionBranchSource:
    """Reads version branches and their `package.json` versions from GitHub."""

    def __init__(self, github: GithubClient) -> None:
        self._github = github

    def list_branch_names(self) -> list[str]:
        # Version branches are always protected.
        return [b.name for b in self._github.list_protected_branches()]

    def get_version_of_branch(self, branch_name: str) -> Version:
        text = self._github.get_file_text(PACKAGE_JSON_PATH, branch_name)
        try:
            data = as_str_dict(json.loads(text))
        except json.JSONDecodeError:
            data = None
        raw = get_str(data, "version") if data is not None else None
        version = parse_version(raw) if raw is not None else None
        if version is None:
            raise ReleaseTrainError(f"Invalid version detected in following branch: {branch_name}.")
        return version
