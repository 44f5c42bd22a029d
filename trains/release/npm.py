"""NPM registry information for the project's representative package."""

from __future__ import annotations

import urllib.parse
from collections.abc import Mapping
from dataclasses import dataclass, field

from trains.core.config import ReleaseConfig
from trains.core.result import Err
from trains.core.structured import as_str_dict
from trains.platform.http import HttpClient
from trains.release.semver import Version

__all__ = ["NpmPackageInfo", "NpmRegistry", "NpmRegistryError"]


class NpmRegistryError(Exception):
    """The registry could not be queried for the representative package."""


@dataclass(frozen=True, slots=True)
class NpmPackageInfo:
    """The parts of the registry document used by the release tooling.

    Attributes:
        dist_tags: Dist tag name -> version string (e.g. "v10-lts" -> "10.2.4").
        time: Version string -> ISO-8601 publish timestamp.
        versions: Published version strings.
    """

    name: str
    dist_tags: Mapping[str, str] = field(default_factory=dict)
    time: Mapping[str, str] = field(default_factory=dict)
    versions: frozenset[str] = frozenset()


def _str_values(raw: object) -> dict[str, str]:
    table = as_str_dict(raw) or {}
    return {k: v for k, v in table.items() if isinstance(v, str)}


class NpmRegistry:
    """Fetches (and caches) the registry document of the representative package."""

    def __init__(self, http: HttpClient, release: ReleaseConfig) -> None:
        self._http = http
        self._release = release
        self._cache: NpmPackageInfo | None = None

    def package_info(self) -> NpmPackageInfo:
        if self._cache is not None:
            return self._cache

        name = self._release.representative_package
        if name is None:
            raise NpmRegistryError("No NPM packages configured in [release].npm_packages.")

        registry = self._release.publish_registry.rstrip("/")
        url = f"{registry}/{urllib.parse.quote(name, safe='@')}"
        result = self._http.get_json(url)
        if isinstance(result, Err):
            raise NpmRegistryError(f"Unable to fetch NPM package info for {name}: {result.error}")

        data = result.value
        versions = as_str_dict(data.get("versions")) or {}
        self._cache = NpmPackageInfo(
            name=name,
            dist_tags=_str_values(data.get("dist-tags")),
            time=_str_values(data.get("time")),
            versions=frozenset(versions.keys()),
        )
        return self._cache

    def is_version_published(self, version: Version) -> bool:
        return str(version) in self.package_info().versions
