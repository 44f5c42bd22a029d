from __future__ import annotations

import pytest

from trains.core.config import ReleaseConfig
from trains.platform.http import HttpError, MockHttpClient
from trains.release.npm import NpmRegistry, NpmRegistryError
from trains.release.semver import Version

URL = "https://registry.npmjs.org/@acme%2Fcore"


def _registry(http: MockHttpClient, packages: tuple[str, ...] = ("@acme/core",)) -> NpmRegistry:
    return NpmRegistry(http, ReleaseConfig(npm_packages=packages))


def test_package_info_is_cached() -> None:
    http = MockHttpClient()
    http.set_json(
        URL,
        {
            "dist-tags": {"latest": "11.0.3", "next": "11.1.0-next.0", "v10-lts": "10.2.4"},
            "time": {"11.0.0": "2020-11-11T18:00:00.000Z", "modified": "2021-01-01T00:00:00Z"},
            "versions": {"11.0.3": {}, "11.1.0-next.0": {}},
        },
    )
    registry = _registry(http)

    info = registry.package_info()
    registry.package_info()

    assert info.name == "@acme/core"
    assert info.dist_tags["v10-lts"] == "10.2.4"
    assert info.time["11.0.0"].startswith("2020-11-11")
    assert len(http.requested) == 1
    assert registry.is_version_published(Version.parse("11.1.0-next.0"))
    assert not registry.is_version_published(Version.parse("11.1.0-next.1"))


def test_unreachable_registry_raises() -> None:
    http = MockHttpClient()
    http.set_json(URL, HttpError(url=URL, status=503, message="Service Unavailable"))

    with pytest.raises(NpmRegistryError, match="@acme/core"):
        _registry(http).package_info()


def test_requires_configured_package() -> None:
    with pytest.raises(NpmRegistryError, match="No NPM packages configured"):
        _registry(MockHttpClient(), packages=()).package_info()
