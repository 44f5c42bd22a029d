from __future__ import annotations

import json
from pathlib import Path

import pytest

from trains.output.console import MockConsole
from trains.release.semver import Version
from trains.release.staging import (
    ReleaseActionError,
    commit_message_for_release,
    update_project_version,
    wait_for_pull_request_to_be_merged,
)


class FakeGithub:
    def __init__(self, pulls: list[dict[str, object]]) -> None:
        self.pulls = pulls

    def get_pull(self, number: int) -> dict[str, object]:
        return self.pulls.pop(0)

    def list_issue_events(self, number: int) -> list[object]:
        return []


def test_commit_message_for_release() -> None:
    assert commit_message_for_release(Version.parse("11.0.0-rc.1")) == (
        "release: cut the v11.0.0-rc.1 release"
    )


def test_update_project_version(tmp_path: Path) -> None:
    package_json = tmp_path / "package.json"
    package_json.write_text(json.dumps({"name": "widgets", "version": "11.0.0"}), encoding="utf-8")

    update_project_version(tmp_path, Version.parse("11.0.1"))

    text = package_json.read_text(encoding="utf-8")
    assert json.loads(text) == {"name": "widgets", "version": "11.0.1"}
    assert text.endswith("}\n")


def test_update_project_version_missing_file(tmp_path: Path) -> None:
    with pytest.raises(ReleaseActionError, match="Unable to read"):
        update_project_version(tmp_path, Version.parse("11.0.1"))


def test_wait_polls_until_merged() -> None:
    github = FakeGithub([{"closed_at": None}, {"closed_at": None}, {"merged": True}])
    sleeps: list[float] = []
    console = MockConsole()

    wait_for_pull_request_to_be_merged(
        github, 7, console, interval_seconds=5, sleep=sleeps.append  # type: ignore[arg-type]
    )

    assert sleeps == [5, 5]
    assert console.find("has been merged")


def test_wait_fails_when_closed() -> None:
    github = FakeGithub([{"closed_at": "2021-01-01"}])

    with pytest.raises(ReleaseActionError, match="closed without merge"):
        wait_for_pull_request_to_be_merged(
            github, 7, MockConsole(), sleep=lambda _: None  # type: ignore[arg-type]
        )
