"""Staging of release commits through pull requests.

A release commit is never pushed directly to a release-train branch. It is
pushed to a staging branch, proposed through a pull request, and the release
tool waits until that pull request has been merged by the caretaker.
"""

from __future__ import annotations

import json
import time
from collections.abc import Callable
from pathlib import Path

from trains.core.structured import as_str_dict
from trains.github.client import GithubClient
from trains.output.console import ConsoleProtocol, Style
from trains.release.pr_state import get_pull_request_state
from trains.release.semver import Version
from trains.release.version_branches import PACKAGE_JSON_PATH

__all__ = [
    "ReleaseActionError",
    "UserAbortedReleaseActionError",
    "commit_message_for_release",
    "update_project_version",
    "wait_for_pull_request_to_be_merged",
]

WAIT_FOR_PULL_REQUEST_INTERVAL_SECONDS = 10


class ReleaseActionError(Exception):
    """A release action cannot continue. The message has been printed already."""


class UserAbortedReleaseActionError(Exception):
    """The operator aborted the release action."""


def commit_message_for_release(version: Version) -> str:
    return f"release: cut the v{version} release"


def update_project_version(project_dir: Path, version: Version) -> None:
    """Rewrite the `version` field of the project's package.json."""
    path = project_dir / PACKAGE_JSON_PATH
    try:
        data = as_str_dict(json.loads(path.read_text(encoding="utf-8")))
    except (OSError, json.JSONDecodeError) as e:
        raise ReleaseActionError(f"Unable to read {path}: {e}")
    if data is None:
        raise ReleaseActionError(f"Unexpected content in {path}")

    data["version"] = str(version)
    path.write_text(json.dumps(data, indent=2) + "\n", encoding="utf-8")


def wait_for_pull_request_to_be_merged(
    github: GithubClient,
    number: int,
    console: ConsoleProtocol,
    *,
    interval_seconds: float = WAIT_FOR_PULL_REQUEST_INTERVAL_SECONDS,
    sleep: Callable[[float], None] = time.sleep,
) -> None:
    """Block until the staging pull request is merged.

    Raises:
        ReleaseActionError: the pull request was closed without being merged.
    """
    console.print(f"Waiting for pull request #{number} to be merged.", Style.INFO)
    while True:
        match get_pull_request_state(github, number):
            case "merged":
                console.success(f"Pull request #{number} has been merged.")
                return
            case "closed":
                console.warning(f"Pull request #{number} has been closed.")
                raise ReleaseActionError(f"Pull request #{number} has been closed without merge.")
            case "open":
                sleep(interval_seconds)
