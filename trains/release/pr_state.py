"""State of a pull request, accounting for autosquash merges.

A PR merged by the autosquash strategy is not a fast-forward of its head, so
GitHub shows it as closed rather than merged. Such a PR counts as merged when
a commit closed it or references it with a closing keyword.
"""

from __future__ import annotations

import re
from typing import Literal

from trains.github.client import GithubClient

__all__ = ["PullRequestState", "get_pull_request_state", "is_commit_closing_pull_request"]

type PullRequestState = Literal["merged", "closed", "open"]


def get_pull_request_state(github: GithubClient, number: int) -> PullRequestState:
    data = github.get_pull(number)
    if data.get("merged") is True:
        return "merged"
    if data.get("closed_at") is not None:
        return "merged" if _is_closed_with_associated_commit(github, number) else "closed"
    return "open"


def _is_closed_with_associated_commit(github: GithubClient, number: int) -> bool:
    # Most recent events first.
    for event in reversed(github.list_issue_events(number)):
        # Commits that closed the PR before it was reopened are no longer relevant.
        if event.event == "reopened":
            return False
        if event.event == "closed" and event.commit_id:
            return True
        # Closing keywords do not work for PRs merged into non-default branches.
        if event.event == "referenced" and event.commit_id:
            if is_commit_closing_pull_request(github.get_commit_message(event.commit_id), number):
                return True
    return False


def is_commit_closing_pull_request(message: str, number: int) -> bool:
    pattern = rf"(?:close[sd]?|fix(?:e[sd]?)|resolve[sd]?):? #{number}(?!\d)"
    return re.search(pattern, message, re.IGNORECASE) is not None
