from __future__ import annotations

from typing import Any

import pytest

from trains.core.config import MergeConfig
from trains.core.result import Err, Ok, Result
from trains.github.client import GithubApiRequestError
from trains.merge.commits import parse_commit_message
from trains.merge.failures import PullRequestFailure
from trains.merge.pull_request import (
    PullRequest,
    assert_changes_allowed_for_target_label,
    assert_correct_breaking_change_labeling,
    get_target_branches_for_pull_request,
    load_and_validate_pull_request,
)
from trains.merge.target_label import TargetLabel, TargetLabelKind
from trains.output.console import MockConsole
from trains.release.semver import Version
from trains.release.trains import ActiveReleaseTrains, ReleaseTrain

CONFIG = MergeConfig(
    merge_ready_label="action: merge",
    cla_signed_label="cla: yes",
    commit_message_fixup_label="commit message fixup",
    caretaker_note_label="caretaker note",
    target_label_exempt_scopes=("dev-infra",),
    required_base_commits={"main": "base123"},
)
TRAINS = ActiveReleaseTrains(
    next=ReleaseTrain("main", Version.parse("10.3.0-next.1")),
    release_candidate=None,
    latest=ReleaseTrain("10.2.x", Version.parse("10.2.4")),
)
READY = ["action: merge", "cla: yes"]
BREAKING = "feat(core): drop api\n\nBREAKING CHANGE: gone."


def _pr(
    labels: list[str],
    messages: list[str],
    *,
    ci_state: str | None = "SUCCESS",
    base: str = "main",
) -> dict[str, Any]:
    nodes: list[dict[str, Any]] = [{"commit": {"message": m}} for m in messages]
    if nodes and ci_state is not None:
        nodes[-1]["commit"]["status"] = {"state": ci_state}
    return {
        "url": "https://github.com/acme/widgets/pull/7",
        "title": "fix: something",
        "baseRefName": base,
        "labels": {"nodes": [{"name": name} for name in labels]},
        "commits": {"totalCount": len(messages), "nodes": nodes},
    }


class FakeGithub:
    def __init__(self, pr: dict[str, Any] | None = None, status: int = 404) -> None:
        self.pr = pr
        self.status = status

    def get_pull_request(self, number: int) -> dict[str, Any]:
        if self.pr is None:
            raise GithubApiRequestError(self.status, "request failed")
        return self.pr


def _active_lts(branch: str) -> Result[None, str]:
    return Ok(None)


def _validate(
    pr: dict[str, Any] | None,
    *,
    console: MockConsole | None = None,
    force: bool = False,
) -> PullRequest | PullRequestFailure:
    return load_and_validate_pull_request(
        7,
        github=FakeGithub(pr),  # type: ignore[arg-type]
        config=CONFIG,
        trains=TRAINS,
        lts_check=_active_lts,
        console=console or MockConsole(),
        ignore_non_fatal_failures=force,
    )


def test_valid_pull_request() -> None:
    result = _validate(
        _pr([*READY, "target: patch", "caretaker note"], ["fix: a", "fix: b"])
    )

    assert isinstance(result, PullRequest)
    assert result.target_branches == ("main", "10.2.x")
    assert result.github_target_branch == "main"
    assert result.required_base_sha == "base123"
    assert result.has_caretaker_note
    assert not result.needs_commit_message_fixup
    assert result.commit_count == 2


def test_missing_pull_request() -> None:
    assert _validate(None) == PullRequestFailure.not_found()


def test_other_github_errors_propagate() -> None:
    github = FakeGithub(None, status=500)
    with pytest.raises(GithubApiRequestError):
        load_and_validate_pull_request(
            7,
            github=github,  # type: ignore[arg-type]
            config=CONFIG,
            trains=TRAINS,
            lts_check=_active_lts,
            console=MockConsole(),
        )


@pytest.mark.parametrize(
    ("labels", "expected"),
    [
        (["cla: yes", "target: patch"], PullRequestFailure.not_merge_ready()),
        (["action: merge", "target: patch"], PullRequestFailure.cla_unsigned()),
    ],
)
def test_required_labels(labels: list[str], expected: PullRequestFailure) -> None:
    assert _validate(_pr(labels, ["fix: a"])) == expected


def test_missing_target_label() -> None:
    result = _validate(_pr(READY, ["fix: a"]))

    assert isinstance(result, PullRequestFailure)
    assert "no target label" in result.message


def test_feature_commit_rejected_for_patch() -> None:
    result = _validate(_pr([*READY, "target: patch"], ["feat: new thing"]))

    assert result == PullRequestFailure.has_feature_commits("target: patch")


def test_breaking_change_needs_label() -> None:
    result = _validate(_pr([*READY, "target: major"], [BREAKING]))

    assert result == PullRequestFailure.missing_breaking_change_label()


def test_breaking_change_label_needs_commit() -> None:
    result = _validate(_pr([*READY, "target: minor", "breaking changes"], ["feat: a"]))

    assert result == PullRequestFailure.missing_breaking_change_commit()


def test_exempt_scopes_are_not_checked() -> None:
    result = _validate(
        _pr([*READY, "target: patch"], ["feat(dev-infra): new lint rule", "fix: a"])
    )

    assert isinstance(result, PullRequest)


@pytest.mark.parametrize(
    ("state", "expected"),
    [
        ("FAILURE", PullRequestFailure.failing_ci_jobs()),
        ("PENDING", PullRequestFailure.pending_ci_jobs()),
    ],
)
def test_ci_failures_are_non_fatal(state: str, expected: PullRequestFailure) -> None:
    pr = _pr([*READY, "target: minor"], ["feat: a"], ci_state=state)

    result = _validate(pr)
    assert result == expected
    assert isinstance(result, PullRequestFailure) and result.non_fatal

    assert isinstance(_validate(pr, force=True), PullRequest)


def test_invalid_target_branch_is_a_failure() -> None:
    result = _validate(_pr([*READY, "target: lts"], ["fix: a"], base="10.2.x"))

    assert isinstance(result, PullRequestFailure)
    assert "into patch branch" in result.message
    assert not result.non_fatal


def test_rc_label_only_warns_about_contents() -> None:
    console = MockConsole()
    label = TargetLabel(TargetLabelKind.RC, "target: rc")
    commits = [parse_commit_message("feat: a")]

    assert assert_changes_allowed_for_target_label(commits, label, CONFIG, console) is None
    assert console.find("Unable to confirm all commits")


def test_minor_rejects_breaking_changes() -> None:
    label = TargetLabel(TargetLabelKind.MINOR, "target: minor")
    commits = [parse_commit_message(BREAKING)]

    result = assert_changes_allowed_for_target_label(commits, label, CONFIG, MockConsole())

    assert result == PullRequestFailure.has_breaking_changes("target: minor")


def test_breaking_change_labeling_accepts_matching_state() -> None:
    commits = [parse_commit_message(BREAKING)]

    assert assert_correct_breaking_change_labeling(commits, ["breaking changes"], CONFIG) is None
    assert assert_correct_breaking_change_labeling([], [], CONFIG) is None


def _target_branches(github: FakeGithub) -> Result[list[str], str]:
    return get_target_branches_for_pull_request(
        7,
        github=github,  # type: ignore[arg-type]
        config=CONFIG,
        trains=TRAINS,
        lts_check=_active_lts,
    )


def test_target_branches_ignore_merge_readiness() -> None:
    assert _target_branches(FakeGithub(_pr(["target: patch"], []))) == Ok(["main", "10.2.x"])


def test_target_branches_for_missing_pull_request() -> None:
    assert _target_branches(FakeGithub(None)) == Err(
        "Pull request #7 could not be found upstream."
    )
