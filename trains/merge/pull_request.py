"""Loading a pull request from GitHub and validating it for merging.

Validation short-circuits: the first failure found is returned as a
`PullRequestFailure` value. Only unexpected errors (GitHub errors other
than 404, invalid release trains) are raised.
"""

from __future__ import annotations

from dataclasses import dataclass

from trains.core.config import MergeConfig
from trains.core.result import Err, Ok, Result
from trains.core.structured import StrDict, as_obj_list, as_str_dict, get_path, get_str
from trains.github.client import GithubApiRequestError, GithubClient
from trains.merge.commits import Commit, parse_commit_message
from trains.merge.failures import PullRequestFailure
from trains.merge.patterns import matches_pattern
from trains.merge.target_label import (
    LtsBranchCheck,
    TargetLabel,
    TargetLabelKind,
    configured_target_labels,
    get_branches_for_target_label,
    get_target_label_from_pull_request,
)
from trains.output.console import ConsoleProtocol
from trains.release.trains import ActiveReleaseTrains

__all__ = [
    "PullRequest",
    "assert_changes_allowed_for_target_label",
    "assert_correct_breaking_change_labeling",
    "get_target_branches_for_pull_request",
    "load_and_validate_pull_request",
]


@dataclass(frozen=True, slots=True)
class PullRequest:
    """A pull request that passed validation and can be merged."""

    url: str
    pr_number: int
    title: str
    labels: tuple[str, ...]
    target_branches: tuple[str, ...]
    github_target_branch: str
    # Commit the PR must contain before it can be merged.
    required_base_sha: str | None
    needs_commit_message_fixup: bool
    has_caretaker_note: bool
    commit_count: int


def _has_label(labels: list[str], pattern: str | None) -> bool:
    if not pattern:
        return False
    return any(matches_pattern(name, pattern) for name in labels)


def _commits_subject_to_checks(commits: list[Commit], config: MergeConfig) -> list[Commit]:
    exempt = set(config.target_label_exempt_scopes)
    return [c for c in commits if c.scope not in exempt]


def assert_changes_allowed_for_target_label(
    commits: list[Commit],
    label: TargetLabel,
    config: MergeConfig,
    console: ConsoleProtocol,
) -> PullRequestFailure | None:
    """Check commit contents against what the target label may bring into its branches."""
    commits = _commits_subject_to_checks(commits, config)
    has_breaking = any(c.is_breaking for c in commits)

    match label.kind:
        case TargetLabelKind.MAJOR:
            return None
        case TargetLabelKind.MINOR:
            if has_breaking:
                return PullRequestFailure.has_breaking_changes(label.pattern)
            return None
        case TargetLabelKind.PATCH | TargetLabelKind.LTS:
            if has_breaking:
                return PullRequestFailure.has_breaking_changes(label.pattern)
            if any(c.type == "feat" for c in commits):
                return PullRequestFailure.has_feature_commits(label.pattern)
            return None
        case _:
            console.warning(
                "Unable to confirm all commits in the pull request are eligible to be merged "
                f"into the target branch: {label.pattern}"
            )
            return None


def assert_correct_breaking_change_labeling(
    commits: list[Commit], labels: list[str], config: MergeConfig
) -> PullRequestFailure | None:
    """The breaking change label must be present iff a commit notes a breaking change."""
    has_label = config.breaking_change_label in labels
    has_commit = any(c.is_breaking for c in _commits_subject_to_checks(commits, config))
    if has_commit and not has_label:
        return PullRequestFailure.missing_breaking_change_label()
    if has_label and not has_commit:
        return PullRequestFailure.missing_breaking_change_commit()
    return None


def _fetch_pull_request(github: GithubClient, pr_number: int) -> StrDict | None:
    try:
        return github.get_pull_request(pr_number)
    except GithubApiRequestError as e:
        if e.status == 404:
            return None
        raise


def _label_names(pr: StrDict) -> list[str]:
    nodes = as_obj_list(get_path(pr, "labels", "nodes")) or []
    names: list[str] = []
    for node in nodes:
        name = get_str(as_str_dict(node) or {}, "name")
        if name is not None:
            names.append(name)
    return names


def _commit_nodes(pr: StrDict) -> list[StrDict]:
    nodes = as_obj_list(get_path(pr, "commits", "nodes")) or []
    commits: list[StrDict] = []
    for node in nodes:
        commit = as_str_dict(get_path(as_str_dict(node) or {}, "commit"))
        if commit is not None:
            commits.append(commit)
    return commits


def _ci_state(commits: list[StrDict]) -> str | None:
    if not commits:
        return None
    status = as_str_dict(commits[-1].get("status"))
    return get_str(status, "state") if status is not None else None


def load_and_validate_pull_request(
    pr_number: int,
    *,
    github: GithubClient,
    config: MergeConfig,
    trains: ActiveReleaseTrains,
    lts_check: LtsBranchCheck,
    console: ConsoleProtocol,
    ignore_non_fatal_failures: bool = False,
) -> PullRequest | PullRequestFailure:
    """Load the pull request and check that it can be merged.

    Raises:
        GithubApiRequestError: for GitHub errors other than a missing pull request.
    """
    pr = _fetch_pull_request(github, pr_number)
    if pr is None:
        return PullRequestFailure.not_found()

    labels = _label_names(pr)
    if not _has_label(labels, config.merge_ready_label):
        return PullRequestFailure.not_merge_ready()
    if not _has_label(labels, config.cla_signed_label):
        return PullRequestFailure.cla_unsigned()

    label_result = get_target_label_from_pull_request(labels, configured_target_labels(config))
    if isinstance(label_result, Err):
        return PullRequestFailure(label_result.error.failure_message)
    target_label = label_result.value

    commit_nodes = _commit_nodes(pr)
    commits = [parse_commit_message(get_str(c, "message") or "") for c in commit_nodes]

    failure = assert_changes_allowed_for_target_label(commits, target_label, config, console)
    if failure is None:
        failure = assert_correct_breaking_change_labeling(commits, labels, config)
    if failure is not None:
        return failure

    state = _ci_state(commit_nodes)
    if state == "FAILURE" and not ignore_non_fatal_failures:
        return PullRequestFailure.failing_ci_jobs()
    if state == "PENDING" and not ignore_non_fatal_failures:
        return PullRequestFailure.pending_ci_jobs()

    github_target_branch = get_str(pr, "baseRefName") or ""
    required_base_sha = config.required_base_commits.get(github_target_branch)
    needs_commit_message_fixup = _has_label(labels, config.commit_message_fixup_label)
    has_caretaker_note = _has_label(labels, config.caretaker_note_label)

    branches = get_branches_for_target_label(
        target_label, trains, github_target_branch, lts_check=lts_check
    )
    if isinstance(branches, Err):
        return PullRequestFailure(branches.error.failure_message)

    total = get_path(pr, "commits", "totalCount")
    return PullRequest(
        url=get_str(pr, "url") or "",
        pr_number=pr_number,
        title=get_str(pr, "title") or "",
        labels=tuple(labels),
        target_branches=tuple(branches.value),
        github_target_branch=github_target_branch,
        required_base_sha=required_base_sha,
        needs_commit_message_fixup=needs_commit_message_fixup,
        has_caretaker_note=has_caretaker_note,
        commit_count=total if isinstance(total, int) else len(commit_nodes),
    )


def get_target_branches_for_pull_request(
    pr_number: int,
    *,
    github: GithubClient,
    config: MergeConfig,
    trains: ActiveReleaseTrains,
    lts_check: LtsBranchCheck,
) -> Result[list[str], str]:
    """Branches the pull request would be merged into, based on its labels only."""
    pr = _fetch_pull_request(github, pr_number)
    if pr is None:
        return Err(f"Pull request #{pr_number} could not be found upstream.")

    labels = _label_names(pr)
    label_result = get_target_label_from_pull_request(labels, configured_target_labels(config))
    if isinstance(label_result, Err):
        return Err(label_result.error.failure_message)

    github_target_branch = get_str(pr, "baseRefName") or ""
    branches = get_branches_for_target_label(
        label_result.value, trains, github_target_branch, lts_check=lts_check
    )
    if isinstance(branches, Err):
        return Err(branches.error.failure_message)
    return Ok(branches.value)
