"""Target labels and the branches a pull request is merged into.

A target label declares the release trains a pull request goes into. The
branches are resolved by a pure function of the label kind, the active
release trains and the branch the pull request targets in the GitHub UI.

    target: major  next (only while next is a major)
    target: minor  next
    target: patch  next, latest(, FF/RC); only latest when the PR targets it
    target: rc     next, FF/RC; only FF/RC when the PR targets it
    target: lts    the targeted LTS branch
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum, auto

from trains.core.config import MergeConfig
from trains.core.result import Err, Ok, Result
from trains.merge.patterns import matches_pattern
from trains.release.trains import ActiveReleaseTrains
from trains.release.version_branches import is_version_branch

__all__ = [
    "DEFAULT_TARGET_LABELS",
    "InvalidTargetBranch",
    "InvalidTargetLabel",
    "LtsBranchCheck",
    "TargetLabel",
    "TargetLabelKind",
    "configured_target_labels",
    "get_branches_for_target_label",
    "get_target_label_from_pull_request",
]

# Checks that a branch is an active LTS branch; Err carries the reason it is not.
type LtsBranchCheck = Callable[[str], Result[None, str]]


class TargetLabelKind(Enum):
    MAJOR = auto()
    MINOR = auto()
    PATCH = auto()
    RC = auto()
    LTS = auto()
    CUSTOM = auto()


@dataclass(frozen=True, slots=True)
class TargetLabel:
    kind: TargetLabelKind
    pattern: str
    # Only used by CUSTOM labels.
    branches: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class InvalidTargetLabel:
    """The label cannot be used with the current release trains."""

    failure_message: str


@dataclass(frozen=True, slots=True)
class InvalidTargetBranch:
    """The branch targeted in the GitHub UI is not valid for the label."""

    failure_message: str


DEFAULT_TARGET_LABELS: tuple[TargetLabel, ...] = (
    TargetLabel(TargetLabelKind.MAJOR, "target: major"),
    TargetLabel(TargetLabelKind.MINOR, "target: minor"),
    TargetLabel(TargetLabelKind.PATCH, "target: patch"),
    TargetLabel(TargetLabelKind.RC, "target: rc"),
    TargetLabel(TargetLabelKind.LTS, "target: lts"),
)


def configured_target_labels(config: MergeConfig) -> tuple[TargetLabel, ...]:
    custom = tuple(
        TargetLabel(TargetLabelKind.CUSTOM, c.pattern, c.branches) for c in config.custom_labels
    )
    return DEFAULT_TARGET_LABELS + custom


def get_target_label_from_pull_request(
    labels: list[str], target_labels: tuple[TargetLabel, ...] = DEFAULT_TARGET_LABELS
) -> Result[TargetLabel, InvalidTargetLabel]:
    """Select the single target label applied to a pull request."""
    matches: list[TargetLabel] = []
    for label in labels:
        match = next((t for t in target_labels if matches_pattern(label, t.pattern)), None)
        if match is not None:
            matches.append(match)

    if len(matches) == 1:
        return Ok(matches[0])
    if not matches:
        return Err(
            InvalidTargetLabel("Unable to determine target for the PR as it has no target label.")
        )
    return Err(
        InvalidTargetLabel(
            "Unable to determine target for the PR as it has multiple target labels."
        )
    )


def get_branches_for_target_label(
    label: TargetLabel,
    trains: ActiveReleaseTrains,
    github_target_branch: str,
    *,
    lts_check: LtsBranchCheck,
) -> Result[list[str], InvalidTargetLabel | InvalidTargetBranch]:
    """Branches a pull request with `label` is merged into, in merge order."""
    next_branch = trains.next.branch_name
    latest = trains.latest
    rc = trains.release_candidate

    match label.kind:
        case TargetLabelKind.MAJOR:
            if not trains.next.is_major:
                return Err(
                    InvalidTargetLabel(
                        f'Unable to merge pull request. The "{next_branch}" branch will be '
                        "released as a minor version."
                    )
                )
            return Ok([next_branch])

        case TargetLabelKind.MINOR:
            return Ok([next_branch])

        case TargetLabelKind.PATCH:
            # PR created separately for the patch branch: no cherry-picking.
            if github_target_branch == latest.branch_name:
                return Ok([latest.branch_name])
            branches = [next_branch, latest.branch_name]
            if rc is not None:
                branches.append(rc.branch_name)
            return Ok(branches)

        case TargetLabelKind.RC:
            if rc is None:
                return Err(
                    InvalidTargetLabel(
                        "No active feature-freeze/release-candidate branch. "
                        'Unable to merge pull request using "target: rc" label.'
                    )
                )
            if github_target_branch == rc.branch_name:
                return Ok([rc.branch_name])
            return Ok([next_branch, rc.branch_name])

        case TargetLabelKind.LTS:
            # LTS branches diverge quickly, so changes are never cherry-picked into them.
            if not is_version_branch(github_target_branch):
                return Err(
                    InvalidTargetBranch(
                        "PR cannot be merged as it does not target a long-term support "
                        f'branch: "{github_target_branch}"'
                    )
                )
            if github_target_branch == latest.branch_name:
                return Err(
                    InvalidTargetBranch(
                        'PR cannot be merged with "target: lts" into patch branch. '
                        'Consider changing the label to "target: patch" if this is intentional.'
                    )
                )
            if rc is not None and github_target_branch == rc.branch_name:
                return Err(
                    InvalidTargetBranch(
                        'PR cannot be merged with "target: lts" into feature-freeze/release-'
                        'candidate branch. Consider changing the label to "target: rc" if this '
                        "is intentional."
                    )
                )
            checked = lts_check(github_target_branch)
            if isinstance(checked, Err):
                return Err(InvalidTargetBranch(checked.error))
            return Ok([github_target_branch])

        case TargetLabelKind.CUSTOM:
            return Ok(list(label.branches))
