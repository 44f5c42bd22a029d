from trains.merge.failures import PullRequestFailure
from trains.merge.pull_request import PullRequest, load_and_validate_pull_request
from trains.merge.strategy import AutosquashMergeStrategy
from trains.merge.target_label import (
    InvalidTargetBranch,
    InvalidTargetLabel,
    TargetLabel,
    TargetLabelKind,
    get_branches_for_target_label,
    get_target_label_from_pull_request,
)
from trains.merge.task import MergeResult, MergeStatus, PullRequestMergeTask

__all__ = [
    "AutosquashMergeStrategy",
    "InvalidTargetBranch",
    "InvalidTargetLabel",
    "MergeResult",
    "MergeStatus",
    "PullRequest",
    "PullRequestFailure",
    "PullRequestMergeTask",
    "TargetLabel",
    "TargetLabelKind",
    "get_branches_for_target_label",
    "get_target_label_from_pull_request",
    "load_and_validate_pull_request",
]
