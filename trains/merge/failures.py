from __future__ import annotations

from dataclasses import dataclass

__all__ = ["PullRequestFailure"]


@dataclass(frozen=True, slots=True)
class PullRequestFailure:
    """Reason a pull request cannot be merged.

    Failures are returned as values. Non-fatal failures (e.g. pending CI) can
    be bypassed by forcing the merge; fatal ones cannot.
    """

    message: str
    non_fatal: bool = False

    def __str__(self) -> str:
        return self.message

    @classmethod
    def cla_unsigned(cls) -> PullRequestFailure:
        return cls("CLA has not been signed. Please make sure the PR author has signed the CLA.")

    @classmethod
    def failing_ci_jobs(cls) -> PullRequestFailure:
        return cls("Failing CI jobs.", non_fatal=True)

    @classmethod
    def pending_ci_jobs(cls) -> PullRequestFailure:
        return cls("Pending CI jobs.", non_fatal=True)

    @classmethod
    def not_merge_ready(cls) -> PullRequestFailure:
        return cls("Not marked as merge ready.")

    @classmethod
    def unsatisfied_base_sha(cls) -> PullRequestFailure:
        return cls(
            "Pull request has not been rebased recently and could be bypassing CI checks. "
            "Please rebase the PR."
        )

    @classmethod
    def merge_conflicts(cls, failed_branches: list[str]) -> PullRequestFailure:
        return cls(
            "Could not merge pull request into the following branches due to merge "
            f"conflicts: {', '.join(failed_branches)}. Please rebase the PR or update "
            "the target label."
        )

    @classmethod
    def unknown_merge_error(cls) -> PullRequestFailure:
        return cls("Unknown merge error occurred. Please see console output above for debugging.")

    @classmethod
    def not_found(cls) -> PullRequestFailure:
        return cls("Pull request could not be found upstream.")

    @classmethod
    def has_breaking_changes(cls, label_pattern: str) -> PullRequestFailure:
        return cls(
            f'Cannot merge into branch for "{label_pattern}" as the pull request has '
            'breaking changes. Breaking changes can only be merged with the "target: major" '
            "label."
        )

    @classmethod
    def has_feature_commits(cls, label_pattern: str) -> PullRequestFailure:
        return cls(
            f'Cannot merge into branch for "{label_pattern}" as the pull request has commits '
            'with the "feat" type. New features can only be merged with the "target: minor" '
            'or "target: major" label.'
        )

    @classmethod
    def missing_breaking_change_label(cls) -> PullRequestFailure:
        return cls(
            "Pull Request has at least one commit containing a breaking change note, but "
            "does not have a breaking change label."
        )

    @classmethod
    def missing_breaking_change_commit(cls) -> PullRequestFailure:
        return cls(
            "Pull Request has a breaking change label, but does not contain any commits "
            "with breaking change notes."
        )
