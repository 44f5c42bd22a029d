"""Merge task: validate a pull request and merge it with the autosquash strategy.

The task owns the working tree for the duration of a merge. Whatever
happens, the branch checked out before the merge is restored and the
temporary branches are removed.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto

from trains.core.config import MergeConfig
from trains.git.client import GitClient, GitCommandError
from trains.github.client import GITHUB_TOKEN_GENERATE_URL, GithubApiRequestError, GithubClient
from trains.merge.failures import PullRequestFailure
from trains.merge.pull_request import PullRequest, load_and_validate_pull_request
from trains.merge.strategy import AutosquashMergeStrategy
from trains.merge.target_label import LtsBranchCheck
from trains.output.console import ConsoleProtocol
from trains.release.trains import ActiveReleaseTrains

__all__ = ["MergeResult", "MergeStatus", "PullRequestMergeTask"]


class MergeStatus(Enum):
    UNKNOWN_GIT_ERROR = auto()
    DIRTY_WORKING_DIR = auto()
    SUCCESS = auto()
    FAILED = auto()
    USER_ABORTED = auto()
    GITHUB_ERROR = auto()


@dataclass(frozen=True, slots=True)
class MergeResult:
    status: MergeStatus
    failure: PullRequestFailure | None = None


class PullRequestMergeTask:
    """Merges pull requests into the branches resolved from their target label."""

    def __init__(
        self,
        config: MergeConfig,
        *,
        git: GitClient,
        github: GithubClient,
        trains: ActiveReleaseTrains,
        lts_check: LtsBranchCheck,
        console: ConsoleProtocol,
    ) -> None:
        self.config = config
        self.git = git
        self.github = github
        self.trains = trains
        self.lts_check = lts_check
        self.console = console

    def merge(self, pr_number: int, force: bool = False) -> MergeResult:
        """Merge the given pull request.

        With `force`, non-fatal failures (e.g. pending CI) are ignored and the
        caretaker note confirmation is skipped.
        """
        if self.git.has_uncommitted_changes():
            return MergeResult(MergeStatus.DIRTY_WORKING_DIR)

        try:
            return self._merge(pr_number, force)
        except GithubApiRequestError as e:
            if e.status != 401:
                raise
            return MergeResult(
                MergeStatus.GITHUB_ERROR,
                PullRequestFailure(
                    f"Github API request failed. {e.message}\n"
                    "Please ensure that your provided token is valid.\n"
                    f"You can generate a token here: {GITHUB_TOKEN_GENERATE_URL}"
                ),
            )

    def _merge(self, pr_number: int, force: bool) -> MergeResult:
        pull_request = load_and_validate_pull_request(
            pr_number,
            github=self.github,
            config=self.config,
            trains=self.trains,
            lts_check=self.lts_check,
            console=self.console,
            ignore_non_fatal_failures=force,
        )
        if isinstance(pull_request, PullRequestFailure):
            return MergeResult(MergeStatus.FAILED, pull_request)

        if pull_request.has_caretaker_note and not force:
            proceed = self.console.confirm(
                f'The pull request has the "{self.config.caretaker_note_label}" label. '
                "Do you want to proceed merging?"
            )
            if not proceed:
                return MergeResult(MergeStatus.USER_ABORTED)

        return self._merge_validated(pull_request)

    def _merge_validated(self, pull_request: PullRequest) -> MergeResult:
        strategy = AutosquashMergeStrategy(self.git, self.github)
        previous_branch_or_revision = self.git.current_branch_or_revision()
        prepared = False
        try:
            strategy.prepare(pull_request)
            prepared = True
            failure = strategy.merge(pull_request)
            if failure is not None:
                return MergeResult(MergeStatus.FAILED, failure)
            return MergeResult(MergeStatus.SUCCESS)
        except GitCommandError as e:
            self.console.error(str(e))
            return MergeResult(
                MergeStatus.UNKNOWN_GIT_ERROR, PullRequestFailure.unknown_merge_error()
            )
        finally:
            # Aborts an unfinished rebase or cherry-pick before switching back.
            if not self.git.checkout(previous_branch_or_revision, clean_state=True):
                self.console.warning(
                    f'Unable to restore the previous checkout "{previous_branch_or_revision}".'
                )
            if prepared:
                strategy.cleanup(pull_request)
