"""Merge strategies that merge pull requests through the local git checkout.

`AutosquashMergeStrategy` rebases the pull request with autosquash,
annotates every commit message with the pull request number and
cherry-picks the result into all target branches. Branches are only pushed
once every cherry-pick applied.

The caller fetches the pull request and its target branches with
`prepare()` before `merge()`, and runs `cleanup()` afterwards.
"""

from __future__ import annotations

import shlex
import sys
from abc import ABC, abstractmethod

from trains.git.client import GitClient
from trains.github.client import GithubClient
from trains.merge.failures import PullRequestFailure
from trains.merge.pull_request import PullRequest

__all__ = [
    "TEMP_PR_HEAD_BRANCH",
    "AutosquashMergeStrategy",
    "MergeStrategy",
]

# Local branch holding the head of the pull request being merged.
TEMP_PR_HEAD_BRANCH = "merge_pr_head"


class MergeStrategy(ABC):
    """Shared git plumbing for merging a pull request into its target branches."""

    def __init__(self, git: GitClient) -> None:
        self.git = git

    def prepare(self, pull_request: PullRequest) -> None:
        """Fetch the pull request head and all target branches in one request."""
        refspecs = [
            f"refs/heads/{b}:{self.get_local_target_branch_name(b)}"
            for b in pull_request.target_branches
        ]
        refspecs.append(f"pull/{pull_request.pr_number}/head:{TEMP_PR_HEAD_BRANCH}")
        self.git.run(["fetch", "-q", "-f", self.git.repo_git_url, *refspecs])

    @abstractmethod
    def merge(self, pull_request: PullRequest) -> PullRequestFailure | None: ...

    def cleanup(self, pull_request: PullRequest) -> None:
        """Delete the local branches created by `prepare()`.

        Runs after a failed merge too, so a branch that cannot be deleted is
        left behind rather than raising.
        """
        branches = [self.get_local_target_branch_name(b) for b in pull_request.target_branches]
        self.git.run_graceful(["branch", "-D", TEMP_PR_HEAD_BRANCH, *branches])

    def get_local_target_branch_name(self, target_branch: str) -> str:
        return f"merge_pr_target_{target_branch.replace('/', '_')}"

    def cherry_pick_into_target_branches(
        self, revision_range: str, target_branches: tuple[str, ...]
    ) -> list[str]:
        """Cherry-pick the range into every local target branch.

        Returns the branches the range could not be applied to.
        """
        failed: list[str] = []
        for branch in target_branches:
            self.git.run(["checkout", self.get_local_target_branch_name(branch)])
            result = self.git.run_graceful(["cherry-pick", revision_range])
            if not result.ok:
                self.git.run_graceful(["cherry-pick", "--abort"])
                failed.append(branch)
        return failed

    def push_target_branches_upstream(self, target_branches: tuple[str, ...]) -> None:
        refspecs = [
            f"{self.get_local_target_branch_name(b)}:refs/heads/{b}" for b in target_branches
        ]
        self.git.run(["push", self.git.repo_git_url, *refspecs])


class AutosquashMergeStrategy(MergeStrategy):
    """Merges pull requests by rebasing with autosquash and cherry-picking."""

    def __init__(self, git: GitClient, github: GithubClient) -> None:
        super().__init__(git)
        self.github = github

    def merge(self, pull_request: PullRequest) -> PullRequestFailure | None:
        """Merge the pull request into all of its target branches.

        Returns the failure that prevented the merge, or None on success.
        Unexpected git failures raise `GitCommandError`.
        """
        pr = pull_request
        if pr.required_base_sha and not self.git.has_commit(
            TEMP_PR_HEAD_BRANCH, pr.required_base_sha
        ):
            return PullRequestFailure.unsatisfied_base_sha()

        # Pin the base before rebasing: autosquash changes the commit count.
        base_sha = self.git.run(
            ["rev-parse", f"{TEMP_PR_HEAD_BRANCH}~{pr.commit_count}"]
        ).stdout.strip()
        revision_range = f"{base_sha}..{TEMP_PR_HEAD_BRANCH}"

        # Autosquash only works in interactive mode. A no-op sequence editor
        # keeps it non-interactive unless the messages need manual fixups.
        branch_or_revision_before_rebase = self.git.current_branch_or_revision()
        env = (
            None
            if pr.needs_commit_message_fixup
            else self.git.env_with(GIT_SEQUENCE_EDITOR="true")
        )
        self.git.run(
            ["rebase", "--interactive", "--autosquash", base_sha, TEMP_PR_HEAD_BRANCH],
            env=env,
            inherit_stdio=pr.needs_commit_message_fixup,
        )

        # filter-branch needs a checkout that is not being rewritten.
        self.git.run(["checkout", "-f", branch_or_revision_before_rebase])

        msg_filter = shlex.join(
            [sys.executable, "-m", "trains.merge.message_filter", str(pr.pr_number)]
        )
        self.git.run(
            ["filter-branch", "-f", "--msg-filter", msg_filter, revision_range],
            env=self.git.env_with(FILTER_BRANCH_SQUELCH_WARNING="1"),
        )

        failed_branches = self.cherry_pick_into_target_branches(
            revision_range, pr.target_branches
        )
        if failed_branches:
            return PullRequestFailure.merge_conflicts(failed_branches)

        self.push_target_branches_upstream(pr.target_branches)

        # GitHub only closes PRs automatically for pushes to the default branch.
        if pr.github_target_branch != self.git.remote.main_branch:
            # A PR opened against a branch it is not merged into (e.g. a feature
            # branch) is closed with the commit pushed to its first target.
            closing_branch = (
                pr.github_target_branch
                if pr.github_target_branch in pr.target_branches
                else pr.target_branches[0]
            )
            local_branch = self.get_local_target_branch_name(closing_branch)
            sha = self.git.run(["rev-parse", local_branch]).stdout.strip()
            self.github.create_comment(pr.pr_number, f"Closed by commit {sha}")
            self.github.update_pull_request(pr.pr_number, state="closed")

        return None
