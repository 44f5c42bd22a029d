"""Release actions.

Which actions can be performed depends on the active release trains:

    CutNextPrereleaseAction                    always
    MoveNextIntoFeatureFreezeAction            no FF/RC train active
    CutReleaseCandidateForFeatureFreezeAction  FF/RC train in feature-freeze
    CutStableAction                            FF/RC train in release-candidate
    CutNewPatchAction                          always

Each action stages a version bump through a pull request on the release-train
branch, waits for it to be merged and tags the merged commit as a GitHub
release. Publishing packages to NPM is not part of the actions.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path

from trains.core.config import Config
from trains.git.client import GitClient
from trains.github.client import GithubClient
from trains.output.console import ConsoleProtocol, Style
from trains.release.npm import NpmRegistry
from trains.release.semver import Version
from trains.release.staging import (
    ReleaseActionError,
    UserAbortedReleaseActionError,
    commit_message_for_release,
    update_project_version,
    wait_for_pull_request_to_be_merged,
)
from trains.release.trains import ActiveReleaseTrains, Phase, ReleaseTrain
from trains.release.version_branches import PACKAGE_JSON_PATH

__all__ = [
    "ACTIONS",
    "CutNewPatchAction",
    "CutNextPrereleaseAction",
    "CutReleaseCandidateForFeatureFreezeAction",
    "CutStableAction",
    "MoveNextIntoFeatureFreezeAction",
    "ReleaseAction",
    "compute_new_prerelease_version_for_next",
]


def compute_new_prerelease_version_for_next(
    active: ActiveReleaseTrains, registry: NpmRegistry
) -> Version:
    """New prerelease version for the next train.

    Right after branching off into feature-freeze, the version of `next` is
    bumped without being published. It is released as-is in that case.
    """
    version = active.next.version
    if registry.is_version_published(version):
        return version.inc("prerelease")
    return version


class ReleaseAction(ABC):
    """Base class of the actions offered by the release tool."""

    def __init__(
        self,
        active: ActiveReleaseTrains,
        *,
        git: GitClient,
        github: GithubClient,
        config: Config,
        registry: NpmRegistry,
        console: ConsoleProtocol,
        project_dir: Path,
    ) -> None:
        self.active = active
        self.git = git
        self.github = github
        self.config = config
        self.registry = registry
        self.console = console
        self.project_dir = project_dir

    @classmethod
    @abstractmethod
    def is_active(cls, active: ActiveReleaseTrains) -> bool:
        """Whether the action can be performed with the given release trains."""

    @property
    @abstractmethod
    def new_version(self) -> Version: ...

    @property
    @abstractmethod
    def description(self) -> str: ...

    @abstractmethod
    def perform(self) -> None: ...

    # -- shared steps --------------------------------------------------------

    def checkout_upstream_branch(self, branch_name: str) -> None:
        self.git.run(["fetch", "-q", self.git.repo_git_url, branch_name])
        self.git.run(["checkout", "-q", "FETCH_HEAD", "--detach"])

    def create_commit(self, message: str, files: list[str]) -> None:
        self.git.run(["commit", "-q", "--no-verify", "-m", message, *files])

    def push_head_to_branch(self, branch_name: str, *, force: bool = False) -> None:
        args = ["push", "-q", self.git.repo_git_url, f"HEAD:refs/heads/{branch_name}"]
        if force:
            args.insert(2, "-f")
        self.git.run(args)

    def create_pull_request_for_head(
        self, *, target_branch: str, staging_branch: str, title: str, body: str
    ) -> int:
        """Push HEAD to `staging_branch` and propose it for `target_branch`."""
        self.push_head_to_branch(staging_branch, force=True)
        pr = self.github.create_pull_request(
            base=target_branch, head=staging_branch, title=title, body=body
        )
        self.github.add_labels(pr.number, list(self.config.release.release_pr_labels))
        self.console.success(f"Created pull request #{pr.number} in {self.github.remote.slug}.")
        self.console.print(f"  {pr.url}", Style.DIM)
        return pr.number

    def stage_version_for_branch(self, new_version: Version, branch_name: str) -> int:
        """Check out `branch_name`, bump its version and open the staging pull request."""
        self.checkout_upstream_branch(branch_name)
        update_project_version(self.project_dir, new_version)
        self.console.success(f"Updated the project version to {new_version}.")
        if not self.console.confirm(
            f'Do you want to proceed and stage the v{new_version} release for "{branch_name}"?',
            default=True,
        ):
            raise UserAbortedReleaseActionError()
        self.create_commit(commit_message_for_release(new_version), [PACKAGE_JSON_PATH])
        return self.create_pull_request_for_head(
            target_branch=branch_name,
            staging_branch=f"release-stage-{new_version}",
            title=f'Bump version to "v{new_version}" with changelog.',
            body=f"The version of the `{branch_name}` branch is updated to {new_version}.",
        )

    def tag_release(self, new_version: Version, branch_name: str) -> None:
        """Tag the merged release commit on `branch_name` as a GitHub release."""
        sha = self.github.get_branch_head_sha(branch_name)
        message = self.github.get_commit_message(sha)
        if not message.startswith(commit_message_for_release(new_version)):
            self.console.error(
                f'Latest commit in "{branch_name}" branch is not the release commit for '
                f"v{new_version}. Please make sure the staging pull request has been merged."
            )
            raise ReleaseActionError(f"unexpected head commit {sha} in {branch_name}")

        self.github.create_release(
            tag=str(new_version), target=sha, prerelease=new_version.is_prerelease
        )
        self.console.success(f"Created release v{new_version} for {branch_name} ({sha[:12]}).")

    def stage_and_release(self, new_version: Version, branch_name: str) -> None:
        number = self.stage_version_for_branch(new_version, branch_name)
        wait_for_pull_request_to_be_merged(self.github, number, self.console)
        self.tag_release(new_version, branch_name)


class CutNextPrereleaseAction(ReleaseAction):
    """Cut a prerelease for the FF/RC train if there is one, otherwise for next."""

    @classmethod
    def is_active(cls, active: ActiveReleaseTrains) -> bool:
        return True

    def _train(self) -> ReleaseTrain:
        return self.active.release_candidate or self.active.next

    @property
    def new_version(self) -> Version:
        train = self._train()
        if train is self.active.next:
            return compute_new_prerelease_version_for_next(self.active, self.registry)
        return train.version.inc("prerelease")

    @property
    def description(self) -> str:
        branch = self._train().branch_name
        return f'Cut a new next pre-release for the "{branch}" branch (v{self.new_version}).'

    def perform(self) -> None:
        self.stage_and_release(self.new_version, self._train().branch_name)


class MoveNextIntoFeatureFreezeAction(ReleaseAction):
    """Branch off `N.N.x` from next and bump next to the following minor."""

    @classmethod
    def is_active(cls, active: ActiveReleaseTrains) -> bool:
        return active.release_candidate is None

    @property
    def new_version(self) -> Version:
        return compute_new_prerelease_version_for_next(self.active, self.registry)

    @property
    def description(self) -> str:
        return (
            f'Move the "{self.active.next.branch_name}" branch into feature-freeze phase '
            f"(v{self.new_version})."
        )

    def perform(self) -> None:
        new_version = self.new_version
        next_branch = self.active.next.branch_name
        version_branch = f"{new_version.major}.{new_version.minor}.x"

        self.checkout_upstream_branch(next_branch)
        self.git.run(["checkout", "-q", "-B", version_branch])
        self.push_head_to_branch(version_branch)
        self.console.success(f'Version branch "{version_branch}" created.')

        self.stage_and_release(new_version, version_branch)

        next_version = Version(new_version.major, new_version.minor + 1, 0, ("next", 0))
        self.checkout_upstream_branch(next_branch)
        update_project_version(self.project_dir, next_version)
        self.create_commit(
            f'release: bump the next branch to v{next_version}', [PACKAGE_JSON_PATH]
        )
        self.create_pull_request_for_head(
            target_branch=next_branch,
            staging_branch=f"next-release-train-{next_version}",
            title=f'Bump the "{next_branch}" branch to v{next_version}.',
            body=(
                "The previous next release-train has moved into the feature-freeze phase. "
                f"This PR updates the `{next_branch}` branch to the subsequent release-train."
            ),
        )
        self.console.info(
            f'The pull request bumping "{next_branch}" needs to be merged by the caretaker.'
        )


class CutReleaseCandidateForFeatureFreezeAction(ReleaseAction):
    """Bump the feature-freeze train from `-next.N` to `-rc.0`."""

    @classmethod
    def is_active(cls, active: ActiveReleaseTrains) -> bool:
        return active.release_candidate_phase is Phase.FEATURE_FREEZE

    @property
    def new_version(self) -> Version:
        assert self.active.release_candidate is not None
        return self.active.release_candidate.version.inc("prerelease", "rc")

    @property
    def description(self) -> str:
        return f"Cut a first release-candidate for the feature-freeze branch (v{self.new_version})."

    def perform(self) -> None:
        assert self.active.release_candidate is not None
        self.stage_and_release(self.new_version, self.active.release_candidate.branch_name)


class CutStableAction(ReleaseAction):
    """Drop the `-rc.N` label of the release-candidate train.

    Stable versions cannot be cut directly from feature-freeze.
    """

    @classmethod
    def is_active(cls, active: ActiveReleaseTrains) -> bool:
        return active.release_candidate_phase is Phase.RELEASE_CANDIDATE

    @property
    def new_version(self) -> Version:
        assert self.active.release_candidate is not None
        v = self.active.release_candidate.version
        return Version(v.major, v.minor, v.patch)

    @property
    def description(self) -> str:
        return f"Cut a stable release for the release-candidate branch (v{self.new_version})."

    def perform(self) -> None:
        assert self.active.release_candidate is not None
        self.stage_and_release(self.new_version, self.active.release_candidate.branch_name)


class CutNewPatchAction(ReleaseAction):
    @classmethod
    def is_active(cls, active: ActiveReleaseTrains) -> bool:
        return True

    @property
    def new_version(self) -> Version:
        return self.active.latest.version.inc("patch")

    @property
    def description(self) -> str:
        return (
            f'Cut a new patch release for the "{self.active.latest.branch_name}" branch '
            f"(v{self.new_version})."
        )

    def perform(self) -> None:
        self.stage_and_release(self.new_version, self.active.latest.branch_name)


ACTIONS: tuple[type[ReleaseAction], ...] = (
    CutStableAction,
    CutReleaseCandidateForFeatureFreezeAction,
    CutNewPatchAction,
    CutNextPrereleaseAction,
    MoveNextIntoFeatureFreezeAction,
)
