"""Interactive release tool.

Verifies the local checkout, prints the active release trains, lets the
caretaker pick one of the currently legal release actions and performs it.
The checkout is always returned to the branch or revision it was on before.
"""

from __future__ import annotations

from enum import Enum, auto
from pathlib import Path

from trains.core.config import Config
from trains.git.client import GitClient, GitCommandError
from trains.github.client import GithubApiRequestError, GithubClient
from trains.output.console import ConsoleProtocol
from trains.release.actions import ACTIONS, ReleaseAction
from trains.release.active_trains import fetch_active_release_trains
from trains.release.info import print_active_release_trains
from trains.release.npm import NpmRegistry, NpmRegistryError
from trains.release.staging import ReleaseActionError, UserAbortedReleaseActionError
from trains.release.trains import ActiveReleaseTrains
from trains.release.version_branches import GithubVersionBranchSource

__all__ = ["CompletionState", "ReleaseTool"]


class CompletionState(Enum):
    SUCCESS = auto()
    FATAL_ERROR = auto()
    MANUALLY_ABORTED = auto()


class ReleaseTool:
    def __init__(
        self,
        *,
        config: Config,
        git: GitClient,
        github: GithubClient,
        registry: NpmRegistry,
        console: ConsoleProtocol,
        project_dir: Path,
    ) -> None:
        self._config = config
        self._git = git
        self._github = github
        self._registry = registry
        self._console = console
        self._project_dir = project_dir
        self._previous_branch_or_revision = git.current_branch_or_revision()

    def run(self) -> CompletionState:
        self._console.header("Release staging")

        if not self._verify_no_uncommitted_changes() or not self._verify_running_from_next_branch():
            return CompletionState.FATAL_ERROR

        source = GithubVersionBranchSource(self._github)
        active = fetch_active_release_trains(source, self._config.github.main_branch)
        print_active_release_trains(active, self._registry, self._console)

        action = self._prompt_for_release_action(active)
        if action is None:
            return CompletionState.MANUALLY_ABORTED

        try:
            action.perform()
        except UserAbortedReleaseActionError:
            return CompletionState.MANUALLY_ABORTED
        except ReleaseActionError as e:
            self._console.error(str(e))
            return CompletionState.FATAL_ERROR
        except (GitCommandError, GithubApiRequestError, NpmRegistryError) as e:
            self._console.error(str(e))
            return CompletionState.FATAL_ERROR
        finally:
            self.cleanup()

        return CompletionState.SUCCESS

    def cleanup(self) -> None:
        self._git.checkout(self._previous_branch_or_revision, True)

    def _prompt_for_release_action(self, active: ActiveReleaseTrains) -> ReleaseAction | None:
        actions = [
            action_type(
                active,
                git=self._git,
                github=self._github,
                config=self._config,
                registry=self._registry,
                console=self._console,
                project_dir=self._project_dir,
            )
            for action_type in ACTIONS
            if action_type.is_active(active)
        ]
        self._console.info("Please select the type of release you want to perform.")
        picked = self._console.choose("Please select an action", [a.description for a in actions])
        if picked is None:
            return None
        return actions[picked]

    def _verify_no_uncommitted_changes(self) -> bool:
        if self._git.has_uncommitted_changes():
            self._console.error(
                "There are changes which are not committed and should be discarded."
            )
            return False
        return True

    def _verify_running_from_next_branch(self) -> bool:
        next_branch = self._config.github.main_branch
        head_sha = self._git.run(["rev-parse", "HEAD"]).stdout.strip()
        if head_sha != self._github.get_branch_head_sha(next_branch):
            self._console.error("Running release tool from an outdated local branch.")
            self._console.print(
                f'  Please make sure you are running from the "{next_branch}" branch.'
            )
            return False
        return True
