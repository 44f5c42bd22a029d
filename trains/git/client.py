"""Git client used by the merge strategy and the release tool.

Commands run synchronously, one after another, against the single working
tree of the repository. `run` raises `GitCommandError` on a non-zero exit
status; `run_graceful` returns the completed command so the caller can
inspect the status itself (e.g. a conflicting cherry-pick).

Every executed command and its stderr output are echoed with the GitHub
token replaced by `<TOKEN>`.

Usage:
    git = GitClient(base_dir, remote=config.github, console=console, github_token=token)
    if git.has_uncommitted_changes():
        ...
    sha = git.run(["rev-parse", "HEAD"]).stdout.strip()
"""

from __future__ import annotations

import os
import re
from pathlib import Path

from trains.core.config import GithubConfig
from trains.core.result import Err, Ok, Result
from trains.output.console import ConsoleProtocol, Style
from trains.platform.process import CompletedCommand
from trains.platform.process import run_captured as run_process

__all__ = [
    "GitClient",
    "GitCommandError",
    "determine_repo_base_dir",
]


class GitCommandError(Exception):
    """A git command exited with a non-zero status.

    The message carries the sanitized command so it can be shared
    without leaking the token.
    """

    def __init__(self, client: GitClient, args: list[str]) -> None:
        super().__init__(f"Command failed: git {client.sanitize(' '.join(args))}")
        self.command_args = tuple(args)


class GitClient:
    """Git interactions with the configured GitHub remote.

    Attributes:
        base_dir: Repository root all commands run in.
        remote: GitHub repository the release trains live in.
    """

    def __init__(
        self,
        base_dir: Path,
        *,
        remote: GithubConfig,
        console: ConsoleProtocol,
        github_token: str | None = None,
        verbose: bool = False,
    ) -> None:
        self.base_dir = base_dir
        self.remote = remote
        self._console = console
        self._github_token = github_token or None
        self._verbose = verbose
        self._token_regex = (
            re.compile(re.escape(self._github_token)) if self._github_token else None
        )

    @property
    def repo_git_url(self) -> str:
        """URL used for fetching and pushing release branches."""
        if self.remote.use_ssh:
            return f"git@github.com:{self.remote.slug}.git"
        if self._github_token:
            return f"https://{self._github_token}@github.com/{self.remote.slug}.git"
        return f"https://github.com/{self.remote.slug}.git"

    def run(
        self,
        args: list[str],
        *,
        env: dict[str, str] | None = None,
        inherit_stdio: bool = False,
    ) -> CompletedCommand:
        """Execute the given git command. Raises GitCommandError if it fails."""
        result = self.run_graceful(args, env=env, inherit_stdio=inherit_stdio)
        if not result.ok:
            raise GitCommandError(self, args)
        return result

    def run_graceful(
        self,
        args: list[str],
        *,
        env: dict[str, str] | None = None,
        inherit_stdio: bool = False,
    ) -> CompletedCommand:
        """Execute the given git command without raising on failure."""
        if self._verbose:
            self._console.print(f"Executing: git {self.sanitize(' '.join(args))}", Style.DIM)

        result = run_process(
            ["git", *args], cwd=self.base_dir, env=env, inherit_stdio=inherit_stdio
        )
        if result.stderr.strip():
            self._console.print(self.sanitize(result.stderr.rstrip()), Style.DIM)
        return result

    def has_commit(self, branch_name: str, sha: str) -> bool:
        """Whether the given branch contains the specified SHA."""
        return self.run(["branch", branch_name, "--contains", sha]).stdout != ""

    def current_branch_or_revision(self) -> str:
        """Currently checked out branch, or the SHA when HEAD is detached."""
        branch = self.run(["rev-parse", "--abbrev-ref", "HEAD"]).stdout.strip()
        if branch == "HEAD":
            return self.run(["rev-parse", "HEAD"]).stdout.strip()
        return branch

    def has_uncommitted_changes(self) -> bool:
        return not self.run_graceful(["diff-index", "--quiet", "HEAD"]).ok

    def checkout(self, branch_or_revision: str, clean_state: bool) -> bool:
        """Check out a branch or revision, optionally resetting any in-progress state.

        Returns whether the checkout succeeded.
        """
        if clean_state:
            self.run_graceful(["am", "--abort"])
            self.run_graceful(["cherry-pick", "--abort"])
            self.run_graceful(["rebase", "--abort"])
            self.run_graceful(["reset", "--hard"])
        return self.run_graceful(["checkout", branch_or_revision]).ok

    def sanitize(self, value: str) -> str:
        """Replace the GitHub token in the given text."""
        if self._token_regex is None:
            return value
        return self._token_regex.sub("<TOKEN>", value)

    def env_with(self, **overrides: str) -> dict[str, str]:
        """Current process environment with the given variables set."""
        env = dict(os.environ)
        env.update(overrides)
        return env


def determine_repo_base_dir(cwd: Path) -> Result[Path, str]:
    """Resolve the repository root from a directory inside the checkout."""
    result = run_process(["git", "rev-parse", "--show-toplevel"], cwd=cwd)
    if not result.ok:
        return Err(
            "Unable to find the path to the base directory of the repository. "
            f"Was the command run from inside of the repo? {result.stderr.strip()}"
        )
    return Ok(Path(result.stdout.strip()))
