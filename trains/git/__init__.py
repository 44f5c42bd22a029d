"""Git operations module.

Usage:
    from trains.git import GitClient, GitCommandError

    git = GitClient(repo_root, remote=config.github, console=console)
    previous = git.current_branch_or_revision()
"""

from trains.git.client import (
    GitClient,
    GitCommandError,
    determine_repo_base_dir,
)

__all__ = [
    "GitClient",
    "GitCommandError",
    "determine_repo_base_dir",
]
