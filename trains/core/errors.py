"""Exit codes for CLI commands.

These values are used as process exit codes and should remain stable:
- 0: Success
- 1: User error (bad input, declined prompt)
- 2: Config error (missing or invalid .release-trains.toml, bad branch state)
- 3: Git error (a git command failed unexpectedly)
- 4: Network error (GitHub or NPM unreachable, invalid token)
- 5: Merge failed (pull request validation or cherry-pick failure)
"""

from enum import IntEnum

__all__ = ["ErrorCode"]


class ErrorCode(IntEnum):
    OK = 0
    USER_ERROR = 1
    CONFIG_ERROR = 2
    GIT_ERROR = 3
    NETWORK_ERROR = 4
    MERGE_FAILED = 5
