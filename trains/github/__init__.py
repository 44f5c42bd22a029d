"""GitHub access for the configured repository."""

from trains.github.client import (
    GITHUB_TOKEN_GENERATE_URL,
    GithubApiRequestError,
    GithubClient,
)

__all__ = [
    "GITHUB_TOKEN_GENERATE_URL",
    "GithubApiRequestError",
    "GithubClient",
]
