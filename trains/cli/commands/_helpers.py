"""Shared helpers for CLI commands."""

from __future__ import annotations

from typing import TYPE_CHECKING, NoReturn

import typer

from trains.core.errors import ErrorCode
from trains.github.client import GithubApiRequestError
from trains.release.active_trains import fetch_active_release_trains
from trains.release.trains import ActiveReleaseTrains, ReleaseTrainError
from trains.release.version_branches import GithubVersionBranchSource

if TYPE_CHECKING:
    from trains.cli.context import CLIContext


def exit_with_code(code: int) -> NoReturn:
    """Exit with given code. Explicit helper for clarity."""
    raise typer.Exit(code=code)


def fail(ctx: CLIContext, message: str, code: ErrorCode) -> NoReturn:
    ctx.console.error(message)
    exit_with_code(int(code))


def load_active_trains(ctx: CLIContext) -> ActiveReleaseTrains:
    """Resolve the active release trains, exiting on an invalid branch state."""
    source = GithubVersionBranchSource(ctx.github)
    try:
        return fetch_active_release_trains(source, ctx.config.github.main_branch)
    except ReleaseTrainError as e:
        fail(ctx, str(e), ErrorCode.CONFIG_ERROR)
    except GithubApiRequestError as e:
        fail(ctx, e.message, ErrorCode.NETWORK_ERROR)
