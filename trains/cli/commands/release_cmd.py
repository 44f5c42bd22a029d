from __future__ import annotations

import typer

from trains.cli.commands._helpers import exit_with_code, fail, load_active_trains
from trains.cli.context import build_context
from trains.core.errors import ErrorCode
from trains.github.client import GithubApiRequestError
from trains.release.info import print_active_release_trains
from trains.release.npm import NpmRegistryError
from trains.release.tool import CompletionState, ReleaseTool
from trains.release.trains import ReleaseTrainError

release_app = typer.Typer(add_completion=False, no_args_is_help=True)


@release_app.command("info")
def info() -> None:
    """Print the active release trains."""
    ctx = build_context()
    trains = load_active_trains(ctx)
    try:
        print_active_release_trains(trains, ctx.registry, ctx.console)
    except NpmRegistryError as e:
        fail(ctx, str(e), ErrorCode.NETWORK_ERROR)


@release_app.command("publish")
def publish() -> None:
    """Stage and publish a release for one of the active release trains."""
    ctx = build_context()
    tool = ReleaseTool(
        config=ctx.config,
        git=ctx.git,
        github=ctx.github,
        registry=ctx.registry,
        console=ctx.console,
        project_dir=ctx.repo_dir,
    )
    try:
        state = tool.run()
    except ReleaseTrainError as e:
        fail(ctx, str(e), ErrorCode.CONFIG_ERROR)
    except (GithubApiRequestError, NpmRegistryError) as e:
        fail(ctx, str(e), ErrorCode.NETWORK_ERROR)

    match state:
        case CompletionState.SUCCESS:
            ctx.console.success("Release action has completed successfully.")
        case CompletionState.MANUALLY_ABORTED:
            ctx.console.info("Release action has been manually aborted.")
        case CompletionState.FATAL_ERROR:
            ctx.console.error("Release action has been aborted due to fatal errors. See above.")
            exit_with_code(int(ErrorCode.USER_ERROR))
