from __future__ import annotations

import typer

from trains.cli.commands._helpers import exit_with_code, fail, load_active_trains
from trains.cli.context import CLIContext, build_context
from trains.core.errors import ErrorCode
from trains.core.result import Err, Result
from trains.github.client import GithubApiRequestError
from trains.merge.pull_request import get_target_branches_for_pull_request
from trains.merge.target_label import LtsBranchCheck
from trains.merge.task import MergeResult, MergeStatus, PullRequestMergeTask
from trains.output.console import Style
from trains.release.lts import assert_active_lts_branch
from trains.release.npm import NpmRegistryError
from trains.release.trains import ReleaseTrainError
from trains.release.version_branches import GithubVersionBranchSource

pr_app = typer.Typer(add_completion=False, no_args_is_help=True)


def _lts_check(ctx: CLIContext) -> LtsBranchCheck:
    source = GithubVersionBranchSource(ctx.github)

    def check(branch_name: str) -> Result[None, str]:
        return assert_active_lts_branch(source, ctx.registry, branch_name, ctx.console)

    return check


def _handle_merge_result(
    ctx: CLIContext, task: PullRequestMergeTask, pr_number: int, result: MergeResult, force: bool
) -> bool:
    """Report the merge outcome; returns whether the command succeeded."""
    failure = result.failure
    match result.status:
        case MergeStatus.SUCCESS:
            ctx.console.success(f"Successfully merged the pull request: #{pr_number}")
            return True
        case MergeStatus.DIRTY_WORKING_DIR:
            ctx.console.error(
                "Local working repository not clean. Please make sure there are no "
                "uncommitted changes."
            )
            return False
        case MergeStatus.UNKNOWN_GIT_ERROR:
            ctx.console.error(
                "An unknown Git error has been thrown. Please check the output above for details."
            )
            if failure is not None:
                ctx.console.error(failure.message)
            return False
        case MergeStatus.GITHUB_ERROR:
            ctx.console.error("An error related to interacting with Github has been discovered.")
            if failure is not None:
                ctx.console.error(failure.message)
            return False
        case MergeStatus.USER_ABORTED:
            ctx.console.info(f"Merge of pull request has been aborted manually: #{pr_number}")
            return True
        case MergeStatus.FAILED:
            ctx.console.warning("Could not merge the specified pull request.")
            if failure is not None:
                ctx.console.error(failure.message)
            if failure is None or not failure.non_fatal or force:
                return False
            ctx.console.newline()
            ctx.console.print(
                "The pull request above failed due to non-critical errors.", Style.WARNING
            )
            ctx.console.print("This error can be forcibly ignored if desired.", Style.WARNING)
            if not ctx.console.confirm("Do you want to forcibly proceed with merging?"):
                return False
            forced = task.merge(pr_number, force=True)
            return _handle_merge_result(ctx, task, pr_number, forced, True)


@pr_app.command("merge")
def merge(
    pr_number: int = typer.Argument(..., metavar="PR", help="Number of the pull request."),
    force: bool = typer.Option(False, "--force", help="Ignore non-fatal failures."),
) -> None:
    """Merge a pull request into the branches resolved from its target label."""
    ctx = build_context()
    trains = load_active_trains(ctx)
    task = PullRequestMergeTask(
        ctx.config.merge,
        git=ctx.git,
        github=ctx.github,
        trains=trains,
        lts_check=_lts_check(ctx),
        console=ctx.console,
    )
    try:
        ok = _handle_merge_result(ctx, task, pr_number, task.merge(pr_number, force=force), force)
    except GithubApiRequestError as e:
        fail(ctx, e.message, ErrorCode.NETWORK_ERROR)
    except NpmRegistryError as e:
        fail(ctx, str(e), ErrorCode.NETWORK_ERROR)
    except ReleaseTrainError as e:
        # Raised by the LTS check for a branch with an unreadable version.
        fail(ctx, str(e), ErrorCode.CONFIG_ERROR)
    if not ok:
        exit_with_code(int(ErrorCode.MERGE_FAILED))


@pr_app.command("check-target-branches")
def check_target_branches(
    pr_number: int = typer.Argument(..., metavar="PR", help="Number of the pull request."),
) -> None:
    """Print the branches a pull request is currently targeting."""
    ctx = build_context()
    trains = load_active_trains(ctx)
    try:
        result = get_target_branches_for_pull_request(
            pr_number,
            github=ctx.github,
            config=ctx.config.merge,
            trains=trains,
            lts_check=_lts_check(ctx),
        )
    except GithubApiRequestError as e:
        fail(ctx, e.message, ErrorCode.NETWORK_ERROR)
    except NpmRegistryError as e:
        fail(ctx, str(e), ErrorCode.NETWORK_ERROR)
    except ReleaseTrainError as e:
        # Raised by the LTS check for a branch with an unreadable version.
        fail(ctx, str(e), ErrorCode.CONFIG_ERROR)

    if isinstance(result, Err):
        fail(ctx, result.error, ErrorCode.USER_ERROR)

    ctx.console.info(f"PR has the following branches targeted: #{pr_number}")
    for branch in result.value:
        ctx.console.print(f"  - {branch}")
