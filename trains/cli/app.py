from __future__ import annotations

import os

import typer

from trains import __version__
from trains.cli.commands.pr_cmd import pr_app
from trains.cli.commands.release_cmd import release_app
from trains.cli.context import VERBOSE_ENV

app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    rich_markup_mode="rich",
)

# Sub-apps
app.add_typer(release_app, name="release", help="Release trains and publishing.")
app.add_typer(pr_app, name="pr", help="Pull request merging.")


def _print_version(value: bool) -> None:
    # Eager, so it also works without a sub-command.
    if value:
        typer.echo(__version__)
        raise typer.Exit(code=0)


@app.callback()
def _main(  # pyright: ignore[reportUnusedFunction]
    version: bool = typer.Option(
        False, "--version", help="Show version and exit.", callback=_print_version, is_eager=True
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Echo executed git commands."),
) -> None:
    if verbose:
        os.environ[VERBOSE_ENV] = "1"


def main() -> None:
    # Commit hooks must not run for commits rewritten or created by the tool.
    os.environ["HUSKY_SKIP_HOOKS"] = "1"
    app()
