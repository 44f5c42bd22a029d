from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

import typer

from trains.core.config import CONFIG_FILE_NAME, Config, load_config
from trains.core.errors import ErrorCode
from trains.core.result import Err
from trains.git.client import GitClient, determine_repo_base_dir
from trains.github.client import GithubClient
from trains.output.console import ConsoleProtocol, RichConsole, Style
from trains.platform.http import RealHttpClient
from trains.release.npm import NpmRegistry

VERBOSE_ENV = "TRAINS_VERBOSE"
TOKEN_ENV_VARS = ("GITHUB_TOKEN", "GH_TOKEN")


@dataclass(frozen=True, slots=True)
class CLIContext:
    repo_dir: Path
    config: Config
    console: ConsoleProtocol
    git: GitClient
    github: GithubClient
    registry: NpmRegistry


def github_token_from_env() -> str | None:
    for name in TOKEN_ENV_VARS:
        value = os.environ.get(name, "").strip()
        if value:
            return value
    return None


def build_context() -> CLIContext:
    console = RichConsole()

    base_dir = determine_repo_base_dir(Path.cwd())
    if isinstance(base_dir, Err):
        typer.echo(f"error: {base_dir.error}", err=True)
        raise typer.Exit(code=int(ErrorCode.GIT_ERROR))
    repo_dir = base_dir.value

    config_result = load_config(repo_dir / CONFIG_FILE_NAME)
    if isinstance(config_result, Err):
        console.error(config_result.error.message)
        for detail in config_result.error.details:
            console.print(f"  - {detail}", Style.DIM)
        raise typer.Exit(code=int(ErrorCode.CONFIG_ERROR))
    config = config_result.value

    git = GitClient(
        repo_dir,
        remote=config.github,
        console=console,
        github_token=github_token_from_env(),
        verbose=os.environ.get(VERBOSE_ENV) == "1",
    )
    return CLIContext(
        repo_dir=repo_dir,
        config=config,
        console=console,
        git=git,
        github=GithubClient(config.github, cwd=repo_dir),
        registry=NpmRegistry(RealHttpClient(), config.release),
    )
