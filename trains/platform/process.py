"""Subprocess execution for `git` and `gh`.

`run_captured` always completes and hands back the exit status; the git
client decides per command whether a non-zero status is fatal. `run` is
the Result flavour used for `gh`, where a failed call is an expected value:

    match run(["gh", "api", "user"], cwd=repo_root):
        case Ok(stdout):
            ...
        case Err(error):
            console.error(error.stderr)
"""

from __future__ import annotations

import subprocess
from dataclasses import dataclass
from pathlib import Path

from trains.core.result import Err, Ok, Result

__all__ = ["CompletedCommand", "ProcessError", "run", "run_captured"]

# Exit status reported when the process could not be started or was killed.
NOT_STARTED = -1


@dataclass(frozen=True, slots=True)
class ProcessError:
    """A command that exited with a non-zero status (or never ran)."""

    command: tuple[str, ...]
    returncode: int
    stdout: str
    stderr: str

    def __str__(self) -> str:
        shown = " ".join(self.command[:3]) + (" ..." if len(self.command) > 3 else "")
        return f"{shown} failed (exit {self.returncode})"


@dataclass(frozen=True, slots=True)
class CompletedCommand:
    args: tuple[str, ...]
    returncode: int
    stdout: str
    stderr: str

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    def to_error(self) -> ProcessError:
        return ProcessError(self.args, self.returncode, self.stdout, self.stderr)


def run_captured(
    cmd: list[str],
    cwd: Path,
    env: dict[str, str] | None = None,
    *,
    input: str | None = None,
    timeout: float | None = None,
    inherit_stdio: bool = False,
) -> CompletedCommand:
    """Run `cmd` to completion. Never raises.

    With `inherit_stdio` the process uses the terminal directly (interactive
    rebases); stdout and stderr are then reported empty.
    """
    args = tuple(cmd)
    try:
        if inherit_stdio:
            proc = subprocess.run(cmd, cwd=str(cwd), env=env, timeout=timeout, check=False)
            return CompletedCommand(args, proc.returncode, "", "")
        proc = subprocess.run(
            cmd,
            cwd=str(cwd),
            env=env,
            input=input,
            capture_output=True,
            text=True,
            timeout=timeout,
            check=False,
        )
    except subprocess.TimeoutExpired as e:
        partial = e.stdout if isinstance(e.stdout, str) else ""
        return CompletedCommand(args, NOT_STARTED, partial, f"Command timed out after {timeout}s")
    except OSError as e:
        return CompletedCommand(args, NOT_STARTED, "", str(e))

    return CompletedCommand(args, proc.returncode, proc.stdout, proc.stderr)


def run(
    cmd: list[str],
    cwd: Path,
    env: dict[str, str] | None = None,
    *,
    input: str | None = None,
    timeout: float | None = None,
) -> Result[str, ProcessError]:
    """Ok(stdout) when `cmd` exits with status 0, Err(ProcessError) otherwise."""
    completed = run_captured(cmd, cwd, env, input=input, timeout=timeout)
    if not completed.ok:
        return Err(completed.to_error())
    return Ok(completed.stdout)
