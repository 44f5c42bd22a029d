"""Result type for expected, recoverable outcomes.

Label resolution, process execution and config loading report their
failure paths as values so callers have to look at them:

    match get_branches_for_target_label(label, trains, "main", lts_check=check):
        case Ok(branches):
            console.print(", ".join(branches))
        case Err(error):
            console.error(error.failure_message)

Fatal conditions (broken branching state, failed git commands) are
raised as exceptions instead.
"""

from __future__ import annotations

from dataclasses import dataclass

__all__ = ["Err", "Ok", "Result"]


@dataclass(frozen=True, slots=True)
class Ok[T]:
    value: T

    def __repr__(self) -> str:
        return f"Ok({self.value!r})"


@dataclass(frozen=True, slots=True)
class Err[E]:
    error: E

    def __repr__(self) -> str:
        return f"Err({self.error!r})"


type Result[T, E] = Ok[T] | Err[E]
