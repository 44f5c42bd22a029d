"""Console output abstraction.

The merge task, the release tool and the CLI print and prompt through
`ConsoleProtocol`. `RichConsole` renders with Rich for the operator;
`MockConsole` records everything and replays scripted answers in tests.

Status lines carry a fixed prefix (`error:`, `warning:`, ...) so both
implementations produce the same text.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Protocol

__all__ = [
    "ConsoleProtocol",
    "MockConsole",
    "OutputRecord",
    "RichConsole",
    "Style",
]


class Style(Enum):
    DEFAULT = auto()
    SUCCESS = auto()
    ERROR = auto()
    WARNING = auto()
    INFO = auto()
    DIM = auto()  # executed git commands and their stderr
    HEADER = auto()

    def __str__(self) -> str:
        return self.name.lower()


# Prefix and Rich style of each status style.
_STATUS: dict[Style, tuple[str, str]] = {
    Style.SUCCESS: ("OK", "green"),
    Style.ERROR: ("error:", "red bold"),
    Style.WARNING: ("warning:", "yellow"),
    Style.INFO: ("info:", "cyan"),
}
_RICH_STYLES: dict[Style, str] = {
    Style.DIM: "dim",
    Style.HEADER: "blue bold",
    **{style: rich for style, (_, rich) in _STATUS.items()},
}


class ConsoleProtocol(Protocol):
    def print(self, message: str, style: Style = Style.DEFAULT) -> None: ...

    def success(self, message: str) -> None: ...

    def error(self, message: str) -> None: ...

    def warning(self, message: str) -> None: ...

    def info(self, message: str) -> None: ...

    def header(self, message: str) -> None: ...

    def newline(self) -> None: ...

    def confirm(self, question: str, default: bool = False) -> bool:
        """Ask the operator a yes/no question."""
        ...

    def choose(self, question: str, choices: list[str]) -> int | None:
        """Ask the operator to pick one of `choices`. Returns its index, or None."""
        ...


class RichConsole:
    """Rich-backed console. Messages are printed without markup interpretation."""

    def __init__(self, *, stderr: bool = False) -> None:
        from rich.console import Console

        self._console = Console(stderr=stderr, highlight=False)

    def print(self, message: str, style: Style = Style.DEFAULT) -> None:
        self._console.print(message, style=_RICH_STYLES.get(style), markup=False)

    def _status(self, style: Style, message: str) -> None:
        from rich.text import Text

        prefix, rich_style = _STATUS[style]
        self._console.print(Text.assemble((prefix, rich_style), " ", message))

    def success(self, message: str) -> None:
        self._status(Style.SUCCESS, message)

    def error(self, message: str) -> None:
        self._status(Style.ERROR, message)

    def warning(self, message: str) -> None:
        self._status(Style.WARNING, message)

    def info(self, message: str) -> None:
        self._status(Style.INFO, message)

    def header(self, message: str) -> None:
        self.newline()
        self.print(message, Style.HEADER)

    def newline(self) -> None:
        self._console.print()

    def confirm(self, question: str, default: bool = False) -> bool:
        from rich.prompt import Confirm

        return Confirm.ask(question, default=default, console=self._console)

    def choose(self, question: str, choices: list[str]) -> int | None:
        from rich.prompt import IntPrompt

        if not choices:
            return None
        for number, choice in enumerate(choices, start=1):
            self._console.print(f"{number:2}. {choice}", markup=False)
        while True:
            picked = IntPrompt.ask(question, default=1, console=self._console)
            if 1 <= picked <= len(choices):
                return picked - 1
            self.error(f"Please enter a number between 1 and {len(choices)}.")


@dataclass
class OutputRecord:
    message: str
    style: Style


@dataclass
class MockConsole:
    """Console that records output and replays scripted prompt answers.

    `answers` are consumed in order by `confirm` and `picks` by `choose`;
    once exhausted, the default answer (first choice) is returned.
    """

    outputs: list[OutputRecord] = field(default_factory=list[OutputRecord])
    answers: list[bool] = field(default_factory=list[bool])
    picks: list[int] = field(default_factory=list[int])
    questions: list[str] = field(default_factory=list[str])

    def print(self, message: str, style: Style = Style.DEFAULT) -> None:
        self.outputs.append(OutputRecord(message, style))

    def _status(self, style: Style, message: str) -> None:
        self.print(f"{_STATUS[style][0]} {message}", style)

    def success(self, message: str) -> None:
        self._status(Style.SUCCESS, message)

    def error(self, message: str) -> None:
        self._status(Style.ERROR, message)

    def warning(self, message: str) -> None:
        self._status(Style.WARNING, message)

    def info(self, message: str) -> None:
        self._status(Style.INFO, message)

    def header(self, message: str) -> None:
        self.print(message, Style.HEADER)

    def newline(self) -> None:
        self.print("")

    def confirm(self, question: str, default: bool = False) -> bool:
        self.questions.append(question)
        return self.answers.pop(0) if self.answers else default

    def choose(self, question: str, choices: list[str]) -> int | None:
        self.questions.append(question)
        if not choices:
            return None
        return self.picks.pop(0) if self.picks else 0

    @property
    def messages(self) -> list[str]:
        return [o.message for o in self.outputs]

    def has_error(self) -> bool:
        return any(o.style is Style.ERROR for o in self.outputs)

    def has_warning(self) -> bool:
        return any(o.style is Style.WARNING for o in self.outputs)

    def find(self, substring: str) -> list[OutputRecord]:
        return [o for o in self.outputs if substring in o.message]
