"""Minimal conventional-commit parsing.

Only what merge validation needs is extracted: the type and scope from the
header and the breaking-change notes from the body. Lint rules for commit
messages are not applied here.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

__all__ = ["Commit", "parse_commit_message"]

_HEADER_RE = re.compile(r"^(\w+)(?:\(([^)]+)\))?: (.*)$")
_FIXUP_PREFIX_RE = re.compile(r"^(?:(?:fixup|squash)! )+")
_BREAKING_CHANGE_RE = re.compile(r"^BREAKING[ -]CHANGES?:[ \t]*", re.MULTILINE)


@dataclass(frozen=True, slots=True)
class Commit:
    header: str
    type: str
    scope: str
    subject: str
    body: str
    breaking_changes: tuple[str, ...] = ()

    @property
    def is_breaking(self) -> bool:
        return bool(self.breaking_changes)


def parse_commit_message(message: str) -> Commit:
    lines = message.replace("\r\n", "\n").split("\n")
    header = _FIXUP_PREFIX_RE.sub("", lines[0].strip())
    body = "\n".join(lines[1:]).strip()

    m = _HEADER_RE.match(header)
    if m is None:
        commit_type, scope, subject = "", "", header
    else:
        commit_type, scope, subject = m.group(1), m.group(2) or "", m.group(3)

    notes: list[str] = []
    matches = list(_BREAKING_CHANGE_RE.finditer(body))
    for i, match in enumerate(matches):
        end = matches[i + 1].start() if i + 1 < len(matches) else len(body)
        note = body[match.end() : end].strip()
        notes.append(note)

    return Commit(
        header=header,
        type=commit_type,
        scope=scope,
        subject=subject,
        body=body,
        breaking_changes=tuple(notes),
    )
