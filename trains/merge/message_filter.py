"""Commit message filter run by `git filter-branch --msg-filter`.

Reads a commit message from stdin and writes it back annotated the way
GitHub annotates squash merges: the subject gets a ` (#<n>)` suffix, and a
`PR Close #<n>` line is appended so the pull request is closed by the push:

    python -m trains.merge.message_filter 1234
"""

from __future__ import annotations

import sys


def rewrite_commit_message(message: str, pr_number: int) -> str:
    subject, newline, body = message.rstrip().partition("\n")
    return f"{subject} (#{pr_number}){newline}{body}\n\nPR Close #{pr_number}"


def main(argv: list[str] | None = None) -> int:
    args = sys.argv[1:] if argv is None else argv
    if len(args) != 1 or not args[0].isdigit():
        print("usage: python -m trains.merge.message_filter <pr-number>", file=sys.stderr)
        return 1
    sys.stdout.write(rewrite_commit_message(sys.stdin.read(), int(args[0])))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
