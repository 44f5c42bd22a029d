"""GitHub API access through the `gh` CLI.

Reads are retried on transient failures (timeouts, 5xx, rate limiting);
writes are attempted once. Any failed call raises `GithubApiRequestError`
carrying the HTTP status reported by `gh`, so that callers can single out
404 (pull request not found) and 401 (invalid token).
"""

from __future__ import annotations

import base64
import binascii
import json
import re
from dataclasses import dataclass
from pathlib import Path
from time import sleep

from trains.core.config import GithubConfig
from trains.core.result import Err, Ok, Result
from trains.core.structured import StrDict, as_obj_list, as_str_dict, get_str
from trains.platform.process import ProcessError
from trains.platform.process import run as run_process

__all__ = [
    "GITHUB_TOKEN_GENERATE_URL",
    "BranchInfo",
    "CreatedPullRequest",
    "GithubApiRequestError",
    "GithubClient",
    "IssueEvent",
    "run_gh_read",
]

GITHUB_TOKEN_GENERATE_URL = "https://github.com/settings/tokens/new"

GH_TIMEOUT_SECONDS = 60.0
GH_READ_RETRY_ATTEMPTS = 3
GH_READ_RETRY_DELAY_SECONDS = 1.0

_HTTP_STATUS_RE = re.compile(r"HTTP (\d{3})")

# Only the last 100 commits are fetched; larger pull requests are not expected.
PULL_REQUEST_QUERY = """
query($owner: String!, $name: String!, $number: Int!) {
  repository(owner: $owner, name: $name) {
    pullRequest(number: $number) {
      url
      number
      title
      baseRefName
      labels(first: 100) { nodes { name } }
      commits(last: 100) {
        totalCount
        nodes { commit { message status { state } } }
      }
    }
  }
}
"""


class GithubApiRequestError(Exception):
    """A GitHub API request failed."""

    def __init__(self, status: int, message: str) -> None:
        super().__init__(message)
        self.status = status
        self.message = message


@dataclass(frozen=True, slots=True)
class BranchInfo:
    name: str
    sha: str


@dataclass(frozen=True, slots=True)
class IssueEvent:
    event: str
    commit_id: str | None


@dataclass(frozen=True, slots=True)
class CreatedPullRequest:
    number: int
    url: str


def _is_transient_gh_error(error: ProcessError) -> bool:
    text = f"{error.stderr}\n{error.stdout}".lower()
    markers = (
        "timed out",
        "timeout",
        "connection reset",
        "connection refused",
        "temporarily unavailable",
        "service unavailable",
        "bad gateway",
        "gateway timeout",
        "network is unreachable",
        "http 429",
        "http 500",
        "http 502",
        "http 503",
        "http 504",
    )
    return any(marker in text for marker in markers)


def _status_of(error: ProcessError) -> int:
    text = f"{error.stderr}\n{error.stdout}"
    match = _HTTP_STATUS_RE.search(text)
    if match is not None:
        return int(match.group(1))
    # GraphQL lookups of missing objects do not report an HTTP status.
    if "Could not resolve to" in text or "NOT_FOUND" in text:
        return 404
    return 0


def run_gh_read(
    *,
    cwd: Path,
    cmd: list[str],
    timeout: float = GH_TIMEOUT_SECONDS,
    retry_attempts: int = GH_READ_RETRY_ATTEMPTS,
) -> Result[str, ProcessError]:
    """Run an idempotent `gh` command, retrying transient failures."""
    attempts = max(1, retry_attempts)
    result = run_process(cmd, cwd=cwd, timeout=timeout)
    for attempt in range(1, attempts):
        if isinstance(result, Ok) or not _is_transient_gh_error(result.error):
            break
        sleep(GH_READ_RETRY_DELAY_SECONDS * attempt)
        result = run_process(cmd, cwd=cwd, timeout=timeout)
    return result


class GithubClient:
    """Client for the configured GitHub repository.

    Attributes:
        remote: Repository coordinates (owner/name).
        cwd: Directory `gh` is run from.
    """

    def __init__(self, remote: GithubConfig, *, cwd: Path) -> None:
        self.remote = remote
        self.cwd = cwd

    # -- transport -----------------------------------------------------------

    def _read(self, args: list[str]) -> object:
        result = run_gh_read(cwd=self.cwd, cmd=["gh", "api", *args])
        return self._decode(result, args)

    def _write(self, args: list[str]) -> object:
        result = run_process(["gh", "api", *args], cwd=self.cwd, timeout=GH_TIMEOUT_SECONDS)
        return self._decode(result, args)

    def _decode(self, result: Result[str, ProcessError], args: list[str]) -> object:
        endpoint = args[0] if args else ""
        if isinstance(result, Err):
            error = result.error
            detail = error.stderr.strip() or error.stdout.strip() or str(error)
            raise GithubApiRequestError(_status_of(error), f"gh api {endpoint}: {detail}")

        if not result.value.strip():
            return None
        try:
            return json.loads(result.value)
        except json.JSONDecodeError as e:
            raise GithubApiRequestError(0, f"gh api {endpoint} returned invalid JSON: {e}")

    def _read_table(self, args: list[str]) -> StrDict:
        data = as_str_dict(self._read(args))
        if data is None:
            raise GithubApiRequestError(0, f"unexpected payload from gh api {args[0]}")
        return data

    def _read_paginated(self, endpoint: str) -> list[object]:
        pages = as_obj_list(self._read(["--paginate", "--slurp", endpoint])) or []
        items: list[object] = []
        for page in pages:
            items.extend(as_obj_list(page) or [])
        return items

    def _repo(self, path: str) -> str:
        return f"repos/{self.remote.slug}/{path}"

    # -- queries -------------------------------------------------------------

    def graphql(self, query: str, variables: dict[str, str | int]) -> StrDict:
        """Run a GraphQL query and return its `data` table."""
        args = ["graphql", "-f", f"query={query}"]
        for key, value in variables.items():
            flag = "-F" if isinstance(value, int) else "-f"
            args.extend([flag, f"{key}={value}"])
        payload = self._read_table(args)
        data = as_str_dict(payload.get("data"))
        if data is None:
            raise GithubApiRequestError(0, "GraphQL response has no data")
        return data

    def get_pull_request(self, number: int) -> StrDict:
        """Fetch the pull request fields used for merge validation.

        Raises:
            GithubApiRequestError: status 404 if the pull request does not exist.
        """
        data = self.graphql(
            PULL_REQUEST_QUERY,
            {"owner": self.remote.owner, "name": self.remote.name, "number": number},
        )
        repository = as_str_dict(data.get("repository")) or {}
        pr = as_str_dict(repository.get("pullRequest"))
        if pr is None:
            raise GithubApiRequestError(404, f"Pull request #{number} not found")
        return pr

    def get_pull(self, number: int) -> StrDict:
        return self._read_table([self._repo(f"pulls/{number}")])

    def list_issue_events(self, number: int) -> list[IssueEvent]:
        out: list[IssueEvent] = []
        for item in self._read_paginated(self._repo(f"issues/{number}/events")):
            d = as_str_dict(item)
            if d is None:
                continue
            event = get_str(d, "event")
            if event is None:
                continue
            out.append(IssueEvent(event=event, commit_id=get_str(d, "commit_id")))
        return out

    def get_commit_message(self, sha: str) -> str:
        data = self._read_table([self._repo(f"commits/{sha}")])
        commit = as_str_dict(data.get("commit")) or {}
        message = commit.get("message")
        return message if isinstance(message, str) else ""

    def list_protected_branches(self) -> list[BranchInfo]:
        out: list[BranchInfo] = []
        for item in self._read_paginated(self._repo("branches?protected=true&per_page=100")):
            d = as_str_dict(item)
            if d is None:
                continue
            name = get_str(d, "name")
            commit = as_str_dict(d.get("commit")) or {}
            sha = get_str(commit, "sha")
            if name is not None and sha is not None:
                out.append(BranchInfo(name=name, sha=sha))
        return out

    def get_branch_head_sha(self, branch: str) -> str:
        data = self._read_table([self._repo(f"branches/{branch}")])
        commit = as_str_dict(data.get("commit")) or {}
        sha = get_str(commit, "sha")
        if sha is None:
            raise GithubApiRequestError(0, f"missing head commit for branch {branch}")
        return sha

    def get_file_text(self, path: str, ref: str) -> str:
        """Read a file at the given ref through the contents API."""
        data = self._read_table([self._repo(f"contents/{path}?ref={ref}")])
        encoding = get_str(data, "encoding")
        content = get_str(data, "content")
        if encoding != "base64" or content is None:
            raise GithubApiRequestError(0, f"unexpected contents encoding for {path}@{ref}")
        try:
            return base64.b64decode(content, validate=False).decode("utf-8")
        except (binascii.Error, ValueError) as e:
            raise GithubApiRequestError(0, f"failed to decode {path}@{ref}: {e}")

    # -- mutations -----------------------------------------------------------

    def create_comment(self, issue_number: int, body: str) -> None:
        self._write([self._repo(f"issues/{issue_number}/comments"), "-f", f"body={body}"])

    def update_pull_request(self, number: int, *, state: str) -> None:
        self._write(["-X", "PATCH", self._repo(f"pulls/{number}"), "-f", f"state={state}"])

    def create_pull_request(
        self, *, base: str, head: str, title: str, body: str
    ) -> CreatedPullRequest:
        data = as_str_dict(
            self._write(
                [
                    self._repo("pulls"),
                    "-f",
                    f"base={base}",
                    "-f",
                    f"head={head}",
                    "-f",
                    f"title={title}",
                    "-f",
                    f"body={body}",
                ]
            )
        )
        number = data.get("number") if data is not None else None
        url = get_str(data, "html_url") if data is not None else None
        if not isinstance(number, int) or url is None:
            raise GithubApiRequestError(0, "unexpected payload when creating pull request")
        return CreatedPullRequest(number=number, url=url)

    def add_labels(self, issue_number: int, labels: list[str]) -> None:
        if not labels:
            return
        args = [self._repo(f"issues/{issue_number}/labels")]
        for label in labels:
            args.extend(["-f", f"labels[]={label}"])
        self._write(args)

    def create_release(self, *, tag: str, target: str, prerelease: bool) -> None:
        self._write(
            [
                self._repo("releases"),
                "-f",
                f"tag_name={tag}",
                "-f",
                f"target_commitish={target}",
                "-f",
                f"name={tag}",
                "-F",
                f"prerelease={'true' if prerelease else 'false'}",
            ]
        )
