from __future__ import annotations

import json
from pathlib import Path

import pytest

from trains.core.config import Config, GithubConfig, MergeConfig, ReleaseConfig
from trains.github.client import CreatedPullRequest, IssueEvent
from trains.output.console import MockConsole
from trains.platform.http import MockHttpClient
from trains.platform.process import CompletedCommand
from trains.release import actions as actions_mod
from trains.release.actions import (
    ACTIONS,
    CutNewPatchAction,
    CutNextPrereleaseAction,
    CutReleaseCandidateForFeatureFreezeAction,
    CutStableAction,
    MoveNextIntoFeatureFreezeAction,
    ReleaseAction,
)
from trains.release.npm import NpmRegistry
from trains.release.semver import Version
from trains.release.staging import ReleaseActionError, UserAbortedReleaseActionError
from trains.release.trains import ActiveReleaseTrains, ReleaseTrain

CONFIG = Config(
    github=GithubConfig(owner="acme", name="widgets"),
    merge=MergeConfig(merge_ready_label="action: merge", cla_signed_label="cla: yes"),
    release=ReleaseConfig(npm_packages=("@acme/core",), release_pr_labels=("release",)),
)
URL = "https://registry.npmjs.org/@acme%2Fcore"


class FakeGit:
    repo_git_url = "https://github.com/acme/widgets.git"

    def __init__(self) -> None:
        self.calls: list[list[str]] = []

    def run(self, args: list[str], **kwargs: object) -> CompletedCommand:
        self.calls.append(args)
        return CompletedCommand(tuple(args), 0, "", "")


class FakeGithub:
    remote = CONFIG.github

    def __init__(self, head_message: str = "") -> None:
        self.head_message = head_message
        self.created: list[dict[str, str]] = []
        self.labels: list[tuple[int, list[str]]] = []
        self.releases: list[tuple[str, str, bool]] = []

    def create_pull_request(
        self, *, base: str, head: str, title: str, body: str
    ) -> CreatedPullRequest:
        self.created.append({"base": base, "head": head, "title": title})
        return CreatedPullRequest(number=100 + len(self.created), url="https://example.com/pr")

    def add_labels(self, issue_number: int, labels: list[str]) -> None:
        self.labels.append((issue_number, labels))

    def get_pull(self, number: int) -> dict[str, object]:
        return {"merged": False, "closed_at": "2021-01-01"}

    def list_issue_events(self, number: int) -> list[IssueEvent]:
        return [IssueEvent("closed", "f00d")]

    def get_branch_head_sha(self, branch: str) -> str:
        return "f00dcafe" * 5

    def get_commit_message(self, sha: str) -> str:
        return self.head_message

    def create_release(self, *, tag: str, target: str, prerelease: bool) -> None:
        self.releases.append((tag, target, prerelease))


def _trains(
    next_v: str, latest: tuple[str, str], rc: tuple[str, str] | None = None
) -> ActiveReleaseTrains:
    return ActiveReleaseTrains(
        next=ReleaseTrain("main", Version.parse(next_v)),
        release_candidate=ReleaseTrain(rc[0], Version.parse(rc[1])) if rc else None,
        latest=ReleaseTrain(latest[0], Version.parse(latest[1])),
    )


def _registry(published: list[str]) -> NpmRegistry:
    http = MockHttpClient()
    http.set_json(URL, {"dist-tags": {}, "time": {}, "versions": {v: {} for v in published}})
    return NpmRegistry(http, CONFIG.release)


def _action(
    action_type: type[ReleaseAction],
    active: ActiveReleaseTrains,
    *,
    published: list[str] | None = None,
    git: FakeGit | None = None,
    github: FakeGithub | None = None,
    project_dir: Path = Path("."),
    console: MockConsole | None = None,
) -> ReleaseAction:
    return action_type(
        active,
        git=git or FakeGit(),  # type: ignore[arg-type]
        github=github or FakeGithub(),  # type: ignore[arg-type]
        config=CONFIG,
        registry=_registry(published or []),
        console=console or MockConsole(),
        project_dir=project_dir,
    )


NO_RC = _trains("11.1.0-next.3", ("11.0.x", "11.0.4"))
FEATURE_FREEZE = _trains("11.2.0-next.0", ("11.0.x", "11.0.4"), ("11.1.x", "11.1.0-next.4"))
RELEASE_CANDIDATE = _trains("11.2.0-next.0", ("11.0.x", "11.0.4"), ("11.1.x", "11.1.0-rc.1"))


@pytest.mark.parametrize(
    ("active", "expected"),
    [
        (NO_RC, {CutNewPatchAction, CutNextPrereleaseAction, MoveNextIntoFeatureFreezeAction}),
        (
            FEATURE_FREEZE,
            {CutNewPatchAction, CutNextPrereleaseAction, CutReleaseCandidateForFeatureFreezeAction},
        ),
        (RELEASE_CANDIDATE, {CutNewPatchAction, CutNextPrereleaseAction, CutStableAction}),
    ],
)
def test_active_actions_depend_on_phase(
    active: ActiveReleaseTrains, expected: set[type[ReleaseAction]]
) -> None:
    assert {a for a in ACTIONS if a.is_active(active)} == expected


def test_next_prerelease_for_published_next() -> None:
    action = _action(CutNextPrereleaseAction, NO_RC, published=["11.1.0-next.3"])
    assert str(action.new_version) == "11.1.0-next.4"


def test_next_prerelease_for_unpublished_next() -> None:
    action = _action(CutNextPrereleaseAction, NO_RC)
    assert str(action.new_version) == "11.1.0-next.3"


def test_next_prerelease_targets_release_candidate_train() -> None:
    action = _action(CutNextPrereleaseAction, FEATURE_FREEZE)
    assert str(action.new_version) == "11.1.0-next.5"
    assert '"11.1.x" branch' in action.description


def test_release_candidate_for_feature_freeze() -> None:
    action = _action(CutReleaseCandidateForFeatureFreezeAction, FEATURE_FREEZE)
    assert str(action.new_version) == "11.1.0-rc.0"


def test_cut_stable() -> None:
    assert str(_action(CutStableAction, RELEASE_CANDIDATE).new_version) == "11.1.0"


def test_new_patch() -> None:
    assert str(_action(CutNewPatchAction, NO_RC).new_version) == "11.0.5"


def _package_json(tmp_path: Path, version: str) -> Path:
    path = tmp_path / "package.json"
    path.write_text(json.dumps({"name": "widgets", "version": version}), encoding="utf-8")
    return path


def test_new_patch_perform_stages_and_tags(tmp_path: Path) -> None:
    package_json = _package_json(tmp_path, "11.0.4")
    git = FakeGit()
    github = FakeGithub(head_message="release: cut the v11.0.5 release\n\nPR Close #101")
    action = _action(CutNewPatchAction, NO_RC, git=git, github=github, project_dir=tmp_path)

    action.perform()

    assert json.loads(package_json.read_text(encoding="utf-8"))["version"] == "11.0.5"
    assert ["checkout", "-q", "FETCH_HEAD", "--detach"] in git.calls
    assert [
        "commit",
        "-q",
        "--no-verify",
        "-m",
        "release: cut the v11.0.5 release",
        "package.json",
    ] in git.calls
    assert github.created == [
        {
            "base": "11.0.x",
            "head": "release-stage-11.0.5",
            "title": 'Bump version to "v11.0.5" with changelog.',
        }
    ]
    assert github.labels == [(101, ["release"])]
    assert github.releases == [("11.0.5", "f00dcafe" * 5, False)]


def test_declined_staging_aborts_before_commit(tmp_path: Path) -> None:
    package_json = _package_json(tmp_path, "11.0.4")
    git = FakeGit()
    github = FakeGithub()
    console = MockConsole(answers=[False])
    action = _action(
        CutNewPatchAction, NO_RC, git=git, github=github, project_dir=tmp_path, console=console
    )

    with pytest.raises(UserAbortedReleaseActionError):
        action.perform()

    assert console.questions == [
        'Do you want to proceed and stage the v11.0.5 release for "11.0.x"?'
    ]
    assert json.loads(package_json.read_text(encoding="utf-8"))["version"] == "11.0.5"
    assert not any(c[0] == "commit" for c in git.calls)
    assert github.created == []
    assert github.releases == []


def test_tag_release_requires_release_commit(tmp_path: Path) -> None:
    _package_json(tmp_path, "11.0.4")
    github = FakeGithub(head_message="fix: unrelated change")
    action = _action(CutNewPatchAction, NO_RC, github=github, project_dir=tmp_path)

    with pytest.raises(ReleaseActionError):
        action.perform()

    assert github.releases == []


def test_move_next_into_feature_freeze(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    package_json = _package_json(tmp_path, "11.1.0-next.3")
    git = FakeGit()
    github = FakeGithub(head_message="release: cut the v11.1.0-next.4 release")
    action = _action(
        MoveNextIntoFeatureFreezeAction,
        NO_RC,
        published=["11.1.0-next.3"],
        git=git,
        github=github,
        project_dir=tmp_path,
    )
    waited: list[int] = []
    monkeypatch.setattr(
        actions_mod,
        "wait_for_pull_request_to_be_merged",
        lambda _github, number, _console: waited.append(number),
    )

    action.perform()

    assert ["checkout", "-q", "-B", "11.1.x"] in git.calls
    assert [c["base"] for c in github.created] == ["11.1.x", "main"]
    assert github.created[1]["head"] == "next-release-train-11.2.0-next.0"
    assert waited == [101]
    assert github.releases == [("11.1.0-next.4", "f00dcafe" * 5, True)]
    assert json.loads(package_json.read_text(encoding="utf-8"))["version"] == "11.2.0-next.0"


def test_release_action_is_abstract() -> None:
    assert ReleaseAction.__abstractmethods__ == {
        "is_active",
        "new_version",
        "description",
        "perform",
    }
    assert not CutNewPatchAction.__abstractmethods__
