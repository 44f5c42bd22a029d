from __future__ import annotations

import pytest

from trains.core.config import CustomLabelConfig, MergeConfig
from trains.core.result import Err, Ok, Result
from trains.merge.target_label import (
    InvalidTargetBranch,
    InvalidTargetLabel,
    TargetLabel,
    TargetLabelKind,
    configured_target_labels,
    get_branches_for_target_label,
    get_target_label_from_pull_request,
)
from trains.release.semver import Version
from trains.release.trains import ActiveReleaseTrains, ReleaseTrain


def _trains(next_v: str, rc: tuple[str, str] | None = None) -> ActiveReleaseTrains:
    return ActiveReleaseTrains(
        next=ReleaseTrain("main", Version.parse(next_v)),
        release_candidate=ReleaseTrain(rc[0], Version.parse(rc[1])) if rc else None,
        latest=ReleaseTrain("10.2.x", Version.parse("10.2.4")),
    )


NO_RC = _trains("10.3.0-next.1")
WITH_RC = _trains("10.4.0-next.0", ("10.3.x", "10.3.0-rc.0"))
MAJOR_NEXT = _trains("11.0.0-next.0")


def _label(kind: TargetLabelKind) -> TargetLabel:
    return TargetLabel(kind, f"target: {kind.name.lower()}")


def _active_lts(branch: str) -> Result[None, str]:
    return Ok(None)


def _branches(
    kind: TargetLabelKind, trains: ActiveReleaseTrains, target: str = "main"
) -> Result[list[str], InvalidTargetLabel | InvalidTargetBranch]:
    return get_branches_for_target_label(_label(kind), trains, target, lts_check=_active_lts)


def test_label_selection_requires_exactly_one_target_label() -> None:
    assert get_target_label_from_pull_request(["area: core", "target: patch"]) == Ok(
        _label(TargetLabelKind.PATCH)
    )

    none = get_target_label_from_pull_request(["area: core"])
    assert isinstance(none, Err)
    assert "no target label" in none.error.failure_message

    multiple = get_target_label_from_pull_request(["target: patch", "target: minor"])
    assert isinstance(multiple, Err)
    assert "multiple target labels" in multiple.error.failure_message


def test_custom_labels_are_appended() -> None:
    config = MergeConfig(
        merge_ready_label="merge",
        cla_signed_label="cla",
        custom_labels=(CustomLabelConfig("target: docs*", ("docs", "main")),),
    )
    labels = configured_target_labels(config)

    picked = get_target_label_from_pull_request(["target: docs-only"], labels)

    assert isinstance(picked, Ok)
    assert picked.value.kind is TargetLabelKind.CUSTOM
    assert _branches_for(picked.value) == Ok(["docs", "main"])


def _branches_for(
    label: TargetLabel,
) -> Result[list[str], InvalidTargetLabel | InvalidTargetBranch]:
    return get_branches_for_target_label(label, NO_RC, "main", lts_check=_active_lts)


def test_major_requires_major_next() -> None:
    assert _branches(TargetLabelKind.MAJOR, MAJOR_NEXT) == Ok(["main"])

    result = _branches(TargetLabelKind.MAJOR, NO_RC)
    assert isinstance(result, Err)
    assert isinstance(result.error, InvalidTargetLabel)
    assert "released as a minor version" in result.error.failure_message


def test_minor_goes_to_next() -> None:
    assert _branches(TargetLabelKind.MINOR, WITH_RC) == Ok(["main"])


@pytest.mark.parametrize(
    ("trains", "target", "expected"),
    [
        (NO_RC, "main", ["main", "10.2.x"]),
        (WITH_RC, "main", ["main", "10.2.x", "10.3.x"]),
        (WITH_RC, "10.2.x", ["10.2.x"]),
    ],
)
def test_patch_branches(trains: ActiveReleaseTrains, target: str, expected: list[str]) -> None:
    assert _branches(TargetLabelKind.PATCH, trains, target) == Ok(expected)


def test_rc_branches() -> None:
    assert _branches(TargetLabelKind.RC, WITH_RC) == Ok(["main", "10.3.x"])
    assert _branches(TargetLabelKind.RC, WITH_RC, "10.3.x") == Ok(["10.3.x"])

    result = _branches(TargetLabelKind.RC, NO_RC)
    assert isinstance(result, Err)
    assert "No active feature-freeze/release-candidate branch" in result.error.failure_message


@pytest.mark.parametrize(
    ("target", "message"),
    [
        ("main", "does not target a long-term support branch"),
        ("10.2.x", "into patch branch"),
        ("10.3.x", "into feature-freeze/release-candidate branch"),
    ],
)
def test_lts_rejects_non_lts_targets(target: str, message: str) -> None:
    result = _branches(TargetLabelKind.LTS, WITH_RC, target)

    assert isinstance(result, Err)
    assert isinstance(result.error, InvalidTargetBranch)
    assert message in result.error.failure_message


def test_lts_uses_active_lts_check() -> None:
    checked: list[str] = []

    def inactive(branch: str) -> Result[None, str]:
        checked.append(branch)
        return Err(f"Long-term support phase for {branch} has ended.")

    label = _label(TargetLabelKind.LTS)
    assert get_branches_for_target_label(label, NO_RC, "9.4.x", lts_check=_active_lts) == Ok(
        ["9.4.x"]
    )
    result = get_branches_for_target_label(label, NO_RC, "8.2.x", lts_check=inactive)

    assert result == Err(InvalidTargetBranch("Long-term support phase for 8.2.x has ended."))
    assert checked == ["8.2.x"]
