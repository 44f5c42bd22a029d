"""Determine the active release trains of the repository.

Three trains can be active at a time:

- `next`: the main branch, declaring the version currently in development.
- `release_candidate`: a version branch in feature-freeze (`-next.N`) or
  release-candidate (`-rc.N`) phase. Optional.
- `latest`: the most recent version branch that ships stable patch releases.

Which majors are examined depends on the minor of the `next` version:

    next 11.0.0-next.0 -> patch and FF/RC can only be the most recent `10.N.x`.
    next 11.1.0-next.0 -> patch is `11.0.x` or the last v10 minor, depending on
                          whether `11.0.x` is in FF/RC phase.
    next 10.6.0-next.0 -> patch is `10.5.x` or `10.4.x`, same reasoning.
"""

from __future__ import annotations

from dataclasses import dataclass

from trains.release.semver import Version
from trains.release.trains import ActiveReleaseTrains, ReleaseTrain, ReleaseTrainError
from trains.release.version_branches import (
    VersionBranch,
    VersionBranchSource,
    get_branches_for_major_versions,
)

__all__ = [
    "FoundReleaseTrains",
    "fetch_active_release_trains",
    "find_active_release_trains_from_version_branches",
]


@dataclass(frozen=True, slots=True)
class FoundReleaseTrains:
    latest: ReleaseTrain | None
    release_candidate: ReleaseTrain | None


def fetch_active_release_trains(
    source: VersionBranchSource, next_branch_name: str
) -> ActiveReleaseTrains:
    """Compute the active release trains from the branches of `source`.

    Raises:
        ReleaseTrainError: the branches do not describe a valid train state.
    """
    next_version = source.get_version_of_branch(next_branch_name)
    next_train = ReleaseTrain(next_branch_name, next_version)

    if next_version.minor == 0:
        expected_rc_major = next_version.major - 1
        majors = [next_version.major - 1]
    elif next_version.minor == 1:
        expected_rc_major = next_version.major
        majors = [next_version.major, next_version.major - 1]
    else:
        expected_rc_major = next_version.major
        majors = [next_version.major]

    branches = get_branches_for_major_versions(source, majors)
    found = find_active_release_trains_from_version_branches(
        source, next_branch_name, next_version, branches, expected_rc_major
    )

    if found.latest is None:
        considered = ", ".join(b.name for b in branches)
        raise ReleaseTrainError(
            "Unable to determine the latest release-train. The following branches "
            f"have been considered: [{considered}]"
        )

    return ActiveReleaseTrains(
        next=next_train, release_candidate=found.release_candidate, latest=found.latest
    )


def find_active_release_trains_from_version_branches(
    source: VersionBranchSource,
    next_branch_name: str,
    next_version: Version,
    branches: list[VersionBranch],
    expected_rc_major: int,
) -> FoundReleaseTrains:
    """Walk version branches (most recent first) to find the latest and FF/RC trains.

    The walk stops at the first stable branch: a FF/RC branch cannot be older
    than the latest stable one.
    """
    # Patch and prerelease of `next` are ignored so that it compares to `N.N.x` branches.
    next_train_version = Version(next_version.major, next_version.minor, 0)

    latest: ReleaseTrain | None = None
    release_candidate: ReleaseTrain | None = None

    for branch in branches:
        if branch.parsed > next_train_version:
            raise ReleaseTrainError(
                f'Discovered unexpected version-branch "{branch.name}" for a release-train that is '
                f'more recent than the release-train currently in the "{next_branch_name}" branch. '
                "Please either delete the branch if created by accident, or update the outdated "
                f"version in the next branch ({next_branch_name})."
            )
        if branch.parsed == next_train_version:
            raise ReleaseTrainError(
                f'Discovered unexpected version-branch "{branch.name}" for a release-train that is '
                f'already active in the "{next_branch_name}" branch. Please either delete the '
                "branch if created by accident, or update the version in the next branch "
                f"({next_branch_name})."
            )

        version = source.get_version_of_branch(branch.name)
        train = ReleaseTrain(branch.name, version)
        is_prerelease = bool(version.prerelease) and version.prerelease[0] in ("rc", "next")

        if not is_prerelease:
            latest = train
            break

        if release_candidate is not None:
            raise ReleaseTrainError(
                "Unable to determine latest release-train. Found two consecutive "
                "branches in feature-freeze/release-candidate phase. Did not expect both "
                f'"{branch.name}" and "{release_candidate.branch_name}" to be in '
                "feature-freeze/release-candidate mode."
            )
        if version.major != expected_rc_major:
            raise ReleaseTrainError(
                "Discovered unexpected old feature-freeze/release-candidate branch. Expected no "
                f"version-branch in feature-freeze/release-candidate mode for v{version.major}."
            )
        release_candidate = train

    return FoundReleaseTrains(latest=latest, release_candidate=release_candidate)
