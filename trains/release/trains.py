from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from trains.release.semver import Version

__all__ = ["ActiveReleaseTrains", "Phase", "ReleaseTrain", "ReleaseTrainError"]


class ReleaseTrainError(Exception):
    """The repository branches do not describe a valid set of release trains."""


class Phase(Enum):
    """Phase of a version branch, derived from its prerelease tag."""

    NONE = "none"
    FEATURE_FREEZE = "next"
    RELEASE_CANDIDATE = "rc"

    @classmethod
    def of(cls, version: Version) -> Phase:
        tag = version.prerelease[0] if version.prerelease else None
        match tag:
            case "next":
                return cls.FEATURE_FREEZE
            case "rc":
                return cls.RELEASE_CANDIDATE
            case _:
                return cls.NONE

    def __str__(self) -> str:
        match self:
            case Phase.FEATURE_FREEZE:
                return "feature-freeze"
            case Phase.RELEASE_CANDIDATE:
                return "release-candidate"
            case _:
                return "none"


@dataclass(frozen=True, slots=True)
class ReleaseTrain:
    """A version lineage tracked by a single branch."""

    branch_name: str
    version: Version

    @property
    def is_major(self) -> bool:
        """Whether the train will ship a new major version."""
        return self.version.minor == 0 and self.version.patch == 0

    @property
    def phase(self) -> Phase:
        return Phase.of(self.version)


@dataclass(frozen=True, slots=True)
class ActiveReleaseTrains:
    next: ReleaseTrain
    release_candidate: ReleaseTrain | None
    latest: ReleaseTrain

    @property
    def release_candidate_phase(self) -> Phase:
        if self.release_candidate is None:
            return Phase.NONE
        return self.release_candidate.phase
