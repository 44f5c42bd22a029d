"""Release trains: versions, version branches and release actions."""

from trains.release.active_trains import fetch_active_release_trains
from trains.release.semver import Version, parse_version
from trains.release.trains import ActiveReleaseTrains, Phase, ReleaseTrain, ReleaseTrainError

__all__ = [
    "ActiveReleaseTrains",
    "Phase",
    "ReleaseTrain",
    "ReleaseTrainError",
    "Version",
    "fetch_active_release_trains",
    "parse_version",
]
