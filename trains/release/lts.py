"""Long-term support branches.

A major version is in LTS when the representative NPM package carries a
`v{major}-lts` dist tag. Each major is actively supported for 6 months after
its first release, followed by 12 months of long-term support.
"""

from __future__ import annotations

import calendar
import re
from dataclasses import dataclass
from datetime import UTC, date, datetime

from trains.core.result import Err, Ok, Result
from trains.output.console import ConsoleProtocol
from trains.release.npm import NpmPackageInfo, NpmRegistry
from trains.release.semver import Version, parse_version
from trains.release.version_branches import VersionBranchSource

__all__ = [
    "LtsBranch",
    "LtsBranches",
    "MAJOR_ACTIVE_TERM_MONTHS",
    "MAJOR_LTS_TERM_MONTHS",
    "assert_active_lts_branch",
    "compute_lts_end_date_of_major",
    "fetch_lts_branches",
    "lts_dist_tag_of_major",
]

MAJOR_ACTIVE_TERM_MONTHS = 6
MAJOR_LTS_TERM_MONTHS = 12

_LTS_DIST_TAG_RE = re.compile(r"^v(\d+)-lts$")


@dataclass(frozen=True, slots=True)
class LtsBranch:
    name: str
    version: Version
    npm_dist_tag: str


@dataclass(frozen=True, slots=True)
class LtsBranches:
    active: tuple[LtsBranch, ...]
    inactive: tuple[LtsBranch, ...]


def lts_dist_tag_of_major(major: int) -> str:
    return f"v{major}-lts"


def _add_months(d: date, months: int) -> date:
    index = d.month - 1 + months
    year = d.year + index // 12
    month = index % 12 + 1
    day = min(d.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def compute_lts_end_date_of_major(major_release_date: date) -> date:
    return _add_months(major_release_date, MAJOR_ACTIVE_TERM_MONTHS + MAJOR_LTS_TERM_MONTHS)


def _major_release_date(info: NpmPackageInfo, major: int) -> date | None:
    raw = info.time.get(f"{major}.0.0")
    if raw is None:
        return None
    try:
        return datetime.fromisoformat(raw).date()
    except ValueError:
        return None


def _today() -> date:
    return datetime.now(UTC).date()


def fetch_lts_branches(registry: NpmRegistry, *, today: date | None = None) -> LtsBranches:
    """LTS branches known to NPM, split by whether support has ended. Most recent first."""
    info = registry.package_info()
    today = today or _today()
    active: list[LtsBranch] = []
    inactive: list[LtsBranch] = []

    for tag, raw_version in info.dist_tags.items():
        if _LTS_DIST_TAG_RE.match(tag) is None:
            continue
        version = parse_version(raw_version)
        if version is None:
            continue
        branch = LtsBranch(
            name=f"{version.major}.{version.minor}.x", version=version, npm_dist_tag=tag
        )
        released = _major_release_date(info, version.major)
        if released is not None and today <= compute_lts_end_date_of_major(released):
            active.append(branch)
        else:
            inactive.append(branch)

    active.sort(key=lambda b: b.version, reverse=True)
    inactive.sort(key=lambda b: b.version, reverse=True)
    return LtsBranches(active=tuple(active), inactive=tuple(inactive))


def assert_active_lts_branch(
    source: VersionBranchSource,
    registry: NpmRegistry,
    branch_name: str,
    console: ConsoleProtocol,
    *,
    today: date | None = None,
) -> Result[None, str]:
    """Check that `branch_name` is the active LTS branch of its major.

    When the LTS window has ended the operator may still choose to proceed.
    Returns Err with the reason the branch cannot be targeted.
    """
    version = source.get_version_of_branch(branch_name)
    info = registry.package_info()
    lts_tag = lts_dist_tag_of_major(version.major)
    raw_lts_version = info.dist_tags.get(lts_tag)
    lts_version = parse_version(raw_lts_version) if raw_lts_version is not None else None

    if lts_version is None:
        return Err(f"No LTS version tagged for v{version.major} in NPM.")

    expected_branch = f"{lts_version.major}.{lts_version.minor}.x"
    if branch_name != expected_branch:
        return Err(
            f"Not using last-minor branch for v{version.major} LTS version. PR should "
            f"be updated to target: {expected_branch}"
        )

    released = _major_release_date(info, version.major)
    if released is None:
        return Err(f"No release date found in NPM for v{version.major}.0.0.")

    end_date = compute_lts_end_date_of_major(released)
    if (today or _today()) > end_date:
        end_text = end_date.strftime("%m/%d/%Y")
        console.warning(f"Long-term support ended for v{version.major} on {end_text}.")
        if console.confirm("Do you want to override this and merge the PR into the LTS branch?"):
            return Ok(None)
        return Err(
            f"Long-term supported ended for v{version.major} on {end_text}. "
            f"Pull request cannot be merged into the {branch_name} branch."
        )

    return Ok(None)
