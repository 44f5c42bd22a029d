from __future__ import annotations

from trains.output.console import ConsoleProtocol, Style
from trains.release.lts import fetch_lts_branches
from trains.release.npm import NpmRegistry
from trains.release.trains import ActiveReleaseTrains

__all__ = ["print_active_release_trains"]


def print_active_release_trains(
    trains: ActiveReleaseTrains, registry: NpmRegistry, console: ConsoleProtocol
) -> None:
    """Print the active release trains and the active LTS branches."""
    next_train = trains.next
    latest = trains.latest
    rc = trains.release_candidate
    next_published = registry.is_version_published(next_train.version)
    next_train_type = "major" if next_train.is_major else "minor"
    lts = fetch_lts_branches(registry)

    console.newline()
    console.print("Current version branches in the project:", Style.HEADER)

    if rc is not None:
        rc_train_type = "major" if rc.is_major else "minor"
        console.print(
            f" • {rc.branch_name} contains changes for an upcoming {rc_train_type} "
            f"that is currently in {rc.phase} phase."
        )
        console.print(f'   Most recent pre-release for this branch is "v{rc.version}".')

    console.print(f" • {latest.branch_name} contains changes for the most recent patch.")
    console.print(f'   Most recent patch version for this branch is "v{latest.version}".')

    console.print(
        f" • {next_train.branch_name} contains changes for a {next_train_type} "
        "currently in active development."
    )
    # The next version is not published yet right after branching off into feature-freeze.
    if next_published:
        console.print(
            f'   Most recent pre-release version for this branch is "v{next_train.version}".'
        )
    else:
        console.print(
            f'   Version is currently set to "v{next_train.version}", '
            "but has not been published yet."
        )

    if rc is None:
        console.print("   • No release-candidate or feature-freeze branch currently active.")

    console.newline()
    console.print("Current active LTS version branches:", Style.HEADER)
    for branch in lts.active:
        console.print(f"   • {branch.name} is currently in active long-term support phase.")
        console.print(f'     Most recent patch version for this branch is "v{branch.version}".')
    console.newline()
