"""
GitHub release listing and runner asset resolution.
"""

from runner_binaries_syncer.github.client import GitHubReleasesClient
from runner_binaries_syncer.github.resolver import (
    find_runner_asset,
    resolve_release_asset,
    select_release,
)

__all__ = [
    "GitHubReleasesClient",
    "find_runner_asset",
    "resolve_release_asset",
    "select_release",
]
