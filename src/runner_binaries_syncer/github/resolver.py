"""
Release resolution: pick the runner asset to cache.

Selection policy:
    - The first pre-release wins only when pre-releases are allowed and it
      is listed before (newer than) the first stable release.
    - Otherwise the first stable release is used.
    - The asset must be the single one whose name contains
      "actions-runner-{os}-{arch}-{version}.".
"""

import logging
from typing import List, Optional, Protocol, Sequence

from core.logging.utilities import get_logger, log_with_context
from runner_binaries_syncer.models import GitHubRelease, ReleaseAsset

logger = get_logger(__name__)


class ReleaseLister(Protocol):
    """Anything that can list runner releases (newest first)."""

    async def list_releases(self) -> List[GitHubRelease]:
        ...


def _first_index(releases: Sequence[GitHubRelease], prerelease: bool) -> int:
    for index, release in enumerate(releases):
        if release.prerelease is prerelease:
            return index
    return -1


def select_release(
    releases: Sequence[GitHubRelease],
    allow_prerelease: bool = False,
) -> Optional[GitHubRelease]:
    """
    Choose the release to sync from an API-ordered release list.

    Args:
        releases: Releases as returned by the API (newest first)
        allow_prerelease: Whether a newer pre-release may be chosen

    Returns:
        The selected release, or None if no release qualifies
    """
    if not releases:
        return None

    prerelease_index = _first_index(releases, prerelease=True)
    release_index = _first_index(releases, prerelease=False)

    # A pre-release only qualifies when it is newer than a stable release
    if allow_prerelease and prerelease_index != -1 and prerelease_index < release_index:
        return releases[prerelease_index]
    if release_index != -1:
        return releases[release_index]

    logger.warning("Cannot find either a release or pre-release.")
    return None


def asset_name_fragment(runner_os: str, runner_arch: str, version: str) -> str:
    """Substring every matching asset name must contain."""
    return f"actions-runner-{runner_os}-{runner_arch}-{version}."


def find_runner_asset(
    release: GitHubRelease,
    runner_os: str,
    runner_arch: str,
) -> Optional[ReleaseAsset]:
    """
    Find the single runner asset for an OS/architecture in a release.

    Returns:
        The asset, or None if there is no match or the match is ambiguous
    """
    fragment = asset_name_fragment(runner_os, runner_arch, release.version)
    matches = [asset for asset in release.assets if fragment in asset.name]

    if len(matches) != 1:
        log_with_context(
            logger,
            logging.DEBUG,
            f"Expected exactly one asset matching '{fragment}', found {len(matches)}",
            release_tag=release.tag_name,
        )
        return None

    return ReleaseAsset(
        name=matches[0].name,
        download_url=matches[0].browser_download_url,
    )


async def resolve_release_asset(
    releases_client: ReleaseLister,
    runner_os: str = "linux",
    runner_arch: str = "x64",
    allow_prerelease: bool = False,
) -> Optional[ReleaseAsset]:
    """
    Resolve the latest eligible runner asset for an OS/architecture.

    Args:
        releases_client: Source of the release listing
        runner_os: Target OS (linux, osx, win)
        runner_arch: Target architecture (x64, arm, arm64)
        allow_prerelease: Whether a newer pre-release may be chosen

    Returns:
        The selected ReleaseAsset, or None if nothing matches

    Raises:
        GitHubApiError: If listing the releases fails
    """
    releases = await releases_client.list_releases()

    release = select_release(releases, allow_prerelease=allow_prerelease)
    if release is None:
        return None

    asset = find_runner_asset(release, runner_os, runner_arch)
    if asset is not None:
        log_with_context(
            logger,
            logging.DEBUG,
            "Resolved release asset",
            release_tag=release.tag_name,
            asset_name=asset.name,
            runner_os=runner_os,
            runner_arch=runner_arch,
            allow_prerelease=allow_prerelease,
        )
    return asset
