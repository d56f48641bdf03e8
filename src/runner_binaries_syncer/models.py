"""
Data models for release resolution and the cache slot.

GitHub responses are parsed with Pydantic; only the fields the syncer
needs are declared and everything else in the payload is ignored.
"""

from dataclasses import dataclass
from typing import List

from pydantic import BaseModel, ConfigDict, Field, field_validator


class GitHubReleaseAsset(BaseModel):
    """One downloadable file attached to a GitHub release."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    name: str = Field(..., description="Asset file name")
    browser_download_url: str = Field(..., description="Public download URL")


class GitHubRelease(BaseModel):
    """A release entry from the GitHub "list releases" endpoint.

    Attributes:
        tag_name: Release tag, usually v-prefixed (e.g. v2.300.2)
        prerelease: Whether the release is flagged as pre-release
        assets: Downloadable files of the release
    """

    model_config = ConfigDict(extra="ignore", frozen=True)

    tag_name: str
    prerelease: bool = False
    assets: List[GitHubReleaseAsset] = Field(default_factory=list)

    @field_validator("assets", mode="before")
    @classmethod
    def validate_assets(cls, v):
        """Treat a null asset list as empty."""
        return v or []

    @property
    def version(self) -> str:
        """Tag with one leading 'v' removed."""
        if self.tag_name.startswith("v"):
            return self.tag_name[1:]
        return self.tag_name


class ReleaseAsset(BaseModel):
    """The asset selected for the configured OS/architecture.

    The name is unique per OS, architecture and release, so it doubles as
    the version tag stored on the cached object.
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1)
    download_url: str = Field(..., min_length=1)


@dataclass(frozen=True)
class CacheObject:
    """A single slot in the object store."""

    bucket: str
    key: str

    @property
    def uri(self) -> str:
        return f"s3://{self.bucket}/{self.key}"
