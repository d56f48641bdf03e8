"""
Storage operations for the runner cache.

Provides an async-friendly S3 store and the fail-open cache inspector.
"""

from runner_binaries_syncer.storage.inspector import VERSION_TAG_KEY, get_cached_version
from runner_binaries_syncer.storage.s3_store import S3CacheStore, build_tagging

__all__ = [
    "S3CacheStore",
    "VERSION_TAG_KEY",
    "build_tagging",
    "get_cached_version",
]
