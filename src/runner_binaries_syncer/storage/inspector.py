"""
Cache inspection: read the version tag of the cached distribution.

Fail-open: any failure to read the tag is reported as "no cached version",
which makes the syncer copy the distribution again instead of stopping.
"""

import logging
from typing import Any, Dict, List, Optional, Protocol

from core.logging.utilities import get_logger, log_with_context
from runner_binaries_syncer.models import CacheObject

logger = get_logger(__name__)

VERSION_TAG_KEY = "name"


class TagReader(Protocol):
    """Anything that can return an object's tag set."""

    async def get_object_tags(self, cache_object: CacheObject) -> List[Dict[str, Any]]:
        ...


async def get_cached_version(store: TagReader, cache_object: CacheObject) -> Optional[str]:
    """
    Return the version tag of the cached object, or None if unknown.

    None covers a missing object, any error while reading tags, a missing
    version tag and a version tag present more than once.

    Args:
        store: Object store capability
        cache_object: Cache slot to inspect

    Returns:
        The tagged asset name, or None
    """
    try:
        tags = await store.get_object_tags(cache_object)
    except Exception as e:
        log_with_context(
            logger,
            logging.DEBUG,
            "No tags found",
            bucket=cache_object.bucket,
            key=cache_object.key,
            error_message=str(e)[:500],
        )
        return None

    versions = [tag.get("Value") for tag in tags if tag.get("Key") == VERSION_TAG_KEY]
    if len(versions) != 1:
        log_with_context(
            logger,
            logging.DEBUG,
            f"Expected one '{VERSION_TAG_KEY}' tag, found {len(versions)}",
            bucket=cache_object.bucket,
            key=cache_object.key,
        )
        return None
    return versions[0]
