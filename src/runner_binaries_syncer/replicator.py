"""
Stream replication: copy a release asset straight into the cache store.

The download and the upload run as two concurrent tasks connected by a
fresh PassThroughConduit. Neither side buffers the whole artifact and
nothing touches the local disk.

Completion rules:
    - Success requires both tasks to finish successfully.
    - The first failure cancels the other task, aborts the conduit so a
      blocked reader wakes up, and is raised as a ReplicationError.
    - Nothing is cleaned up in the store after a failure; S3 only exposes
      an object once the upload completes.
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any, BinaryIO, Dict, Optional, Protocol

import aiohttp

from core.download import DEFAULT_CHUNK_SIZE, StreamResult, stream_to_sink
from core.errors import DownloadError, ReplicationError, StoreError
from core.logging.utilities import LoggedClass
from runner_binaries_syncer.conduit import DEFAULT_MAX_CHUNKS, PassThroughConduit
from runner_binaries_syncer.models import CacheObject, ReleaseAsset
from runner_binaries_syncer.storage.inspector import VERSION_TAG_KEY


class ObjectWriter(Protocol):
    """Anything that can stream a body into an object with tags."""

    async def upload(
        self,
        cache_object: CacheObject,
        body: BinaryIO,
        tags: Dict[str, str],
    ) -> Any:
        ...


@dataclass(frozen=True)
class ReplicationResult:
    """Result of a completed replication."""

    asset_name: str
    bytes_transferred: int
    duration_ms: int


class StreamReplicator(LoggedClass):
    """
    Copies release assets from their download URL into the cache store.

    Usage:
        async with aiohttp.ClientSession() as session:
            replicator = StreamReplicator(store=store, session=session)
            result = await replicator.replicate(cache_object, asset)

    Each replicate() call creates its own conduit and task pair; a
    replicator can be reused for several sequential calls.
    """

    log_component = "replicator"

    def __init__(
        self,
        store: ObjectWriter,
        session: aiohttp.ClientSession,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        max_chunks: int = DEFAULT_MAX_CHUNKS,
        connect_timeout_seconds: Optional[float] = None,
    ):
        """
        Initialize the replicator.

        Args:
            store: Object store capability
            session: aiohttp session used for the download
            chunk_size: Download chunk size
            max_chunks: Chunks buffered between download and upload
            connect_timeout_seconds: Connect timeout for the download
                (the body transfer itself has no deadline)
        """
        self._store = store
        self._session = session
        self.chunk_size = chunk_size
        self.max_chunks = max_chunks
        self._timeout = aiohttp.ClientTimeout(
            total=None,
            sock_connect=connect_timeout_seconds,
        )
        super().__init__()

    async def _download(self, asset: ReleaseAsset, conduit: PassThroughConduit) -> StreamResult:
        result = await stream_to_sink(
            asset.download_url,
            self._session,
            conduit,
            chunk_size=self.chunk_size,
            timeout=self._timeout,
        )
        await conduit.finish()
        return result

    async def _upload(
        self,
        cache_object: CacheObject,
        asset: ReleaseAsset,
        conduit: PassThroughConduit,
    ) -> None:
        await self._store.upload(
            cache_object,
            conduit,
            tags={VERSION_TAG_KEY: asset.name},
        )

    async def replicate(self, cache_object: CacheObject, asset: ReleaseAsset) -> ReplicationResult:
        """
        Stream asset into cache_object, tagged with the asset name.

        Args:
            cache_object: Destination slot
            asset: Release asset to copy

        Returns:
            ReplicationResult with byte count and duration

        Raises:
            DownloadError: If reading the asset fails
            StoreError: If writing the object fails
        """
        conduit = PassThroughConduit(max_chunks=self.max_chunks)
        start = time.perf_counter()

        self._log(
            logging.DEBUG,
            f"Start downloading {asset.name} and uploading to S3.",
            asset_name=asset.name,
            download_url=asset.download_url,
            bucket=cache_object.bucket,
            key=cache_object.key,
        )

        download_task = asyncio.create_task(
            self._download(asset, conduit), name=f"download:{asset.name}"
        )
        upload_task = asyncio.create_task(
            self._upload(cache_object, asset, conduit), name=f"upload:{cache_object.uri}"
        )

        try:
            await asyncio.wait(
                {download_task, upload_task},
                return_when=asyncio.FIRST_EXCEPTION,
            )
        except asyncio.CancelledError:
            conduit.abort(asyncio.CancelledError())
            await self._cancel(download_task, upload_task)
            raise

        error = self._first_error(download_task, upload_task)
        if error is not None:
            conduit.abort(error)
            await self._cancel(download_task, upload_task)
            self._log_exception(
                error,
                "Uploading of the new distribution to S3 failed",
                asset_name=asset.name,
                bucket=cache_object.bucket,
                key=cache_object.key,
            )
            raise error

        download_result = download_task.result()
        duration_ms = int((time.perf_counter() - start) * 1000)
        self._log(
            logging.INFO,
            "The new distribution is uploaded to S3.",
            asset_name=asset.name,
            bytes_transferred=download_result.bytes_written,
            duration_ms=duration_ms,
        )
        return ReplicationResult(
            asset_name=asset.name,
            bytes_transferred=download_result.bytes_written,
            duration_ms=duration_ms,
        )

    @staticmethod
    def _first_error(
        download_task: "asyncio.Task[StreamResult]",
        upload_task: "asyncio.Task[None]",
    ) -> Optional[ReplicationError]:
        """
        Return the failure to report, wrapped as a ReplicationError.

        If both sides failed, the download error is the root cause: the
        upload then only saw the aborted conduit.
        """
        def settled_error(task: asyncio.Task) -> Optional[BaseException]:
            if task.done() and not task.cancelled():
                return task.exception()
            return None

        # Retrieve both so neither task reports an unretrieved exception
        download_error = settled_error(download_task)
        upload_error = settled_error(upload_task)

        if download_error is not None:
            if isinstance(download_error, ReplicationError):
                return download_error
            return DownloadError(f"Download failed: {download_error}", cause=download_error)

        if upload_error is not None:
            if isinstance(upload_error, ReplicationError):
                return upload_error
            return StoreError(f"Upload failed: {upload_error}", cause=upload_error)

        return None

    @staticmethod
    async def _cancel(*tasks: asyncio.Task) -> None:
        """Cancel unfinished tasks and wait until they have settled."""
        pending = [task for task in tasks if not task.done()]
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
