"""
S3 cache store.

Wraps the blocking boto3 client and exposes the two operations the syncer
needs as coroutines. Every boto3 call runs in a worker thread via
asyncio.to_thread so the event loop stays free for the download side.
"""

import asyncio
import logging
from typing import Any, BinaryIO, Dict, List, Optional
from urllib.parse import urlencode

import boto3
from boto3.s3.transfer import TransferConfig
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from core.errors import StoreError
from core.logging.utilities import LoggedClass
from runner_binaries_syncer.models import CacheObject

# Multipart part size; each in-flight part is held in memory by s3transfer
DEFAULT_PART_SIZE = 8 * 1024 * 1024


def build_tagging(tags: Dict[str, str]) -> str:
    """Encode tags in the URL query format S3 expects for Tagging."""
    return urlencode(tags)


class S3CacheStore(LoggedClass):
    """
    Object store capability backed by AWS S3 (or an S3-compatible endpoint).

    Credentials are resolved via boto3's standard credential chain.

    Usage:
        store = S3CacheStore(region="eu-west-1")
        tags = await store.get_object_tags(cache_object)
        await store.upload(cache_object, body, tags={"name": asset.name})
    """

    log_component = "s3"

    def __init__(
        self,
        client: Any = None,
        region: Optional[str] = None,
        endpoint_url: Optional[str] = None,
        sse_algorithm: Optional[str] = None,
        sse_kms_key_id: Optional[str] = None,
        part_size: int = DEFAULT_PART_SIZE,
        max_concurrency: int = 4,
    ):
        """
        Initialize the store.

        Args:
            client: Pre-built boto3 S3 client (None = create one)
            region: AWS region for a created client
            endpoint_url: S3-compatible endpoint for a created client
            sse_algorithm: ServerSideEncryption value for uploads (e.g. aws:kms)
            sse_kms_key_id: SSEKMSKeyId value for uploads
            part_size: Multipart chunk size
            max_concurrency: Parallel part uploads
        """
        if client is None:
            kwargs: Dict[str, Any] = {
                "config": Config(
                    region_name=region,
                    retries={"max_attempts": 3, "mode": "standard"},
                ),
            }
            if endpoint_url:
                kwargs["endpoint_url"] = endpoint_url
            client = boto3.client("s3", **kwargs)

        self._client = client
        self.sse_algorithm = sse_algorithm
        self.sse_kms_key_id = sse_kms_key_id
        self._transfer_config = TransferConfig(
            multipart_chunksize=part_size,
            max_concurrency=max_concurrency,
        )
        super().__init__()

    async def get_object_tags(self, cache_object: CacheObject) -> List[Dict[str, str]]:
        """
        Return the object's tag set as [{"Key": ..., "Value": ...}, ...].

        Raises:
            ClientError: If the object does not exist or access is denied
        """
        response = await asyncio.to_thread(
            self._client.get_object_tagging,
            Bucket=cache_object.bucket,
            Key=cache_object.key,
        )
        return list(response.get("TagSet") or [])

    def upload_extra_args(self, tags: Dict[str, str]) -> Dict[str, str]:
        """Build the ExtraArgs for an upload: tags plus optional encryption."""
        extra = {"Tagging": build_tagging(tags)}
        if self.sse_algorithm:
            extra["ServerSideEncryption"] = self.sse_algorithm
        if self.sse_kms_key_id:
            extra["SSEKMSKeyId"] = self.sse_kms_key_id
        return extra

    async def upload(
        self,
        cache_object: CacheObject,
        body: BinaryIO,
        tags: Dict[str, str],
    ) -> None:
        """
        Stream body into the object, writing bytes and tags in one upload.

        body is read until end-of-data from a worker thread; it may be a
        non-seekable stream.

        Raises:
            StoreError: If the upload fails
        """
        extra_args = self.upload_extra_args(tags)
        self._log(
            logging.DEBUG,
            "Starting S3 upload",
            bucket=cache_object.bucket,
            key=cache_object.key,
            sse_algorithm=self.sse_algorithm,
        )
        try:
            await asyncio.to_thread(
                self._client.upload_fileobj,
                body,
                cache_object.bucket,
                cache_object.key,
                ExtraArgs=extra_args,
                Config=self._transfer_config,
            )
        except (ClientError, BotoCoreError) as e:
            raise StoreError(
                f"S3 upload failed: {cache_object.uri}",
                cause=e,
                context={"bucket": cache_object.bucket, "key": cache_object.key},
            ) from e
