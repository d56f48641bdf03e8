"""
Streaming HTTP download into an async sink.

The response body is never held in memory as a whole: chunks are handed to
the sink as they arrive, so memory use is bounded by the chunk size and by
whatever back-pressure the sink applies.
"""

import asyncio
from dataclasses import dataclass
from typing import Optional, Protocol

import aiohttp

from core.errors import DownloadError

# 1MB chunks keep the number of sink hand-offs low for 100MB+ archives
DEFAULT_CHUNK_SIZE = 1024 * 1024


class AsyncSink(Protocol):
    """Destination for streamed bytes."""

    async def write(self, data: bytes) -> None:
        ...


@dataclass(frozen=True)
class StreamResult:
    """Result of a completed streaming download."""

    bytes_written: int
    status_code: int
    content_type: Optional[str] = None
    content_length: Optional[int] = None


async def stream_to_sink(
    url: str,
    session: aiohttp.ClientSession,
    sink: AsyncSink,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    timeout: Optional[aiohttp.ClientTimeout] = None,
) -> StreamResult:
    """
    Download url and pass every chunk to sink.write().

    Redirects are followed (release assets redirect to object storage).
    The sink is not closed here; the caller decides what end-of-data means.

    Args:
        url: URL to download
        session: aiohttp session
        sink: Async destination for the bytes
        chunk_size: Maximum size of a single chunk
        timeout: Optional request timeout (None = session default)

    Returns:
        StreamResult with byte count and response metadata

    Raises:
        DownloadError: On non-2xx status or transport failure
    """
    try:
        async with session.get(url, allow_redirects=True, timeout=timeout) as response:
            if response.status < 200 or response.status >= 300:
                raise DownloadError(
                    f"Download failed with HTTP {response.status}",
                    status_code=response.status,
                    context={"url": url},
                )

            bytes_written = 0
            async for chunk in response.content.iter_chunked(chunk_size):
                await sink.write(chunk)
                bytes_written += len(chunk)

            # Content-Length counts encoded bytes; only compare for identity bodies
            expected = response.content_length
            if "Content-Encoding" in response.headers:
                expected = None
            if expected is not None and bytes_written != expected:
                raise DownloadError(
                    f"Download truncated: received {bytes_written} of "
                    f"{response.content_length} bytes",
                    status_code=response.status,
                    context={"url": url},
                )

            return StreamResult(
                bytes_written=bytes_written,
                status_code=response.status,
                content_type=response.headers.get("Content-Type"),
                content_length=response.content_length,
            )
    except DownloadError:
        raise
    except (aiohttp.ClientError, asyncio.TimeoutError) as e:
        raise DownloadError(
            f"Download failed: {type(e).__name__}",
            cause=e,
            context={"url": url},
        ) from e
