"""
Async download module.

Provides HTTP streaming download logic decoupled from storage backends.

Components:
    - Async HTTP download with aiohttp
    - Chunked streaming into an async sink (no temp files)
    - Content-Length validation
    - Error classification via core.errors
"""

from core.download.streaming import (
    DEFAULT_CHUNK_SIZE,
    AsyncSink,
    StreamResult,
    stream_to_sink,
)

__all__ = [
    "DEFAULT_CHUNK_SIZE",
    "AsyncSink",
    "StreamResult",
    "stream_to_sink",
]
