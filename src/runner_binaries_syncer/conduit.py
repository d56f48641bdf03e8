"""
In-memory pass-through conduit between an async writer and a blocking reader.

The download side runs on the event loop and awaits write(); the S3 upload
runs in a worker thread and calls read() like on a file. A bounded
asyncio.Queue between them gives back-pressure, so at most max_chunks
chunks (plus one partially consumed read) are held in memory.

A conduit is single-use: it cannot be rewound and refuses writes after
finish() or abort().
"""

import asyncio
import threading
from typing import Optional, Union

# Queue marker for end-of-data (also pushed on abort to wake the reader)
_EOF = object()

DEFAULT_MAX_CHUNKS = 8


class ConduitAbortedError(Exception):
    """Raised on either side after the conduit was aborted."""


class PassThroughConduit:
    """
    Pipe bytes from event-loop coroutines to a reader thread.

    Writer side (event loop):
        await conduit.write(chunk)   # blocks while the queue is full
        await conduit.finish()       # end-of-data
        conduit.abort(exc)           # make the reader fail

    Reader side (worker thread):
        conduit.read(n)              # exactly n bytes unless end-of-data
    """

    def __init__(
        self,
        loop: Optional[asyncio.AbstractEventLoop] = None,
        max_chunks: int = DEFAULT_MAX_CHUNKS,
    ):
        self._loop = loop or asyncio.get_running_loop()
        self._loop_thread = threading.get_ident()
        self._queue: "asyncio.Queue[Union[bytes, object]]" = asyncio.Queue(maxsize=max_chunks)
        self._buffer = bytearray()
        self._eof = False
        self._finished = False
        self._error: Optional[BaseException] = None
        self.bytes_written = 0
        self.bytes_read = 0

    # ------------------------------------------------------------------
    # Writer side (event loop)
    # ------------------------------------------------------------------

    async def write(self, data: bytes) -> None:
        """Queue a chunk for the reader, waiting while the queue is full."""
        if self._error is not None:
            raise ConduitAbortedError("Conduit was aborted") from self._error
        if self._finished:
            raise ValueError("write() after finish()")
        if not data:
            return
        await self._queue.put(bytes(data))
        self.bytes_written += len(data)

    async def finish(self) -> None:
        """Signal end-of-data to the reader."""
        if self._finished:
            raise ValueError("finish() called twice")
        self._finished = True
        await self._queue.put(_EOF)

    def abort(self, exc: BaseException) -> None:
        """
        Fail the conduit; the reader raises ConduitAbortedError from exc.

        Must be called from the event loop thread. Safe to call repeatedly;
        the first error is kept.
        """
        if self._error is None:
            self._error = exc
        self._finished = True
        try:
            self._queue.put_nowait(_EOF)
        except asyncio.QueueFull:
            # The reader is not blocked on an empty queue; it sees the
            # error on its next read
            pass

    @property
    def aborted(self) -> bool:
        return self._error is not None

    # ------------------------------------------------------------------
    # Reader side (worker thread)
    # ------------------------------------------------------------------

    def readable(self) -> bool:
        return True

    def seekable(self) -> bool:
        return False

    def _raise_if_aborted(self) -> None:
        if self._error is not None:
            raise ConduitAbortedError(f"Conduit was aborted: {self._error}") from self._error

    def _next_item(self) -> Union[bytes, object]:
        self._raise_if_aborted()
        future = asyncio.run_coroutine_threadsafe(self._queue.get(), self._loop)
        item = future.result()
        self._raise_if_aborted()
        return item

    def read(self, size: Optional[int] = -1) -> bytes:
        """
        Read up to size bytes, blocking until they are available.

        Returns fewer than size bytes only at end-of-data, and b"" once
        everything has been read. size < 0 or None reads to end-of-data.

        Raises:
            RuntimeError: If called from the event loop thread
            ConduitAbortedError: If the writer aborted the conduit
        """
        if threading.get_ident() == self._loop_thread:
            raise RuntimeError("PassThroughConduit.read() must not run on the event loop thread")

        if size is None:
            size = -1

        while not self._eof and (size < 0 or len(self._buffer) < size):
            item = self._next_item()
            if item is _EOF:
                self._eof = True
                break
            self._buffer.extend(item)

        self._raise_if_aborted()

        count = len(self._buffer) if size < 0 else min(size, len(self._buffer))
        data = bytes(self._buffer[:count])
        del self._buffer[:count]
        self.bytes_read += len(data)
        return data
