"""
Tests for the pass-through conduit.

The reader side always runs in a worker thread (asyncio.to_thread), the
same way the S3 upload consumes it.
"""

import asyncio

import pytest

from runner_binaries_syncer.conduit import ConduitAbortedError, PassThroughConduit


def read_all(conduit, size):
    """Read in fixed-size pieces until end-of-data."""
    pieces = []
    while True:
        data = conduit.read(size)
        if not data:
            return pieces
        pieces.append(data)


class TestConduitTransfer:
    """Bytes written on the loop arrive unchanged in the reader thread."""

    @pytest.mark.asyncio
    async def test_bytes_arrive_in_order(self):
        conduit = PassThroughConduit(max_chunks=2)
        chunks = [bytes([i]) * 100 for i in range(10)]

        async def writer():
            for chunk in chunks:
                await conduit.write(chunk)
            await conduit.finish()

        reader = asyncio.create_task(asyncio.to_thread(read_all, conduit, 64))
        await writer()
        pieces = await reader

        assert b"".join(pieces) == b"".join(chunks)
        assert conduit.bytes_written == 1000
        assert conduit.bytes_read == 1000

    @pytest.mark.asyncio
    async def test_reads_are_exact_size_until_eof(self):
        conduit = PassThroughConduit()

        async def writer():
            for chunk in (b"abc", b"defgh", b"ij"):
                await conduit.write(chunk)
            await conduit.finish()

        reader = asyncio.create_task(asyncio.to_thread(read_all, conduit, 4))
        await writer()
        pieces = await reader

        assert pieces == [b"abcd", b"efgh", b"ij"]

    @pytest.mark.asyncio
    async def test_read_to_end(self):
        conduit = PassThroughConduit()
        await conduit.write(b"hello ")
        await conduit.write(b"world")
        await conduit.finish()

        data = await asyncio.to_thread(conduit.read)

        assert data == b"hello world"
        assert await asyncio.to_thread(conduit.read) == b""

    @pytest.mark.asyncio
    async def test_empty_stream(self):
        conduit = PassThroughConduit()
        await conduit.finish()

        assert await asyncio.to_thread(conduit.read, 10) == b""

    @pytest.mark.asyncio
    async def test_empty_write_ignored(self):
        conduit = PassThroughConduit()
        await conduit.write(b"")

        assert conduit.bytes_written == 0

    @pytest.mark.asyncio
    async def test_back_pressure(self):
        """write() blocks once max_chunks chunks are queued."""
        conduit = PassThroughConduit(max_chunks=1)
        await conduit.write(b"first")

        blocked = asyncio.create_task(conduit.write(b"second"))
        await asyncio.sleep(0.05)
        assert not blocked.done()

        assert await asyncio.to_thread(conduit.read, 5) == b"first"
        await asyncio.wait_for(blocked, timeout=1)

        reader = asyncio.create_task(asyncio.to_thread(conduit.read))
        await conduit.finish()

        assert await reader == b"second"

    def test_file_like_flags(self):
        async def make():
            return PassThroughConduit()

        conduit = asyncio.run(make())

        assert conduit.readable() is True
        assert conduit.seekable() is False


class TestConduitAbort:
    """Abort semantics on both sides."""

    @pytest.mark.asyncio
    async def test_blocked_reader_wakes_up(self):
        conduit = PassThroughConduit()
        reader = asyncio.create_task(asyncio.to_thread(conduit.read, 10))
        await asyncio.sleep(0.05)

        cause = RuntimeError("download failed")
        conduit.abort(cause)

        with pytest.raises(ConduitAbortedError) as exc_info:
            await asyncio.wait_for(reader, timeout=1)
        assert exc_info.value.__cause__ is cause
        assert conduit.aborted is True

    @pytest.mark.asyncio
    async def test_abort_with_full_queue(self):
        conduit = PassThroughConduit(max_chunks=1)
        await conduit.write(b"queued")

        conduit.abort(RuntimeError("stop"))

        with pytest.raises(ConduitAbortedError):
            await asyncio.to_thread(conduit.read, 100)

    @pytest.mark.asyncio
    async def test_write_after_abort(self):
        conduit = PassThroughConduit()
        conduit.abort(RuntimeError("upload failed"))

        with pytest.raises(ConduitAbortedError):
            await conduit.write(b"data")

    @pytest.mark.asyncio
    async def test_first_error_kept(self):
        conduit = PassThroughConduit()
        first = RuntimeError("first")
        conduit.abort(first)
        conduit.abort(RuntimeError("second"))

        with pytest.raises(ConduitAbortedError) as exc_info:
            await asyncio.to_thread(conduit.read, 1)
        assert exc_info.value.__cause__ is first


class TestConduitMisuse:
    """Single-use and threading guards."""

    @pytest.mark.asyncio
    async def test_write_after_finish(self):
        conduit = PassThroughConduit()
        await conduit.finish()

        with pytest.raises(ValueError):
            await conduit.write(b"late")

    @pytest.mark.asyncio
    async def test_finish_twice(self):
        conduit = PassThroughConduit()
        await conduit.finish()

        with pytest.raises(ValueError):
            await conduit.finish()

    @pytest.mark.asyncio
    async def test_read_on_loop_thread_rejected(self):
        conduit = PassThroughConduit()

        with pytest.raises(RuntimeError, match="event loop thread"):
            conduit.read(1)
