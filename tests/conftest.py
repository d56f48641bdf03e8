"""
pytest configuration for syncer tests.

Adds src directory to Python path for imports and sets up test environment.
"""

import os
import sys
from pathlib import Path

import pytest

# Set test environment variables BEFORE any imports
os.environ.setdefault("AWS_DEFAULT_REGION", "us-east-1")
os.environ.setdefault("AWS_ACCESS_KEY_ID", "testing")
os.environ.setdefault("AWS_SECRET_ACCESS_KEY", "testing")

# Add src directory to Python path
src_dir = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_dir))


class FakeContent:
    """Stand-in for aiohttp.StreamReader yielding preset chunks."""

    def __init__(self, chunks, error=None):
        self._chunks = list(chunks)
        self._error = error

    async def iter_chunked(self, n):
        for chunk in self._chunks:
            yield chunk
        if self._error is not None:
            raise self._error


class FakeResponse:
    """Minimal aiohttp response usable as an async context manager."""

    def __init__(
        self,
        status=200,
        chunks=(),
        headers=None,
        content_length=None,
        json_data=None,
        json_error=None,
        stream_error=None,
    ):
        self.status = status
        self.headers = dict(headers or {})
        self.content_length = content_length
        self.content = FakeContent(chunks, stream_error)
        self._json_data = json_data
        self._json_error = json_error

    async def json(self, content_type="application/json"):
        if self._json_error is not None:
            raise self._json_error
        return self._json_data

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        return False


class FakeSession:
    """Records GET calls and answers with a preset response or error."""

    def __init__(self, response=None, error=None):
        self.response = response or FakeResponse()
        self.error = error
        self.calls = []
        self.closed = False

    def get(self, url, **kwargs):
        self.calls.append((url, kwargs))
        if self.error is not None:
            raise self.error
        return self.response

    async def close(self):
        self.closed = True


@pytest.fixture
def fake_response():
    """Factory for FakeResponse objects."""
    return FakeResponse


@pytest.fixture
def fake_session():
    """Factory for FakeSession objects."""
    return FakeSession
