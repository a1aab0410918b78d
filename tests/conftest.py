"""Pytest configuration and fixtures."""

import gzip
import http.client
import io
import zlib

import pytest
from lazybody.models import Response


class OneShotStream(io.BytesIO):
    """Body stream that fails if it is read again after reporting end of body."""

    def __init__(self, data=b""):
        super().__init__(data)
        self.read_calls = 0
        self.exhausted = False

    def read(self, size=-1):
        if self.exhausted:
            raise AssertionError("body stream read after end of body")
        self.read_calls += 1
        data = super().read(size)
        if not data:
            self.exhausted = True
        return data


class FailingStream(io.BytesIO):
    """Body stream that hands out a prefix and then raises a connection error."""

    def __init__(self, prefix=b"partial"):
        super().__init__(prefix)
        self.failed = False

    def read(self, size=-1):
        data = super().read(size)
        if data:
            return data
        self.failed = True
        raise OSError("connection reset by peer")


class IncompleteBodyStream(io.BytesIO):
    """Body stream that hands out a prefix, then raises http.client.IncompleteRead once."""

    def __init__(self, prefix=b"partial", expected=64):
        super().__init__(prefix)
        self.expected = expected
        self.read_calls = 0
        self.raised = False

    def read(self, size=-1):
        self.read_calls += 1
        data = super().read(size)
        if data or self.raised:
            return data
        self.raised = True
        raise http.client.IncompleteRead(self.getvalue(), self.expected - len(self.getvalue()))


def gzip_compress(data: bytes) -> bytes:
    buf = io.BytesIO()
    with gzip.GzipFile(fileobj=buf, mode="wb") as f:
        f.write(data)
    return buf.getvalue()


def deflate_compress(data: bytes) -> bytes:
    return zlib.compress(data)


def raw_deflate_compress(data: bytes) -> bytes:
    compress_obj = zlib.compressobj(level=6, method=zlib.DEFLATED, wbits=-zlib.MAX_WBITS)
    return compress_obj.compress(data) + compress_obj.flush()


@pytest.fixture
def make_response():
    """Build a Response over a OneShotStream holding ``body``."""

    def factory(body=b"", headers=None, status_code=200, **kwargs):
        return Response(status_code, headers or [], OneShotStream(body), **kwargs)

    return factory


@pytest.fixture
def sample_response(make_response):
    """Create a sample gzip-encoded JSON Response object."""
    return make_response(
        gzip_compress(b'{"key":"val"}'),
        headers=[
            ("Content-Type", "application/json"),
            ("Content-Encoding", "gzip"),
        ],
    )
