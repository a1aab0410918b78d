"""
Content-Encoding handling for response bodies.

Supports gzip and deflate. Every other coding, and a missing header, is
treated as identity and read as-is.
"""

from __future__ import annotations

import enum
import io
import logging
import zlib
from typing import BinaryIO

from .errors import DecodeSetupError, ReadError

logger = logging.getLogger(__name__)

# Accept-Encoding value a transport can send to get bodies this module decodes
ACCEPT_ENCODING = "gzip, deflate"

_GZIP_MAGIC = b"\x1f\x8b"
_GZIP_HEADER_SIZE = 10
_ZLIB_HEADER_SIZE = 2


class ContentEncoding(enum.Enum):
    IDENTITY = "identity"
    GZIP = "gzip"
    DEFLATE = "deflate"

    @classmethod
    def from_header(cls, value: str | None) -> ContentEncoding:
        """
        Map a Content-Encoding header value onto a supported coding.

        Only a single ``gzip`` or ``deflate`` token is recognised (case and
        surrounding whitespace are ignored). Lists such as ``gzip, br`` and
        unknown codings fall back to identity.
        """
        if not value:
            return cls.IDENTITY
        token = value.strip().lower()
        if token == "gzip":
            return cls.GZIP
        if token == "deflate":
            return cls.DEFLATE
        return cls.IDENTITY


def _is_zlib_header(header: bytes) -> bool:
    cmf, flg = header[0], header[1]
    return cmf & 0x0F == 8 and cmf >> 4 <= 7 and (cmf << 8 | flg) % 31 == 0


class DecompressingReader:
    """
    File-like reader that decompresses a gzip or deflate body stream.

    The format header is read and validated on construction, so a body that
    does not start like its declared coding fails with DecodeSetupError
    before any payload is produced. An empty stream is valid and reads as b"".
    """

    def __init__(
        self,
        stream: BinaryIO,
        encoding: ContentEncoding,
        chunk_size: int = 8192,
    ) -> None:
        if encoding is ContentEncoding.IDENTITY:
            raise ValueError("identity bodies are read directly, not decompressed")
        self._stream = stream
        self._encoding = encoding
        self._chunk_size = chunk_size
        self._buffer = bytearray()
        self._done = False
        self._stream_eof = False
        self._closed = False
        self._decompressor = None
        self._tail = b""
        self._ignore_rest = False

        header = self._read_header()
        if not header:
            self._done = True
            return
        self._decompressor = self._open_decompressor(header)
        self._buffer += self._decompress(header)

    @property
    def encoding(self) -> ContentEncoding:
        return self._encoding

    def _read_header(self) -> bytes:
        """Read at least enough raw bytes to validate the format header."""
        needed = _GZIP_HEADER_SIZE if self._encoding is ContentEncoding.GZIP else _ZLIB_HEADER_SIZE
        data = b""
        while len(data) < needed:
            chunk = self._stream.read(max(self._chunk_size, needed))
            if not chunk:
                self._stream_eof = True
                break
            data += chunk
        return data

    def _open_decompressor(self, header: bytes):
        if self._encoding is ContentEncoding.GZIP:
            if len(header) < _GZIP_HEADER_SIZE:
                raise DecodeSetupError("gzip body is shorter than a gzip header")
            if not header.startswith(_GZIP_MAGIC) or header[2] != 8:
                raise DecodeSetupError("gzip body does not start with a gzip header")
            return zlib.decompressobj(16 + zlib.MAX_WBITS)

        if len(header) >= _ZLIB_HEADER_SIZE and _is_zlib_header(header):
            if header[1] & 0x20:
                raise DecodeSetupError("deflate body requires a preset dictionary")
            return zlib.decompressobj()
        # Some servers send raw deflate without the zlib wrapper
        logger.debug("deflate body has no zlib header, decoding as raw deflate")
        return zlib.decompressobj(-zlib.MAX_WBITS)

    def _decompress(self, data: bytes) -> bytes:
        if self._ignore_rest:
            return b""
        out = bytearray()
        if self._decompressor.eof:
            data = self._tail + data
            self._tail = b""
        while data:
            if self._decompressor.eof:
                if self._encoding is ContentEncoding.GZIP and data == _GZIP_MAGIC[:1]:
                    # Magic split across reads; decide once the next chunk arrives
                    self._tail = data
                    break
                if self._encoding is not ContentEncoding.GZIP or not data.startswith(_GZIP_MAGIC):
                    logger.debug("ignoring trailing bytes after %s stream", self._encoding.value)
                    self._ignore_rest = True
                    break
                # Concatenated gzip members
                self._decompressor = zlib.decompressobj(16 + zlib.MAX_WBITS)
            try:
                out += self._decompressor.decompress(data)
            except zlib.error as exc:
                raise ReadError(f"corrupt {self._encoding.value} body: {exc}") from exc
            data = self._decompressor.unused_data if self._decompressor.eof else b""
        return bytes(out)

    def _fill(self) -> None:
        chunk = b"" if self._stream_eof else self._stream.read(self._chunk_size)
        if chunk:
            self._buffer += self._decompress(chunk)
            return
        self._done = True
        if not self._decompressor.eof:
            raise ReadError(f"{self._encoding.value} body ended before the end of the compressed stream")
        self._buffer += self._decompressor.flush()

    def read(self, size: int = -1) -> bytes:
        if self._closed:
            raise ValueError("I/O operation on closed reader")
        while not self._done and (size < 0 or len(self._buffer) < size):
            self._fill()
        if size < 0:
            size = len(self._buffer)
        out = bytes(self._buffer[:size])
        del self._buffer[:size]
        return out

    def readable(self) -> bool:
        return True

    def close(self) -> None:
        """Close the reader and the wrapped stream."""
        if self._closed:
            return
        self._closed = True
        self._buffer.clear()
        self._stream.close()

    def __enter__(self) -> DecompressingReader:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


def decode_body(body: bytes, content_encoding: str | None) -> bytes:
    """
    Decode an in-memory body according to its Content-Encoding header value.

    Args:
        body: Raw response body bytes
        content_encoding: Value of the Content-Encoding header, if any

    Returns:
        Decoded body bytes

    Raises:
        DecodeSetupError: the body does not match its declared coding
        ReadError: the compressed data is corrupt or truncated
    """
    encoding = ContentEncoding.from_header(content_encoding)
    if encoding is ContentEncoding.IDENTITY:
        return body
    with DecompressingReader(io.BytesIO(body), encoding) as reader:
        return reader.read()
