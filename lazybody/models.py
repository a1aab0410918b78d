from __future__ import annotations

import io
import json as json_lib
import logging
import os
from collections.abc import Iterator
from dataclasses import dataclass
from typing import Any, BinaryIO, TypeVar, overload

from pydantic import TypeAdapter, ValidationError

from .compression import ContentEncoding, DecompressingReader
from .errors import (
    ConstructionError,
    HTTPError,
    LazybodyError,
    ParseError,
    PersistError,
    ReadError,
)
from .headers import HeaderSource, Headers

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 8192

T = TypeVar("T")


@dataclass(frozen=True)
class NotLoaded:
    """The body stream has not been touched."""


@dataclass(frozen=True)
class Streaming:
    """The raw stream is being forwarded to a read() consumer."""


@dataclass(frozen=True)
class Loaded:
    content: bytes


@dataclass(frozen=True)
class Failed:
    error: LazybodyError


BodyState = NotLoaded | Streaming | Loaded | Failed


class Response:
    """
    HTTP response whose body is decoded on first access and cached.

    The body stream is read by exactly one consumer: the first content
    accessor decodes it according to Content-Encoding and keeps the result,
    every later accessor reuses it. A failed decode is recorded and raised
    again by later accessors without touching the stream.

    Not safe for concurrent use; share ``content`` once loaded instead.
    """

    def __init__(
        self,
        status_code: int,
        headers: HeaderSource | None,
        stream: BinaryIO,
        *,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ) -> None:
        if stream is None:
            raise ConstructionError("response has no body stream")
        if not callable(getattr(stream, "read", None)):
            raise ConstructionError(f"body stream {stream!r} is not readable")
        if isinstance(status_code, bool) or not isinstance(status_code, int):
            raise ConstructionError(f"status code must be an int, got {status_code!r}")
        self._status_code = status_code
        self._headers = headers if isinstance(headers, Headers) else Headers(headers)
        self._stream = stream
        self._chunk_size = chunk_size
        self._state: BodyState = NotLoaded()
        self._cursor: io.BytesIO | None = None

    @classmethod
    def from_raw(cls, raw: Any, *, chunk_size: int = DEFAULT_CHUNK_SIZE) -> Response:
        """
        Wrap a transport response handle that is itself the body stream,
        such as http.client.HTTPResponse or an unpreloaded urllib3 response.
        """
        if raw is None:
            raise ConstructionError("no response handle")
        status = getattr(raw, "status", None)
        if status is None:
            status = getattr(raw, "status_code", None)
        if status is None:
            raise ConstructionError(f"response handle {raw!r} has no status")
        headers = getattr(raw, "headers", None)
        if headers is not None and hasattr(headers, "items"):
            headers = list(headers.items())
        return cls(status, headers, raw, chunk_size=chunk_size)

    @property
    def status_code(self) -> int:
        return self._status_code

    @property
    def headers(self) -> Headers:
        return self._headers

    @property
    def state(self) -> BodyState:
        return self._state

    @property
    def ok(self) -> bool:
        return 200 <= self._status_code < 400

    def raise_for_status(self) -> None:
        if not self.ok:
            raise HTTPError(f"HTTP status {self._status_code}", self._status_code)

    def _fail(self, error: LazybodyError) -> LazybodyError:
        self._state = Failed(error)
        return error

    def _release(self, resource: Any) -> None:
        # Release failures never replace the outcome of the load itself
        try:
            resource.close()
        except Exception as exc:
            logger.warning("failed to release response body stream: %s", exc)

    def _load_content(self) -> bytes:
        state = self._state
        if isinstance(state, Loaded):
            return state.content
        if isinstance(state, Failed):
            raise state.error
        if isinstance(state, Streaming):
            raise self._fail(ReadError("response body was already consumed through read()"))

        encoding = ContentEncoding.from_header(self._headers.get("content-encoding"))
        reader: Any = self._stream
        try:
            if encoding is not ContentEncoding.IDENTITY:
                reader = DecompressingReader(self._stream, encoding, self._chunk_size)
            chunks: list[bytes] = []
            while True:
                chunk = reader.read(self._chunk_size)
                if not chunk:
                    break
                chunks.append(chunk)
        except LazybodyError as exc:
            raise self._fail(exc)
        except Exception as exc:
            # Transport errors (IncompleteRead, urllib3 ProtocolError...) are terminal too
            raise self._fail(ReadError(f"failed to read response body: {exc}")) from exc
        finally:
            # Closing the decompressing reader closes the body stream too
            self._release(reader)

        content = b"".join(chunks)
        logger.debug("decoded %d byte body (%s)", len(content), encoding.value)
        self._state = Loaded(content)
        return content

    @property
    def content(self) -> bytes:
        return self._load_content()

    @property
    def text(self) -> str:
        return self.get_text()

    def get_text(self, encoding: str = "utf-8") -> str:
        """Decoded body as a string. No charset negotiation is done."""
        return self._load_content().decode(encoding, errors="replace")

    @overload
    def json(self) -> Any: ...

    @overload
    def json(self, into: type[T]) -> T: ...

    def json(self, into: Any = None) -> Any:
        """
        Parse the decoded body as JSON.

        Without ``into`` the generic JSON value (dict, list, str, number,
        bool or None) is returned. With ``into``, any type pydantic can
        validate (models, dataclasses, TypedDicts, ``list[int]``...), the
        body is validated into an instance of it.

        Raises:
            ParseError: the body is not JSON, or does not fit ``into``
        """
        content = self._load_content()
        if into is None:
            try:
                return json_lib.loads(content)
            except (json_lib.JSONDecodeError, UnicodeDecodeError) as exc:
                raise ParseError(f"response body is not valid JSON: {exc}") from exc
        try:
            return TypeAdapter(into).validate_json(content)
        except ValidationError as exc:
            raise ParseError(f"response body does not match {into!r}: {exc}") from exc

    def save_to_file(self, path: str | os.PathLike[str]) -> None:
        """Write the decoded body verbatim to ``path``, truncating any existing file."""
        content = self._load_content()
        try:
            with open(path, "wb") as f:
                f.write(content)
        except OSError as exc:
            raise PersistError(f"failed to write response body to {os.fspath(path)}: {exc}") from exc

    def iter_bytes(self, chunk_size: int | None = None) -> Iterator[bytes]:
        content = self._load_content()
        size = chunk_size or self._chunk_size
        for start in range(0, len(content), size):
            yield content[start:start + size]

    def read(self, size: int = -1) -> bytes:
        """
        Read from the response like a file.

        Once the body is loaded, reads replay the decoded content from its
        start. Before that, raw (still encoded) bytes are forwarded from the
        live stream and the body can no longer be loaded.
        """
        state = self._state
        if isinstance(state, Failed):
            raise state.error
        if isinstance(state, Loaded):
            if self._cursor is None:
                self._cursor = io.BytesIO(state.content)
            return self._cursor.read(size)
        self._state = Streaming()
        try:
            return self._stream.read(size)
        except Exception as exc:
            raise self._fail(ReadError(f"failed to read response body: {exc}")) from exc

    def readinto(self, buffer: bytearray | memoryview) -> int:
        view = memoryview(buffer).cast("B")
        data = self.read(len(view))
        view[:len(data)] = data
        return len(data)

    def readable(self) -> bool:
        return True

    def close(self) -> None:
        """
        Drain any unread body so the transport can reuse the connection, then
        release the stream. A no-op once the body is loaded or has failed.
        """
        if isinstance(self._state, (Loaded, Failed)):
            return
        self._state = Failed(ReadError("response closed before its body was read"))
        try:
            try:
                while self._stream.read(self._chunk_size):
                    pass
            finally:
                self._stream.close()
        except Exception as exc:
            raise ReadError(f"failed to close response body: {exc}") from exc

    def __enter__(self) -> Response:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def __repr__(self) -> str:
        if isinstance(self._state, Loaded):
            return f"<Response [{self._status_code}] {len(self._state.content)} bytes>"
        return f"<Response [{self._status_code}]>"
