"""HTTP/1.1 response parsing: status line, headers, and framed bodies."""

import json
import string
from collections.abc import Iterator
from types import TracebackType
from typing import Annotated, Any, Self

from pydantic import BaseModel, ConfigDict, Field

from tinyget.constants import (
    DEFAULT_CHUNK_SIZE,
    HTTP_STATUS_OK_MAX,
    HTTP_STATUS_OK_MIN,
    MAX_LINE_BYTES,
)
from tinyget.errors import (
    InvalidUtf8InBodyError,
    InvalidUtf8InResponseError,
    MalformedChunkLengthError,
    MalformedContentLengthError,
    TransportError,
)
from tinyget.stream import DeadlineStream


HEX_DIGITS = frozenset(string.hexdigits.encode("ascii"))
STATUS_CODE_LENGTH = 3


class _StreamReader:
    """Line and byte reads over a DeadlineStream with a small buffer."""

    def __init__(self, stream: DeadlineStream) -> None:
        self._stream = stream
        self._buffer = bytearray()

    def _fill(self, size: int = DEFAULT_CHUNK_SIZE) -> bool:
        data = self._stream.read(size)
        if not data:
            return False
        self._buffer.extend(data)
        return True

    def read_line(self) -> bytes | None:
        """Read one line without its terminator.

        Returns:
            The line, or None if the stream ended before any byte of it.
        """
        while True:
            index = self._buffer.find(b"\n")
            if index != -1:
                line = bytes(self._buffer[:index])
                del self._buffer[: index + 1]
                return line.removesuffix(b"\r")
            if len(self._buffer) > MAX_LINE_BYTES:
                msg = f"line exceeds {MAX_LINE_BYTES} bytes"
                raise TransportError(msg)
            if not self._fill():
                if not self._buffer:
                    return None
                raise TransportError("connection closed in the middle of a line")

    def read_some(self, size: int) -> bytes:
        """Read at most ``size`` bytes; empty only at end of stream."""
        if not self._buffer and not self._fill(size):
            return b""
        chunk = bytes(self._buffer[:size])
        del self._buffer[:size]
        return chunk

    def close(self) -> None:
        self._buffer.clear()
        self._stream.close()


def _decode_line(line: bytes) -> str:
    try:
        return line.decode("utf-8")
    except UnicodeDecodeError as e:
        raise InvalidUtf8InResponseError from e


def _read_status_line(reader: _StreamReader) -> tuple[int, str]:
    line = reader.read_line()
    if line is None:
        raise TransportError("connection closed before the status line")

    version, _, rest = _decode_line(line).partition(" ")
    code, _, reason_phrase = rest.partition(" ")
    if not version.startswith("HTTP/"):
        msg = f"malformed status line: {line!r}"
        raise TransportError(msg)
    if (
        len(code) != STATUS_CODE_LENGTH
        or not (code.isascii() and code.isdigit())
        or code.startswith("0")
    ):
        msg = f"malformed status code: {code!r}"
        raise TransportError(msg)

    return int(code), reason_phrase


def _read_headers(reader: _StreamReader) -> dict[str, str]:
    headers: dict[str, str] = {}
    while True:
        line = reader.read_line()
        if line is None:
            raise TransportError("connection closed before the end of the headers")
        if not line:
            return headers
        text = _decode_line(line)
        if ":" not in text:
            continue
        key, value = text.split(":", 1)
        headers[key.strip().lower()] = value.strip()


def _is_chunked(headers: dict[str, str]) -> bool:
    transfer_encoding = headers.get("transfer-encoding")
    if transfer_encoding is None:
        return False
    codings = [coding.strip().lower() for coding in transfer_encoding.split(",")]
    return codings[-1] == "chunked"


def _parse_content_length(value: str) -> int:
    if not (value.isascii() and value.isdigit()):
        raise MalformedContentLengthError
    return int(value)


def _parse_chunk_size(line: bytes) -> int:
    # Chunk extensions after ';' are ignored, however malformed.
    token = line.split(b";", 1)[0].strip()
    if not token or any(byte not in HEX_DIGITS for byte in token):
        raise MalformedChunkLengthError
    return int(token, 16)


def _exact_body(reader: _StreamReader, length: int) -> Iterator[bytes]:
    remaining = length
    while remaining > 0:
        chunk = reader.read_some(min(remaining, DEFAULT_CHUNK_SIZE))
        if not chunk:
            msg = f"connection closed with {remaining} of {length} body bytes unread"
            raise TransportError(msg)
        remaining -= len(chunk)
        yield chunk


def _chunked_body(reader: _StreamReader) -> Iterator[bytes]:
    while True:
        size_line = reader.read_line()
        if size_line is None:
            raise TransportError("connection closed before the next chunk")
        size = _parse_chunk_size(size_line)

        if size == 0:
            # Trailer fields up to the final empty line are discarded.
            while reader.read_line():
                pass
            return

        yield from _exact_body(reader, size)

        terminator = reader.read_line()
        if terminator is None or terminator:
            raise TransportError("missing line terminator after chunk data")


class LazyResponse:
    """Response whose body is read from the connection on demand.

    Status and headers are parsed eagerly; the body is a single-pass
    iterator of byte chunks. The connection is closed when the body is
    exhausted, when reading it fails, or on ``close()``.

    Attributes:
        status_code: HTTP status code.
        reason_phrase: Reason phrase from the status line.
        headers: Response headers with lower-cased names.
        url: URL the response was received from.
    """

    def __init__(
        self,
        reader: _StreamReader,
        status_code: int,
        reason_phrase: str,
        headers: dict[str, str],
        body: Iterator[bytes],
        url: str = "",
    ) -> None:
        self._reader = reader
        self._body = body
        self._closed = False
        self.status_code = status_code
        self.reason_phrase = reason_phrase
        self.headers = headers
        self.url = url
        self.bytes_read = 0

    @classmethod
    def from_stream(cls, stream: DeadlineStream, url: str = "") -> "LazyResponse":
        """Parse the status line and headers from a freshly written connection.

        Args:
            stream: Stream positioned at the start of the response.
            url: URL the request was sent to.

        Returns:
            LazyResponse with the body left unread.

        Raises:
            TransportError: On socket failure or malformed framing.
            InvalidUtf8InResponseError: If status line or headers are not UTF-8.
            MalformedContentLengthError: If Content-Length is not an integer.
        """
        reader = _StreamReader(stream)
        status_code, reason_phrase = _read_status_line(reader)
        headers = _read_headers(reader)

        if _is_chunked(headers):
            body = _chunked_body(reader)
        elif "content-length" in headers:
            body = _exact_body(reader, _parse_content_length(headers["content-length"]))
        else:
            body = iter(())

        return cls(reader, status_code, reason_phrase, headers, body, url)

    def __iter__(self) -> Iterator[bytes]:
        return self.iter_bytes()

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    @property
    def is_closed(self) -> bool:
        """Whether the underlying connection has been released."""
        return self._closed

    def iter_bytes(self) -> Iterator[bytes]:
        """Yield body chunks until the body ends.

        Raises:
            TransportError: If the connection fails or closes early.
            MalformedChunkLengthError: If a chunk size is not hexadecimal.
        """
        if self._closed:
            return
        try:
            for chunk in self._body:
                self.bytes_read += len(chunk)
                yield chunk
        finally:
            self.close()

    def read(self) -> bytes:
        """Drain the remaining body into a single bytes object."""
        return b"".join(self.iter_bytes())

    def close(self) -> None:
        """Release the connection, discarding any unread body."""
        if not self._closed:
            self._closed = True
            self._reader.close()


class Response(BaseModel):
    """Fully received HTTP response."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    status_code: Annotated[int, Field(ge=100, le=999, description="HTTP status code")]
    reason_phrase: str = Field(default="", description="Reason phrase")
    headers: dict[str, str] = Field(
        default_factory=dict, description="Headers with lower-cased names"
    )
    body: bytes = Field(default=b"", description="Response body")
    url: str = Field(default="", description="Final URL after redirects")

    @classmethod
    def create(cls, lazy: LazyResponse) -> "Response":
        """Read a lazy response to completion.

        Args:
            lazy: Response with its body still on the connection.

        Returns:
            Response holding the whole body.
        """
        body = lazy.read()
        return cls(
            status_code=lazy.status_code,
            reason_phrase=lazy.reason_phrase,
            headers=dict(lazy.headers),
            body=body,
            url=lazy.url,
        )

    @property
    def is_success(self) -> bool:
        """Check if the status code is 2xx."""
        return HTTP_STATUS_OK_MIN <= self.status_code < HTTP_STATUS_OK_MAX

    @property
    def body_size(self) -> int:
        """Get the size of the response body in bytes."""
        return len(self.body)

    def as_str(self) -> str:
        """Decode the body as UTF-8.

        Raises:
            InvalidUtf8InBodyError: If any byte sequence is invalid UTF-8.
        """
        try:
            return self.body.decode("utf-8")
        except UnicodeDecodeError as e:
            raise InvalidUtf8InBodyError(str(e)) from e

    def as_json(self) -> Any:
        """Parse the body as JSON."""
        return json.loads(self.as_str())
