"""Error types raised while sending a request or reading its response."""

from enum import Enum


class ErrorKind(str, Enum):
    """Classification of client errors for metrics and reporting.

    - IO_TRANSPORT: Socket or TLS failure, including timeouts
    - BODY_UTF8_INVALID: Body could not be decoded as UTF-8
    - RESPONSE_UTF8_INVALID: Status line or headers were not valid UTF-8
    - MALFORMED_CHUNK_LENGTH: Chunk size line was not hexadecimal
    - MALFORMED_CONTENT_LENGTH: Content-Length was not a non-negative integer
    - REDIRECT_LOCATION_MISSING: Redirect status without a Location header
    - INFINITE_REDIRECTION_LOOP: Redirect chain revisited a URL
    - TOO_MANY_REDIRECTIONS: Redirect chain exceeded the configured maximum
    - HTTPS_NOT_ENABLED: Secure URL requested without TLS support
    - INTERNAL: Invariant violation inside the client
    """

    IO_TRANSPORT = "IO_TRANSPORT"
    BODY_UTF8_INVALID = "BODY_UTF8_INVALID"
    RESPONSE_UTF8_INVALID = "RESPONSE_UTF8_INVALID"
    MALFORMED_CHUNK_LENGTH = "MALFORMED_CHUNK_LENGTH"
    MALFORMED_CONTENT_LENGTH = "MALFORMED_CONTENT_LENGTH"
    REDIRECT_LOCATION_MISSING = "REDIRECT_LOCATION_MISSING"
    INFINITE_REDIRECTION_LOOP = "INFINITE_REDIRECTION_LOOP"
    TOO_MANY_REDIRECTIONS = "TOO_MANY_REDIRECTIONS"
    HTTPS_NOT_ENABLED = "HTTPS_NOT_ENABLED"
    INTERNAL = "INTERNAL"


class TinygetError(Exception):
    """Base class for every error raised by tinyget.

    Attributes:
        kind: Classification of the error.
    """

    kind: ErrorKind = ErrorKind.INTERNAL
    default_message = "tinyget error"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.default_message)


class TransportError(TinygetError):
    """Socket, TLS, or framing failure while talking to the server.

    Attributes:
        timed_out: True when the request deadline expired.
    """

    kind = ErrorKind.IO_TRANSPORT
    default_message = "transport error"

    def __init__(self, message: str | None = None, *, timed_out: bool = False) -> None:
        super().__init__(message)
        self.timed_out = timed_out


class InvalidUtf8InBodyError(TinygetError):
    """The response body is not valid UTF-8, so text conversion failed."""

    kind = ErrorKind.BODY_UTF8_INVALID
    default_message = "response body contains invalid utf-8"


class InvalidUtf8InResponseError(TinygetError):
    """The status line or headers contained invalid UTF-8."""

    kind = ErrorKind.RESPONSE_UTF8_INVALID
    default_message = "response contained invalid utf-8 where valid utf-8 was expected"


class MalformedChunkLengthError(TinygetError):
    """A chunk size line of a chunked body could not be parsed."""

    kind = ErrorKind.MALFORMED_CHUNK_LENGTH
    default_message = "non-usize chunk length with transfer-encoding: chunked"


class MalformedContentLengthError(TinygetError):
    """The Content-Length header is not a non-negative integer."""

    kind = ErrorKind.MALFORMED_CONTENT_LENGTH
    default_message = "non-usize content length"


class RedirectLocationMissingError(TinygetError):
    """The response was a redirection without a Location header."""

    kind = ErrorKind.REDIRECT_LOCATION_MISSING
    default_message = "redirection location header missing"


class InfiniteRedirectionLoopError(TinygetError):
    """Following the redirections would revisit an earlier URL."""

    kind = ErrorKind.INFINITE_REDIRECTION_LOOP
    default_message = "infinite redirection loop detected"


class TooManyRedirectionsError(TinygetError):
    """More redirections than the request's maximum were followed."""

    kind = ErrorKind.TOO_MANY_REDIRECTIONS
    default_message = "too many redirections (over the max)"


class HttpsNotEnabledError(TinygetError):
    """A secure URL was requested but no TLS support is available."""

    kind = ErrorKind.HTTPS_NOT_ENABLED
    default_message = "request url contains https:// but tls support is not available"


class InternalError(TinygetError):
    """Raised for conditions the client asserts cannot happen.

    Seeing this error is a bug in tinyget, not a caller mistake.
    """

    kind = ErrorKind.INTERNAL

    def __init__(self, message: str) -> None:
        super().__init__(f"internal error in tinyget, please report it: {message!r}")
