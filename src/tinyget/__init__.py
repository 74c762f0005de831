"""tinyget: a tiny HTTP(S) GET client.

Sends GET requests over plain or TLS sockets with:
- Fully buffered (``send``) or streamed (``send_lazy``) responses
- Content-Length and chunked body framing
- Redirect following with loop and hop-limit detection
- One deadline per request, from ``with_timeout`` or ``TINYGET_TIMEOUT``

Example:
    >>> response = tinyget.get("http://httpbin.org/ip").send()
    >>> response.status_code
    200
"""

from tinyget.client import Connection, SocketProvider, SystemSocketProvider
from tinyget.config import ClientSettings, get_settings, resolve_timeout
from tinyget.errors import (
    ErrorKind,
    HttpsNotEnabledError,
    InfiniteRedirectionLoopError,
    InternalError,
    InvalidUtf8InBodyError,
    InvalidUtf8InResponseError,
    MalformedChunkLengthError,
    MalformedContentLengthError,
    RedirectLocationMissingError,
    TinygetError,
    TooManyRedirectionsError,
    TransportError,
)
from tinyget.metrics import ClientMetrics
from tinyget.request import RedirectHop, Request, get
from tinyget.response import LazyResponse, Response
from tinyget.stream import DeadlineStream
from tinyget.url import parse_url


__version__ = "1.0.2"

__all__ = [
    # Entry points
    "get",
    "Request",
    "RedirectHop",
    # Responses
    "Response",
    "LazyResponse",
    # Transport
    "Connection",
    "DeadlineStream",
    "SocketProvider",
    "SystemSocketProvider",
    "parse_url",
    # Config
    "ClientSettings",
    "get_settings",
    "resolve_timeout",
    # Metrics
    "ClientMetrics",
    # Errors
    "ErrorKind",
    "TinygetError",
    "TransportError",
    "InvalidUtf8InBodyError",
    "InvalidUtf8InResponseError",
    "MalformedChunkLengthError",
    "MalformedContentLengthError",
    "RedirectLocationMissingError",
    "InfiniteRedirectionLoopError",
    "TooManyRedirectionsError",
    "HttpsNotEnabledError",
    "InternalError",
]
