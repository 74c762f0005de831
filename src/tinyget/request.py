"""HTTP GET request record and its builder operations."""

import math
from typing import TYPE_CHECKING, Annotated, NamedTuple, Self

from pydantic import BaseModel, ConfigDict, Field

from tinyget.constants import CRLF, DEFAULT_MAX_REDIRECTS, HTTP_VERSION
from tinyget.url import build_target, compose_url, parse_url


if TYPE_CHECKING:
    from tinyget.response import LazyResponse, Response


class RedirectHop(NamedTuple):
    """A URL visited while following redirects."""

    is_secure: bool
    host_port: str
    resource: str


class Request(BaseModel):
    """An HTTP GET request that has not been sent yet.

    Builder methods return a new request and leave the original
    untouched, so a request can be shared and refined safely.

    Example:
        >>> request = get("http://example.com").with_header("Accept", "text/plain")
        >>> request.host_port
        'example.com:80'
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    is_secure: bool = False
    host_port: Annotated[str, Field(description="Host with port, e.g. example.com:80")]
    resource: str = Field(default="/", description="Path, query, and fragment")
    headers: dict[str, str] = Field(
        default_factory=dict, description="Headers as supplied by the caller"
    )
    query_params: dict[str, str] = Field(
        default_factory=dict, description="Query parameters encoded at send time"
    )
    timeout: Annotated[float | None, Field(ge=0)] = None
    max_redirects: Annotated[int, Field(ge=0)] = DEFAULT_MAX_REDIRECTS
    redirect_history: tuple[RedirectHop, ...] = ()

    @classmethod
    def from_url(cls, url: str) -> Self:
        """Create a request for an absolute ``http://`` or ``https://`` URL."""
        is_secure, host_port, resource = parse_url(url)
        return cls(is_secure=is_secure, host_port=host_port, resource=resource)

    @property
    def url(self) -> str:
        """Absolute URL of the resource, without query parameters."""
        return compose_url(self.is_secure, self.host_port, self.resource)

    @property
    def hop(self) -> RedirectHop:
        """This request's position in a redirect chain."""
        return RedirectHop(self.is_secure, self.host_port, self.resource)

    def with_header(self, key: str, value: str) -> Self:
        """Return a copy with ``key: value`` added to the headers."""
        return self.model_copy(update={"headers": {**self.headers, key: value}})

    def with_query(self, key: str, value: str) -> Self:
        """Return a copy with a query parameter added."""
        return self.model_copy(
            update={"query_params": {**self.query_params, key: value}}
        )

    def with_timeout(self, seconds: float) -> Self:
        """Return a copy that gives up after ``seconds``.

        The timeout covers the whole send, redirects included. It takes
        precedence over the ``TINYGET_TIMEOUT`` environment variable.
        """
        if not math.isfinite(seconds) or seconds < 0:
            msg = f"timeout must be a non-negative finite number, got {seconds}"
            raise ValueError(msg)
        return self.model_copy(update={"timeout": seconds})

    def with_max_redirects(self, max_redirects: int) -> Self:
        """Return a copy that follows at most ``max_redirects`` redirections."""
        if max_redirects < 0:
            msg = f"max_redirects must be non-negative, got {max_redirects}"
            raise ValueError(msg)
        return self.model_copy(update={"max_redirects": max_redirects})

    def target(self) -> str:
        """Request target: the resource with encoded query parameters."""
        return build_target(self.resource, self.query_params)

    def as_bytes(self) -> bytes:
        """Serialize the request line and headers, ready for the socket."""
        lines = [f"GET {self.target()} {HTTP_VERSION}", f"Host: {self.host_port}"]
        lines.extend(f"{key}: {value}" for key, value in self.headers.items())
        return (CRLF.join(lines) + CRLF + CRLF).encode("utf-8")

    def send(self) -> "Response":
        """Send the request and read the whole response.

        Raises:
            TinygetError: Any error except InvalidUtf8InBodyError.
        """
        from tinyget.client import Connection

        return Connection(self).send()

    def send_lazy(self) -> "LazyResponse":
        """Send the request and return once the headers are read.

        Raises:
            TinygetError: See ``send``.
        """
        from tinyget.client import Connection

        return Connection(self).send_lazy()


def get(url: str) -> Request:
    """Create a GET request for ``url``."""
    return Request.from_url(url)
