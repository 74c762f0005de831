"""Connection orchestration: connect, write, read, and follow redirects."""

import socket
import time
from collections.abc import Callable
from typing import Protocol, runtime_checkable

import structlog

from tinyget.config import ClientSettings, resolve_timeout
from tinyget.errors import (
    HttpsNotEnabledError,
    InternalError,
    TinygetError,
    TransportError,
)
from tinyget.metrics import ClientMetrics
from tinyget.redirect import get_redirect
from tinyget.request import Request
from tinyget.response import LazyResponse, Response
from tinyget.stream import TIMEOUT_MESSAGE, DeadlineStream, time_left


try:
    import ssl
except ImportError:  # interpreter built without OpenSSL
    ssl = None  # type: ignore[assignment]


logger = structlog.get_logger()


@runtime_checkable
class SocketProvider(Protocol):
    """Protocol for opening connections.

    Abstracts the platform networking stack so that tests and callers
    can supply their own sockets or TLS configuration.
    """

    @property
    def supports_tls(self) -> bool:
        """Whether ``wrap_tls`` can secure a connection."""
        ...

    def connect(self, host: str, port: int, timeout: float | None) -> socket.socket:
        """Open a TCP connection.

        Args:
            host: Host name or IP address.
            port: TCP port.
            timeout: Seconds allowed for connecting, or None to block.

        Returns:
            Connected socket.
        """
        ...

    def wrap_tls(self, sock: socket.socket, server_hostname: str) -> socket.socket:
        """Run the TLS handshake on a connected socket.

        Args:
            sock: Connected plaintext socket.
            server_hostname: Name the certificate is validated against.

        Returns:
            Socket that encrypts everything written and read.
        """
        ...


class SystemSocketProvider:
    """Socket provider backed by the ``socket`` and ``ssl`` modules."""

    def __init__(self, ssl_context: "ssl.SSLContext | None" = None) -> None:
        """Initialize the provider.

        Args:
            ssl_context: TLS settings; the system defaults when omitted.
        """
        self._ssl_context = ssl_context

    @property
    def supports_tls(self) -> bool:
        return ssl is not None

    def connect(self, host: str, port: int, timeout: float | None) -> socket.socket:
        return socket.create_connection((host, port), timeout=timeout)

    def wrap_tls(self, sock: socket.socket, server_hostname: str) -> socket.socket:
        if ssl is None:
            raise HttpsNotEnabledError
        context = self._ssl_context or ssl.create_default_context()
        return context.wrap_socket(sock, server_hostname=server_hostname)


def split_host_port(host_port: str) -> tuple[str, int]:
    """Split ``host:port`` into the host name and the numeric port.

    Square brackets around IPv6 literals are removed from the host.

    Raises:
        TransportError: If the port is not a number.
    """
    host, separator, port = host_port.rpartition(":")
    if not separator:
        # parse_url always appends a port
        msg = f"host without port: {host_port}"
        raise InternalError(msg)
    if not (port.isascii() and port.isdigit()):
        msg = f"invalid port in {host_port!r}"
        raise TransportError(msg)
    return host.removeprefix("[").removesuffix("]"), int(port)


def _transport_error(error: Exception) -> TransportError:
    if isinstance(error, TimeoutError):
        return TransportError(TIMEOUT_MESSAGE, timed_out=True)
    return TransportError(str(error) or type(error).__name__)


class Connection:
    """A single send operation for a request, redirects included.

    Opens one socket per hop and closes it before the next hop. The
    deadline is computed once when sending starts and bounds every
    connect, write, and read that follows.
    """

    def __init__(
        self,
        request: Request,
        provider: SocketProvider | None = None,
        settings: ClientSettings | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize the connection.

        Args:
            request: Request to send.
            provider: Socket provider; the system one when omitted.
            settings: Environment defaults; loaded when omitted.
            clock: Monotonic time source for the deadline.
        """
        self._request = request
        self._provider = provider or SystemSocketProvider()
        self._clock = clock
        self.timeout = resolve_timeout(request.timeout, settings)
        self._metrics = ClientMetrics.get_instance()
        self._log = logger.bind(component="connection", url=request.url)

    def send(self) -> Response:
        """Send the request and read the whole response body.

        Raises:
            TinygetError: If any stage fails; nothing is retried.
        """
        start_time_ns = time.perf_counter_ns()
        try:
            response = Response.create(self._follow_redirects())
        except TinygetError as e:
            self._record_failure(e, start_time_ns)
            raise

        self._metrics.record_bytes(response.body_size)
        self._record_success(response.status_code, response.url, start_time_ns)
        return response

    def send_lazy(self) -> LazyResponse:
        """Send the request and return with the body still unread.

        Raises:
            TinygetError: If any stage up to the headers fails.
        """
        start_time_ns = time.perf_counter_ns()
        try:
            response = self._follow_redirects()
        except TinygetError as e:
            self._record_failure(e, start_time_ns)
            raise

        self._record_success(response.status_code, response.url, start_time_ns)
        return response

    def _follow_redirects(self) -> LazyResponse:
        deadline = None if self.timeout is None else self._clock() + self.timeout
        request = self._request

        while True:
            response = self._send_once(request, deadline)
            try:
                next_request = get_redirect(request, response)
            except TinygetError:
                response.close()
                raise

            if next_request is None:
                return response

            response.close()
            self._metrics.record_redirect()
            self._log.info(
                "redirect_followed",
                status_code=response.status_code,
                location=next_request.url,
                hops=len(next_request.redirect_history),
            )
            request = next_request

    def _send_once(self, request: Request, deadline: float | None) -> LazyResponse:
        if request.is_secure and not self._provider.supports_tls:
            raise HttpsNotEnabledError

        host, port = split_host_port(request.host_port)
        # Host names that fail IDNA encoding raise UnicodeError.
        try:
            sock = self._provider.connect(host, port, time_left(deadline, self._clock))
        except (OSError, ValueError, OverflowError) as e:
            raise _transport_error(e) from e

        try:
            if request.is_secure:
                sock = self._provider.wrap_tls(sock, host)
            stream = DeadlineStream(
                sock, deadline, secure=request.is_secure, clock=self._clock
            )
            # The connection could drop mid-write, so bound the write too.
            sock.settimeout(stream.remaining())
            sock.sendall(request.as_bytes())
        except (OSError, ValueError, OverflowError) as e:
            sock.close()
            raise _transport_error(e) from e
        except TinygetError:
            sock.close()
            raise

        self._log.debug(
            "request_sent",
            host=request.host_port,
            secure=stream.secure,
            header_names=sorted(request.headers),
            query_params=len(request.query_params),
        )

        try:
            response = LazyResponse.from_stream(stream, url=request.url)
        except TinygetError:
            stream.close()
            raise

        self._metrics.record_response(response.status_code)
        self._log.debug(
            "response_received",
            host=request.host_port,
            status_code=response.status_code,
            reason_phrase=response.reason_phrase,
            secure=stream.secure,
        )
        return response

    def _record_success(self, status_code: int, url: str, start_time_ns: int) -> None:
        duration_ms = (time.perf_counter_ns() - start_time_ns) / 1_000_000
        self._metrics.record_send(duration_ms)
        self._log.info(
            "send_complete",
            status_code=status_code,
            final_url=url,
            duration_ms=round(duration_ms, 2),
        )

    def _record_failure(self, error: TinygetError, start_time_ns: int) -> None:
        duration_ms = (time.perf_counter_ns() - start_time_ns) / 1_000_000
        self._metrics.record_failure(error.kind)
        self._metrics.record_send(duration_ms)
        self._log.warning(
            "send_failed",
            error_kind=error.kind.value,
            error=str(error),
            duration_ms=round(duration_ms, 2),
        )
