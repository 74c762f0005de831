"""Deadline-aware byte stream over a plaintext or TLS socket."""

import socket
import time
from collections.abc import Callable

from tinyget.errors import TransportError


TIMEOUT_MESSAGE = "The request's timeout was reached."


def time_left(
    deadline: float | None,
    clock: Callable[[], float] = time.monotonic,
) -> float | None:
    """Seconds left before ``deadline``, or None without a deadline.

    Raises:
        TransportError: If the deadline has already passed.
    """
    if deadline is None:
        return None
    left = deadline - clock()
    if left <= 0:
        raise TransportError(TIMEOUT_MESSAGE, timed_out=True)
    return left


class DeadlineStream:
    """Readable byte stream bounded by an absolute deadline.

    Every read first checks the remaining time budget and applies it as
    the socket timeout for that single call, so a slow server cannot hold
    a read past the request deadline. TLS sockets decrypt inside ``recv``
    and share the same discipline.
    """

    def __init__(
        self,
        sock: socket.socket,
        deadline: float | None = None,
        *,
        secure: bool = False,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize the stream.

        Args:
            sock: Connected socket, plain or wrapped in TLS.
            deadline: Absolute instant on ``clock`` after which reads fail.
            secure: Whether ``sock`` is a TLS socket.
            clock: Monotonic time source.
        """
        self._sock = sock
        self._deadline = deadline
        self._clock = clock
        self.secure = secure

    def remaining(self) -> float | None:
        """Seconds left for this stream; see ``time_left``."""
        return time_left(self._deadline, self._clock)

    def read(self, size: int) -> bytes:
        """Read up to ``size`` bytes; an empty result means end of stream.

        Raises:
            TransportError: On deadline expiry or socket failure.
        """
        left = self.remaining()
        if left is not None:
            self._sock.settimeout(left)
        try:
            return self._sock.recv(size)
        except TimeoutError as e:
            raise TransportError(TIMEOUT_MESSAGE, timed_out=True) from e
        except OSError as e:
            raise TransportError(str(e)) from e

    def close(self) -> None:
        """Close the underlying socket."""
        self._sock.close()
