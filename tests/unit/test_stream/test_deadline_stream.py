"""Unit tests for the deadline-aware byte stream."""

from unittest.mock import MagicMock

import pytest

from tests.helpers.fakes import FakeClock, FakeSocket
from tinyget.errors import ErrorKind, TransportError
from tinyget.stream import DeadlineStream, time_left


class TestTimeLeft:
    """Tests for the time budget helper."""

    @pytest.mark.unit
    def test_no_deadline(self) -> None:
        """Test that no deadline means no budget."""
        assert time_left(None) is None

    @pytest.mark.unit
    def test_remaining_seconds(self) -> None:
        """Test the remaining budget before the deadline."""
        clock = FakeClock(100.0)

        assert time_left(105.0, clock) == pytest.approx(5.0)

    @pytest.mark.unit
    def test_deadline_reached(self) -> None:
        """Test that reaching the deadline exactly is a timeout."""
        clock = FakeClock(100.0)

        with pytest.raises(TransportError) as exc_info:
            time_left(100.0, clock)

        assert exc_info.value.timed_out is True


class TestDeadlineStream:
    """Tests for DeadlineStream.read."""

    @pytest.mark.unit
    def test_read_without_deadline_leaves_timeout_alone(self) -> None:
        """Test that reads without a deadline never touch the socket timeout."""
        sock = FakeSocket(b"hello")
        stream = DeadlineStream(sock)  # type: ignore[arg-type]

        assert stream.read(1024) == b"hello"
        assert sock.timeouts == []

    @pytest.mark.unit
    def test_remaining_time_applied_per_read(self) -> None:
        """Test that each read sets the shrinking budget as socket timeout."""
        clock = FakeClock(0.0)
        sock = FakeSocket(b"abcdef", max_recv=2)
        stream = DeadlineStream(sock, deadline=10.0, clock=clock)  # type: ignore[arg-type]

        assert stream.read(1024) == b"ab"
        clock.advance(4.0)
        assert stream.read(1024) == b"cd"

        assert sock.timeouts == [pytest.approx(10.0), pytest.approx(6.0)]

    @pytest.mark.unit
    def test_past_deadline_fails_without_reading(self) -> None:
        """Test that an expired deadline fails before the socket is read."""
        clock = FakeClock(50.0)
        sock = FakeSocket(b"data")
        stream = DeadlineStream(sock, deadline=10.0, clock=clock)  # type: ignore[arg-type]

        with pytest.raises(TransportError) as exc_info:
            stream.read(1024)

        assert exc_info.value.timed_out is True
        assert exc_info.value.kind == ErrorKind.IO_TRANSPORT
        assert sock.recv_calls == 0
        assert sock.timeouts == []

    @pytest.mark.unit
    def test_os_timeout_becomes_timed_out_error(self) -> None:
        """Test that a socket timeout is reported as a timed-out transport error."""
        sock = MagicMock()
        sock.recv.side_effect = TimeoutError("timed out")
        stream = DeadlineStream(sock, deadline=None)

        with pytest.raises(TransportError) as exc_info:
            stream.read(10)

        assert exc_info.value.timed_out is True
        assert isinstance(exc_info.value.__cause__, TimeoutError)

    @pytest.mark.unit
    def test_os_error_wrapped(self) -> None:
        """Test that other socket errors keep the original as cause."""
        sock = MagicMock()
        sock.recv.side_effect = ConnectionResetError("reset by peer")
        stream = DeadlineStream(sock)

        with pytest.raises(TransportError, match="reset by peer") as exc_info:
            stream.read(10)

        assert exc_info.value.timed_out is False
        assert isinstance(exc_info.value.__cause__, ConnectionResetError)

    @pytest.mark.unit
    def test_secure_stream_uses_same_discipline(self) -> None:
        """Test that a TLS-flagged stream applies the deadline the same way."""
        clock = FakeClock(0.0)
        sock = MagicMock()
        sock.recv.return_value = b"x"
        stream = DeadlineStream(sock, deadline=3.0, secure=True, clock=clock)

        assert stream.read(1) == b"x"
        sock.settimeout.assert_called_once_with(pytest.approx(3.0))
        assert stream.secure is True

    @pytest.mark.unit
    def test_close_closes_socket(self) -> None:
        """Test that close releases the socket."""
        sock = FakeSocket()
        DeadlineStream(sock).close()  # type: ignore[arg-type]

        assert sock.closed is True
