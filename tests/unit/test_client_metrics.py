"""Tests for ClientMetrics."""

from collections.abc import Generator

import pytest

from tinyget.errors import ErrorKind
from tinyget.metrics import ClientMetrics


@pytest.fixture(autouse=True)
def reset_metrics() -> Generator[None]:
    """Reset singleton before and after each test."""
    ClientMetrics.reset()
    yield
    ClientMetrics.reset()


class TestClientMetricsSingleton:
    """Tests for singleton pattern."""

    def test_get_instance_returns_same_instance(self) -> None:
        """get_instance returns the same instance each time."""
        assert ClientMetrics.get_instance() is ClientMetrics.get_instance()

    def test_reset_clears_singleton(self) -> None:
        """reset starts a fresh instance."""
        first = ClientMetrics.get_instance()
        first.record_redirect()
        ClientMetrics.reset()

        second = ClientMetrics.get_instance()
        assert first is not second
        assert second.redirects_total == 0


class TestClientMetricsRecording:
    """Tests for the record_* methods."""

    def test_record_response_counts_per_status(self) -> None:
        """Responses are counted per status code."""
        metrics = ClientMetrics.get_instance()
        metrics.record_response(200)
        metrics.record_response(200)
        metrics.record_response(301)

        assert metrics.requests_total == {200: 2, 301: 1}

    def test_record_failure_keyed_by_kind(self) -> None:
        """Failures are counted per error kind value."""
        metrics = ClientMetrics.get_instance()
        metrics.record_failure(ErrorKind.IO_TRANSPORT)
        metrics.record_failure(ErrorKind.IO_TRANSPORT)
        metrics.record_failure(ErrorKind.TOO_MANY_REDIRECTIONS)

        assert metrics.failures_total == {"IO_TRANSPORT": 2, "TOO_MANY_REDIRECTIONS": 1}

    def test_avg_duration(self) -> None:
        """Average duration divides by the number of sends."""
        metrics = ClientMetrics.get_instance()
        assert metrics.avg_duration_ms == 0.0

        metrics.record_send(10.0)
        metrics.record_send(30.0)

        assert metrics.avg_duration_ms == pytest.approx(20.0)

    def test_to_dict(self) -> None:
        """to_dict exposes every counter."""
        metrics = ClientMetrics.get_instance()
        metrics.record_bytes(42)
        metrics.record_redirect()

        result = metrics.to_dict()

        assert result["bytes_total"] == 42
        assert result["redirects_total"] == 1
        assert result["send_count"] == 0
        assert set(result) == {
            "requests_total",
            "redirects_total",
            "bytes_total",
            "failures_total",
            "duration_ms_total",
            "send_count",
        }
