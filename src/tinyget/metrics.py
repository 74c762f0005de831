"""Process-wide counters for requests sent by tinyget."""

from dataclasses import dataclass, field
from typing import ClassVar

from tinyget.errors import ErrorKind


@dataclass
class ClientMetrics:
    """Metrics for send operations.

    Singleton class that tracks responses per status code, followed
    redirects, body bytes, and failures per error kind.
    """

    requests_total: dict[int, int] = field(default_factory=dict)
    redirects_total: int = 0
    bytes_total: int = 0
    failures_total: dict[str, int] = field(default_factory=dict)
    duration_ms_total: float = 0.0
    send_count: int = 0

    _instance: ClassVar["ClientMetrics | None"] = None

    @classmethod
    def get_instance(cls) -> "ClientMetrics":
        """Get singleton metrics instance."""
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    @classmethod
    def reset(cls) -> None:
        """Reset metrics (primarily for testing)."""
        cls._instance = None

    def record_response(self, status_code: int) -> None:
        """Record one response received on a connection, redirects included."""
        self.requests_total[status_code] = self.requests_total.get(status_code, 0) + 1

    def record_redirect(self) -> None:
        self.redirects_total += 1

    def record_bytes(self, count: int) -> None:
        self.bytes_total += count

    def record_failure(self, kind: ErrorKind) -> None:
        """Record a failed send operation.

        Args:
            kind: Classification of the failure.
        """
        key = kind.value
        self.failures_total[key] = self.failures_total.get(key, 0) + 1

    def record_send(self, duration_ms: float) -> None:
        """Record the duration of a finished send operation."""
        self.send_count += 1
        self.duration_ms_total += duration_ms

    def to_dict(self) -> dict[str, int | float | dict[str, int] | dict[int, int]]:
        """Convert metrics to dictionary."""
        return {
            "requests_total": dict(self.requests_total),
            "redirects_total": self.redirects_total,
            "bytes_total": self.bytes_total,
            "failures_total": dict(self.failures_total),
            "duration_ms_total": self.duration_ms_total,
            "send_count": self.send_count,
        }

    @property
    def avg_duration_ms(self) -> float:
        """Average duration of a send operation in milliseconds."""
        if self.send_count == 0:
            return 0.0
        return self.duration_ms_total / self.send_count
