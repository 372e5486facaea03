"""In-process counters for the typed HTTP client."""

from collections import Counter
from dataclasses import dataclass, field
from typing import ClassVar


@dataclass
class HttpClientMetrics:
    """Process-wide send counters, shared by every client instance.

    Responses are counted by status and by method, transient outcomes and
    known-error translations by type, and transport failures by exception
    class name.
    """

    http_requests_total: Counter[int] = field(default_factory=Counter)
    http_requests_by_method: Counter[str] = field(default_factory=Counter)
    http_transient_total: int = 0
    http_known_errors_total: Counter[str] = field(default_factory=Counter)
    http_failures_total: Counter[str] = field(default_factory=Counter)
    http_duration_ms_total: float = 0.0

    _instance: ClassVar["HttpClientMetrics | None"] = None

    @classmethod
    def get_instance(cls) -> "HttpClientMetrics":
        """Get the shared instance, creating it on first use."""
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    @classmethod
    def reset(cls) -> None:
        """Drop the shared instance (tests)."""
        cls._instance = None

    @property
    def http_request_count(self) -> int:
        """Number of responses received."""
        return sum(self.http_requests_total.values())

    def record_response(
        self, method: str, status_code: int, duration_ms: float = 0.0
    ) -> None:
        """Count a response returned by the transport.

        Args:
            method: Request method.
            status_code: Response status.
            duration_ms: Time from dispatch to response headers.
        """
        self.http_requests_total[status_code] += 1
        self.http_requests_by_method[method.upper()] += 1
        self.http_duration_ms_total += duration_ms

    def record_transient(self) -> None:
        self.http_transient_total += 1

    def record_known_error(self, error_type: str) -> None:
        self.http_known_errors_total[error_type] += 1

    def record_failure(self, exception_name: str) -> None:
        """Count a send that raised before a response arrived."""
        self.http_failures_total[exception_name] += 1

    @property
    def avg_duration_ms(self) -> float:
        """Mean response time, 0.0 before any response."""
        count = self.http_request_count
        return self.http_duration_ms_total / count if count else 0.0

    def to_dict(self) -> dict[str, int | float | dict[str, int] | dict[int, int]]:
        """Snapshot the counters as plain dicts."""
        return {
            "http_requests_total": dict(self.http_requests_total),
            "http_requests_by_method": dict(self.http_requests_by_method),
            "http_transient_total": self.http_transient_total,
            "http_known_errors_total": dict(self.http_known_errors_total),
            "http_failures_total": dict(self.http_failures_total),
            "http_duration_ms_total": self.http_duration_ms_total,
            "http_request_count": self.http_request_count,
            "http_avg_duration_ms": self.avg_duration_ms,
        }
