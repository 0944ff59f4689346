"""Metrics collection for the transport layer."""

from dataclasses import dataclass, field
from typing import ClassVar

from src.features.transport.models import FailureKind


@dataclass
class TransportMetrics:
    """Metrics for dispatch operations.

    Singleton class that tracks attempts, skips, and outcomes per strategy.
    Counters are process-wide aggregates only; per-call diagnostics live in
    the attempt log.
    """

    dispatch_total: int = 0
    dispatch_success_total: int = 0
    dispatch_no_path_total: int = 0
    attempts_total: dict[str, int] = field(default_factory=dict)
    skips_total: dict[str, int] = field(default_factory=dict)
    failures_total: dict[str, int] = field(default_factory=dict)
    successes_by_strategy: dict[str, int] = field(default_factory=dict)
    responses_by_status: dict[int, int] = field(default_factory=dict)
    dispatch_duration_ms_total: float = 0.0

    _instance: ClassVar["TransportMetrics | None"] = None

    @classmethod
    def get_instance(cls) -> "TransportMetrics":
        """Get singleton metrics instance."""
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    @classmethod
    def reset(cls) -> None:
        """Reset metrics (primarily for testing)."""
        cls._instance = None

    def record_attempt(self, strategy_name: str) -> None:
        """Record that a strategy was attempted."""
        self.attempts_total[strategy_name] = (
            self.attempts_total.get(strategy_name, 0) + 1
        )

    def record_skip(self, strategy_name: str) -> None:
        """Record that a strategy was skipped as incompatible."""
        self.skips_total[strategy_name] = self.skips_total.get(strategy_name, 0) + 1

    def record_failure(self, failure_kind: FailureKind) -> None:
        """Record a failed attempt.

        Args:
            failure_kind: Classification of the failure.
        """
        key = failure_kind.value
        self.failures_total[key] = self.failures_total.get(key, 0) + 1

    def record_success(self, strategy_name: str, status_code: int) -> None:
        """Record a dispatch that obtained a response.

        Args:
            strategy_name: Strategy that delivered the response.
            status_code: HTTP status of the response.
        """
        self.dispatch_success_total += 1
        self.successes_by_strategy[strategy_name] = (
            self.successes_by_strategy.get(strategy_name, 0) + 1
        )
        self.responses_by_status[status_code] = (
            self.responses_by_status.get(status_code, 0) + 1
        )

    def record_no_path(self) -> None:
        """Record a dispatch in which every compatible strategy failed."""
        self.dispatch_no_path_total += 1

    def record_dispatch(self, duration_ms: float) -> None:
        """Record a completed dispatch call.

        Args:
            duration_ms: Wall time of the whole call in milliseconds.
        """
        self.dispatch_total += 1
        self.dispatch_duration_ms_total += duration_ms

    def to_dict(
        self,
    ) -> dict[str, int | float | dict[str, int] | dict[int, int]]:
        """Convert metrics to dictionary.

        Returns:
            Dictionary of metric name to value.
        """
        return {
            "dispatch_total": self.dispatch_total,
            "dispatch_success_total": self.dispatch_success_total,
            "dispatch_no_path_total": self.dispatch_no_path_total,
            "attempts_total": dict(self.attempts_total),
            "skips_total": dict(self.skips_total),
            "failures_total": dict(self.failures_total),
            "successes_by_strategy": dict(self.successes_by_strategy),
            "responses_by_status": dict(self.responses_by_status),
            "dispatch_duration_ms_total": self.dispatch_duration_ms_total,
        }

    @property
    def avg_duration_ms(self) -> float:
        """Average dispatch duration in milliseconds."""
        if self.dispatch_total == 0:
            return 0.0
        return self.dispatch_duration_ms_total / self.dispatch_total
