"""Call-scoped log of failed strategy attempts."""

from collections.abc import Iterator
from datetime import UTC, datetime

from src.features.transport.models import AttemptRecord, FailureKind


class AttemptLog:
    """Append-only record of failed attempts for a single dispatch call.

    A new log is created at the start of every dispatch, so diagnostics from
    one request never leak into another. Callers only ever receive an
    immutable snapshot.
    """

    def __init__(self) -> None:
        """Initialize an empty log."""
        self._records: list[AttemptRecord] = []

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[AttemptRecord]:
        return iter(self.snapshot())

    def record(
        self,
        strategy_name: str,
        failure_kind: FailureKind,
        detail: str = "",
        elapsed_ms: float = 0.0,
        timestamp: datetime | None = None,
    ) -> AttemptRecord:
        """Append a failed attempt.

        Args:
            strategy_name: Name of the strategy that failed.
            failure_kind: Classification of the failure.
            detail: Short human-readable cause.
            elapsed_ms: Time spent on the attempt.
            timestamp: When the attempt failed (default: now, UTC).

        Returns:
            The appended record.
        """
        entry = AttemptRecord(
            strategy_name=strategy_name,
            failure_kind=failure_kind,
            timestamp=timestamp or datetime.now(UTC),
            detail=detail,
            elapsed_ms=elapsed_ms,
        )
        self._records.append(entry)
        return entry

    def snapshot(self) -> tuple[AttemptRecord, ...]:
        """Get an immutable copy of the records in attempt order."""
        return tuple(self._records)

    @property
    def last_strategy(self) -> str | None:
        """Name of the most recently failed strategy."""
        return self._records[-1].strategy_name if self._records else None

    def to_list(self) -> list[dict[str, str | float]]:
        """Convert records to dictionaries for JSON output."""
        return [entry.to_dict() for entry in self._records]
