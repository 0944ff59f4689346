"""Error types for the transport layer.

Per-strategy failures are never raised; they are recorded in the attempt
log. NoPathError is the only transport failure surfaced to callers.
"""

from collections.abc import Sequence
from typing import TYPE_CHECKING, Any


if TYPE_CHECKING:
    from src.features.transport.models import AttemptRecord


class TransportError(Exception):
    """Base exception for the transport layer."""


class NoPathError(TransportError):
    """Raised when every compatible strategy failed at the transport level.

    Carries the ordered attempt history of the failed dispatch.
    """

    def __init__(
        self,
        message: str,
        attempts: Sequence["AttemptRecord"] = (),
    ) -> None:
        """Initialize the error.

        Args:
            message: Human-readable aggregated summary.
            attempts: Ordered records of the failed attempts.
        """
        super().__init__(message)
        self.message = message
        self.attempts: tuple[AttemptRecord, ...] = tuple(attempts)

    @property
    def last_strategy(self) -> str | None:
        """Name of the last attempted strategy, if any was attempted."""
        return self.attempts[-1].strategy_name if self.attempts else None

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization.

        Returns:
            Dictionary representation of the error.
        """
        return {
            "error_class": "terminal_no_path",
            "message": self.message,
            "last_strategy": self.last_strategy,
            "attempts": [record.to_dict() for record in self.attempts],
        }


class TransportConfigError(TransportError):
    """Raised when a transport configuration file fails validation."""

    def __init__(self, errors: list[dict[str, str]], file_path: str) -> None:
        """Initialize the error.

        Args:
            errors: List of validation error details.
            file_path: Path to the file that failed validation.
        """
        self.errors = errors
        self.file_path = file_path
        super().__init__(f"Validation failed for {file_path}: {len(errors)} errors")
