"""Classification of attempt outcomes.

The single rule that drives fallback: getting any HTTP response means the
path works; only a transport-level non-response moves on to the next
strategy.
"""

import httpx

from src.features.transport.constants import HTTP_STATUS_MAX, HTTP_STATUS_MIN
from src.features.transport.models import FailureKind


def is_transport_response(response: httpx.Response | None) -> bool:
    """Check if an attempt produced an HTTP response.

    The status code only has to be a valid one; 4xx and 5xx count.

    Args:
        response: Response from the attempt, or None if there was none.

    Returns:
        True if the path delivered an HTTP response.
    """
    if response is None:
        return False
    return HTTP_STATUS_MIN <= response.status_code < HTTP_STATUS_MAX


def classify_exception(exc: BaseException) -> FailureKind:
    """Classify an exception raised while attempting a strategy.

    Args:
        exc: The exception raised by the attempt.

    Returns:
        FailureKind for the attempt record.
    """
    # TimeoutError subclasses OSError, so it must be checked first
    if isinstance(exc, (TimeoutError, httpx.TimeoutException)):
        return FailureKind.TIMEOUT

    if isinstance(exc, (httpx.NetworkError, httpx.ProxyError, OSError)):
        return FailureKind.NETWORK_ERROR

    return FailureKind.REJECTED


def describe_exception(exc: BaseException) -> str:
    """Build a short, single-line description of an attempt failure."""
    message = str(exc).strip().splitlines()[0] if str(exc).strip() else ""
    if message:
        return f"{type(exc).__name__}: {message}"
    return type(exc).__name__
