"""Client for the captive-portal backend over the resilient transport."""

import json
from typing import Any

import structlog

from src.features.portal.builders import (
    build_login_request,
    build_register_request,
    build_request_otp_request,
    build_usage_request,
    build_verify_otp_request,
)
from src.features.portal.models import LoginPayload, RegistrationPayload, UsageSummary
from src.features.transport.dispatcher import Dispatcher
from src.features.transport.models import LogicalRequest, TransportResponse


logger = structlog.get_logger()

TOKEN_FIELDS = ("token", "key", "token_key")

# Below this many remaining bytes the account is treated as out of data
LOW_DATA_THRESHOLD_BYTES = 50 * 1024
BYTES_PER_MB = 1024 * 1024


class PortalClient:
    """Backend operations routed through the dispatcher.

    Every method returns the raw TransportResponse; backend status codes
    are left for the caller to interpret.

    Raises:
        NoPathError: From any method, when no strategy could reach the backend.
    """

    def __init__(self, dispatcher: Dispatcher, api_endpoint: str) -> None:
        """Initialize the client.

        Args:
            dispatcher: Dispatcher used for every call.
            api_endpoint: Backend base URL.
        """
        self._dispatcher = dispatcher
        self._api_endpoint = api_endpoint
        self._log = logger.bind(component="portal")

    def register(self, payload: RegistrationPayload) -> TransportResponse:
        """Register a new account.

        Raises:
            ValueError: If the two password fields differ; nothing is sent.
        """
        if not payload.passwords_match:
            msg = "Passwords do not match."
            raise ValueError(msg)
        return self._send(
            "register", build_register_request(self._api_endpoint, payload)
        )

    def login(self, payload: LoginPayload) -> TransportResponse:
        """Exchange credentials for a bearer token."""
        return self._send("login", build_login_request(self._api_endpoint, payload))

    def request_otp(self, token: str) -> TransportResponse:
        """Ask the backend to send a one-time code to the account's phone."""
        return self._send(
            "request_otp", build_request_otp_request(self._api_endpoint, token)
        )

    def verify_otp(self, token: str, code: str) -> TransportResponse:
        """Verify a one-time code."""
        return self._send(
            "verify_otp", build_verify_otp_request(self._api_endpoint, token, code)
        )

    def get_usage(self, token: str) -> TransportResponse:
        """Fetch the account's data usage."""
        return self._send(
            "get_usage", build_usage_request(self._api_endpoint, token)
        )

    def _send(self, operation: str, request: LogicalRequest) -> TransportResponse:
        outcome = self._dispatcher.dispatch(request)
        if outcome.response is not None:
            self._log.info(
                "portal_call_complete",
                operation=operation,
                status_code=outcome.response.status_code,
                strategy=outcome.response.strategy_name,
            )
        return outcome.unwrap()


def parse_response_body(response: TransportResponse) -> dict[str, Any]:
    """Parse a backend response body.

    Args:
        response: Response from any portal call.

    Returns:
        The JSON object, or {"detail": ...} holding the raw text (or the
        status when the body is empty) if the body is not a JSON object.
    """
    try:
        data = json.loads(response.body_bytes)
    except (json.JSONDecodeError, UnicodeDecodeError):
        data = None

    if isinstance(data, dict):
        return data
    return {"detail": response.text or f"Status {response.status_code}"}


def extract_token(data: dict[str, Any]) -> str | None:
    """Pick the bearer token from a register or login response.

    The backend has used several field names over time.
    """
    for field_name in TOKEN_FIELDS:
        value = data.get(field_name)
        if value:
            return str(value)
    return None


def summarize_usage(data: dict[str, Any]) -> UsageSummary | None:
    """Summarize remaining data from a usage response.

    Args:
        data: Parsed usage response with a "checks" list of
            {"value": limit_bytes, "result": used_bytes} entries.

    Returns:
        Summary of the first check, or None if there are no checks.
    """
    checks = data.get("checks") or []
    if not checks:
        return None

    check = checks[0]
    remaining = int(check.get("value", 0)) - int(check.get("result", 0))
    return UsageSummary(
        remaining_bytes=remaining,
        remaining_mb=f"{remaining / BYTES_PER_MB:.2f}",
        has_data=remaining > LOW_DATA_THRESHOLD_BYTES,
    )
