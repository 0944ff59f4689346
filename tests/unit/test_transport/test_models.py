"""Unit tests for transport data models."""

from datetime import UTC, datetime

import pytest
from pydantic import ValidationError

from src.features.transport.errors import NoPathError
from src.features.transport.models import (
    AttemptRecord,
    CredentialPolicy,
    DispatchOutcome,
    FailureKind,
    LogicalRequest,
    OutcomeStatus,
    Strategy,
    TransportResponse,
    UrlTransform,
)


class TestStrategy:
    """Tests for the Strategy descriptor."""

    def test_identity_url_unchanged(self) -> None:
        """Direct strategies request the backend URL as is."""
        strategy = Strategy(name="direct")

        assert strategy.build_url("https://example.com/api/?a=1") == (
            "https://example.com/api/?a=1"
        )
        assert strategy.is_relay is False

    def test_prefix_encoded_url(self) -> None:
        """Relays append the fully percent-encoded target to their prefix."""
        strategy = Strategy(
            name="corsproxy",
            url_transform=UrlTransform.PREFIX_ENCODED,
            prefix="https://corsproxy.io/?",
        )

        url = strategy.build_url("https://example.com/api/token/?x=1&y=2")

        assert url == (
            "https://corsproxy.io/?"
            "https%3A%2F%2Fexample.com%2Fapi%2Ftoken%2F%3Fx%3D1%26y%3D2"
        )
        assert strategy.is_relay is True

    def test_prefix_required_for_relay(self) -> None:
        """A prefix_encoded strategy without prefix is rejected."""
        with pytest.raises(ValidationError, match="has no prefix"):
            Strategy(name="broken", url_transform=UrlTransform.PREFIX_ENCODED)

    def test_prefix_forbidden_for_identity(self) -> None:
        """An identity strategy with a prefix is rejected."""
        with pytest.raises(ValidationError, match="declares a prefix"):
            Strategy(name="broken", prefix="https://relay.test/?")

    def test_supports_is_case_insensitive(self) -> None:
        """Method checks ignore case on both sides."""
        strategy = Strategy(name="get_only", allowed_methods=frozenset({"get"}))

        assert strategy.allowed_methods == frozenset({"GET"})
        assert strategy.supports("GET")
        assert strategy.supports("get")
        assert not strategy.supports("POST")

    def test_empty_methods_rejected(self) -> None:
        """A strategy must allow at least one method."""
        with pytest.raises(ValidationError):
            Strategy(name="none", allowed_methods=frozenset())

    def test_timeout_must_be_positive(self) -> None:
        """Zero and negative deadlines are rejected."""
        with pytest.raises(ValidationError):
            Strategy(name="direct", timeout_seconds=0)

    def test_frozen(self) -> None:
        """Strategies cannot be mutated."""
        strategy = Strategy(name="direct")

        with pytest.raises(ValidationError):
            strategy.timeout_seconds = 1.0  # type: ignore[misc]

    def test_forward_credentials_copies_headers(self) -> None:
        """FORWARD keeps every header and never aliases the input."""
        headers = {"Authorization": "Bearer t", "Accept": "application/json"}
        strategy = Strategy(name="direct")

        prepared = strategy.prepare_headers(headers)

        assert prepared == headers
        assert prepared is not headers

    def test_omit_credentials(self) -> None:
        """OMIT drops credential headers regardless of case."""
        headers = {
            "authorization": "Bearer t",
            "Cookie": "s=1",
            "X-Api-Key": "k",
            "Accept": "application/json",
        }
        strategy = Strategy(name="direct", credential_policy=CredentialPolicy.OMIT)

        assert strategy.prepare_headers(headers) == {"Accept": "application/json"}
        assert "authorization" in headers


class TestLogicalRequest:
    """Tests for LogicalRequest validation."""

    def test_method_normalized(self) -> None:
        """Methods are upper-cased."""
        request = LogicalRequest(method=" post ", target_url="https://a.test/")

        assert request.method == "POST"

    def test_relative_url_rejected(self) -> None:
        """The target must be an absolute http(s) URL."""
        with pytest.raises(ValidationError, match="absolute"):
            LogicalRequest(method="GET", target_url="/api/usage/")

    def test_defaults(self) -> None:
        """Headers default to empty, body to None."""
        request = LogicalRequest(method="GET", target_url="https://a.test/")

        assert request.headers == {}
        assert request.body is None

    def test_headers_read_only(self) -> None:
        """Headers cannot be changed in place after construction."""
        source = {"A": "1"}
        request = LogicalRequest(
            method="GET", target_url="https://a.test/", headers=source
        )

        with pytest.raises(TypeError):
            request.headers["Authorization"] = "Bearer injected"  # type: ignore[index]
        source["B"] = "2"

        assert dict(request.headers) == {"A": "1"}
        assert request.model_dump()["headers"] == {"A": "1"}

    def test_default_headers_read_only(self) -> None:
        """The default empty headers are read-only too."""
        request = LogicalRequest(method="GET", target_url="https://a.test/")

        with pytest.raises(TypeError):
            request.headers["X-Added"] = "1"  # type: ignore[index]

    @pytest.mark.parametrize(
        "headers",
        [{"X-Name": "caf\u00e9"}, {"Authorization": "Bearer t\u00f6k\u00e9n"}],
    )
    def test_non_ascii_header_value_rejected(self, headers: dict[str, str]) -> None:
        """Header values must be ASCII to be sent at all."""
        with pytest.raises(ValidationError, match="only ASCII characters"):
            LogicalRequest(method="GET", target_url="https://a.test/", headers=headers)

    def test_non_ascii_header_name_rejected(self) -> None:
        """Header names must be ASCII."""
        with pytest.raises(ValidationError, match="Header name"):
            LogicalRequest(
                method="GET", target_url="https://a.test/", headers={"X-\u00c9": "1"}
            )


class TestTransportResponse:
    """Tests for TransportResponse helpers."""

    def _response(self, status_code: int, body: bytes = b"") -> TransportResponse:
        return TransportResponse(
            status_code=status_code,
            body_bytes=body,
            strategy_name="direct",
            final_url="https://a.test/",
        )

    def test_is_ok(self) -> None:
        """Only 2xx is ok."""
        assert self._response(200).is_ok
        assert self._response(299).is_ok
        assert not self._response(301).is_ok
        assert not self._response(401).is_ok

    def test_text_replaces_invalid_bytes(self) -> None:
        """Invalid UTF-8 does not raise."""
        assert self._response(200, b"ok \xff").text == "ok \ufffd"

    def test_invalid_status_rejected(self) -> None:
        """Status codes outside 100..599 are not responses."""
        with pytest.raises(ValidationError):
            self._response(0)


class TestDispatchOutcome:
    """Tests for DispatchOutcome consistency."""

    def test_success_requires_response(self) -> None:
        """A success without a response is invalid."""
        with pytest.raises(ValidationError):
            DispatchOutcome(status=OutcomeStatus.SUCCESS)

    def test_failure_forbids_response(self) -> None:
        """A terminal failure cannot carry a response."""
        response = TransportResponse(
            status_code=500, strategy_name="direct", final_url="https://a.test/"
        )

        with pytest.raises(ValidationError):
            DispatchOutcome(status=OutcomeStatus.TERMINAL_NO_PATH, response=response)

    def test_unwrap_failure(self) -> None:
        """unwrap() raises with the summary and attempts."""
        record = AttemptRecord(
            strategy_name="direct",
            failure_kind=FailureKind.TIMEOUT,
            timestamp=datetime(2026, 1, 1, tzinfo=UTC),
        )
        outcome = DispatchOutcome(
            status=OutcomeStatus.TERMINAL_NO_PATH,
            attempts=(record,),
            summary="All 1 connection strategies failed",
        )

        with pytest.raises(NoPathError, match="All 1 connection") as exc_info:
            outcome.unwrap()
        assert exc_info.value.attempts == (record,)
        assert not outcome.is_success


class TestAttemptRecord:
    """Tests for AttemptRecord serialization."""

    def test_to_dict(self) -> None:
        """Records serialize with ISO timestamps and enum values."""
        record = AttemptRecord(
            strategy_name="corsproxy",
            failure_kind=FailureKind.NETWORK_ERROR,
            timestamp=datetime(2026, 1, 1, 12, 0, tzinfo=UTC),
            detail="ConnectError: refused",
            elapsed_ms=12.345,
        )

        assert record.to_dict() == {
            "strategy": "corsproxy",
            "failure_kind": "network_error",
            "timestamp": "2026-01-01T12:00:00+00:00",
            "detail": "ConnectError: refused",
            "elapsed_ms": 12.35,
        }
