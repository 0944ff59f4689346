"""Data models for the transport layer."""

import json
from collections.abc import Mapping
from datetime import datetime
from enum import Enum
from types import MappingProxyType
from typing import Annotated, Any
from urllib.parse import quote

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_serializer,
    field_validator,
    model_validator,
)

from src.features.transport.constants import (
    ALL_METHODS,
    HTTP_STATUS_MAX,
    HTTP_STATUS_MIN,
    HTTP_STATUS_OK_MAX,
    HTTP_STATUS_OK_MIN,
)
from src.features.transport.errors import NoPathError
from src.features.transport.redact import strip_credentials


class UrlTransform(str, Enum):
    """How a strategy turns the true backend URL into the URL it requests.

    - IDENTITY: Request the backend URL as is (direct path)
    - PREFIX_ENCODED: Percent-encode the backend URL and append it to a relay prefix
    """

    IDENTITY = "identity"
    PREFIX_ENCODED = "prefix_encoded"


class CredentialPolicy(str, Enum):
    """Whether a strategy forwards credential headers.

    - FORWARD: Send headers unchanged
    - OMIT: Drop Authorization, Cookie, and similar headers before sending
    """

    FORWARD = "forward"
    OMIT = "omit"


class FailureKind(str, Enum):
    """Classification of a failed strategy attempt.

    - TIMEOUT: Deadline elapsed with no response
    - NETWORK_ERROR: Connection could not be established or was interrupted
    - REJECTED: The path answered, but not with a usable HTTP response
    """

    TIMEOUT = "timeout"
    NETWORK_ERROR = "network_error"
    REJECTED = "rejected"


class OutcomeStatus(str, Enum):
    """Terminal status of a dispatch call."""

    SUCCESS = "success"
    TERMINAL_NO_PATH = "terminal_no_path"


class Strategy(BaseModel):
    """Immutable descriptor of one way to reach the backend.

    Strategies are defined once and never mutated. Their position in the
    registry is their fallback priority.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    name: Annotated[str, Field(min_length=1, max_length=64)]
    url_transform: UrlTransform = UrlTransform.IDENTITY
    prefix: str | None = Field(
        default=None, description="Relay prefix for PREFIX_ENCODED strategies"
    )
    allowed_methods: frozenset[str] = Field(default=ALL_METHODS, min_length=1)
    timeout_seconds: Annotated[float, Field(gt=0.0, le=300.0)] = 10.0
    credential_policy: CredentialPolicy = CredentialPolicy.FORWARD

    @field_validator("allowed_methods")
    @classmethod
    def normalize_methods(cls, v: frozenset[str]) -> frozenset[str]:
        """Upper-case method names so membership checks are case-insensitive."""
        return frozenset(method.strip().upper() for method in v)

    @model_validator(mode="after")
    def validate_prefix(self) -> "Strategy":
        """Require a prefix exactly when the URL transform uses one."""
        if self.url_transform == UrlTransform.PREFIX_ENCODED and not self.prefix:
            msg = f"Strategy '{self.name}' uses prefix_encoded but has no prefix"
            raise ValueError(msg)
        if self.url_transform == UrlTransform.IDENTITY and self.prefix:
            msg = f"Strategy '{self.name}' is identity but declares a prefix"
            raise ValueError(msg)
        return self

    @property
    def is_relay(self) -> bool:
        """Check if this strategy goes through a third-party relay."""
        return self.url_transform == UrlTransform.PREFIX_ENCODED

    def supports(self, method: str) -> bool:
        """Check if this strategy can carry a request with the given method.

        Args:
            method: HTTP method, any case.

        Returns:
            True if the method is in allowed_methods.
        """
        return method.upper() in self.allowed_methods

    def build_url(self, target_url: str) -> str:
        """Build the URL this strategy actually requests.

        Args:
            target_url: The true backend URL.

        Returns:
            The target itself, or the relay prefix followed by the fully
            percent-encoded target.
        """
        if self.url_transform == UrlTransform.IDENTITY:
            return target_url
        return f"{self.prefix}{quote(target_url, safe='')}"

    def prepare_headers(self, headers: Mapping[str, str]) -> dict[str, str]:
        """Apply the credential policy to request headers.

        Args:
            headers: Headers from the logical request.

        Returns:
            New headers dictionary; the input is never modified.
        """
        if self.credential_policy == CredentialPolicy.OMIT:
            return strip_credentials(headers)
        return dict(headers)


class LogicalRequest(BaseModel):
    """A request addressed to the true backend, independent of any strategy.

    target_url is always the backend URL, never a relay URL. Headers are
    stored read-only, so a request cannot change while it is being dispatched.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    method: Annotated[str, Field(min_length=1, max_length=16)]
    target_url: Annotated[str, Field(min_length=1)]
    headers: Mapping[str, str] = Field(default_factory=dict, validate_default=True)
    body: bytes | None = None

    @field_validator("method")
    @classmethod
    def normalize_method(cls, v: str) -> str:
        """Upper-case the method."""
        return v.strip().upper()

    @field_validator("target_url")
    @classmethod
    def validate_target_url(cls, v: str) -> str:
        """Require an absolute http(s) URL."""
        if not v.startswith(("http://", "https://")):
            msg = f"target_url must be an absolute http(s) URL, got: {v}"
            raise ValueError(msg)
        return v

    @field_validator("headers")
    @classmethod
    def validate_headers(cls, v: Mapping[str, str]) -> Mapping[str, str]:
        """Require ASCII header names and values, and freeze the mapping."""
        for name, value in v.items():
            if not name or not name.isascii():
                msg = f"Header name must be non-empty ASCII, got: {name!r}"
                raise ValueError(msg)
            if not value.isascii():
                msg = f"Header '{name}' must contain only ASCII characters"
                raise ValueError(msg)
        return MappingProxyType(dict(v))

    @field_serializer("headers")
    def serialize_headers(self, v: Mapping[str, str]) -> dict[str, str]:
        """Serialize headers as a plain dictionary."""
        return dict(v)


class AttemptRecord(BaseModel):
    """Diagnostic record of one failed strategy attempt."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    strategy_name: str
    failure_kind: FailureKind
    timestamp: datetime
    detail: str = ""
    elapsed_ms: float = Field(default=0.0, ge=0.0)

    def to_dict(self) -> dict[str, str | float]:
        """Convert to a JSON-friendly dictionary."""
        return {
            "strategy": self.strategy_name,
            "failure_kind": self.failure_kind.value,
            "timestamp": self.timestamp.isoformat(),
            "detail": self.detail,
            "elapsed_ms": round(self.elapsed_ms, 2),
        }


class TransportResponse(BaseModel):
    """Raw transport-level response, surfaced to the caller unmodified.

    The status code is never interpreted by the transport layer.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    status_code: int = Field(ge=HTTP_STATUS_MIN, lt=HTTP_STATUS_MAX)
    headers: dict[str, str] = Field(default_factory=dict)
    body_bytes: bytes = b""
    strategy_name: str
    final_url: str

    @property
    def is_ok(self) -> bool:
        """Check if the backend answered with a 2xx status."""
        return HTTP_STATUS_OK_MIN <= self.status_code < HTTP_STATUS_OK_MAX

    @property
    def text(self) -> str:
        """Decode the body as UTF-8, replacing invalid bytes."""
        return self.body_bytes.decode("utf-8", errors="replace")

    def json_body(self) -> Any:
        """Parse the body as JSON.

        Raises:
            json.JSONDecodeError: If the body is not valid JSON.
        """
        return json.loads(self.body_bytes)


class DispatchOutcome(BaseModel):
    """Result of one dispatch call.

    Successful if and only if some strategy produced an HTTP response,
    whatever its status code.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    status: OutcomeStatus
    response: TransportResponse | None = None
    attempts: tuple[AttemptRecord, ...] = ()
    summary: str = ""

    @model_validator(mode="after")
    def validate_consistency(self) -> "DispatchOutcome":
        """Keep status and response in agreement."""
        has_response = self.response is not None
        if has_response != (self.status == OutcomeStatus.SUCCESS):
            msg = "A dispatch outcome is successful exactly when it has a response"
            raise ValueError(msg)
        return self

    @property
    def is_success(self) -> bool:
        """Check if a response was obtained."""
        return self.status == OutcomeStatus.SUCCESS

    def unwrap(self) -> TransportResponse:
        """Return the response or raise the aggregated failure.

        Returns:
            The transport response.

        Raises:
            NoPathError: If every compatible strategy failed.
        """
        if self.response is None:
            raise NoPathError(self.summary, attempts=self.attempts)
        return self.response
