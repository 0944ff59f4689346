"""Resilient multi-strategy HTTP transport.

This module delivers a request to a single backend when the direct path may
be blocked, as behind captive-portal routers:
- Ordered fallback over direct and relayed strategies
- Per-strategy deadlines with cancellation of the in-flight request
- Per-strategy method compatibility and credential policy
- Any HTTP response counts as success; only transport failures fall back
- Call-scoped attempt log for diagnostics
"""

from src.features.transport.allowlist import format_walled_garden, walled_garden_hosts
from src.features.transport.attempt_log import AttemptLog
from src.features.transport.classify import classify_exception, is_transport_response
from src.features.transport.config import TransportConfig, load_transport_config
from src.features.transport.dispatcher import Dispatcher
from src.features.transport.errors import (
    NoPathError,
    TransportConfigError,
    TransportError,
)
from src.features.transport.metrics import TransportMetrics
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
from src.features.transport.probe import ConnectivityProbe, ProbeResult, ProbeStatus
from src.features.transport.redact import (
    redact_headers,
    redact_url_credentials,
    strip_credentials,
)
from src.features.transport.registry import (
    DEFAULT_STRATEGIES,
    StrategyRegistry,
    default_registry,
)


__all__ = [
    # Dispatch
    "Dispatcher",
    "DispatchOutcome",
    "OutcomeStatus",
    "LogicalRequest",
    "TransportResponse",
    # Strategies
    "Strategy",
    "StrategyRegistry",
    "UrlTransform",
    "CredentialPolicy",
    "DEFAULT_STRATEGIES",
    "default_registry",
    # Attempt log
    "AttemptLog",
    "AttemptRecord",
    "FailureKind",
    "classify_exception",
    "is_transport_response",
    # Errors
    "TransportError",
    "NoPathError",
    "TransportConfigError",
    # Config
    "TransportConfig",
    "load_transport_config",
    # Diagnostics
    "ConnectivityProbe",
    "ProbeResult",
    "ProbeStatus",
    "walled_garden_hosts",
    "format_walled_garden",
    # Metrics
    "TransportMetrics",
    # Redaction
    "redact_headers",
    "redact_url_credentials",
    "strip_credentials",
]
