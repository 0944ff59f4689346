"""Multi-strategy dispatcher with per-strategy deadlines and fallback."""

import asyncio
import time

import httpx
import structlog

from src.features.transport.attempt_log import AttemptLog
from src.features.transport.classify import (
    classify_exception,
    describe_exception,
    is_transport_response,
)
from src.features.transport.constants import COMPONENT_TRANSPORT, DEFAULT_USER_AGENT
from src.features.transport.metrics import TransportMetrics
from src.features.transport.models import (
    DispatchOutcome,
    FailureKind,
    LogicalRequest,
    OutcomeStatus,
    Strategy,
    TransportResponse,
)
from src.features.transport.redact import redact_headers, redact_url_credentials
from src.features.transport.registry import StrategyRegistry


logger = structlog.get_logger()

WALLED_GARDEN_HINT = "Update your walled-garden allow-list."


class Dispatcher:
    """Deliver a logical request through the first strategy that answers.

    Strategies are tried strictly one after another in registry order:
    - Strategies that cannot carry the request method are skipped silently
    - Each attempt is bounded by the strategy's own deadline and cancelled
      when it expires
    - Any HTTP response, whatever its status code, ends the dispatch
    - Timeouts and transport errors are recorded and the next strategy runs

    The dispatcher holds no per-call state, so one instance may serve many
    concurrent dispatch calls.
    """

    def __init__(
        self,
        registry: StrategyRegistry,
        transport: httpx.AsyncBaseTransport | None = None,
        metrics: TransportMetrics | None = None,
        user_agent: str = DEFAULT_USER_AGENT,
    ) -> None:
        """Initialize the dispatcher.

        Args:
            registry: Strategies in fallback order.
            transport: Optional httpx transport shared by all attempts
                (e.g. httpx.MockTransport in tests). When None, every
                attempt opens and closes its own connection pool.
            metrics: Metrics sink (default: process-wide singleton).
            user_agent: User-Agent sent when the request does not set one.
        """
        self._registry = registry
        self._transport = transport
        self._metrics = metrics or TransportMetrics.get_instance()
        self._user_agent = user_agent
        self._log = logger.bind(component=COMPONENT_TRANSPORT)

    @property
    def registry(self) -> StrategyRegistry:
        """Get the strategy registry."""
        return self._registry

    def dispatch(self, request: LogicalRequest) -> DispatchOutcome:
        """Dispatch a request, blocking until an outcome is known.

        Must not be called from a running event loop; use dispatch_async there.

        Args:
            request: The logical request to deliver.

        Returns:
            DispatchOutcome with the first response, or the attempt log.
        """
        return asyncio.run(self.dispatch_async(request))

    async def dispatch_async(self, request: LogicalRequest) -> DispatchOutcome:
        """Dispatch a request through the registry's strategies in order.

        Args:
            request: The logical request to deliver.

        Returns:
            DispatchOutcome with the first response, or the attempt log.
        """
        start_time = time.perf_counter()
        attempt_log = AttemptLog()
        log = self._log.bind(
            method=request.method,
            target_url=redact_url_credentials(request.target_url),
        )

        attempted = 0
        for strategy in self._registry.list():
            if not strategy.supports(request.method):
                self._metrics.record_skip(strategy.name)
                log.debug(
                    "strategy_skipped",
                    strategy=strategy.name,
                    allowed_methods=sorted(strategy.allowed_methods),
                )
                continue

            attempted += 1
            response = await self._attempt(strategy, request, attempt_log, log)
            if response is not None:
                duration_ms = (time.perf_counter() - start_time) * 1000
                self._metrics.record_success(strategy.name, response.status_code)
                self._metrics.record_dispatch(duration_ms)
                log.info(
                    "dispatch_complete",
                    strategy=strategy.name,
                    status_code=response.status_code,
                    failed_attempts=len(attempt_log),
                    duration_ms=round(duration_ms, 2),
                )
                return DispatchOutcome(
                    status=OutcomeStatus.SUCCESS,
                    response=response,
                    attempts=attempt_log.snapshot(),
                    summary=f"Delivered via {strategy.name}",
                )

        duration_ms = (time.perf_counter() - start_time) * 1000
        summary = self._summarize_failure(request, attempt_log, attempted)
        self._metrics.record_no_path()
        self._metrics.record_dispatch(duration_ms)
        log.error(
            "dispatch_exhausted",
            attempted=attempted,
            last_strategy=attempt_log.last_strategy,
            attempts=attempt_log.to_list(),
            duration_ms=round(duration_ms, 2),
        )
        return DispatchOutcome(
            status=OutcomeStatus.TERMINAL_NO_PATH,
            response=None,
            attempts=attempt_log.snapshot(),
            summary=summary,
        )

    async def _attempt(
        self,
        strategy: Strategy,
        request: LogicalRequest,
        attempt_log: AttemptLog,
        log: structlog.stdlib.BoundLogger,
    ) -> TransportResponse | None:
        """Run one bounded attempt.

        Args:
            strategy: Strategy to attempt.
            request: The logical request.
            attempt_log: Call-scoped log receiving failures.
            log: Bound logger.

        Returns:
            TransportResponse on success, None if the attempt failed.
        """
        url = strategy.build_url(request.target_url)
        headers = self._build_headers(strategy, request)
        self._metrics.record_attempt(strategy.name)

        log = log.bind(
            strategy=strategy.name, timeout_seconds=strategy.timeout_seconds
        )
        log.debug(
            "attempt_started",
            url=redact_url_credentials(url),
            headers=redact_headers(headers),
        )

        start_time = time.perf_counter()
        try:
            response = await self._send(
                strategy, request.method, url, headers, request.body
            )
        except (TimeoutError, httpx.HTTPError, httpx.InvalidURL, OSError) as e:
            elapsed_ms = (time.perf_counter() - start_time) * 1000
            failure_kind = classify_exception(e)
            detail = (
                f"No response within {strategy.timeout_seconds:g}s"
                if failure_kind == FailureKind.TIMEOUT
                else describe_exception(e)
            )
            attempt_log.record(
                strategy_name=strategy.name,
                failure_kind=failure_kind,
                detail=detail,
                elapsed_ms=elapsed_ms,
            )
            self._metrics.record_failure(failure_kind)
            log.warning(
                "attempt_failed",
                failure_kind=failure_kind.value,
                detail=detail,
                elapsed_ms=round(elapsed_ms, 2),
            )
            return None

        if not is_transport_response(response):
            elapsed_ms = (time.perf_counter() - start_time) * 1000
            detail = f"Invalid status line ({response.status_code})"
            attempt_log.record(
                strategy_name=strategy.name,
                failure_kind=FailureKind.REJECTED,
                detail=detail,
                elapsed_ms=elapsed_ms,
            )
            self._metrics.record_failure(FailureKind.REJECTED)
            log.warning("attempt_failed", failure_kind="rejected", detail=detail)
            return None

        return TransportResponse(
            status_code=response.status_code,
            headers=dict(response.headers),
            body_bytes=response.content,
            strategy_name=strategy.name,
            final_url=str(response.url),
        )

    async def _send(
        self,
        strategy: Strategy,
        method: str,
        url: str,
        headers: dict[str, str],
        body: bytes | None,
    ) -> httpx.Response:
        """Issue the HTTP request under the strategy's deadline.

        The deadline covers connecting, sending, and reading the whole body.
        On expiry the request task is cancelled and the client is closed,
        which aborts the underlying connection.

        Raises:
            TimeoutError: If the deadline elapses.
            httpx.HTTPError: On transport failures.
        """
        async with httpx.AsyncClient(
            transport=self._transport,
            timeout=strategy.timeout_seconds,
            follow_redirects=True,
        ) as client:
            async with asyncio.timeout(strategy.timeout_seconds):
                return await client.request(
                    method, url, headers=headers, content=body
                )

    def _build_headers(
        self,
        strategy: Strategy,
        request: LogicalRequest,
    ) -> dict[str, str]:
        """Build headers for one attempt.

        Args:
            strategy: Strategy whose credential policy applies.
            request: The logical request.

        Returns:
            Complete headers dictionary.
        """
        headers = strategy.prepare_headers(request.headers)
        if not any(key.lower() == "user-agent" for key in headers):
            headers["User-Agent"] = self._user_agent
        return headers

    def _summarize_failure(
        self,
        request: LogicalRequest,
        attempt_log: AttemptLog,
        attempted: int,
    ) -> str:
        """Build the human-readable terminal failure message."""
        if attempted == 0:
            return (
                f"No connection strategy supports {request.method} requests "
                f"(strategies: {', '.join(self._registry.names())})."
            )

        last = attempt_log.snapshot()[-1]
        return (
            f"All {attempted} connection strategies failed; last tried "
            f"'{last.strategy_name}' ({last.failure_kind.value}). "
            f"{WALLED_GARDEN_HINT}"
        )
