"""Connectivity diagnostics across all strategies.

Reports which paths a captive-portal router currently lets through, so the
user can fix the router's allow-list.
"""

import asyncio
import time
from dataclasses import dataclass
from enum import Enum

import httpx
import structlog

from src.features.transport.constants import (
    COMPONENT_PROBE,
    DEFAULT_PROBE_TIMEOUT_SECONDS,
    DEFAULT_PROBE_URL,
    METHOD_GET,
)
from src.features.transport.dispatcher import Dispatcher
from src.features.transport.metrics import TransportMetrics
from src.features.transport.models import LogicalRequest, Strategy
from src.features.transport.registry import StrategyRegistry


logger = structlog.get_logger()


class ProbeStatus(str, Enum):
    """Reachability of a strategy."""

    OK = "ok"
    BLOCKED = "blocked"


@dataclass(frozen=True)
class ProbeResult:
    """Result of probing one strategy.

    Attributes:
        strategy_name: Probed strategy.
        status: OK if any HTTP response came back.
        detail: Status code on success, failure description otherwise.
        elapsed_ms: Time taken by the probe.
    """

    strategy_name: str
    status: ProbeStatus
    detail: str
    elapsed_ms: float

    @property
    def is_ok(self) -> bool:
        """Check if the strategy is reachable."""
        return self.status == ProbeStatus.OK


class ConnectivityProbe:
    """Probe every strategy with a harmless GET.

    Probes run concurrently; each one is an independent single-strategy
    dispatch with its own attempt log. This is safe because the probe URL
    is not the backend and has no side effects.
    """

    def __init__(
        self,
        registry: StrategyRegistry,
        probe_url: str = DEFAULT_PROBE_URL,
        timeout_seconds: float = DEFAULT_PROBE_TIMEOUT_SECONDS,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the probe.

        Args:
            registry: Strategies to probe.
            probe_url: URL to request through each strategy.
            timeout_seconds: Deadline per probe.
            transport: Optional httpx transport (tests).
        """
        self._registry = registry
        self._probe_url = probe_url
        self._timeout_seconds = timeout_seconds
        self._transport = transport
        # Probes must not skew dispatch metrics
        self._metrics = TransportMetrics()
        self._log = logger.bind(component=COMPONENT_PROBE)

    def run(self) -> list[ProbeResult]:
        """Probe all strategies, blocking until done."""
        return asyncio.run(self.run_async())

    async def run_async(self) -> list[ProbeResult]:
        """Probe all strategies concurrently.

        Returns:
            One result per strategy, in registry order.
        """
        results = await asyncio.gather(
            *(self._probe(strategy) for strategy in self._registry.list())
        )
        self._log.info(
            "probe_complete",
            ok=[r.strategy_name for r in results if r.is_ok],
            blocked=[r.strategy_name for r in results if not r.is_ok],
        )
        return list(results)

    async def _probe(self, strategy: Strategy) -> ProbeResult:
        # Probes are always GET, so method restrictions are lifted
        timeout = min(strategy.timeout_seconds, self._timeout_seconds)
        probe_strategy = strategy.model_copy(
            update={
                "timeout_seconds": timeout,
                "allowed_methods": frozenset({METHOD_GET}),
            }
        )
        dispatcher = Dispatcher(
            StrategyRegistry([probe_strategy]),
            transport=self._transport,
            metrics=self._metrics,
        )
        start_time = time.perf_counter()
        outcome = await dispatcher.dispatch_async(
            LogicalRequest(method=METHOD_GET, target_url=self._probe_url)
        )
        elapsed_ms = (time.perf_counter() - start_time) * 1000

        if outcome.response is not None:
            return ProbeResult(
                strategy_name=strategy.name,
                status=ProbeStatus.OK,
                detail=f"HTTP {outcome.response.status_code}",
                elapsed_ms=elapsed_ms,
            )

        failure = outcome.attempts[-1]
        return ProbeResult(
            strategy_name=strategy.name,
            status=ProbeStatus.BLOCKED,
            detail=f"{failure.failure_kind.value}: {failure.detail}",
            elapsed_ms=failure.elapsed_ms,
        )
