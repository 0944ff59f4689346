"""Ordered catalogue of transport strategies."""

from collections.abc import Iterable, Iterator

from src.features.transport.constants import (
    ALL_METHODS,
    ALLORIGINS_PREFIX,
    CODETABS_PREFIX,
    CORSPROXY_PREFIX,
    DEFAULT_DIRECT_TIMEOUT_SECONDS,
    DEFAULT_RELAY_TIMEOUT_SECONDS,
    GET_AND_POST,
    GET_ONLY,
    STRATEGY_ALLORIGINS,
    STRATEGY_CODETABS,
    STRATEGY_CORSPROXY,
    STRATEGY_DIRECT,
)
from src.features.transport.models import CredentialPolicy, Strategy, UrlTransform


# Fastest and most likely path first, most tolerant relays last
DEFAULT_STRATEGIES: tuple[Strategy, ...] = (
    Strategy(
        name=STRATEGY_DIRECT,
        url_transform=UrlTransform.IDENTITY,
        allowed_methods=ALL_METHODS,
        timeout_seconds=DEFAULT_DIRECT_TIMEOUT_SECONDS,
        credential_policy=CredentialPolicy.FORWARD,
    ),
    # Raw passthrough; does not reliably carry POST bodies
    Strategy(
        name=STRATEGY_ALLORIGINS,
        url_transform=UrlTransform.PREFIX_ENCODED,
        prefix=ALLORIGINS_PREFIX,
        allowed_methods=GET_ONLY,
        timeout_seconds=DEFAULT_RELAY_TIMEOUT_SECONDS,
        credential_policy=CredentialPolicy.FORWARD,
    ),
    Strategy(
        name=STRATEGY_CORSPROXY,
        url_transform=UrlTransform.PREFIX_ENCODED,
        prefix=CORSPROXY_PREFIX,
        allowed_methods=GET_AND_POST,
        timeout_seconds=DEFAULT_RELAY_TIMEOUT_SECONDS,
        credential_policy=CredentialPolicy.FORWARD,
    ),
    Strategy(
        name=STRATEGY_CODETABS,
        url_transform=UrlTransform.PREFIX_ENCODED,
        prefix=CODETABS_PREFIX,
        allowed_methods=GET_ONLY,
        timeout_seconds=DEFAULT_RELAY_TIMEOUT_SECONDS,
        credential_policy=CredentialPolicy.FORWARD,
    ),
)


class StrategyRegistry:
    """Immutable, ordered list of strategies.

    Order is fallback priority. The registry is never mutated after
    construction, so it can be shared by concurrent dispatch calls without
    locking.
    """

    __slots__ = ("_strategies",)

    def __init__(self, strategies: Iterable[Strategy]) -> None:
        """Initialize the registry.

        Args:
            strategies: Strategies in fallback order.

        Raises:
            ValueError: If the list is empty or names repeat.
        """
        ordered = tuple(strategies)
        if not ordered:
            msg = "A strategy registry needs at least one strategy"
            raise ValueError(msg)

        seen: set[str] = set()
        for strategy in ordered:
            if strategy.name in seen:
                msg = f"Duplicate strategy name: {strategy.name}"
                raise ValueError(msg)
            seen.add(strategy.name)

        self._strategies = ordered

    def __len__(self) -> int:
        return len(self._strategies)

    def __iter__(self) -> Iterator[Strategy]:
        return iter(self._strategies)

    def __repr__(self) -> str:
        return f"StrategyRegistry({', '.join(self.names())})"

    def list(self) -> tuple[Strategy, ...]:
        """Get all strategies in fallback order."""
        return self._strategies

    def names(self) -> tuple[str, ...]:
        """Get strategy names in fallback order."""
        return tuple(strategy.name for strategy in self._strategies)

    def get(self, name: str) -> Strategy:
        """Look up a strategy by name.

        Raises:
            KeyError: If no strategy has this name.
        """
        for strategy in self._strategies:
            if strategy.name == name:
                return strategy
        raise KeyError(name)

    def compatible_with(self, method: str) -> tuple[Strategy, ...]:
        """Get the strategies able to carry a given HTTP method, in order."""
        return tuple(s for s in self._strategies if s.supports(method))


def default_registry() -> StrategyRegistry:
    """Build the registry of built-in strategies."""
    return StrategyRegistry(DEFAULT_STRATEGIES)
