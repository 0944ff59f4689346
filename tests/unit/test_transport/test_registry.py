"""Unit tests for the strategy registry."""

import pytest

from src.features.transport.constants import (
    ALLORIGINS_PREFIX,
    CODETABS_PREFIX,
    CORSPROXY_PREFIX,
)
from src.features.transport.models import Strategy, UrlTransform
from src.features.transport.registry import (
    DEFAULT_STRATEGIES,
    StrategyRegistry,
    default_registry,
)


class TestStrategyRegistry:
    """Tests for StrategyRegistry."""

    def test_preserves_order(self) -> None:
        """list() returns strategies in the given order."""
        strategies = [Strategy(name="b"), Strategy(name="a"), Strategy(name="c")]

        registry = StrategyRegistry(strategies)

        assert registry.names() == ("b", "a", "c")
        assert registry.list() == tuple(strategies)

    def test_list_is_immutable_snapshot(self) -> None:
        """Mutating the input list does not change the registry."""
        strategies = [Strategy(name="a")]
        registry = StrategyRegistry(strategies)

        strategies.append(Strategy(name="b"))

        assert len(registry) == 1
        assert isinstance(registry.list(), tuple)

    def test_empty_rejected(self) -> None:
        """A registry needs at least one strategy."""
        with pytest.raises(ValueError, match="at least one"):
            StrategyRegistry([])

    def test_duplicate_names_rejected(self) -> None:
        """Names identify strategies in attempt logs, so they must be unique."""
        with pytest.raises(ValueError, match="Duplicate strategy name: a"):
            StrategyRegistry([Strategy(name="a"), Strategy(name="a")])

    def test_get(self) -> None:
        """Strategies are retrievable by name."""
        registry = StrategyRegistry([Strategy(name="a"), Strategy(name="b")])

        assert registry.get("b").name == "b"
        with pytest.raises(KeyError):
            registry.get("missing")

    def test_compatible_with(self) -> None:
        """Filtering by method keeps order."""
        registry = StrategyRegistry(
            [
                Strategy(name="a", allowed_methods=frozenset({"GET"})),
                Strategy(name="b", allowed_methods=frozenset({"GET", "POST"})),
            ]
        )

        assert [s.name for s in registry.compatible_with("POST")] == ["b"]
        assert [s.name for s in registry.compatible_with("get")] == ["a", "b"]


class TestDefaultRegistry:
    """Tests for the built-in strategy table."""

    def test_direct_first(self) -> None:
        """The direct path is tried before any relay."""
        registry = default_registry()

        first = registry.list()[0]
        assert first.url_transform == UrlTransform.IDENTITY
        assert all(s.is_relay for s in registry.list()[1:])

    def test_relay_prefixes(self) -> None:
        """Relays use the known public prefixes in fallback order."""
        prefixes = [s.prefix for s in DEFAULT_STRATEGIES if s.is_relay]

        assert prefixes == [ALLORIGINS_PREFIX, CORSPROXY_PREFIX, CODETABS_PREFIX]

    def test_direct_is_faster_than_relays(self) -> None:
        """The direct deadline is shorter than every relay deadline."""
        direct, *relays = DEFAULT_STRATEGIES

        assert all(direct.timeout_seconds < r.timeout_seconds for r in relays)

    def test_post_capable_relay_exists(self) -> None:
        """At least one relay can carry POST sign-in calls."""
        registry = default_registry()

        assert [s.name for s in registry.compatible_with("POST")] == [
            "direct",
            "corsproxy",
        ]
