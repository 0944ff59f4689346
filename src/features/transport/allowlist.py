"""Walled-garden allow-list derived from the strategy table."""

from collections.abc import Iterable
from urllib.parse import urlparse

from src.features.transport.registry import StrategyRegistry


def walled_garden_hosts(
    registry: StrategyRegistry,
    backend_url: str | None = None,
    extra_hosts: Iterable[str] = (),
) -> list[str]:
    """List the hosts a captive-portal router must allow before sign-in.

    Args:
        registry: Strategies whose relay hosts must be reachable.
        backend_url: The true backend URL or origin.
        extra_hosts: Additional hosts (portal page, CDNs, payment gateway).

    Returns:
        Ordered, de-duplicated host names: backend first, then relays in
        fallback order, then extras.
    """
    candidates: list[str] = []
    if backend_url:
        candidates.append(_hostname(backend_url))
    for strategy in registry.list():
        if strategy.is_relay and strategy.prefix:
            candidates.append(_hostname(strategy.prefix))
    candidates.extend(host.strip().lower() for host in extra_hosts)

    hosts: list[str] = []
    for host in candidates:
        if host and host not in hosts:
            hosts.append(host)
    return hosts


def format_walled_garden(hosts: Iterable[str]) -> str:
    """Join hosts into the comma-separated form routers expect."""
    return ",".join(hosts)


def _hostname(url: str) -> str:
    return (urlparse(url).hostname or "").lower()
