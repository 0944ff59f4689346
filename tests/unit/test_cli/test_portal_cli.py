"""Unit tests for the portal CLI."""

import json
from collections.abc import Generator
from pathlib import Path

import pytest
from click.testing import CliRunner

from src.cli.portal import EXIT_NO_PATH, CliContext, cli
from src.features.transport.dispatcher import Dispatcher
from src.features.transport.metrics import TransportMetrics
from tests.helpers.transport import RoutingTransport


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    """Isolate each test from the caller's environment."""
    for name in ("PORTAL_API_ENDPOINT", "PORTAL_TRANSPORT_CONFIG", "PORTAL_USER_AGENT"):
        monkeypatch.delenv(name, raising=False)
    TransportMetrics.reset()
    yield
    TransportMetrics.reset()


@pytest.fixture
def runner() -> CliRunner:
    """Click test runner."""
    return CliRunner()


def use_network(monkeypatch: pytest.MonkeyPatch, network: RoutingTransport) -> None:
    """Route CLI dispatchers through a mock network."""

    def dispatcher(self: CliContext) -> Dispatcher:
        return Dispatcher(
            self.config.build_registry(),
            transport=network.transport(),
            user_agent=self.config.user_agent,
        )

    monkeypatch.setattr(CliContext, "dispatcher", dispatcher)


class TestWalledGarden:
    """Tests for the walled-garden command."""

    def test_default_hosts(
        self, runner: CliRunner, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Backend and relay hosts are printed comma-separated."""
        monkeypatch.setenv("PORTAL_API_ENDPOINT", "https://backend.test/api/")

        result = runner.invoke(cli, ["walled-garden", "--extra-host", "cdn.test"])

        assert result.exit_code == 0
        assert result.output.strip() == (
            "backend.test,api.allorigins.win,corsproxy.io,api.codetabs.com,cdn.test"
        )

    def test_config_file(self, runner: CliRunner, tmp_path: Path) -> None:
        """--config replaces the built-in strategy table."""
        path = tmp_path / "transport.yaml"
        path.write_text(
            "strategies:\n"
            "  - name: direct\n"
            "  - name: relay\n"
            "    url_transform: prefix_encoded\n"
            "    prefix: https://relay.test/?u=\n"
            "walled_garden_extra_hosts: [pay.test]\n",
            encoding="utf-8",
        )

        result = runner.invoke(cli, ["--config", str(path), "walled-garden"])

        assert result.exit_code == 0
        assert result.output.strip() == "relay.test,pay.test"

    def test_invalid_config(self, runner: CliRunner, tmp_path: Path) -> None:
        """An invalid config file exits with status 1 and lists the errors."""
        path = tmp_path / "transport.yaml"
        path.write_text("strategies: []\n", encoding="utf-8")

        result = runner.invoke(cli, ["--config", str(path), "walled-garden"])

        assert result.exit_code == 1
        assert "Transport configuration invalid" in result.output


class TestSend:
    """Tests for the send command."""

    def test_success_prints_status_and_body(
        self, runner: CliRunner, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Any response is printed with the strategy that carried it."""
        network = RoutingTransport(
            {"backend.test": 403}, body_for=lambda _: b"forbidden"
        )
        use_network(monkeypatch, network)

        result = runner.invoke(
            cli,
            ["send", "get", "https://backend.test/api/usage/", "-H", "X-Trace: 1"],
        )

        assert result.exit_code == 0
        assert "HTTP 403 via direct" in result.output
        assert "forbidden" in result.output
        assert network.requests[0].headers["X-Trace"] == "1"

    def test_no_path_exit_code(
        self, runner: CliRunner, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Exhaustion prints the summary and the attempt log."""
        use_network(monkeypatch, RoutingTransport({}))

        result = runner.invoke(
            cli,
            ["send", "POST", "https://backend.test/api/token/", "-d", "{}"],
        )

        assert result.exit_code == EXIT_NO_PATH
        assert "All 2 connection strategies failed" in result.output
        assert "  - direct: network_error" in result.output
        assert "  - corsproxy: network_error" in result.output
        assert "allorigins" not in result.output

    def test_attempts_json(
        self, runner: CliRunner, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """--attempts-json prints the attempt log as JSON."""
        use_network(monkeypatch, RoutingTransport({}))

        result = runner.invoke(
            cli,
            ["send", "POST", "https://backend.test/", "--attempts-json"],
        )

        start = result.output.index("[")
        end = result.output.index("]\n", start) + 1
        records = json.loads(result.output[start:end])
        assert [r["strategy"] for r in records] == ["direct", "corsproxy"]

    def test_invalid_url(self, runner: CliRunner) -> None:
        """Relative URLs are rejected before dispatch."""
        result = runner.invoke(cli, ["send", "GET", "/api/usage/"])

        assert result.exit_code == 2
        assert "Invalid value" in result.output

    def test_non_ascii_header(self, runner: CliRunner) -> None:
        """A non-ASCII header value is a usage error, not a crash."""
        result = runner.invoke(
            cli, ["send", "GET", "https://backend.test/", "-H", "X-Name: caf\u00e9"]
        )

        assert result.exit_code == 2
        assert "only ASCII characters" in result.output
        assert "caf\u00e9" not in result.output

    def test_invalid_header(self, runner: CliRunner) -> None:
        """Headers must be 'Name: value'."""
        result = runner.invoke(
            cli, ["send", "GET", "https://backend.test/", "-H", "nocolon"]
        )

        assert result.exit_code == 2
        assert "Invalid header" in result.output


class TestUsage:
    """Tests for the usage command."""

    def test_requires_endpoint(self, runner: CliRunner) -> None:
        """Without PORTAL_API_ENDPOINT the command is a usage error."""
        result = runner.invoke(cli, ["usage", "--token", "tok"])

        assert result.exit_code == 2
        assert "PORTAL_API_ENDPOINT is not set" in result.output

    def test_non_ascii_token(
        self, runner: CliRunner, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """A token that cannot be sent is reported as a bad parameter."""
        monkeypatch.setenv("PORTAL_API_ENDPOINT", "https://backend.test/api/")
        network = RoutingTransport({"backend.test": 200})
        use_network(monkeypatch, network)

        result = runner.invoke(cli, ["usage", "--token", "t\u00f6k\u00e9n"])

        assert result.exit_code == 2
        assert "--token" in result.output
        assert "only ASCII characters" in result.output
        assert network.requests == []

    def test_prints_remaining(
        self, runner: CliRunner, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Remaining data is printed in MB."""
        monkeypatch.setenv("PORTAL_API_ENDPOINT", "https://backend.test/api/")
        body = {"checks": [{"value": 2 * 1024 * 1024, "result": 0}]}
        use_network(
            monkeypatch,
            RoutingTransport(
                {"backend.test": 200}, body_for=lambda _: json.dumps(body).encode()
            ),
        )

        result = runner.invoke(cli, ["usage", "--token", "tok"])

        assert result.exit_code == 0
        assert "Remaining: 2.00 MB (available)" in result.output

    def test_backend_rejection(
        self, runner: CliRunner, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """A non-2xx backend answer exits with status 1."""
        monkeypatch.setenv("PORTAL_API_ENDPOINT", "https://backend.test/api/")
        use_network(
            monkeypatch,
            RoutingTransport(
                {"backend.test": 401},
                body_for=lambda _: b'{"detail": "Invalid token."}',
            ),
        )

        result = runner.invoke(cli, ["usage", "--token", "bad"])

        assert result.exit_code == 1
        assert "Usage query failed: Invalid token." in result.output
