"""CLI commands for the captive-portal transport."""

import json
import logging
import sys
import uuid
from dataclasses import dataclass
from pathlib import Path

import click
from pydantic import ValidationError

from src.features.observability.logging import bind_session_context, configure_logging
from src.features.portal.client import (
    PortalClient,
    parse_response_body,
    summarize_usage,
)
from src.features.transport.allowlist import format_walled_garden, walled_garden_hosts
from src.features.transport.config import TransportConfig, load_transport_config
from src.features.transport.dispatcher import Dispatcher
from src.features.transport.errors import NoPathError, TransportConfigError
from src.features.transport.models import DispatchOutcome, LogicalRequest
from src.features.transport.probe import ConnectivityProbe
from src.settings import AppSettings, get_settings


EXIT_NO_PATH = 2


@dataclass
class CliContext:
    """Shared state for subcommands."""

    settings: AppSettings
    config: TransportConfig

    def dispatcher(self) -> Dispatcher:
        """Build a dispatcher from the loaded config."""
        return Dispatcher(
            self.config.build_registry(),
            user_agent=self.config.user_agent,
        )


def _load_config(settings: AppSettings, config_path: Path | None) -> TransportConfig:
    """Load transport config, preferring --config over the environment."""
    try:
        if config_path is not None:
            return load_transport_config(config_path)
        return settings.transport_config()
    except TransportConfigError as e:
        click.echo(f"Transport configuration invalid: {e.file_path}", err=True)
        for error in e.errors:
            click.echo(f"  - {error['loc']}: {error['msg']}", err=True)
        sys.exit(1)


def _parse_headers(raw_headers: tuple[str, ...]) -> dict[str, str]:
    headers: dict[str, str] = {}
    for raw in raw_headers:
        name, sep, value = raw.partition(":")
        if not sep or not name.strip():
            msg = f"Invalid header '{raw}', expected 'Name: value'"
            raise click.BadParameter(msg, param_hint="--header")
        headers[name.strip()] = value.strip()
    return headers


def _validation_message(error: ValidationError) -> str:
    """Summarize validation errors without echoing the rejected input."""
    return "; ".join(str(err["msg"]) for err in error.errors())


def _echo_failure(outcome: DispatchOutcome | NoPathError) -> None:
    """Print the aggregated failure message followed by the attempt log."""
    if isinstance(outcome, NoPathError):
        message, attempts = outcome.message, outcome.attempts
    else:
        message, attempts = outcome.summary, outcome.attempts

    click.echo(message, err=True)
    for record in attempts:
        click.echo(
            f"  - {record.strategy_name}: {record.failure_kind.value} "
            f"({record.detail}) at {record.timestamp.isoformat()}",
            err=True,
        )


@click.group()
@click.version_option(version="0.1.0")
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="Path to a transport configuration YAML file.",
)
@click.option(
    "--json-logs/--no-json-logs",
    default=False,
    help="Use JSON format for logs (default: false).",
)
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Enable verbose logging.",
)
@click.pass_context
def cli(
    ctx: click.Context,
    config_path: Path | None,
    json_logs: bool,
    verbose: bool,
) -> None:
    """Captive-portal transport CLI."""
    level = logging.DEBUG if verbose else logging.WARNING
    configure_logging(level=level, json_format=json_logs)
    bind_session_context(str(uuid.uuid4()))

    settings = get_settings()
    ctx.obj = CliContext(settings=settings, config=_load_config(settings, config_path))


@cli.command()
@click.option(
    "--url",
    "probe_url",
    default=None,
    help="URL to request through each strategy (default from config).",
)
@click.pass_obj
def diagnose(obj: CliContext, probe_url: str | None) -> None:
    """Check which connection strategies are currently reachable."""
    probe = ConnectivityProbe(
        obj.config.build_registry(),
        probe_url=probe_url or obj.config.probe_url,
        timeout_seconds=obj.config.probe_timeout_seconds,
    )
    results = probe.run()

    for result in results:
        label = "Connected" if result.is_ok else "Blocked"
        click.echo(
            f"{result.strategy_name:<12} {label:<10} {result.detail} "
            f"({result.elapsed_ms:.0f} ms)"
        )

    if not any(result.is_ok for result in results):
        sys.exit(EXIT_NO_PATH)


@cli.command("walled-garden")
@click.option(
    "--extra-host",
    "extra_hosts",
    multiple=True,
    help="Additional host to allow (repeatable).",
)
@click.pass_obj
def walled_garden(obj: CliContext, extra_hosts: tuple[str, ...]) -> None:
    """Print the hosts a captive-portal router must allow before sign-in."""
    hosts = walled_garden_hosts(
        obj.config.build_registry(),
        backend_url=obj.settings.api_endpoint,
        extra_hosts=[*obj.config.walled_garden_extra_hosts, *extra_hosts],
    )
    click.echo(format_walled_garden(hosts))


@cli.command()
@click.argument("method")
@click.argument("url")
@click.option(
    "--header",
    "-H",
    "raw_headers",
    multiple=True,
    help="Request header as 'Name: value' (repeatable).",
)
@click.option("--data", "-d", default=None, help="Raw request body.")
@click.option(
    "--attempts-json",
    is_flag=True,
    help="Print the attempt log as JSON on failure.",
)
@click.pass_obj
def send(  # noqa: PLR0913
    obj: CliContext,
    method: str,
    url: str,
    raw_headers: tuple[str, ...],
    data: str | None,
    attempts_json: bool,
) -> None:
    """Send one request through the strategy fallback chain."""
    try:
        request = LogicalRequest(
            method=method,
            target_url=url,
            headers=_parse_headers(raw_headers),
            body=data.encode("utf-8") if data is not None else None,
        )
    except ValidationError as e:
        raise click.BadParameter(_validation_message(e), param_hint="URL") from e
    outcome = obj.dispatcher().dispatch(request)

    if outcome.response is None:
        if attempts_json:
            click.echo(
                json.dumps([record.to_dict() for record in outcome.attempts], indent=2)
            )
        _echo_failure(outcome)
        sys.exit(EXIT_NO_PATH)

    response = outcome.response
    click.echo(f"HTTP {response.status_code} via {response.strategy_name}")
    click.echo(response.text)


@cli.command()
@click.option("--token", required=True, help="Bearer token from sign-in.")
@click.pass_obj
def usage(obj: CliContext, token: str) -> None:
    """Show the remaining data allowance for an account."""
    if not obj.settings.api_endpoint:
        msg = "PORTAL_API_ENDPOINT is not set"
        raise click.UsageError(msg)

    client = PortalClient(obj.dispatcher(), obj.settings.api_endpoint)
    try:
        response = client.get_usage(token)
    except ValidationError as e:
        raise click.BadParameter(_validation_message(e), param_hint="--token") from e
    except NoPathError as e:
        _echo_failure(e)
        sys.exit(EXIT_NO_PATH)

    data = parse_response_body(response)
    if not response.is_ok:
        click.echo(f"Usage query failed: {data.get('detail', response.status_code)}")
        sys.exit(1)

    summary = summarize_usage(data)
    if summary is None:
        click.echo("No usage limits reported.")
        return

    state = "available" if summary.has_data else "exhausted"
    click.echo(f"Remaining: {summary.remaining_mb} MB ({state})")


if __name__ == "__main__":
    cli()
