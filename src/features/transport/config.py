"""Configuration models and loader for the transport layer."""

from pathlib import Path
from typing import Annotated

import structlog
import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from src.features.transport.constants import (
    DEFAULT_PROBE_TIMEOUT_SECONDS,
    DEFAULT_PROBE_URL,
    DEFAULT_USER_AGENT,
)
from src.features.transport.errors import TransportConfigError
from src.features.transport.models import Strategy
from src.features.transport.registry import DEFAULT_STRATEGIES, StrategyRegistry


logger = structlog.get_logger()


class TransportConfig(BaseModel):
    """Configuration for the transport layer.

    The strategy list is the fallback table: timeouts, GET-only relays, and
    credential forwarding are all decided here, per strategy.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    user_agent: Annotated[str, Field(min_length=1, max_length=500)] = (
        DEFAULT_USER_AGENT
    )
    strategies: list[Strategy] = Field(
        default_factory=lambda: list(DEFAULT_STRATEGIES), min_length=1
    )
    probe_url: Annotated[str, Field(min_length=1)] = DEFAULT_PROBE_URL
    probe_timeout_seconds: Annotated[float, Field(gt=0.0, le=60.0)] = (
        DEFAULT_PROBE_TIMEOUT_SECONDS
    )
    walled_garden_extra_hosts: list[str] = Field(
        default_factory=list,
        description="Hosts the portal page itself needs (CDNs, payment gateway)",
    )

    @field_validator("strategies")
    @classmethod
    def validate_unique_names(cls, v: list[Strategy]) -> list[Strategy]:
        """Ensure strategy names are unique."""
        names = [strategy.name for strategy in v]
        duplicates = sorted({name for name in names if names.count(name) > 1})
        if duplicates:
            msg = f"Duplicate strategy names: {', '.join(duplicates)}"
            raise ValueError(msg)
        return v

    def build_registry(self) -> StrategyRegistry:
        """Build the strategy registry described by this config."""
        return StrategyRegistry(self.strategies)


def load_transport_config(path: Path) -> TransportConfig:
    """Load and validate a transport configuration file.

    Args:
        path: Path to a YAML file.

    Returns:
        Validated TransportConfig.

    Raises:
        FileNotFoundError: If the file does not exist.
        TransportConfigError: If the YAML is malformed or fails validation.
    """
    log = logger.bind(component="config", file_path=str(path))
    log.info("loading_config_file")

    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        errors = [{"loc": "", "msg": f"Invalid YAML: {e}", "type": "yaml_error"}]
        log.error("config_yaml_error", error=str(e))
        raise TransportConfigError(errors, str(path)) from e

    try:
        config = TransportConfig.model_validate(data)
    except ValidationError as e:
        errors = [
            {
                "loc": ".".join(str(part) for part in err["loc"]),
                "msg": err["msg"],
                "type": err["type"],
            }
            for err in e.errors()
        ]
        log.error("config_validation_failed", error_count=len(errors), errors=errors)
        raise TransportConfigError(errors, str(path)) from e

    log.info(
        "config_file_loaded",
        strategy_count=len(config.strategies),
        strategies=[strategy.name for strategy in config.strategies],
    )
    return config
