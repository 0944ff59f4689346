"""Application settings powered by Pydantic BaseSettings."""

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from src.features.transport.config import TransportConfig, load_transport_config


class AppSettings(BaseSettings):
    """Centralized environment configuration."""

    model_config = SettingsConfigDict(
        env_prefix="", case_sensitive=False, env_file=".env", env_file_encoding="utf-8"
    )

    api_endpoint: str | None = Field(
        default=None, validation_alias="PORTAL_API_ENDPOINT"
    )
    transport_config_path: Path | None = Field(
        default=None, validation_alias="PORTAL_TRANSPORT_CONFIG"
    )
    user_agent: str | None = Field(default=None, validation_alias="PORTAL_USER_AGENT")

    def transport_config(self) -> TransportConfig:
        """Load the transport config, applying environment overrides.

        Returns:
            Config from PORTAL_TRANSPORT_CONFIG if set, else built-in defaults.
        """
        if self.transport_config_path is not None:
            config = load_transport_config(self.transport_config_path)
        else:
            config = TransportConfig()

        if self.user_agent:
            config = config.model_copy(update={"user_agent": self.user_agent})
        return config


def get_settings() -> AppSettings:
    """Get a settings instance."""
    return AppSettings()
