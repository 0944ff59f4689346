"""Environment settings for the portal transport CLI."""

from .app import AppSettings, get_settings


__all__ = ["AppSettings", "get_settings"]
