"""Configuration for Outlaw Crossing."""

from outlaw.config.settings import Settings, get_settings

__all__ = ["Settings", "get_settings"]
