"""Application-wide configuration."""

from signal_risk.config.settings import Settings, get_settings

__all__ = ["Settings", "get_settings"]
