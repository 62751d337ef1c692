"""Application configuration."""

from push_bridge.config.settings import Settings, get_settings

__all__ = ["Settings", "get_settings"]
