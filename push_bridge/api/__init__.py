"""HTTP API for device registration and health."""

from push_bridge.api.app import create_app

__all__ = ["create_app"]
