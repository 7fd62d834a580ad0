"""HTTP API module."""

from vibetune.api.handlers import register_routes

__all__ = ["register_routes"]
