"""Configuration module for the Intershop MCP server."""

from .settings import Settings, get_settings

__all__ = ["Settings", "get_settings"]
