"""
Application configuration using Pydantic settings.

Configuration comes from environment variables with sensible defaults.
Without Snowflake credentials the application runs on the local mirror.
"""

from .settings import Settings, get_settings

__all__ = ["Settings", "get_settings"]
