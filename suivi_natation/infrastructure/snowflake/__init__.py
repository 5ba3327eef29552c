"""
Snowflake connection management and driver error translation.
"""

from .client import SnowflakeConfig, get_snowflake_connection, translate_snowflake_error

__all__ = ["SnowflakeConfig", "get_snowflake_connection", "translate_snowflake_error"]
