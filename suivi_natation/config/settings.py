"""
Application configuration using Pydantic settings.

Configuration is loaded from environment variables with sensible defaults.
Using Pydantic's BaseSettings means we get:
- Type validation at startup (fail fast if config is wrong)
- Documentation of what's required vs optional
- Easy testing with different configurations

When the Snowflake credentials are absent (or the machine is offline) every
data operation runs against the local mirror instead. That is the normal
development mode, not an error.
"""

from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings can be overridden via environment variables.
    For lists (like api_keys), use comma-separated values in env.
    """

    # API Configuration
    api_title: str = "Suivi Natation API"
    api_version: str = "v1"
    api_keys: str = Field(
        default="dev-key-1,dev-key-2",
        description="Comma-separated API keys. Using a list enables key rotation without downtime."
    )

    # Snowflake Configuration
    snowflake_account: str = Field(
        default="",
        description="Snowflake account identifier. Empty means local mode."
    )
    snowflake_user: str = Field(
        default="",
        description="Snowflake service account username"
    )
    snowflake_password: str = Field(
        default="",
        description="Snowflake service account password"
    )
    snowflake_private_key_path: Optional[str] = Field(
        default=None,
        description="Path to RSA private key file for key-pair authentication"
    )
    snowflake_database: str = Field(
        default="SUIVI_NATATION",
        description="Snowflake database name"
    )
    snowflake_schema: str = Field(
        default="PUBLIC",
        description="Snowflake schema name"
    )
    snowflake_warehouse: str = Field(
        default="COMPUTE_WH",
        description="Snowflake warehouse for query execution"
    )
    snowflake_role: Optional[str] = Field(
        default=None,
        description="Snowflake role to use (optional)"
    )

    # Server-side functions (imports, admin actions)
    functions_base_url: str = Field(
        default="",
        description="Base URL of the server-side functions (FFN imports, admin-user)."
    )
    functions_api_key: str = Field(
        default="",
        description="Anonymous key sent as bearer token to the functions endpoint."
    )

    # Local mirror
    offline_mode: bool = Field(
        default=False,
        description="Force the network check to report offline. Every call then uses the local mirror."
    )
    local_data_dir: Path = Field(
        default=Path(".suivi_natation"),
        description="Directory holding one JSON file per mirrored collection."
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )

    # CORS
    cors_origins: str = Field(
        default="http://localhost:5173,http://localhost:3000",
        description="Comma-separated list of allowed CORS origins. Use * for development only."
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    @property
    def api_keys_list(self) -> list[str]:
        """Parse comma-separated API keys into a list."""
        return [key.strip() for key in self.api_keys.split(",") if key.strip()]

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse comma-separated CORS origins into a list."""
        if self.cors_origins == "*":
            return ["*"]
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    @property
    def has_backend(self) -> bool:
        """
        Whether the remote store is configured.

        Needs an account (the endpoint) plus one credential: a password
        or a private key file.
        """
        has_credential = bool(self.snowflake_password.strip() or self.snowflake_private_key_path)
        return bool(self.snowflake_account.strip() and self.snowflake_user.strip() and has_credential)

    @property
    def has_functions(self) -> bool:
        return bool(self.functions_base_url.strip() and self.functions_api_key.strip())

    def validate_required_fields(self) -> list[str]:
        """
        List the settings missing for remote mode.

        An empty Snowflake configuration is valid (local mode), so this is
        only reported at startup, never enforced.
        """
        missing = []

        if self.snowflake_account and not self.snowflake_user:
            missing.append("SNOWFLAKE_USER")
        if self.snowflake_account and not (self.snowflake_password or self.snowflake_private_key_path):
            missing.append("SNOWFLAKE_PASSWORD or SNOWFLAKE_PRIVATE_KEY_PATH")
        if self.functions_base_url and not self.functions_api_key:
            missing.append("FUNCTIONS_API_KEY")

        return missing


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Using lru_cache means we only load settings once per process.
    For tests, you can call get_settings.cache_clear() to reset.
    """
    return Settings()
