"""
Snowflake database connection management.

Provides the connection configuration, a connection context manager and
the translation of Snowflake driver errors into ApiError.

Most code never touches this module directly: it goes through RemoteStore,
which opens one connection per operation with get_snowflake_connection.
"""

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Generator, Optional, Protocol

from ...config.settings import Settings
from ...core.errors import ApiError

logger = logging.getLogger(__name__)

TABLE_MISSING_ERRNO = 2003
INSUFFICIENT_PRIVILEGES_ERRNO = 3001
AUTH_ERRNOS = frozenset({390100, 390144, 390318})


class SnowflakeConnection(Protocol):
    """
    Protocol for Snowflake connections.

    Using a protocol means tests can provide a fake without
    importing the actual snowflake-connector-python.
    """

    def cursor(self): ...
    def commit(self) -> None: ...
    def close(self) -> None: ...


@dataclass
class SnowflakeConfig:
    """Configuration for Snowflake connection."""
    account: str
    user: str
    password: Optional[str] = None
    private_key_path: Optional[str] = None
    database: str = "SUIVI_NATATION"
    schema: str = "PUBLIC"
    warehouse: str = "COMPUTE_WH"
    role: Optional[str] = None

    @classmethod
    def from_settings(cls, settings: Settings) -> "SnowflakeConfig":
        return cls(
            account=settings.snowflake_account,
            user=settings.snowflake_user,
            password=settings.snowflake_password or None,
            private_key_path=settings.snowflake_private_key_path,
            database=settings.snowflake_database,
            schema=settings.snowflake_schema,
            warehouse=settings.snowflake_warehouse,
            role=settings.snowflake_role,
        )


class SnowflakeConnectionError(Exception):
    """Raised when Snowflake connection fails."""

    def __init__(self, message: str, errno: Optional[int] = None) -> None:
        super().__init__(message)
        self.errno = errno


def _load_private_key(key_path: str) -> bytes:
    """
    Load private key from file for key-pair authentication.

    Snowflake requires the private key as DER bytes, not a file path.
    """
    from cryptography.hazmat.backends import default_backend
    from cryptography.hazmat.primitives import serialization

    with open(key_path, 'rb') as key_file:
        private_key = serialization.load_pem_private_key(
            key_file.read(),
            password=None,  # No password on the key
            backend=default_backend()
        )

    return private_key.private_bytes(
        encoding=serialization.Encoding.DER,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption()
    )


@contextmanager
def get_snowflake_connection(config: SnowflakeConfig) -> Generator[SnowflakeConnection, None, None]:
    """
    Provide Snowflake connection with automatic cleanup.

    Supports both password and key-pair authentication:
    - If private_key_path is set, uses key-pair auth
    - Otherwise, uses password auth

    Only failures to connect are wrapped in SnowflakeConnectionError.
    Errors raised by the caller's statements propagate untouched, so their
    driver errno survives for translate_snowflake_error.

    Usage:
        with get_snowflake_connection(config) as conn:
            cursor = conn.cursor()
            # do work
            conn.commit()
    """
    import snowflake.connector

    connect_params = {
        'account': config.account,
        'user': config.user,
        'database': config.database,
        'schema': config.schema,
        'warehouse': config.warehouse,
        'role': config.role,
    }

    if config.private_key_path:
        logger.debug("Using key-pair authentication for Snowflake")
        connect_params['private_key'] = _load_private_key(config.private_key_path)
    elif config.password:
        logger.debug("Using password authentication for Snowflake")
        connect_params['password'] = config.password
    else:
        raise SnowflakeConnectionError(
            "Either password or private_key_path must be provided"
        )

    try:
        conn = snowflake.connector.connect(**connect_params)
    except snowflake.connector.errors.Error as e:
        logger.error(
            "Snowflake connection failed",
            extra={"error": str(e), "account": config.account}
        )
        raise SnowflakeConnectionError(f"Database connection failed: {e}", errno=e.errno) from e

    logger.debug(
        "Established Snowflake connection",
        extra={
            "account": config.account,
            "database": config.database,
            "schema": config.schema,
        }
    )

    try:
        yield conn
    finally:
        try:
            conn.close()
            logger.debug("Closed Snowflake connection")
        except Exception as e:
            logger.warning(
                "Error closing Snowflake connection",
                extra={"error": str(e)}
            )


def translate_snowflake_error(error: BaseException) -> ApiError:
    """
    Map a driver error onto ApiError.

    errno 2003 (object does not exist) -> code table_missing,
    auth failures -> status 401, insufficient privileges -> status 403.
    """
    if isinstance(error, ApiError):
        return error

    errno = getattr(error, "errno", None)
    message = getattr(error, "msg", None) or str(error)

    if errno == TABLE_MISSING_ERRNO:
        return ApiError(message, code="table_missing", status=404)
    if errno in AUTH_ERRNOS:
        return ApiError(message, code="auth_failed", status=401)
    if errno == INSUFFICIENT_PRIVILEGES_ERRNO:
        return ApiError(message, code="forbidden", status=403)
    if isinstance(error, SnowflakeConnectionError):
        return ApiError(message, code="connection_failed", status=503)
    return ApiError(message, code=str(errno) if errno else None)
