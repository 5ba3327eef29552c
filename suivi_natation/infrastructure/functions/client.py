"""
Client for the server-side functions.

Imports from the swimming federation (FFN), club record recalculation and
admin user management run as opaque HTTP functions next to the database:

    POST {functions_base_url}/functions/v1/<name>
    Authorization: Bearer <functions_api_key>

Only the request and response JSON shapes matter here. Failures come back
as ApiError carrying the function's error code and the HTTP status.
"""

import logging
from typing import Any, Optional

import httpx

from ...config.settings import Settings
from ...core.errors import ApiError, BackendUnavailableError, ErrorReporter

logger = logging.getLogger(__name__)

FUNCTIONS_PATH = "/functions/v1"


class FunctionsClient:
    """
    Invokes the named server-side functions over HTTP.

    The httpx client is injectable so tests can route requests through
    httpx.MockTransport.
    """

    def __init__(
        self,
        base_url: str,
        api_key: str,
        reporter: Optional[ErrorReporter] = None,
        http_client: Optional[httpx.Client] = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._api_key = api_key
        self._reporter = reporter or ErrorReporter()
        self._http = http_client or httpx.Client(timeout=60.0)

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        reporter: Optional[ErrorReporter] = None,
    ) -> Optional["FunctionsClient"]:
        """A client when the functions endpoint is configured, None otherwise."""
        if not settings.has_functions:
            return None
        return cls(settings.functions_base_url, settings.functions_api_key, reporter)

    def invoke(self, name: str, body: dict[str, Any]) -> Any:
        url = f"{self._base_url}{FUNCTIONS_PATH}/{name}"
        logger.info("Invoking function", extra={"function": name})

        try:
            response = self._http.post(
                url,
                json=body,
                headers={"Authorization": f"Bearer {self._api_key}"},
            )
        except httpx.HTTPError as e:
            raise self._reporter.report(ApiError(f"Function {name} unreachable: {e}")) from e

        try:
            payload = response.json()
        except ValueError:
            payload = None

        if response.is_error or (isinstance(payload, dict) and payload.get("error")):
            raise self._reporter.report(self._error_from_response(name, response, payload))

        return payload

    @staticmethod
    def _error_from_response(name: str, response: httpx.Response, payload: Any) -> ApiError:
        code = None
        message = None
        if isinstance(payload, dict):
            code = payload.get("code")
            error = payload.get("error")
            if isinstance(error, dict):
                code = code or error.get("code")
                message = error.get("message")
            elif error:
                message = str(error)
            message = message or payload.get("message")
        status = response.status_code if response.is_error else None
        return ApiError(
            message or f"Function {name} failed with status {response.status_code}",
            code=code,
            status=status,
        )

    def close(self) -> None:
        self._http.close()


def require_functions(client: Optional[FunctionsClient], operation: str) -> FunctionsClient:
    if client is None:
        raise BackendUnavailableError(
            f"{operation} needs the server-side functions, which are not configured"
        )
    return client
