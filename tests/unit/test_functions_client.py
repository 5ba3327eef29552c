"""
Unit tests for the server-side functions client.

Requests are routed through httpx.MockTransport.
"""

import json

import httpx
import pytest

from suivi_natation.core.errors import ApiError, BackendUnavailableError
from suivi_natation.infrastructure.functions.client import FunctionsClient, require_functions


def make_client(handler) -> FunctionsClient:
    http = httpx.Client(transport=httpx.MockTransport(handler))
    return FunctionsClient("https://functions.example.test/", "anon-key", http_client=http)


class TestInvoke:
    """Request shape and error mapping."""

    def test_posts_json_with_bearer_token(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["auth"] = request.headers["Authorization"]
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"status": "ok", "imported": 3})

        payload = make_client(handler).invoke("ffn-performances-import", {"iuf": "123"})

        assert payload == {"status": "ok", "imported": 3}
        assert seen["url"] == "https://functions.example.test/functions/v1/ffn-performances-import"
        assert seen["auth"] == "Bearer anon-key"
        assert seen["body"] == {"iuf": "123"}

    def test_http_error_carries_status_and_code(self):
        def handler(request):
            return httpx.Response(409, json={"error": "Import already running", "code": "busy"})

        with pytest.raises(ApiError) as exc_info:
            make_client(handler).invoke("ffn-sync", {})

        assert exc_info.value.status == 409
        assert exc_info.value.code == "busy"
        assert exc_info.value.message == "Import already running"

    def test_error_payload_on_success_status_is_a_failure(self):
        def handler(request):
            return httpx.Response(200, json={"error": {"code": "unknown_action", "message": "?"}})

        with pytest.raises(ApiError) as exc_info:
            make_client(handler).invoke("admin-user", {"action": "explode"})

        assert exc_info.value.code == "unknown_action"
        assert exc_info.value.status is None

    def test_unreachable_endpoint(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        with pytest.raises(ApiError):
            make_client(handler).invoke("ffn-sync", {})


class TestConfiguration:

    def test_from_settings_without_endpoint_is_none(self, settings):
        assert FunctionsClient.from_settings(settings) is None

    def test_from_settings_with_endpoint(self, settings):
        settings.functions_base_url = "https://functions.example.test"
        settings.functions_api_key = "anon-key"

        client = FunctionsClient.from_settings(settings)

        assert isinstance(client, FunctionsClient)
        client.close()

    def test_require_functions_raises_when_missing(self):
        with pytest.raises(BackendUnavailableError):
            require_functions(None, "Import FFN")
