# backend/tests/unit/core/test_rate_limit.py
from types import SimpleNamespace

from starlette.requests import Request

from deepl_wrapper.core import request_context
from deepl_wrapper.core.config import Settings, settings
from deepl_wrapper.core.credentials import (
    CallerSuppliedCredential,
    ProviderEndpoints,
    ServerManagedCredential,
)
from deepl_wrapper.core.rate_limit import get_api_key_or_ip, translate_rate_limit

ENDPOINTS = ProviderEndpoints(free_url="https://free.test/v2", pro_url="https://pro.test/v2")


def make_request(resolver, api_key: str | None = None, client_ip: str = "10.0.0.7") -> Request:
    headers = [(b"x-deepl-api-key", api_key.encode())] if api_key is not None else []
    app = SimpleNamespace(state=SimpleNamespace(credential_resolver=resolver))
    scope = {
        "type": "http",
        "method": "POST",
        "path": "/translate",
        "headers": headers,
        "client": (client_ip, 5000),
        "app": app,
    }
    return Request(scope)


class TestGetApiKeyOrIp:
    def test_caller_mode_buckets_by_key_prefix(self):
        request = make_request(CallerSuppliedCredential(ENDPOINTS), api_key="abcdefgh12345:fx")
        assert get_api_key_or_ip(request) == "api_key:abcdefgh"

    def test_caller_mode_without_key_uses_ip(self):
        request = make_request(CallerSuppliedCredential(ENDPOINTS), api_key="  ")
        assert get_api_key_or_ip(request) == "10.0.0.7"

    def test_server_mode_ignores_key_header(self):
        resolver = ServerManagedCredential("server-key", ENDPOINTS)
        first = make_request(resolver, api_key="junk0001")
        second = make_request(resolver, api_key="junk0002")
        assert get_api_key_or_ip(first) == get_api_key_or_ip(second) == "10.0.0.7"


class TestTranslateRateLimit:
    def test_uses_module_settings_outside_a_request(self):
        assert translate_rate_limit() == settings.TRANSLATE_RATE_LIMIT

    def test_uses_settings_of_the_serving_app(self):
        app_settings = Settings(_env_file=None, TRANSLATE_RATE_LIMIT="5/second")
        ctx = request_context.RequestContext(
            request_method="POST", request_path="/translate", app_settings=app_settings
        )
        token = request_context._request_context.set(ctx)
        try:
            assert translate_rate_limit() == "5/second"
        finally:
            request_context._request_context.reset(token)
