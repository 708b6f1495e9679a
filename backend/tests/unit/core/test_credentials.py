# backend/tests/unit/core/test_credentials.py
import pytest

from deepl_wrapper.core.config import Settings
from deepl_wrapper.core.credentials import (
    CallerSuppliedCredential,
    ProviderEndpoints,
    ServerManagedCredential,
    build_credential_resolver,
)
from deepl_wrapper.exceptions import (
    CredentialConfigurationError,
    CredentialError,
    MissingCredentialError,
)

FREE_URL = "https://api-free.deepl.com/v2"
PRO_URL = "https://api.deepl.com/v2"


@pytest.fixture
def endpoints() -> ProviderEndpoints:
    return ProviderEndpoints(free_url=FREE_URL, pro_url=PRO_URL)


class TestProviderEndpoints:
    def test_free_suffix_selects_free_url(self, endpoints):
        assert endpoints.select_base_url("abc123:fx") == FREE_URL

    def test_other_keys_select_pro_url(self, endpoints):
        assert endpoints.select_base_url("abc123") == PRO_URL
        # The marker only counts at the very end.
        assert endpoints.select_base_url("abc:fx123") == PRO_URL

    def test_trailing_slash_is_trimmed(self):
        eps = ProviderEndpoints(free_url=FREE_URL + "/", pro_url=PRO_URL + "/")
        assert eps.select_base_url("k:fx") == FREE_URL
        assert eps.select_base_url("k") == PRO_URL

    def test_from_settings(self):
        app_settings = Settings(
            _env_file=None,
            DEEPL_FREE_API_URL="http://free.local/v2",
            DEEPL_PRO_API_URL="http://pro.local/v2",
        )
        eps = ProviderEndpoints.from_settings(app_settings)
        assert eps.select_base_url("x:fx") == "http://free.local/v2"
        assert eps.select_base_url("x") == "http://pro.local/v2"


class TestServerManagedCredential:
    def test_resolves_configured_key(self, endpoints):
        resolver = ServerManagedCredential("server-key:fx", endpoints)
        credential = resolver.resolve(None)
        assert credential.auth_key == "server-key:fx"
        assert credential.base_url == FREE_URL
        assert credential.is_free_tier is True

    def test_ignores_caller_key(self, endpoints):
        resolver = ServerManagedCredential("server-key", endpoints)
        credential = resolver.resolve("caller-key:fx")
        assert credential.auth_key == "server-key"
        assert credential.base_url == PRO_URL

    @pytest.mark.parametrize("configured", [None, "", "   "])
    def test_missing_key_is_a_configuration_error(self, endpoints, configured):
        resolver = ServerManagedCredential(configured, endpoints)
        assert resolver.is_configured is False
        with pytest.raises(CredentialConfigurationError) as exc_info:
            resolver.resolve("caller-key")
        assert exc_info.value.status_code == 500
        assert exc_info.value.error == "Server API key not configured"


class TestCallerSuppliedCredential:
    def test_uses_supplied_key(self, endpoints):
        credential = CallerSuppliedCredential(endpoints).resolve("caller-key")
        assert credential.auth_key == "caller-key"
        assert credential.base_url == PRO_URL
        assert credential.is_free_tier is False

    def test_supplied_key_is_stripped(self, endpoints):
        credential = CallerSuppliedCredential(endpoints).resolve("  caller-key:fx  ")
        assert credential.auth_key == "caller-key:fx"
        assert credential.base_url == FREE_URL

    @pytest.mark.parametrize("supplied", [None, "", "  "])
    def test_missing_key_is_unauthorized(self, endpoints, supplied):
        with pytest.raises(MissingCredentialError) as exc_info:
            CallerSuppliedCredential(endpoints).resolve(supplied)
        assert isinstance(exc_info.value, CredentialError)
        assert exc_info.value.status_code == 401
        assert exc_info.value.error == "API key not provided"


def test_credential_repr_masks_key(endpoints):
    credential = CallerSuppliedCredential(endpoints).resolve("super-secret-key-1234")
    text = repr(credential)
    assert "super-secret" not in text
    assert "1234" in text


class TestBuildCredentialResolver:
    def test_server_mode(self):
        resolver = build_credential_resolver(
            Settings(_env_file=None, CREDENTIAL_MODE="server", DEEPL_API_KEY="k")
        )
        assert isinstance(resolver, ServerManagedCredential)
        assert resolver.mode == "server"

    def test_caller_mode(self):
        resolver = build_credential_resolver(
            Settings(_env_file=None, CREDENTIAL_MODE="caller", DEEPL_API_KEY=None)
        )
        assert isinstance(resolver, CallerSuppliedCredential)
        assert resolver.mode == "caller"

    def test_server_mode_without_key_warns(self, caplog):
        with caplog.at_level("WARNING", logger="deepl_wrapper.core.credentials"):
            resolver = build_credential_resolver(
                Settings(_env_file=None, CREDENTIAL_MODE="server", DEEPL_API_KEY=None)
            )
        assert resolver.is_configured is False
        assert "DEEPL_API_KEY is not set" in caplog.text
