# backend/deepl_wrapper/core/credentials.py
"""
Credential resolution for DeepL calls.

A deployment runs in exactly one of two modes:
- server: one key configured on the process, callers never send a key.
- caller: every request carries its own key in the `X-DeepL-API-Key` header.

Both modes yield a `Credential` bound to the DeepL base URL its key belongs to.
Keys ending in the free-account marker (`:fx`) go to the free API host.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Annotated

from fastapi import Request, Security
from fastapi.security import APIKeyHeader

from deepl_wrapper.core.config import Settings
from deepl_wrapper.core.log_utils import mask_secret
from deepl_wrapper.exceptions import CredentialConfigurationError, MissingCredentialError

logger = logging.getLogger(__name__)

DEEPL_API_KEY_HEADER = "X-DeepL-API-Key"

deepl_api_key_header = APIKeyHeader(
    name=DEEPL_API_KEY_HEADER,
    auto_error=False,
    description="DeepL API key (only read when the server runs in caller mode).",
)


@dataclass(frozen=True)
class ProviderEndpoints:
    free_url: str
    pro_url: str
    free_suffix: str = ":fx"

    def is_free_key(self, auth_key: str) -> bool:
        return auth_key.endswith(self.free_suffix)

    def select_base_url(self, auth_key: str) -> str:
        url = self.free_url if self.is_free_key(auth_key) else self.pro_url
        return url.rstrip("/")

    @classmethod
    def from_settings(cls, app_settings: Settings) -> "ProviderEndpoints":
        return cls(
            free_url=app_settings.DEEPL_FREE_API_URL,
            pro_url=app_settings.DEEPL_PRO_API_URL,
            free_suffix=app_settings.DEEPL_FREE_KEY_SUFFIX,
        )


@dataclass(frozen=True)
class Credential:
    auth_key: str = field(repr=False)
    base_url: str
    is_free_tier: bool = False

    def __repr__(self) -> str:
        return (
            f"Credential(auth_key='{mask_secret(self.auth_key)}', "
            f"base_url='{self.base_url}', is_free_tier={self.is_free_tier})"
        )


class CredentialResolver(ABC):
    """Turns the (possibly absent) per-request key into a usable `Credential`."""

    mode: str

    def __init__(self, endpoints: ProviderEndpoints):
        self.endpoints = endpoints

    @abstractmethod
    def resolve(self, supplied_key: str | None) -> Credential:
        raise NotImplementedError

    def _bind(self, auth_key: str) -> Credential:
        return Credential(
            auth_key=auth_key,
            base_url=self.endpoints.select_base_url(auth_key),
            is_free_tier=self.endpoints.is_free_key(auth_key),
        )


class ServerManagedCredential(CredentialResolver):
    mode = "server"

    def __init__(self, configured_key: str | None, endpoints: ProviderEndpoints):
        super().__init__(endpoints)
        self._configured_key = configured_key.strip() if configured_key else None

    @property
    def is_configured(self) -> bool:
        return bool(self._configured_key)

    def resolve(self, supplied_key: str | None) -> Credential:
        # The header is ignored on purpose in this mode.
        if not self._configured_key:
            raise CredentialConfigurationError(
                "DEEPL_API_KEY environment variable is required",
            )
        return self._bind(self._configured_key)


class CallerSuppliedCredential(CredentialResolver):
    mode = "caller"

    def resolve(self, supplied_key: str | None) -> Credential:
        auth_key = supplied_key.strip() if supplied_key else ""
        if not auth_key:
            raise MissingCredentialError("Please provide a DeepL API key")
        return self._bind(auth_key)


def build_credential_resolver(app_settings: Settings) -> CredentialResolver:
    endpoints = ProviderEndpoints.from_settings(app_settings)
    if app_settings.CREDENTIAL_MODE == "caller":
        return CallerSuppliedCredential(endpoints)

    resolver = ServerManagedCredential(app_settings.DEEPL_API_KEY, endpoints)
    if not resolver.is_configured:
        logger.warning(
            "CREDENTIAL_MODE=server but DEEPL_API_KEY is not set. "
            "Every translation, usage and language request will fail until it is configured."
        )
    return resolver


async def get_credential(
    request: Request,
    api_key: Annotated[str | None, Security(deepl_api_key_header)],
) -> Credential:
    """FastAPI dependency resolving the credential for the current request."""
    resolver: CredentialResolver = request.app.state.credential_resolver
    credential = resolver.resolve(api_key)
    logger.debug(
        f"Resolved {resolver.mode} credential {mask_secret(credential.auth_key)} "
        f"-> {credential.base_url}"
    )
    return credential
