# backend/deepl_wrapper/services/deepl_client.py
"""
Async client for the parts of the DeepL v2 API this service needs:
document upload/status/result, usage and the language lists.

Non-success responses become `UpstreamError` carrying DeepL's status code and
its response body verbatim. Network failures become `ProviderUnavailableError`.
Nothing here retries.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import IO, Any, Literal

import httpx

from deepl_wrapper.core.credentials import Credential
from deepl_wrapper.core.log_utils import mask_secret, sanitize_for_log
from deepl_wrapper.exceptions import ProviderUnavailableError, UpstreamError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 60.0
DOWNLOAD_CHUNK_SIZE = 64 * 1024


@dataclass
class DocumentStatus:
    status: str
    seconds_remaining: int | None = None
    billed_characters: int | None = None
    error_message: str | None = None

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "DocumentStatus":
        return cls(
            status=str(payload.get("status", "")),
            seconds_remaining=payload.get("seconds_remaining"),
            billed_characters=payload.get("billed_characters"),
            error_message=payload.get("error_message"),
        )


class DeepLClient:
    """One client per credential; use as an async context manager."""

    def __init__(
        self,
        credential: Credential,
        *,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.credential = credential
        self._client = httpx.AsyncClient(
            base_url=credential.base_url,
            headers={"Authorization": f"DeepL-Auth-Key {credential.auth_key}"},
            timeout=timeout,
            transport=transport,
        )

    async def __aenter__(self) -> "DeepLClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    # --- Internal helpers ---

    async def _send(self, method: str, url: str, *, action: str, **kwargs) -> httpx.Response:
        try:
            response = await self._client.request(method, url, **kwargs)
        except httpx.TransportError as e:
            logger.warning(
                f"DeepL {action}: transport error for key {mask_secret(self.credential.auth_key)}: {e!r}"
            )
            raise ProviderUnavailableError(
                f"Could not reach DeepL: {e}", error=f"Failed to {action}"
            ) from e
        if not response.is_success:
            await self._raise_for_upstream(response, action)
        return response

    @staticmethod
    async def _raise_for_upstream(response: httpx.Response, action: str) -> None:
        body = (await response.aread()).decode("utf-8", errors="replace")
        logger.error(
            f"DeepL {action} failed with status {response.status_code}: {sanitize_for_log(body)}"
        )
        raise UpstreamError(body, error=f"Failed to {action}", status_code=response.status_code)

    @staticmethod
    def _json(response: httpx.Response, action: str) -> Any:
        try:
            return response.json()
        except ValueError as e:
            raise UpstreamError(
                f"DeepL returned an unreadable response: {response.text[:200]}",
                error=f"Failed to {action}",
                status_code=502,
            ) from e

    # --- Document translation ---

    async def upload_document(
        self,
        filename: str,
        file_obj: IO[bytes],
        target_lang: str,
        source_lang: str | None = None,
    ) -> tuple[str, str]:
        action = "upload document to DeepL"
        data = {"target_lang": target_lang}
        if source_lang:
            data["source_lang"] = source_lang
        response = await self._send(
            "POST",
            "/document",
            action=action,
            data=data,
            files={"file": (filename, file_obj, "application/octet-stream")},
        )
        payload = self._json(response, action)
        try:
            return str(payload["document_id"]), str(payload["document_key"])
        except (KeyError, TypeError) as e:
            raise UpstreamError(
                "DeepL upload response did not contain a document id and key",
                error=f"Failed to {action}",
                status_code=502,
            ) from e

    async def get_document_status(self, document_id: str, document_key: str) -> DocumentStatus:
        action = "check translation status"
        response = await self._send(
            "POST",
            f"/document/{document_id}",
            action=action,
            data={"document_key": document_key},
        )
        payload = self._json(response, action)
        if not isinstance(payload, dict):
            payload = {}
        return DocumentStatus.from_payload(payload)

    async def download_document(
        self, document_id: str, document_key: str, destination: Path
    ) -> int:
        """Stream the translated document into `destination`. Returns the byte count."""
        action = "download translated document"
        request = self._client.build_request(
            "POST",
            f"/document/{document_id}/result",
            data={"document_key": document_key},
        )
        try:
            response = await self._client.send(request, stream=True)
        except httpx.TransportError as e:
            raise ProviderUnavailableError(
                f"Could not reach DeepL: {e}", error=f"Failed to {action}"
            ) from e

        written = 0
        try:
            if not response.is_success:
                await self._raise_for_upstream(response, action)
            with destination.open("wb") as fh:
                async for chunk in response.aiter_bytes(DOWNLOAD_CHUNK_SIZE):
                    fh.write(chunk)
                    written += len(chunk)
        except httpx.TransportError as e:
            raise ProviderUnavailableError(
                f"Connection to DeepL dropped during download: {e}", error=f"Failed to {action}"
            ) from e
        finally:
            await response.aclose()
        return written

    # --- Account information ---

    async def get_usage(self) -> dict[str, Any]:
        action = "fetch usage information"
        response = await self._send("GET", "/usage", action=action)
        payload = self._json(response, action)
        return payload if isinstance(payload, dict) else {}

    async def get_languages(self, kind: Literal["source", "target"]) -> list[dict[str, Any]]:
        action = f"fetch {kind} languages"
        response = await self._send("GET", "/languages", action=action, params={"type": kind})
        payload = self._json(response, action)
        return payload if isinstance(payload, list) else []
