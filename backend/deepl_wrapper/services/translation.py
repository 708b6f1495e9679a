# backend/deepl_wrapper/services/translation.py
"""
Request-level workflows that tie together a credential, the DeepL client,
the temporary artifact store and the orchestrator.
"""

import asyncio
import logging
from dataclasses import dataclass

import httpx

from deepl_wrapper.core.config import Settings
from deepl_wrapper.core.credentials import Credential
from deepl_wrapper.core.log_utils import sanitize_for_log
from deepl_wrapper.schemas.translation import LanguageInfo, LanguagesResponse, UsageSnapshot
from deepl_wrapper.services.artifact_store import TempArtifactStore
from deepl_wrapper.services.deepl_client import DeepLClient
from deepl_wrapper.services.orchestrator import (
    SourceDocument,
    TranslationJob,
    TranslationOrchestrator,
)

logger = logging.getLogger(__name__)


@dataclass
class TranslatedDocument:
    filename: str
    content: bytes
    billed_characters: int | None = None


def _client_for(
    credential: Credential, app_settings: Settings, transport: httpx.AsyncBaseTransport | None
) -> DeepLClient:
    return DeepLClient(
        credential, timeout=app_settings.PROVIDER_TIMEOUT_SECONDS, transport=transport
    )


async def translate_document(
    source: SourceDocument,
    target_language: str,
    source_language: str | None,
    credential: Credential,
    store: TempArtifactStore,
    app_settings: Settings,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
    log_prefix: str = "",
) -> TranslatedDocument:
    """
    Upload `source` to DeepL, wait for the translation and return the result.

    The upload and the result are kept in temporary files for the duration of
    the call only; both are removed before this returns or raises.
    """
    job = TranslationJob(
        source=source,
        target_language=target_language,
        source_language=source_language or None,
    )
    async with _client_for(credential, app_settings, transport) as client:
        orchestrator = TranslationOrchestrator(
            client,
            poll_interval=app_settings.POLL_INTERVAL_SECONDS,
            max_attempts=app_settings.POLL_MAX_ATTEMPTS,
            log_prefix=log_prefix,
        )
        with store.scope() as artifacts:
            try:
                upload = artifacts.stash(source.content, source.extension, label="input")
                result = artifacts.allocate(source.extension, label="output")
                with upload.path.open("rb") as upload_fh:
                    await orchestrator.run(job, upload_fh, result.path)
                content = artifacts.retrieve(result)
            except asyncio.CancelledError:
                logger.warning(
                    f"{log_prefix}Translation of '{sanitize_for_log(source.filename)}' was "
                    f"cancelled in state '{job.state.value}'. Temporary files are being removed."
                )
                raise

    return TranslatedDocument(
        filename=job.output_name,
        content=content,
        billed_characters=job.billed_characters,
    )


async def fetch_usage(
    credential: Credential,
    app_settings: Settings,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> UsageSnapshot:
    async with _client_for(credential, app_settings, transport) as client:
        payload = await client.get_usage()
    return UsageSnapshot.from_deepl(payload)


async def fetch_languages(
    credential: Credential,
    app_settings: Settings,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> LanguagesResponse:
    async with _client_for(credential, app_settings, transport) as client:
        source = await client.get_languages("source")
        target = await client.get_languages("target")
    return LanguagesResponse(
        source=[LanguageInfo.from_deepl(entry) for entry in source],
        target=[LanguageInfo.from_deepl(entry) for entry in target],
    )
