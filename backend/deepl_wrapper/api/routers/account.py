# backend/deepl_wrapper/api/routers/account.py
"""
Read-only DeepL account endpoints: supported languages and usage.
"""

import logging
from typing import Annotated

import httpx
from fastapi import APIRouter, Depends

from deepl_wrapper.api.dependencies import get_provider_transport
from deepl_wrapper.core.config import Settings, get_settings
from deepl_wrapper.core.credentials import Credential, get_credential
from deepl_wrapper.schemas.translation import ErrorResponse, LanguagesResponse, UsageSnapshot
from deepl_wrapper.services.translation import fetch_languages, fetch_usage

logger = logging.getLogger(__name__)

router = APIRouter(tags=["DeepL Account"])

_ERROR_RESPONSES = {
    401: {"model": ErrorResponse, "description": "No API key sent (caller mode)."},
    500: {"model": ErrorResponse, "description": "Server key missing or unexpected failure."},
    502: {"model": ErrorResponse, "description": "DeepL could not be reached."},
}


@router.get(
    "/languages",
    response_model=LanguagesResponse,
    summary="List supported source and target languages",
    responses=_ERROR_RESPONSES,
)
async def get_languages(
    credential: Annotated[Credential, Depends(get_credential)],
    app_settings: Annotated[Settings, Depends(get_settings)],
    transport: Annotated[httpx.AsyncBaseTransport | None, Depends(get_provider_transport)],
) -> LanguagesResponse:
    languages = await fetch_languages(credential, app_settings, transport=transport)
    logger.debug(
        f"Fetched {len(languages.source)} source and {len(languages.target)} target languages."
    )
    return languages


@router.get(
    "/usage",
    response_model=UsageSnapshot,
    summary="Current DeepL character and document usage",
    responses=_ERROR_RESPONSES,
)
async def get_usage(
    credential: Annotated[Credential, Depends(get_credential)],
    app_settings: Annotated[Settings, Depends(get_settings)],
    transport: Annotated[httpx.AsyncBaseTransport | None, Depends(get_provider_transport)],
) -> UsageSnapshot:
    return await fetch_usage(credential, app_settings, transport=transport)
