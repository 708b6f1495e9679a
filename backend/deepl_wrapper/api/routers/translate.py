# backend/deepl_wrapper/api/routers/translate.py
"""
Document translation endpoint.
"""

import logging
from typing import Annotated
from urllib.parse import quote

import httpx
from fastapi import APIRouter, Depends, File, Form, Request, UploadFile
from fastapi.responses import Response

from deepl_wrapper.api.dependencies import get_artifact_store, get_provider_transport
from deepl_wrapper.core.config import Settings, get_settings
from deepl_wrapper.core.credentials import Credential, get_credential
from deepl_wrapper.core.log_utils import sanitize_for_log
from deepl_wrapper.core.rate_limit import limiter, translate_rate_limit
from deepl_wrapper.core.request_context import current_log_prefix
from deepl_wrapper.exceptions import InputValidationError
from deepl_wrapper.schemas.translation import ErrorResponse
from deepl_wrapper.services.artifact_store import TempArtifactStore
from deepl_wrapper.services.orchestrator import SourceDocument
from deepl_wrapper.services.translation import translate_document

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Translation"])

BILLED_CHARACTERS_HEADER = "X-Billed-Characters"


def content_disposition(filename: str) -> str:
    """`attachment; filename="..."`, plus an RFC 5987 `filename*` when the name is not ASCII."""
    escaped = filename.replace("\\", "\\\\").replace('"', '\\"')
    try:
        escaped.encode("ascii")
    except UnicodeEncodeError:
        fallback = escaped.encode("ascii", errors="replace").decode("ascii")
        return f"attachment; filename=\"{fallback}\"; filename*=UTF-8''{quote(filename)}"
    return f'attachment; filename="{escaped}"'


@router.post(
    "/translate",
    response_class=Response,
    summary="Translate a document",
    description=(
        "Uploads the document to DeepL, waits until the translation is finished "
        "(polling once per interval, bounded) and returns the translated file."
    ),
    responses={
        200: {
            "content": {"application/octet-stream": {}},
            "description": "The translated document.",
        },
        400: {"model": ErrorResponse, "description": "Missing file or target language."},
        401: {"model": ErrorResponse, "description": "No API key sent (caller mode)."},
        408: {"model": ErrorResponse, "description": "DeepL did not finish in time."},
        500: {"model": ErrorResponse, "description": "Translation or server failure."},
    },
)
@limiter.limit(translate_rate_limit)
async def translate(
    request: Request,
    credential: Annotated[Credential, Depends(get_credential)],
    app_settings: Annotated[Settings, Depends(get_settings)],
    store: Annotated[TempArtifactStore, Depends(get_artifact_store)],
    transport: Annotated[httpx.AsyncBaseTransport | None, Depends(get_provider_transport)],
    file: Annotated[UploadFile | None, File(description="Document to translate")] = None,
    target_lang: Annotated[
        str | None, Form(alias="targetLang", description="DeepL target language code")
    ] = None,
    source_lang: Annotated[
        str | None,
        Form(alias="sourceLang", description="DeepL source language code; omit to auto-detect"),
    ] = None,
) -> Response:
    if file is None or not file.filename:
        raise InputValidationError("No file provided", error="No file provided")

    target_lang = (target_lang or "").strip()
    if not target_lang:
        raise InputValidationError(
            "Target language is required", error="Target language is required"
        )
    source_lang = (source_lang or "").strip() or None

    content = await file.read()
    if not content:
        raise InputValidationError("The uploaded file is empty", error="No file provided")

    log_prefix = current_log_prefix()
    logger.info(
        f"{log_prefix}Translate request: '{sanitize_for_log(file.filename)}' "
        f"({len(content)} bytes), target={sanitize_for_log(target_lang)}, "
        f"source={sanitize_for_log(source_lang) if source_lang else 'auto'}"
    )

    result = await translate_document(
        SourceDocument(filename=file.filename, content=content),
        target_language=target_lang,
        source_language=source_lang,
        credential=credential,
        store=store,
        app_settings=app_settings,
        transport=transport,
        log_prefix=log_prefix,
    )

    headers = {"Content-Disposition": content_disposition(result.filename)}
    if result.billed_characters is not None:
        headers[BILLED_CHARACTERS_HEADER] = str(result.billed_characters)
    return Response(
        content=result.content,
        media_type="application/octet-stream",
        headers=headers,
    )
