# backend/deepl_wrapper/api/dependencies.py
"""Shared FastAPI dependencies for the routers."""

import httpx
from fastapi import Depends

from deepl_wrapper.core.config import Settings, get_settings
from deepl_wrapper.services.artifact_store import TempArtifactStore


def get_provider_transport() -> httpx.AsyncBaseTransport | None:
    """
    Transport used for calls to DeepL. `None` means httpx's default network transport.
    Tests override this dependency with an `httpx.MockTransport`.
    """
    return None


def get_artifact_store(app_settings: Settings = Depends(get_settings)) -> TempArtifactStore:
    return TempArtifactStore(app_settings.temp_dir)
