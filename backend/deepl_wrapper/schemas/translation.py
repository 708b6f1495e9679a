# backend/deepl_wrapper/schemas/translation.py
"""
Pydantic schemas for the public JSON responses.
Field names follow the camelCase contract the web client expects.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class HealthResponse(BaseModel):
    status: str
    message: str


class ErrorResponse(BaseModel):
    """Body of every non-2xx response."""

    error: str
    message: str


class LanguageInfo(BaseModel):
    code: str
    name: str

    @classmethod
    def from_deepl(cls, entry: dict[str, Any]) -> "LanguageInfo":
        return cls(code=str(entry.get("language", "")), name=str(entry.get("name", "")))


class LanguagesResponse(BaseModel):
    source: list[LanguageInfo] = Field(default_factory=list)
    target: list[LanguageInfo] = Field(default_factory=list)


class UsageSnapshot(BaseModel):
    """
    Read-only view of the account usage DeepL reports.
    Missing counters are reported as 0.
    """

    model_config = ConfigDict(populate_by_name=True)

    character_count: int = Field(default=0, alias="characterCount")
    character_limit: int = Field(default=0, alias="characterLimit")
    document_count: int = Field(default=0, alias="documentCount")
    document_limit: int = Field(default=0, alias="documentLimit")

    @classmethod
    def from_deepl(cls, payload: dict[str, Any]) -> "UsageSnapshot":
        return cls(
            character_count=payload.get("character_count") or 0,
            character_limit=payload.get("character_limit") or 0,
            document_count=payload.get("document_count") or 0,
            document_limit=payload.get("document_limit") or 0,
        )
