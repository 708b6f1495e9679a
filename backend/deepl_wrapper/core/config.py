# backend/deepl_wrapper/core/config.py

import json
import logging
import tempfile
from typing import Literal

from pydantic import AliasChoices, Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from starlette.requests import Request

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
        populate_by_name=True,
    )

    # --- Environment & Debug ---
    ENVIRONMENT: Literal["development", "staging", "production"] = Field(
        default="development", validation_alias=AliasChoices("APP_ENV", "ENVIRONMENT")
    )
    DEBUG: bool = Field(default=False, validation_alias=AliasChoices("DEBUG_MODE", "DEBUG"))
    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        validation_alias="LOG_LEVEL",
    )

    # --- Server Configuration ---
    SERVER_HOST: str = Field(default="0.0.0.0", validation_alias="SERVER_HOST")
    SERVER_PORT: int = Field(default=3001, validation_alias=AliasChoices("SERVER_PORT", "PORT"))

    # --- Core Application Settings ---
    APP_NAME: str = Field(default="DeepL Wrapper API", validation_alias="APP_NAME")
    APP_VERSION: str = Field(default="0.1.0", validation_alias="APP_VERSION")
    APP_DESCRIPTION: str = Field(
        default="Upload a document, translate it with DeepL and download the result.",
        validation_alias="APP_DESCRIPTION",
    )

    # --- Credentials ---
    # "server": one key held by the process. "caller": each request brings its own key.
    CREDENTIAL_MODE: Literal["server", "caller"] = Field(
        default="server", validation_alias="CREDENTIAL_MODE"
    )
    DEEPL_API_KEY: str | None = Field(default=None, validation_alias="DEEPL_API_KEY")

    # --- DeepL Endpoints ---
    DEEPL_FREE_API_URL: str = Field(
        default="https://api-free.deepl.com/v2", validation_alias="DEEPL_FREE_API_URL"
    )
    DEEPL_PRO_API_URL: str = Field(
        default="https://api.deepl.com/v2", validation_alias="DEEPL_PRO_API_URL"
    )
    DEEPL_FREE_KEY_SUFFIX: str = Field(default=":fx", validation_alias="DEEPL_FREE_KEY_SUFFIX")

    # --- Document Translation Workflow ---
    POLL_INTERVAL_SECONDS: float = Field(
        default=1.0, ge=0, validation_alias="POLL_INTERVAL_SECONDS"
    )
    POLL_MAX_ATTEMPTS: int = Field(default=60, ge=1, validation_alias="POLL_MAX_ATTEMPTS")
    PROVIDER_TIMEOUT_SECONDS: float = Field(
        default=60.0, gt=0, validation_alias="PROVIDER_TIMEOUT_SECONDS"
    )
    TEMP_DIR: str | None = Field(
        default=None,
        description="Directory for temporary upload/result files. Defaults to the system temp dir.",
        validation_alias="TEMP_DIR",
    )
    TRANSLATE_RATE_LIMIT: str = Field(default="30/minute", validation_alias="TRANSLATE_RATE_LIMIT")

    # --- Fields for complex parsing ---
    backend_cors_origins_env_str: str | None = Field(
        default='["*"]',
        validation_alias=AliasChoices("BACKEND_CORS_ORIGINS", "BACKEND_CORS_ORIGINS_ENV"),
    )

    # --- Private storage for parsed values ---
    _parsed_backend_cors_origins: list[str] = []

    def _parse_string_list_input_helper(
        self, input_str: str | None, field_name_for_log: str
    ) -> list[str]:
        parsed_list: list[str] = []
        if not input_str or not input_str.strip():
            return parsed_list
        try:
            loaded_items = json.loads(input_str)
            if isinstance(loaded_items, list):
                parsed_list = [str(item).strip() for item in loaded_items if str(item).strip()]
            else:
                logger.debug(
                    f"Input for {field_name_for_log} ('{input_str}') was valid JSON but not a list. Trying comma separation."
                )
                parsed_list = [item.strip() for item in input_str.split(",") if item.strip()]
        except json.JSONDecodeError:
            logger.debug(
                f"JSONDecodeError for {field_name_for_log}. Falling back to comma separation for: '{input_str}'"
            )
            parsed_list = [item.strip() for item in input_str.split(",") if item.strip()]

        if not parsed_list and input_str.strip():
            logger.warning(
                f"Env var {field_name_for_log} (value: '{input_str}') resulted in an empty parsed list."
            )
        return parsed_list

    @model_validator(mode="after")
    def _process_complex_fields_and_debug_overrides(self) -> "Settings":
        self._parsed_backend_cors_origins = self._parse_string_list_input_helper(
            self.backend_cors_origins_env_str, "BACKEND_CORS_ORIGINS"
        )

        if self.DEBUG and self.LOG_LEVEL != "DEBUG":
            logger.info("DEBUG mode is ON. Overriding LOG_LEVEL to DEBUG.")
            self.LOG_LEVEL = "DEBUG"

        if self.DEEPL_API_KEY is not None and not self.DEEPL_API_KEY.strip():
            self.DEEPL_API_KEY = None
        return self

    @property
    def BACKEND_CORS_ORIGINS(self) -> list[str]:
        return self._parsed_backend_cors_origins

    @property
    def temp_dir(self) -> str:
        return self.TEMP_DIR or tempfile.gettempdir()


settings = Settings()


def get_settings(request: Request) -> Settings:
    """Settings the running app was created with."""
    return request.app.state.settings
