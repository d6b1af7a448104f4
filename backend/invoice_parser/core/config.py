from functools import lru_cache
import json

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _parse_list_value(value: str | list) -> list[str]:
    if not value:
        return []
    if isinstance(value, str):
        raw = value.strip()
        if raw == "":
            return []
        try:
            parsed = json.loads(raw)
            if isinstance(parsed, list):
                return [str(item).strip() for item in parsed if str(item).strip()]
        except ValueError:
            pass
        return [item.strip() for item in raw.split(",") if item.strip()]
    if isinstance(value, list):
        return [str(item).strip() for item in value if str(item).strip()]
    return []


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        validate_by_name=True,
        populate_by_name=True,
    )

    docs_enabled: bool = Field(default=True)
    openapi_enabled: bool = Field(default=True)
    log_level: str = "INFO"

    openai_api_key: str = ""
    openai_base_url: str = "https://api.openai.com/v1"
    anthropic_api_key: str = ""

    # Global provider/model; scope-specific values below win when set.
    ai_provider: str = "mock"
    ai_model: str = ""
    ai_classify_provider: str = ""
    ai_classify_model: str = ""
    ai_extract_provider: str = ""
    ai_extract_model: str = ""

    ai_allowed_providers_raw: str = Field(
        default="openai,claude,mock",
        validation_alias=AliasChoices("AI_ALLOWED_PROVIDERS"),
    )
    ai_allowed_models_raw: str = Field(
        default="",
        validation_alias=AliasChoices("AI_ALLOWED_MODELS"),
    )

    ai_max_tokens: int = 2048
    ai_timeout_seconds: float = 60.0
    ai_debug_store_raw: bool = Field(
        default=False,
        validation_alias=AliasChoices("AI_DEBUG_STORE_RAW"),
    )

    batch_concurrency: int = Field(default=4, ge=1)
    max_text_chars: int = Field(default=100_000, ge=1)
    max_image_bytes: int = Field(default=10 * 1024 * 1024, ge=1)

    cors_allow_origins: list[str] = Field(default_factory=list)

    @field_validator("cors_allow_origins", mode="before")
    @classmethod
    def _split_csv(cls, value):
        if value is None:
            return []
        if isinstance(value, str):
            if value.strip() == "":
                return []
            return [item.strip() for item in value.split(",") if item.strip()]
        return value

    @property
    def ai_allowed_providers(self) -> list[str]:
        return [p.lower() for p in _parse_list_value(self.ai_allowed_providers_raw)]

    @property
    def ai_allowed_models(self) -> dict[str, list[str]]:
        """``AI_ALLOWED_MODELS`` is a JSON object: provider -> list of models."""
        raw = self.ai_allowed_models_raw.strip()
        if not raw:
            return {}
        try:
            parsed = json.loads(raw)
        except ValueError:
            return {}
        if not isinstance(parsed, dict):
            return {}
        return {str(k).lower(): _parse_list_value(v) for k, v in parsed.items()}


@lru_cache
def get_settings() -> Settings:
    return Settings()
