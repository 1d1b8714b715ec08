from functools import lru_cache
import json
from typing import Annotated

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

ALLOWED_JSON_STRATEGIES = {"greedy", "balanced"}


def _parse_list_value(value: str) -> list[str]:
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
        except json.JSONDecodeError:
            pass
        return [item.strip() for item in raw.split(",") if item.strip()]
    if isinstance(value, list):
        return [str(item).strip() for item in value if str(item).strip()]
    return []


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        extra="ignore",
        validate_by_name=True,
        populate_by_name=True,
    )
    environment: str = Field(
        default="development",
        validation_alias=AliasChoices("ENVIRONMENT", "APP_ENV"),
    )

    supabase_url: str = ""
    supabase_jwt_secret: str = ""
    supabase_jwt_audience: str = "authenticated"
    database_url: str = ""

    docs_enabled: bool = Field(default=True)
    openapi_enabled: bool = Field(default=True)
    expose_error_details: bool = False

    # Model gateway (OpenAI-compatible chat completions)
    ai_gateway_url: str = "https://ai.gateway.lovable.dev/v1/chat/completions"
    ai_gateway_api_key: str = Field(
        default="",
        validation_alias=AliasChoices("AI_GATEWAY_API_KEY", "LOVABLE_API_KEY"),
    )
    ai_vision_provider: str = "gateway"
    ai_vision_model: str = "google/gemini-2.5-flash"
    ai_vision_timeout_seconds: float = 30.0
    ai_vision_json_strategy: str = "greedy"
    ai_allowed_providers_raw: str = Field(
        default="gateway,mock",
        validation_alias=AliasChoices("AI_ALLOWED_PROVIDERS"),
    )

    max_image_bytes: int = 10 * 1024 * 1024

    rate_limit_analyze_per_min: int = 10

    cors_allow_origins: Annotated[list[str], NoDecode] = Field(default_factory=list)
    cors_allow_methods: Annotated[list[str], NoDecode] = Field(default_factory=lambda: [
        "GET",
        "POST",
        "OPTIONS",
    ])
    cors_allow_headers: Annotated[list[str], NoDecode] = Field(default_factory=lambda: [
        "Authorization",
        "Content-Type",
        "Accept",
        "apikey",
        "x-client-info",
    ])

    @field_validator(
        "cors_allow_origins",
        "cors_allow_methods",
        "cors_allow_headers",
        mode="before",
    )
    @classmethod
    def _split_csv(cls, value):
        if value is None:
            return []
        if isinstance(value, str):
            if value.strip() == "":
                return []
            return [item.strip() for item in value.split(",") if item.strip()]
        return value

    @field_validator("ai_vision_json_strategy", mode="before")
    @classmethod
    def _normalize_strategy(cls, value):
        strategy = str(value or "greedy").strip().lower()
        if strategy not in ALLOWED_JSON_STRATEGIES:
            raise ValueError(f"AI_VISION_JSON_STRATEGY must be one of {sorted(ALLOWED_JSON_STRATEGIES)}")
        return strategy

    @property
    def ai_allowed_providers(self) -> list[str]:
        providers = [p.lower() for p in _parse_list_value(self.ai_allowed_providers_raw)]
        # mock is always allowed as the safe fallback
        if "mock" not in providers:
            providers.append("mock")
        return providers

    @property
    def is_production(self) -> bool:
        return self.environment.strip().lower() in {"production", "prod"}

    def validate_required_config(self) -> list[str]:
        errors: list[str] = []
        if not self.database_url:
            errors.append("DATABASE_URL is not set")
        if not self.supabase_jwt_secret and not self.supabase_url:
            errors.append("SUPABASE_JWT_SECRET or SUPABASE_URL is required to verify tokens")
        if self.ai_vision_provider == "gateway" and not self.ai_gateway_api_key:
            errors.append("AI_GATEWAY_API_KEY is not set")
        if self.ai_vision_timeout_seconds <= 0:
            errors.append("AI_VISION_TIMEOUT_SECONDS must be positive")
        return errors


@lru_cache
def get_settings() -> Settings:
    return Settings()
