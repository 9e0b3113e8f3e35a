from __future__ import annotations

import json
from enum import Enum
from pathlib import Path
from typing import Annotated, Any, Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

from book_service.domain.types import Format

# services/api/book_service/core/config.py -> BASE_DIR == services/api
BASE_DIR = Path(__file__).resolve().parents[2]
PACKAGE_DIR = BASE_DIR / "book_service"
DEFAULT_PROFILES_DIR = BASE_DIR / "data" / "profiles"
DEFAULT_FIXTURE_AVAILABILITY_PATH = PACKAGE_DIR / "fixtures" / "availability_fixture.json"


def _parse_list(v: Any, field: str) -> list[str]:
    """
    Supported env formats:
      - JSON list: '["open_library", "thriftbooks"]'
      - Bracket list (no quotes): '[open_library, thriftbooks]'
      - Comma-separated: 'open_library, thriftbooks'
    """
    if v is None:
        return []
    if isinstance(v, (list, tuple)):
        # enum members (the Format defaults) contribute their value
        items = [x.value if isinstance(x, Enum) else x for x in v]
        return [str(x).strip() for x in items if str(x).strip()]
    if not isinstance(v, str):
        raise TypeError(f"{field} must be a string or list of strings")

    s = v.strip()
    if not s:
        return []

    # Try JSON first for strings that look like JSON arrays
    if s.startswith("[") and s.endswith("]"):
        try:
            parsed = json.loads(s)
            if isinstance(parsed, list):
                return [str(x).strip() for x in parsed if str(x).strip()]
        except json.JSONDecodeError:
            # Not JSON, treat as a simple bracket list without quotes
            inner = s[1:-1].strip()
            if not inner:
                return []
            parts = [p.strip().strip('"').strip("'") for p in inner.split(",")]
            return [p for p in parts if p]

    parts = [p.strip() for p in s.split(",")]
    return [p for p in parts if p]


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=str(BASE_DIR / ".env"),
        extra="ignore",
        env_prefix="",
        case_sensitive=False,
    )

    # Application
    api_name: str = Field(default="book-service", validation_alias="API_NAME")
    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")
    user_agent: str = Field(default="BookService/0.1", validation_alias="USER_AGENT")

    # Recommendation defaults
    price_ceiling_default: float = Field(
        default=20.0, validation_alias="BOOK_PRICE_CEILING"
    )
    formats_default: Annotated[list[Format], NoDecode] = Field(
        default_factory=lambda: [Format.ebook, Format.paperback],
        validation_alias="BOOK_FORMATS",
    )
    # request more than needed since filtering will reduce
    candidate_count: int = Field(default=20, validation_alias="BOOK_CANDIDATE_COUNT")
    max_results: int = Field(default=10, validation_alias="BOOK_MAX_RESULTS")

    # Availability
    cache_ttl_hours: float = Field(default=48, validation_alias="BOOK_CACHE_TTL_HOURS")
    enabled_sources: Annotated[list[str], NoDecode] = Field(
        default_factory=lambda: ["open_library", "thriftbooks"],
        validation_alias="BOOK_ENABLED_SOURCES",
    )
    fixture_availability_path: str = Field(
        default=str(DEFAULT_FIXTURE_AVAILABILITY_PATH),
        validation_alias="FIXTURE_AVAILABILITY_PATH",
    )
    http_timeout_secs: float = Field(default=15.0, validation_alias="HTTP_TIMEOUT_SECS")
    retry_max_attempts: int = Field(default=3, validation_alias="SOURCE_MAX_RETRIES")
    retry_base_delay_ms: int = Field(
        default=1000, validation_alias="SOURCE_RETRY_BASE_DELAY_MS"
    )

    @field_validator("formats_default", mode="before")
    @classmethod
    def parse_formats(cls, v: Any) -> list[str]:
        return [s.lower() for s in _parse_list(v, "BOOK_FORMATS")]

    @field_validator("enabled_sources", mode="before")
    @classmethod
    def parse_enabled_sources(cls, v: Any) -> list[str]:
        return _parse_list(v, "BOOK_ENABLED_SOURCES")

    # Candidate generation
    llm_provider: Literal["openai", "anthropic"] = Field(
        default="openai", validation_alias="BOOK_LLM_PROVIDER"
    )
    llm_model: str = Field(default="gpt-4o-mini", validation_alias="BOOK_LLM_MODEL")
    openai_api_key: str | None = Field(default=None, validation_alias="OPENAI_API_KEY")

    @field_validator("llm_provider", mode="before")
    @classmethod
    def normalize_llm_provider(cls, v: Any) -> str:
        if v is None:
            return "openai"
        if not isinstance(v, str):
            raise TypeError("BOOK_LLM_PROVIDER must be a string")
        return v.strip().lower()

    # Profiles
    profiles_dir: str = Field(
        default=str(DEFAULT_PROFILES_DIR), validation_alias="BOOK_DATA_DIR"
    )

    # CORS
    cors_origins: Annotated[list[str], NoDecode] = Field(
        default_factory=lambda: ["*"],
        validation_alias="CORS_ORIGINS",
    )

    @field_validator("cors_origins", mode="before")
    @classmethod
    def parse_cors_origins(cls, v: Any) -> list[str]:
        if isinstance(v, str) and v.strip() == "*":
            return ["*"]
        return _parse_list(v, "CORS_ORIGINS")

    # OpenTelemetry
    otel_enabled: bool = Field(default=False, validation_alias="OTEL_ENABLED")
    otel_otlp_endpoint: str = Field(
        default="http://localhost:4317",
        validation_alias="OTEL_OTLP_ENDPOINT",
    )

    def public_view(self) -> dict[str, Any]:
        """Configuration safe to show to clients (no secrets)."""
        return {
            "price_ceiling_default": self.price_ceiling_default,
            "formats_default": [f.value for f in self.formats_default],
            "candidate_count": self.candidate_count,
            "max_results": self.max_results,
            "cache_ttl_hours": self.cache_ttl_hours,
            "enabled_sources": list(self.enabled_sources),
            "llm_provider": self.llm_provider,
            "llm_model": self.llm_model,
            "has_openai_key": bool(self.openai_api_key),
        }


def validate_config(cfg: Settings) -> list[str]:
    errors: list[str] = []

    if cfg.llm_provider == "openai" and not cfg.openai_api_key:
        errors.append(
            "OPENAI_API_KEY environment variable is required when using OpenAI provider"
        )
    if cfg.candidate_count < 1:
        errors.append("candidate_count must be at least 1")
    if cfg.max_results < 1:
        errors.append("max_results must be at least 1")
    if cfg.cache_ttl_hours < 1:
        errors.append("cache_ttl_hours must be at least 1")
    if not cfg.enabled_sources:
        errors.append("At least one source must be enabled")

    return errors


settings = Settings()
