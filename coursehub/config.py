"""Configuration helpers for the course aggregation service."""

from __future__ import annotations

import os
from functools import lru_cache
from typing import Annotated, Any

from pydantic import Field, field_validator
from pydantic_settings import (
    BaseSettings,
    JsonConfigSettingsSource,
    NoDecode,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

DEFAULT_PAGE_SIZE = 20
DEFAULT_CACHE_TTL_SECONDS = 300
DEFAULT_CACHE_SIZE_LIMIT = 10_000
DEFAULT_MAX_PAGES = 1000
DEFAULT_UPSTREAM_TIMEOUT_SECONDS = 10.0

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


def coerce_boolish(value: Any) -> bool | None:
    """Attempt to coerce *value* into a boolean."""

    if value is None:
        return None
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return bool(value)
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in _TRUE_VALUES:
            return True
        if lowered in _FALSE_VALUES:
            return False
    return None


def _positive_int(value: Any, default: int) -> int:
    if value is None or isinstance(value, bool):
        return default
    try:
        parsed = int(str(value).strip())
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def resolve_page_size(value: Any) -> int:
    return _positive_int(value, DEFAULT_PAGE_SIZE)


def resolve_ttl_seconds(value: Any) -> int:
    """TTL is never zero or negative; bad input falls back to five minutes."""

    return _positive_int(value, DEFAULT_CACHE_TTL_SECONDS)


def parse_origins(raw: Any) -> list[str]:
    if raw is None:
        return []
    if isinstance(raw, str):
        items = raw.split(",")
    else:
        items = [str(item) for item in raw]
    return [item.strip() for item in items if item and item.strip()]


def _config_file() -> str:
    return os.getenv("COURSEHUB_CONFIG_FILE", "appsettings.json")


class Settings(BaseSettings):
    """Service settings; each field is overridable by its upper-cased env var."""

    base_url: str = ""
    api_key: str = ""
    page_size: int = DEFAULT_PAGE_SIZE
    cache_ttl_seconds: int = DEFAULT_CACHE_TTL_SECONDS
    caching_enabled: bool = True
    cache_size_limit: int = DEFAULT_CACHE_SIZE_LIMIT
    allowed_origins: Annotated[list[str], NoDecode] = Field(default_factory=list)
    require_institution_id: bool = False
    default_institution_id: int = 1
    max_pages: int = DEFAULT_MAX_PAGES
    upstream_timeout_seconds: float = DEFAULT_UPSTREAM_TIMEOUT_SECONDS

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    @field_validator("page_size", mode="before")
    @classmethod
    def _page_size(cls, value: Any) -> int:
        return resolve_page_size(value)

    @field_validator("cache_ttl_seconds", mode="before")
    @classmethod
    def _ttl(cls, value: Any) -> int:
        return resolve_ttl_seconds(value)

    @field_validator("cache_size_limit", mode="before")
    @classmethod
    def _size_limit(cls, value: Any) -> int:
        return _positive_int(value, DEFAULT_CACHE_SIZE_LIMIT)

    @field_validator("default_institution_id", mode="before")
    @classmethod
    def _default_institution(cls, value: Any) -> int:
        return _positive_int(value, 1)

    @field_validator("max_pages", mode="before")
    @classmethod
    def _max_pages(cls, value: Any) -> int:
        if str(value).strip() == "0":
            return 0
        return _positive_int(value, DEFAULT_MAX_PAGES)

    @field_validator("upstream_timeout_seconds", mode="before")
    @classmethod
    def _timeout(cls, value: Any) -> float:
        try:
            parsed = float(value)
        except (TypeError, ValueError):
            return DEFAULT_UPSTREAM_TIMEOUT_SECONDS
        return parsed if parsed > 0 else DEFAULT_UPSTREAM_TIMEOUT_SECONDS

    @field_validator("caching_enabled", mode="before")
    @classmethod
    def _caching_enabled(cls, value: Any) -> bool:
        coerced = coerce_boolish(value)
        return True if coerced is None else coerced

    @field_validator("require_institution_id", mode="before")
    @classmethod
    def _require_institution(cls, value: Any) -> bool:
        return bool(coerce_boolish(value))

    @field_validator("allowed_origins", mode="before")
    @classmethod
    def _origins(cls, value: Any) -> list[str]:
        return parse_origins(value)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            JsonConfigSettingsSource(settings_cls, json_file=_config_file()),
            file_secret_settings,
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached application settings."""

    return Settings()


def reset_settings_cache() -> None:
    """Clear cached settings (primarily for tests)."""

    get_settings.cache_clear()


__all__ = [
    "DEFAULT_CACHE_TTL_SECONDS",
    "DEFAULT_PAGE_SIZE",
    "Settings",
    "coerce_boolish",
    "get_settings",
    "parse_origins",
    "reset_settings_cache",
    "resolve_page_size",
    "resolve_ttl_seconds",
]
