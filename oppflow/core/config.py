"""Configuration module for the Oppflow service."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from urllib.parse import urlparse

from dotenv import load_dotenv

from oppflow.core.exceptions import ConfigurationError

load_dotenv()


def _as_bool(value: str | None, default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _as_optional(value: str | None) -> str | None:
    if value is None or not value.strip():
        return None
    return value.strip()


@dataclass(frozen=True)
class Config:
    """Runtime configuration with validation."""

    APP_NAME: str
    APP_VERSION: str
    ENV: str
    DEBUG: bool
    DATABASE_URL: str
    DB_CONNECTIVITY_REQUIRED: bool
    JWT_SECRET: str
    JWT_ACCESS_TTL_MINUTES: int
    TEXT_GENERATOR_URL: str
    TEXT_GENERATOR_API_KEY: str | None
    TEXT_GENERATOR_MODEL: str
    TEXT_GENERATOR_TIMEOUT_SECONDS: int
    SMTP_SERVER: str | None
    SMTP_PORT: int
    SMTP_USERNAME: str | None
    SMTP_PASSWORD: str | None
    MAIL_FROM: str
    BUNNY_STORAGE_ZONE_NAME: str | None
    BUNNY_STORAGE_API_KEY: str | None
    BUNNY_CDN_BASE_URL: str | None
    BLOB_TIMEOUT_SECONDS: int
    APP_BASE_URL: str
    API_HOST: str
    API_PORT: int
    API_PREFIX: str
    LOG_LEVEL: str
    LOG_FILE: str

    @property
    def is_production(self) -> bool:
        return self.ENV == "production"

    @property
    def blob_store_configured(self) -> bool:
        return bool(self.BUNNY_STORAGE_ZONE_NAME and self.BUNNY_STORAGE_API_KEY)


def _build_config(env: str | None = None) -> Config:
    resolved_env = (env or os.getenv("ENV", "development")).strip().lower()
    debug = _as_bool(os.getenv("DEBUG"), default=False)

    config = Config(
        APP_NAME="Oppflow",
        APP_VERSION=os.getenv("APP_VERSION", "1.0.0"),
        ENV=resolved_env,
        DEBUG=debug if resolved_env != "production" else False,
        DATABASE_URL=os.getenv("DATABASE_URL", "sqlite:///./oppflow.db"),
        DB_CONNECTIVITY_REQUIRED=_as_bool(
            os.getenv("DB_CONNECTIVITY_REQUIRED"), default=(resolved_env == "production")
        ),
        JWT_SECRET=os.getenv("JWT_SECRET", "change_me_jwt_secret"),
        JWT_ACCESS_TTL_MINUTES=int(os.getenv("JWT_ACCESS_TTL_MINUTES", "60")),
        TEXT_GENERATOR_URL=os.getenv(
            "TEXT_GENERATOR_URL", "https://api.deepseek.com/v1/chat/completions"
        ),
        TEXT_GENERATOR_API_KEY=_as_optional(os.getenv("TEXT_GENERATOR_API_KEY")),
        TEXT_GENERATOR_MODEL=os.getenv("TEXT_GENERATOR_MODEL", "deepseek-chat"),
        TEXT_GENERATOR_TIMEOUT_SECONDS=int(os.getenv("TEXT_GENERATOR_TIMEOUT_SECONDS", "60")),
        SMTP_SERVER=_as_optional(os.getenv("SMTP_SERVER")),
        SMTP_PORT=int(os.getenv("SMTP_PORT", "587")),
        SMTP_USERNAME=_as_optional(os.getenv("SMTP_USERNAME")),
        SMTP_PASSWORD=_as_optional(os.getenv("SMTP_PASSWORD")),
        MAIL_FROM=os.getenv("MAIL_FROM", "noreply@oppflow.app"),
        BUNNY_STORAGE_ZONE_NAME=_as_optional(os.getenv("BUNNY_STORAGE_ZONE_NAME")),
        BUNNY_STORAGE_API_KEY=_as_optional(os.getenv("BUNNY_STORAGE_API_KEY")),
        BUNNY_CDN_BASE_URL=_as_optional(os.getenv("BUNNY_CDN_BASE_URL")),
        BLOB_TIMEOUT_SECONDS=int(os.getenv("BLOB_TIMEOUT_SECONDS", "30")),
        APP_BASE_URL=os.getenv("APP_BASE_URL", "http://localhost:3000").rstrip("/"),
        API_HOST=os.getenv("API_HOST", "0.0.0.0"),
        API_PORT=int(os.getenv("API_PORT", "8000")),
        API_PREFIX=os.getenv("API_PREFIX", "/api/v1"),
        LOG_LEVEL=os.getenv("LOG_LEVEL", "INFO").upper(),
        LOG_FILE=os.getenv("LOG_FILE", ""),
    )
    _validate_config(config)
    return config


def _validate_database_url(database_url: str) -> None:
    parsed = urlparse(database_url)
    if parsed.scheme not in {"sqlite", "postgresql", "postgresql+psycopg"}:
        raise ConfigurationError(
            "DATABASE_URL must use sqlite:// or postgresql:// style URL."
        )
    if parsed.scheme.startswith("postgresql") and not parsed.hostname:
        raise ConfigurationError("PostgreSQL DATABASE_URL is missing hostname.")


def _validate_config(config: Config) -> None:
    _validate_database_url(config.DATABASE_URL)

    if config.JWT_ACCESS_TTL_MINUTES < 1:
        raise ConfigurationError("JWT_ACCESS_TTL_MINUTES must be >= 1.")
    if config.TEXT_GENERATOR_TIMEOUT_SECONDS < 1:
        raise ConfigurationError("TEXT_GENERATOR_TIMEOUT_SECONDS must be >= 1.")
    if config.BLOB_TIMEOUT_SECONDS < 1:
        raise ConfigurationError("BLOB_TIMEOUT_SECONDS must be >= 1.")
    if config.LOG_LEVEL not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
        raise ConfigurationError("LOG_LEVEL must be one of DEBUG/INFO/WARNING/ERROR/CRITICAL.")
    if config.is_production and "change_me" in config.JWT_SECRET:
        raise ConfigurationError("Production JWT_SECRET uses the placeholder value.")
    if config.is_production and "change_me" in config.DATABASE_URL.lower():
        raise ConfigurationError("Production DATABASE_URL uses placeholder credentials.")


@lru_cache(maxsize=8)
def get_config(env: str | None = None) -> Config:
    """Get validated configuration for the requested environment."""
    return _build_config(env)
