"""Dependency providers for API handlers."""

from __future__ import annotations

from collections.abc import Generator

from sqlalchemy.orm import Session

from oppflow.core.config import Config, get_config
from oppflow.database.db import get_db
from oppflow.integrations.blob_store import BunnyBlobStore
from oppflow.integrations.mailer import Mailer
from oppflow.integrations.text_generator import TextGenerator


def get_settings() -> Config:
    """Return validated application configuration."""
    return get_config()


def get_db_session() -> Generator[Session, None, None]:
    """Yield SQLAlchemy session for dependency injection."""
    yield from get_db()


def get_mailer() -> Mailer:
    return Mailer(get_settings())


def get_blob_store() -> BunnyBlobStore | None:
    """Return the blob store, or ``None`` while storage credentials are absent."""
    cfg = get_settings()
    if not cfg.blob_store_configured:
        return None
    return BunnyBlobStore(cfg)


def get_text_generator() -> TextGenerator | None:
    cfg = get_settings()
    if not cfg.TEXT_GENERATOR_API_KEY:
        return None
    return TextGenerator(cfg)
