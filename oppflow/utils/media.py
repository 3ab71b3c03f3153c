"""Helpers for naming and typing uploaded media."""

from __future__ import annotations

import time
import uuid
from pathlib import PurePosixPath

DEFAULT_MIME_TYPE = "application/octet-stream"

MIME_TYPES = {
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "png": "image/png",
    "gif": "image/gif",
    "webp": "image/webp",
    "svg": "image/svg+xml",
    "mp4": "video/mp4",
    "webm": "video/webm",
    "mov": "video/quicktime",
    "avi": "video/x-msvideo",
    "pdf": "application/pdf",
    "doc": "application/msword",
    "docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "xls": "application/vnd.ms-excel",
    "xlsx": "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    "txt": "text/plain",
    "csv": "text/csv",
}


def file_extension(filename: str) -> str:
    suffix = PurePosixPath(filename).suffix.lower().lstrip(".")
    return suffix or "bin"


def detect_mime_type(filename: str) -> str:
    return MIME_TYPES.get(file_extension(filename), DEFAULT_MIME_TYPE)


def generate_media_path(tenant_id: int, filename: str, prefix: str = "media") -> str:
    """Unique blob path: ``<prefix>/<tenant_id>/<millis>-<random>.<ext>``."""
    millis = int(time.time() * 1000)
    return f"{prefix}/{tenant_id}/{millis}-{uuid.uuid4().hex[:12]}.{file_extension(filename)}"
