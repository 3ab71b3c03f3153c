"""Attachment ledger response schemas."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict

from oppflow.models import AttachmentOwnerKind


class AttachmentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    owner_kind: AttachmentOwnerKind
    owner_id: int
    uploaded_by_user_id: int | None = None
    filename: str
    url: str
    mime_type: str
    size_bytes: int
    description: str | None = None
    created_at: datetime
