"""Attachment ledger: file metadata recorded against a company, opportunity or task."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Protocol
from urllib.parse import urlparse

from oppflow.auth.tenant_context import Principal
from oppflow.core.exceptions import ConfigurationError, NotFoundError, ValidationError
from oppflow.models import (
    Attachment,
    AttachmentOwner,
    AttachmentOwnerKind,
    Company,
    Opportunity,
    OpportunityTask,
    Tenant,
)
from oppflow.services.base_service import BaseService
from oppflow.utils.media import detect_mime_type, generate_media_path

logger = logging.getLogger(__name__)

OWNER_MODELS = {
    AttachmentOwnerKind.COMPANY: (Company, "Company"),
    AttachmentOwnerKind.OPPORTUNITY: (Opportunity, "Opportunity"),
    AttachmentOwnerKind.TASK: (OpportunityTask, "Task"),
}

BLOB_PREFIXES = {
    AttachmentOwnerKind.COMPANY: "companies",
    AttachmentOwnerKind.OPPORTUNITY: "opportunities",
    AttachmentOwnerKind.TASK: "tasks",
}


class BlobStore(Protocol):
    def put(self, path: str, data: bytes, content_type: str) -> str: ...

    def delete(self, path: str) -> None: ...


@dataclass(frozen=True)
class FileUpload:
    filename: str
    data: bytes
    description: str | None = None
    content_type: str | None = None


@dataclass(frozen=True)
class AttachmentMetadata:
    filename: str
    url: str
    mime_type: str
    size_bytes: int
    storage_path: str | None = None
    description: str | None = None


def storage_path_from_url(url: str) -> str:
    return urlparse(url).path.lstrip("/")


class AttachmentService(BaseService):
    """Ledger rows live here; bytes are delegated to the blob store."""

    def __init__(self, db, tenant: Tenant, blob_store: BlobStore | None = None) -> None:
        super().__init__(db, tenant)
        self.blob_store = blob_store

    def _require_blob_store(self) -> BlobStore:
        if self.blob_store is None:
            raise ConfigurationError("Blob store is not configured.")
        return self.blob_store

    def verify_owner(self, owner: AttachmentOwner) -> None:
        model, label = OWNER_MODELS[owner.kind]
        if not self.scope.owner_exists(model, owner.id):
            raise NotFoundError(f"{label} not found.")

    def record(self, owner: AttachmentOwner, principal: Principal, metadata: AttachmentMetadata) -> Attachment:
        """Persist a ledger row for a blob that is already uploaded."""
        if not metadata.filename.strip():
            raise ValidationError("Filename is required.", field="filename")
        if metadata.size_bytes < 0:
            raise ValidationError("Size must be non-negative.", field="size_bytes")
        self.verify_owner(owner)

        attachment = Attachment(
            tenant_id=self.tenant_id,
            owner_kind=owner.kind,
            owner_id=owner.id,
            uploaded_by_user_id=principal.id,
            filename=metadata.filename,
            url=metadata.url,
            storage_path=metadata.storage_path or storage_path_from_url(metadata.url),
            mime_type=metadata.mime_type,
            size_bytes=metadata.size_bytes,
            description=metadata.description or None,
        )
        self.db.add(attachment)
        self.commit()
        self.db.refresh(attachment)
        logger.info(
            "attachment.recorded",
            extra={
                "event": "attachment.recorded",
                "tenant_id": self.tenant_id,
                "user_id": principal.id,
                "attachment_id": attachment.id,
            },
        )
        return attachment

    def upload_file(self, owner: AttachmentOwner, principal: Principal, upload: FileUpload) -> Attachment:
        """Push the bytes to the blob store, then record the ledger row."""
        if not upload.filename or not upload.filename.strip():
            raise ValidationError("No file provided.", field="file")
        self.verify_owner(owner)
        blob_store = self._require_blob_store()

        path = generate_media_path(self.tenant_id, upload.filename, prefix=BLOB_PREFIXES[owner.kind])
        mime_type = upload.content_type or detect_mime_type(upload.filename)
        url = blob_store.put(path, upload.data, mime_type)
        return self.record(
            owner,
            principal,
            AttachmentMetadata(
                filename=upload.filename,
                url=url,
                mime_type=mime_type,
                size_bytes=len(upload.data),
                storage_path=path,
                description=upload.description,
            ),
        )

    def list_for_owner(self, owner: AttachmentOwner) -> list[Attachment]:
        self.verify_owner(owner)
        return (
            self.scope.query(Attachment)
            .filter(Attachment.owner_kind == owner.kind, Attachment.owner_id == owner.id)
            .order_by(Attachment.created_at.desc(), Attachment.id.desc())
            .all()
        )

    def _delete_blob(self, attachment_id: int, path: str) -> None:
        """Best effort: any blob failure is logged and never reaches the caller."""
        if self.blob_store is None:
            logger.warning(
                "attachment.blob_delete_skipped",
                extra={"event": "attachment.blob_delete_skipped", "tenant_id": self.tenant_id, "attachment_id": attachment_id},
            )
            return
        try:
            self.blob_store.delete(path)
        except Exception as exc:
            logger.exception(
                "attachment.blob_delete_failed",
                extra={
                    "event": "attachment.blob_delete_failed",
                    "tenant_id": self.tenant_id,
                    "attachment_id": attachment_id,
                    "error": str(exc),
                },
            )

    def purge_blobs(self, pending: list[tuple[int, str]]) -> None:
        """Delete blobs whose ledger rows are already gone."""
        for attachment_id, path in pending:
            self._delete_blob(attachment_id, path)

    def delete(self, attachment_id: int) -> None:
        """Drop the ledger row, then try to remove its blob."""
        attachment = self.scope.get_attachment(attachment_id)
        path = attachment.storage_path or storage_path_from_url(attachment.url)
        self.db.delete(attachment)
        self.commit()
        self._delete_blob(attachment_id, path)
        logger.info(
            "attachment.deleted",
            extra={"event": "attachment.deleted", "tenant_id": self.tenant_id, "attachment_id": attachment_id},
        )

    def delete_for_owner(self, owner: AttachmentOwner, commit: bool = True) -> list[tuple[int, str]]:
        """Remove the owner's ledger rows.

        With ``commit=False`` the caller commits and then passes the returned
        ``(attachment_id, path)`` pairs to ``purge_blobs``.
        """
        rows = (
            self.scope.query(Attachment)
            .filter(Attachment.owner_kind == owner.kind, Attachment.owner_id == owner.id)
            .all()
        )
        pending = [(row.id, row.storage_path or storage_path_from_url(row.url)) for row in rows]
        for attachment in rows:
            self.db.delete(attachment)
        if commit:
            self.commit()
            self.purge_blobs(pending)
        return pending
