"""Attachment ledger model module."""

from __future__ import annotations

from sqlalchemy import Enum, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from oppflow.models.base import Base, TenantOwnedMixin, TimestampMixin
from oppflow.models.enums import AttachmentOwnerKind
from oppflow.models.variants import AttachmentOwner


class Attachment(Base, TimestampMixin, TenantOwnedMixin):
    """File metadata; the bytes live in the blob store under ``storage_path``."""

    __tablename__ = "attachments"
    __table_args__ = (Index("idx_attachments_owner", "tenant_id", "owner_kind", "owner_id"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    owner_kind: Mapped[AttachmentOwnerKind] = mapped_column(Enum(AttachmentOwnerKind), nullable=False)
    owner_id: Mapped[int] = mapped_column(Integer, nullable=False)
    uploaded_by_user_id: Mapped[int | None] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"))
    filename: Mapped[str] = mapped_column(String(255), nullable=False)
    url: Mapped[str] = mapped_column(String(2048), nullable=False)
    storage_path: Mapped[str | None] = mapped_column(String(1024))
    mime_type: Mapped[str] = mapped_column(String(255), nullable=False)
    size_bytes: Mapped[int] = mapped_column(Integer, nullable=False)
    description: Mapped[str | None] = mapped_column(Text)

    uploader = relationship("User")

    @property
    def owner(self) -> AttachmentOwner:
        return AttachmentOwner(kind=self.owner_kind, id=self.owner_id)
