"""User (principal) model module."""

from __future__ import annotations

from sqlalchemy import Enum, ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from oppflow.models.base import Base, TimestampMixin
from oppflow.models.enums import UserRole


class User(Base, TimestampMixin):
    """Internal principal. ``tenant_id`` is null only for SUPERADMIN accounts."""

    __tablename__ = "users"
    __table_args__ = (Index("idx_users_tenant_role", "tenant_id", "role"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    tenant_id: Mapped[int | None] = mapped_column(ForeignKey("tenants.id", ondelete="RESTRICT"), index=True)
    email: Mapped[str] = mapped_column(String(320), unique=True, nullable=False)
    full_name: Mapped[str | None] = mapped_column(String(255))
    role: Mapped[UserRole] = mapped_column(Enum(UserRole), nullable=False)

    tenant = relationship("Tenant")
