"""Contact model module."""

from __future__ import annotations

from sqlalchemy import ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from oppflow.models.base import Base, TenantOwnedMixin, TimestampMixin


class Contact(Base, TimestampMixin, TenantOwnedMixin):
    """External person; assignable to tasks but never authenticates."""

    __tablename__ = "contacts"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    company_id: Mapped[int | None] = mapped_column(ForeignKey("companies.id", ondelete="SET NULL"))
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str | None] = mapped_column(String(320))

    company = relationship("Company")
