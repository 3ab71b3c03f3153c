"""Company model module."""

from __future__ import annotations

from sqlalchemy import Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from oppflow.models.base import Base, TenantOwnedMixin, TimestampMixin


class Company(Base, TimestampMixin, TenantOwnedMixin):
    __tablename__ = "companies"
    __table_args__ = (Index("idx_companies_tenant_name", "tenant_id", "name"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    vat_number: Mapped[str | None] = mapped_column(String(40))
