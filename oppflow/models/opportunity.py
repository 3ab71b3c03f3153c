"""Opportunity model module."""

from __future__ import annotations

from sqlalchemy import ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from oppflow.models.base import Base, TenantOwnedMixin, TimestampMixin


class Opportunity(Base, TimestampMixin, TenantOwnedMixin):
    """Sales opportunity; its company always belongs to the same tenant."""

    __tablename__ = "opportunities"
    __table_args__ = (Index("idx_opportunities_tenant_company", "tenant_id", "company_id"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    company_id: Mapped[int] = mapped_column(ForeignKey("companies.id", ondelete="RESTRICT"), nullable=False)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)

    company = relationship("Company")
    tasks = relationship("OpportunityTask", back_populates="opportunity", cascade="all, delete-orphan")
