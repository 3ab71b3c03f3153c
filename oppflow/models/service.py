"""Service catalog model module."""

from __future__ import annotations

from decimal import Decimal

from sqlalchemy import Integer, Numeric, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from oppflow.models.base import Base, TenantOwnedMixin, TimestampMixin


class Service(Base, TimestampMixin, TenantOwnedMixin):
    __tablename__ = "services"
    __table_args__ = (UniqueConstraint("tenant_id", "code", name="uq_services_tenant_code"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    code: Mapped[str] = mapped_column(String(60), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    unit_price: Mapped[Decimal | None] = mapped_column(Numeric(12, 2))
