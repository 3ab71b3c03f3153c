"""Proposal request/response schemas."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field


class ProposalItemInput(BaseModel):
    service_id: int = Field(ge=1)
    quantity: int = Field(gt=0)
    price: Decimal = Field(ge=0, max_digits=12, decimal_places=2)


class ProposalCreateRequest(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    company_id: int = Field(ge=1)
    opportunity_id: int | None = Field(default=None, ge=1)
    short_description: str | None = Field(default=None, max_length=10000)
    items: list[ProposalItemInput] = Field(default_factory=list)


class ProposalUpdateRequest(BaseModel):
    """Partial update; ``items`` replaces the whole item set when present."""

    title: str | None = Field(default=None, min_length=1, max_length=255)
    short_description: str | None = Field(default=None, max_length=10000)
    content: str | None = None
    status: str | None = Field(default=None, min_length=2, max_length=40)
    items: list[ProposalItemInput] | None = None


class ProposalItemResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    service_id: int
    quantity: int
    price: Decimal
    total: Decimal


class ProposalResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    company_id: int
    opportunity_id: int | None = None
    title: str
    short_description: str | None = None
    content: str
    total_amount: Decimal
    status: str
    version: int
    sent_at: datetime | None = None
    reviewed_at: datetime | None = None
    reviewed_by: int | None = None
    items: list[ProposalItemResponse]
    created_at: datetime
    updated_at: datetime
