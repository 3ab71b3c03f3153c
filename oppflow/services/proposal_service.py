"""Proposal lifecycle: item sets with derived totals, status stamps, export."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from decimal import Decimal, InvalidOperation

from sqlalchemy import func

from oppflow.auth.tenant_context import Principal
from oppflow.core.exceptions import ValidationError
from oppflow.models import (
    Company,
    Opportunity,
    OpportunityTask,
    Proposal,
    ProposalItem,
    ProposalStatus,
    Service,
    TaskStatus,
    Tenant,
)
from oppflow.models.base import utcnow
from oppflow.schemas.proposals import ProposalCreateRequest, ProposalItemInput, ProposalUpdateRequest
from oppflow.services.base_service import BaseService
from oppflow.services.proposal_content import (
    BoardAnswer,
    BoardPromptContext,
    ContentLine,
    ProposalPromptContext,
    TextGenerator,
    generate_board_content,
    generate_content,
)
from oppflow.services.proposal_export import render_proposal_pdf

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")


def _money(value: Decimal | int | float | str) -> Decimal:
    try:
        return Decimal(str(value)).quantize(CENT)
    except (InvalidOperation, ValueError) as exc:
        raise ValueError(f"Invalid amount: {value!r}") from exc


def proposal_total(items: Sequence[ProposalItem]) -> Decimal:
    return sum((_money(item.quantity * item.price) for item in items), Decimal("0.00"))


class ProposalService(BaseService):
    """Proposals of one tenant."""

    def __init__(self, db, tenant: Tenant, text_generator: TextGenerator | None = None) -> None:
        super().__init__(db, tenant)
        self.text_generator = text_generator

    def _build_items(self, items: Sequence[ProposalItemInput]) -> tuple[list[ProposalItem], dict[int, Service]]:
        """Validate the requested items and return unsaved rows with computed totals."""
        if not items:
            raise ValidationError("At least one item is required.", field="items")

        for index, item in enumerate(items):
            if int(item.quantity) <= 0:
                raise ValidationError("Quantity must be a positive integer.", field=f"items[{index}].quantity")
            try:
                price = _money(item.price)
            except ValueError as exc:
                raise ValidationError("Price must be a number.", field=f"items[{index}].price") from exc
            if price < 0:
                raise ValidationError("Price must be non-negative.", field=f"items[{index}].price")

        services = self.scope.services_by_id([item.service_id for item in items])
        rows: list[ProposalItem] = []
        for index, item in enumerate(items):
            if item.service_id not in services:
                raise ValidationError("Service not found.", field=f"items[{index}].service_id")
            quantity = int(item.quantity)
            price = _money(item.price)
            rows.append(
                ProposalItem(
                    service_id=item.service_id,
                    quantity=quantity,
                    price=price,
                    total=_money(quantity * price),
                )
            )
        return rows, services

    def _prompt_context(
        self,
        title: str,
        company: Company,
        short_description: str | None,
        rows: list[ProposalItem],
        services: dict[int, Service],
        total: Decimal,
    ) -> ProposalPromptContext:
        lines = [
            ContentLine(
                code=services[row.service_id].code,
                description=services[row.service_id].description,
                quantity=row.quantity,
                price=row.price,
                total=row.total,
            )
            for row in rows
        ]
        return ProposalPromptContext(
            title=title,
            company_name=company.name,
            short_description=short_description,
            total_amount=total,
            lines=lines,
        )

    def _validate_opportunity(self, opportunity_id: int | None, company: Company) -> Opportunity | None:
        if opportunity_id is None:
            return None
        opportunity = self.scope.find(Opportunity, opportunity_id)
        if opportunity is None:
            raise ValidationError("Opportunity not found.", field="opportunity_id")
        if opportunity.company_id != company.id:
            raise ValidationError("Opportunity belongs to a different company.", field="opportunity_id")
        return opportunity

    def create_proposal(self, principal: Principal, data: ProposalCreateRequest) -> Proposal:
        """Create a DRAFT proposal, its items and generated content in one write."""
        if not data.title or not data.title.strip():
            raise ValidationError("Title is required.", field="title")
        company = self.scope.find(Company, data.company_id) if data.company_id else None
        if company is None:
            raise ValidationError("A valid company is required.", field="company_id")
        opportunity = self._validate_opportunity(data.opportunity_id, company)
        rows, services = self._build_items(data.items)
        total = proposal_total(rows)

        context = self._prompt_context(data.title, company, data.short_description, rows, services, total)
        content = generate_content(context, self.text_generator)

        proposal = Proposal(
            tenant_id=self.tenant_id,
            company_id=company.id,
            opportunity_id=opportunity.id if opportunity else None,
            title=data.title,
            short_description=data.short_description,
            content=content,
            total_amount=total,
            status=ProposalStatus.DRAFT.value,
            version=1,
        )
        proposal.items = rows
        self.db.add(proposal)
        self.commit()
        self.db.refresh(proposal)
        logger.info(
            "proposal.created",
            extra={
                "event": "proposal.created",
                "tenant_id": self.tenant_id,
                "user_id": principal.id,
                "proposal_id": proposal.id,
            },
        )
        return proposal

    def _next_version(self, opportunity_id: int) -> int:
        latest = (
            self.scope.query(Proposal)
            .with_entities(func.max(Proposal.version))
            .filter(Proposal.opportunity_id == opportunity_id)
            .scalar()
        )
        return 1 if latest is None else int(latest) + 1

    def generate_from_board(self, principal: Principal, opportunity_id: int) -> Proposal:
        """Draft a proposal from the answers of a fully DONE task board.

        The new row takes the next version of the opportunity's proposal line and
        carries no items until someone prices it.
        """
        opportunity = self.scope.get_opportunity(opportunity_id)
        tasks = (
            self.scope.tasks()
            .filter(OpportunityTask.opportunity_id == opportunity.id)
            .order_by(OpportunityTask.created_at.asc(), OpportunityTask.id.asc())
            .all()
        )
        if not tasks:
            raise ValidationError("No completed tasks found.", field="tasks")
        pending = sum(1 for task in tasks if task.status is not TaskStatus.DONE)
        if pending:
            raise ValidationError(
                f"Not all questions have been answered ({pending} of {len(tasks)} pending).",
                field="tasks",
            )

        context = BoardPromptContext(
            title=opportunity.title,
            company_name=opportunity.company.name,
            description=opportunity.description,
            answers=[BoardAnswer(question=task.question, answer=task.answer) for task in tasks],
        )
        content = generate_board_content(context, self.text_generator)

        proposal = Proposal(
            tenant_id=self.tenant_id,
            company_id=opportunity.company_id,
            opportunity_id=opportunity.id,
            title=f"{opportunity.title} - Proposal",
            content=content,
            total_amount=Decimal("0.00"),
            status=ProposalStatus.DRAFT.value,
            version=self._next_version(opportunity.id),
        )
        self.db.add(proposal)
        self.commit()
        self.db.refresh(proposal)
        logger.info(
            "proposal.generated",
            extra={
                "event": "proposal.generated",
                "tenant_id": self.tenant_id,
                "user_id": principal.id,
                "opportunity_id": opportunity.id,
                "proposal_id": proposal.id,
            },
        )
        return proposal

    def get_proposal(self, proposal_id: int) -> Proposal:
        return self.scope.get_proposal(proposal_id)

    def list_proposals(self, opportunity_id: int | None = None) -> list[Proposal]:
        query = self.scope.query(Proposal)
        if opportunity_id is not None:
            self.scope.get_opportunity(opportunity_id)
            return (
                query.filter(Proposal.opportunity_id == opportunity_id)
                .order_by(Proposal.version.desc(), Proposal.id.desc())
                .all()
            )
        return query.order_by(Proposal.created_at.desc(), Proposal.id.desc()).all()

    def update_proposal(self, principal: Principal, proposal_id: int, patch: ProposalUpdateRequest) -> Proposal:
        """Apply a partial update.

        A supplied ``items`` list replaces the whole item set and the total in the
        same transaction. Content is never regenerated here.
        """
        proposal = self.scope.get_proposal(proposal_id)
        fields = patch.model_fields_set

        if "title" in fields and not (patch.title or "").strip():
            raise ValidationError("Title cannot be empty.", field="title")
        if "status" in fields and not (patch.status or "").strip():
            raise ValidationError("Status cannot be empty.", field="status")
        new_rows: list[ProposalItem] | None = None
        if "items" in fields and patch.items is not None:
            new_rows, _ = self._build_items(patch.items)

        if "title" in fields:
            proposal.title = patch.title
        if "short_description" in fields:
            proposal.short_description = patch.short_description
        if "content" in fields and patch.content is not None:
            proposal.content = patch.content

        if "status" in fields:
            status = patch.status.strip()
            now = utcnow()
            if status == ProposalStatus.SENT.value and proposal.sent_at is None:
                proposal.sent_at = now
            if status == ProposalStatus.REVIEW.value and proposal.reviewed_at is None:
                proposal.reviewed_by = principal.id
                proposal.reviewed_at = now
            proposal.status = status

        if new_rows is not None:
            proposal.items.clear()
            proposal.items.extend(new_rows)
            proposal.total_amount = proposal_total(new_rows)
            proposal.version = (proposal.version or 0) + 1

        self.commit()
        self.db.refresh(proposal)
        logger.info(
            "proposal.updated",
            extra={
                "event": "proposal.updated",
                "tenant_id": self.tenant_id,
                "user_id": principal.id,
                "proposal_id": proposal.id,
                "items_replaced": new_rows is not None,
            },
        )
        return proposal

    def delete_proposal(self, proposal_id: int) -> None:
        proposal = self.scope.get_proposal(proposal_id)
        self.db.delete(proposal)
        self.commit()
        logger.info(
            "proposal.deleted",
            extra={"event": "proposal.deleted", "tenant_id": self.tenant_id, "proposal_id": proposal_id},
        )

    def export_pdf(self, proposal_id: int) -> bytes:
        return render_proposal_pdf(self.scope.get_proposal(proposal_id))
