"""Tenant-scoped repository.

Every store read that this core performs goes through a ``TenantScope`` bound to
the resolved tenant id. Rows owned by another tenant are reported exactly like
missing rows so callers never learn that they exist.
"""

from __future__ import annotations

from typing import Any, TypeVar

from sqlalchemy import or_
from sqlalchemy.orm import Query, Session

from oppflow.core.exceptions import NotFoundError
from oppflow.models import (
    Attachment,
    Company,
    Contact,
    Opportunity,
    OpportunityTask,
    Proposal,
    Service,
    User,
    UserRole,
)

ModelT = TypeVar("ModelT")


class TenantScope:
    """Query helpers that always filter by ``tenant_id``."""

    def __init__(self, db: Session, tenant_id: int) -> None:
        self.db = db
        self.tenant_id = tenant_id

    def query(self, model: type[ModelT]) -> Query:
        return self.db.query(model).filter(model.tenant_id == self.tenant_id)

    def find(self, model: type[ModelT], entity_id: int) -> ModelT | None:
        return self.query(model).filter(model.id == entity_id).first()

    def get(self, model: type[ModelT], entity_id: int, label: str | None = None) -> ModelT:
        entity = self.find(model, entity_id)
        if entity is None:
            raise NotFoundError(f"{label or model.__name__} not found.")
        return entity

    def get_company(self, company_id: int) -> Company:
        return self.get(Company, company_id, label="Company")

    def get_opportunity(self, opportunity_id: int) -> Opportunity:
        return self.get(Opportunity, opportunity_id, label="Opportunity")

    def get_proposal(self, proposal_id: int) -> Proposal:
        return self.get(Proposal, proposal_id, label="Proposal")

    def get_attachment(self, attachment_id: int) -> Attachment:
        return self.get(Attachment, attachment_id, label="Attachment")

    def tasks(self) -> Query:
        """Tasks carry no tenant column; scope them through their opportunity."""
        return (
            self.db.query(OpportunityTask)
            .join(Opportunity, OpportunityTask.opportunity_id == Opportunity.id)
            .filter(Opportunity.tenant_id == self.tenant_id)
        )

    def find_task(self, task_id: int, opportunity_id: int | None = None) -> OpportunityTask | None:
        query = self.tasks().filter(OpportunityTask.id == task_id)
        if opportunity_id is not None:
            query = query.filter(OpportunityTask.opportunity_id == opportunity_id)
        return query.first()

    def get_task(self, task_id: int, opportunity_id: int | None = None) -> OpportunityTask:
        task = self.find_task(task_id, opportunity_id=opportunity_id)
        if task is None:
            raise NotFoundError("Task not found.")
        return task

    def find_contact(self, contact_id: int) -> Contact | None:
        return self.find(Contact, contact_id)

    def find_assignable_user(self, user_id: int) -> User | None:
        """Members of the tenant plus superadmins, who can work any tenant."""
        return (
            self.db.query(User)
            .filter(
                User.id == user_id,
                or_(User.tenant_id == self.tenant_id, User.role == UserRole.SUPERADMIN),
            )
            .first()
        )

    def services_by_id(self, service_ids: list[int]) -> dict[int, Service]:
        if not service_ids:
            return {}
        rows = self.query(Service).filter(Service.id.in_(service_ids)).all()
        return {row.id: row for row in rows}

    def owner_exists(self, model: type[Any], entity_id: int) -> bool:
        if model is OpportunityTask:
            return self.find_task(entity_id) is not None
        return self.find(model, entity_id) is not None
