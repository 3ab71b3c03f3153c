"""Opportunity task board: lane ordering, reorders, assignment and question emails."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Protocol

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError

from oppflow.auth.tenant_context import Principal
from oppflow.core.config import get_config
from oppflow.core.exceptions import DatabaseError, DeliveryError, ValidationError
from oppflow.integrations.mailer import QUESTIONNAIRE, TASK_QUESTION
from oppflow.models import (
    LANE_RANK,
    Assignee,
    Attachment,
    AttachmentOwner,
    Opportunity,
    OpportunityTask,
    TaskStatus,
    Tenant,
)
from oppflow.models.base import utcnow
from oppflow.schemas.tasks import TaskCreateRequest, TaskReorderItem, TaskUpdateRequest
from oppflow.services.assignment_service import resolve_assignee
from oppflow.services.attachment_service import AttachmentService, BlobStore, FileUpload
from oppflow.services.base_service import BaseService

logger = logging.getLogger(__name__)


class MailSender(Protocol):
    def send(self, template_kind: str, payload: dict[str, Any]) -> None: ...

    def notify(self, template_kind: str, payload: dict[str, Any]) -> bool: ...


def lane_sort_key(task: OpportunityTask) -> tuple:
    return (LANE_RANK[task.status], task.order, task.created_at, task.id)


@dataclass
class QuestionnaireDelivery:
    """Outcome of the questionnaire mail for one contact."""

    contact_id: int
    email: str | None
    task_ids: list[int] = field(default_factory=list)
    error: str | None = None

    @property
    def delivered(self) -> bool:
        return self.error is None


class TaskBoardService(BaseService):
    """Task lifecycle for the opportunities of one tenant."""

    def __init__(
        self,
        db,
        tenant: Tenant,
        mailer: MailSender | None = None,
        blob_store: BlobStore | None = None,
    ) -> None:
        super().__init__(db, tenant)
        self.mailer = mailer
        self.blob_store = blob_store

    def _attachments(self) -> AttachmentService:
        return AttachmentService(self.db, self.tenant, blob_store=self.blob_store)

    def _resolve_assignee(
        self,
        ref: str | None,
        task: OpportunityTask,
        cache: dict[str, Assignee] | None = None,
    ) -> None:
        key = (ref or "").strip()
        if cache is not None and key in cache:
            assignee = cache[key]
        else:
            assignee = resolve_assignee(ref, self.scope)
            if cache is not None:
                cache[key] = assignee
        if key and not assignee.is_assigned:
            logger.warning(
                "task.assignee.unresolved",
                extra={
                    "event": "task.assignee.unresolved",
                    "tenant_id": self.tenant_id,
                    "opportunity_id": task.opportunity_id,
                    "ref": ref,
                },
            )
        task.assign(assignee)

    def _next_order(self, opportunity_id: int, status: TaskStatus) -> int:
        current = (
            self.db.query(func.max(OpportunityTask.order))
            .filter(OpportunityTask.opportunity_id == opportunity_id, OpportunityTask.status == status)
            .scalar()
        )
        return 0 if current is None else int(current) + 1

    def list_tasks(self, opportunity_id: int) -> list[OpportunityTask]:
        self.scope.get_opportunity(opportunity_id)
        tasks = self.scope.tasks().filter(OpportunityTask.opportunity_id == opportunity_id).all()
        return sorted(tasks, key=lane_sort_key)

    def get_task(self, opportunity_id: int, task_id: int) -> OpportunityTask:
        return self.scope.get_task(task_id, opportunity_id=opportunity_id)

    def _new_task(
        self,
        opportunity: Opportunity,
        data: TaskCreateRequest,
        cache: dict[str, Assignee] | None = None,
    ) -> OpportunityTask:
        task = OpportunityTask(
            opportunity_id=opportunity.id,
            title=data.title,
            question=data.question,
            description=data.description or None,
            priority=data.priority,
            start_date=data.start_date,
            due_date=data.due_date,
            reminder_date=data.reminder_date,
            status=TaskStatus.TODO,
        )
        self._resolve_assignee(data.assigned_to, task, cache)
        return task

    def create_task(self, opportunity_id: int, data: TaskCreateRequest) -> OpportunityTask:
        """Create a TODO task at the end of its lane."""
        opportunity: Opportunity = self.scope.get_opportunity(opportunity_id)

        task = self._new_task(opportunity, data)
        task.order = self._next_order(opportunity.id, TaskStatus.TODO)

        self.db.add(task)
        self.commit()
        self.db.refresh(task)
        logger.info(
            "task.created",
            extra={
                "event": "task.created",
                "tenant_id": self.tenant_id,
                "opportunity_id": opportunity.id,
                "task_id": task.id,
            },
        )
        return task

    def create_tasks(self, opportunity_id: int, items: list[TaskCreateRequest]) -> list[OpportunityTask]:
        """Append several TODO tasks in request order with one commit.

        Each distinct assignee reference is resolved once for the whole batch.
        """
        opportunity: Opportunity = self.scope.get_opportunity(opportunity_id)
        if not items:
            raise ValidationError("At least one task is required.", field="tasks")

        cache: dict[str, Assignee] = {}
        start = self._next_order(opportunity.id, TaskStatus.TODO)
        tasks = []
        for index, data in enumerate(items):
            task = self._new_task(opportunity, data, cache)
            task.order = start + index
            tasks.append(task)

        self.db.add_all(tasks)
        self.commit()
        for task in tasks:
            self.db.refresh(task)
        logger.info(
            "task.bulk_created",
            extra={
                "event": "task.bulk_created",
                "tenant_id": self.tenant_id,
                "opportunity_id": opportunity.id,
                "count": len(tasks),
            },
        )
        return tasks

    def update_task(self, opportunity_id: int, task_id: int, patch: TaskUpdateRequest) -> OpportunityTask:
        task = self.scope.get_task(task_id, opportunity_id=opportunity_id)
        fields = patch.model_fields_set

        for name in ("title", "question"):
            if name in fields and getattr(patch, name) is None:
                raise ValidationError(f"{name.capitalize()} cannot be empty.", field=name)
        if "status" in fields and patch.status is None:
            raise ValidationError("Status cannot be empty.", field="status")
        if "priority" in fields and patch.priority is None:
            raise ValidationError("Priority cannot be empty.", field="priority")
        if "order" in fields and patch.order is None:
            raise ValidationError("Order cannot be empty.", field="order")

        for name in (
            "title",
            "question",
            "description",
            "notes",
            "priority",
            "start_date",
            "due_date",
            "reminder_date",
            "order",
        ):
            if name in fields:
                setattr(task, name, getattr(patch, name))

        if "answer" in fields:
            if patch.answer and not task.answer:
                task.answered_at = utcnow()
            task.answer = patch.answer
        if "status" in fields:
            if patch.status is TaskStatus.DONE and task.answer and task.answered_at is None:
                task.answered_at = utcnow()
            task.status = patch.status
        if "assigned_to" in fields:
            self._resolve_assignee(patch.assigned_to, task)

        self.commit()
        self.db.refresh(task)
        return task

    def delete_task(self, opportunity_id: int, task_id: int) -> None:
        task = self.scope.get_task(task_id, opportunity_id=opportunity_id)
        attachments = self._attachments()
        pending = attachments.delete_for_owner(AttachmentOwner.task(task.id), commit=False)
        self.db.delete(task)
        self.commit()
        attachments.purge_blobs(pending)
        logger.info(
            "task.deleted",
            extra={"event": "task.deleted", "tenant_id": self.tenant_id, "task_id": task_id},
        )

    def reorder(self, opportunity_id: int, updates: list[TaskReorderItem]) -> int:
        """Apply each position update on its own; return how many tasks changed.

        Ids that do not belong to ``opportunity_id`` are skipped. Earlier updates
        stay committed if a later one fails.
        """
        self.scope.get_opportunity(opportunity_id)
        for index, update in enumerate(updates):
            if not isinstance(update.status, TaskStatus):
                raise ValidationError("Unknown task status.", field=f"updates[{index}].status")

        updated = 0
        for update in updates:
            try:
                count = (
                    self.db.query(OpportunityTask)
                    .filter(
                        OpportunityTask.id == update.task_id,
                        OpportunityTask.opportunity_id == opportunity_id,
                    )
                    .update(
                        {
                            OpportunityTask.status: update.status,
                            OpportunityTask.order: update.order,
                            OpportunityTask.updated_at: utcnow(),
                        },
                        synchronize_session="fetch",
                    )
                )
            except SQLAlchemyError as exc:
                self.rollback()
                raise DatabaseError("Task reorder failed.") from exc
            self.commit()
            updated += count

        logger.info(
            "task.reordered",
            extra={
                "event": "task.reordered",
                "tenant_id": self.tenant_id,
                "opportunity_id": opportunity_id,
                "requested": len(updates),
                "updated": updated,
            },
        )
        return updated

    def attach_file(
        self,
        opportunity_id: int,
        task_id: int,
        principal: Principal,
        upload: FileUpload,
    ) -> Attachment:
        task = self.scope.get_task(task_id, opportunity_id=opportunity_id)
        return self._attachments().upload_file(AttachmentOwner.task(task.id), principal, upload)

    def list_attachments(self, opportunity_id: int, task_id: int) -> list[Attachment]:
        task = self.scope.get_task(task_id, opportunity_id=opportunity_id)
        return self._attachments().list_for_owner(AttachmentOwner.task(task.id))

    def _recipient(self, task: OpportunityTask) -> tuple[str, str]:
        if task.assigned_user is not None and task.assigned_user.email:
            return task.assigned_user.email, task.assigned_user.full_name or "Valued Contact"
        if task.assigned_contact is not None and task.assigned_contact.email:
            return task.assigned_contact.email, task.assigned_contact.name or "Valued Contact"
        raise ValidationError("Task has no assignee with an email address.", field="assigned_to")

    def send_question_email(self, opportunity_id: int, task_id: int) -> OpportunityTask:
        """Mail the task question to its assignee and stamp ``email_sent_at``.

        Every successful send overwrites the previous stamp.
        """
        task = self.scope.get_task(task_id, opportunity_id=opportunity_id)
        email, name = self._recipient(task)
        if self.mailer is None:
            raise DeliveryError("Mail sender is not configured.")

        opportunity = task.opportunity
        base_url = get_config().APP_BASE_URL
        self.mailer.send(
            TASK_QUESTION,
            {
                "email": email,
                "contact_name": name,
                "company_name": opportunity.company.name,
                "opportunity_title": opportunity.title,
                "question": task.question,
                "question_title": task.title,
                "task_url": f"{base_url}/leads/{opportunity.id}?taskId={task.id}",
            },
        )

        task.email_sent_at = utcnow()
        self.commit()
        self.db.refresh(task)
        logger.info(
            "task.question_email.sent",
            extra={"event": "task.question_email.sent", "tenant_id": self.tenant_id, "task_id": task.id},
        )
        return task

    def send_questionnaire(
        self,
        opportunity_id: int,
        contact_ids: list[int],
        custom_content: dict[int, str] | None = None,
    ) -> list[QuestionnaireDelivery]:
        """Mail each selected contact all of their open questions in one message.

        A failed delivery is reported in its result and leaves that group's
        ``email_sent_at`` untouched; the other groups still go out.
        """
        opportunity: Opportunity = self.scope.get_opportunity(opportunity_id)
        if not contact_ids:
            raise ValidationError("Contact ids are required.", field="contact_ids")
        if self.mailer is None:
            raise DeliveryError("Mail sender is not configured.")

        open_tasks = (
            self.scope.tasks()
            .filter(
                OpportunityTask.opportunity_id == opportunity.id,
                OpportunityTask.assigned_contact_id.in_(contact_ids),
                OpportunityTask.status != TaskStatus.DONE,
            )
            .all()
        )
        groups: dict[int, list[OpportunityTask]] = {}
        for task in sorted(open_tasks, key=lane_sort_key):
            groups.setdefault(task.assigned_contact_id, []).append(task)

        base_url = get_config().APP_BASE_URL
        opportunity_url = f"{base_url}/leads/{opportunity.id}"
        results: list[QuestionnaireDelivery] = []
        for contact_id, tasks in groups.items():
            contact = tasks[0].assigned_contact
            delivery = QuestionnaireDelivery(
                contact_id=contact_id,
                email=contact.email if contact is not None else None,
                task_ids=[task.id for task in tasks],
            )
            results.append(delivery)
            if not delivery.email:
                delivery.error = "Contact has no email address."
                continue

            delivered = self.mailer.notify(
                QUESTIONNAIRE,
                {
                    "email": delivery.email,
                    "contact_name": contact.name or "Valued Contact",
                    "company_name": opportunity.company.name,
                    "opportunity_title": opportunity.title,
                    "opportunity_url": opportunity_url,
                    "questions": [
                        {
                            "title": task.title,
                            "question": task.question,
                            "description": task.description,
                            "task_url": f"{opportunity_url}?taskId={task.id}",
                        }
                        for task in tasks
                    ],
                    "custom_content": (custom_content or {}).get(contact_id),
                },
            )
            if not delivered:
                delivery.error = "Delivery failed."
                continue

            sent_at = utcnow()
            for task in tasks:
                task.email_sent_at = sent_at
            self.commit()

        logger.info(
            "task.questionnaire.sent",
            extra={
                "event": "task.questionnaire.sent",
                "tenant_id": self.tenant_id,
                "opportunity_id": opportunity.id,
                "sent": sum(1 for result in results if result.delivered),
                "failed": sum(1 for result in results if not result.delivered),
            },
        )
        return results
