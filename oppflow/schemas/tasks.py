"""Task board request/response schemas."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from oppflow.models import AssigneeKind, OpportunityTask, TaskStatus, UserRole
from oppflow.services.assignment_service import format_assignee_ref


class TaskCreateRequest(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    question: str = Field(min_length=1)
    description: str | None = None
    assigned_to: str | None = Field(default=None, max_length=64)
    priority: int = Field(default=0, ge=0, le=2)
    start_date: datetime | None = None
    due_date: datetime | None = None
    reminder_date: datetime | None = None


class TaskUpdateRequest(BaseModel):
    """Partial update; only fields present in the payload are applied."""

    title: str | None = Field(default=None, min_length=1, max_length=255)
    question: str | None = Field(default=None, min_length=1)
    description: str | None = None
    answer: str | None = None
    notes: str | None = None
    assigned_to: str | None = Field(default=None, max_length=64)
    status: TaskStatus | None = None
    priority: int | None = Field(default=None, ge=0, le=2)
    start_date: datetime | None = None
    due_date: datetime | None = None
    reminder_date: datetime | None = None
    order: int | None = None


class TaskBulkCreateRequest(BaseModel):
    tasks: list[TaskCreateRequest] = Field(min_length=1)


class QuestionnaireSendRequest(BaseModel):
    contact_ids: list[int] = Field(min_length=1)
    # Optional per-contact intro text, keyed by contact id.
    email_content: dict[int, str] | None = None


class QuestionnaireDeliveryView(BaseModel):
    contact_id: int
    email: str | None = None
    task_ids: list[int]
    delivered: bool
    error: str | None = None


class QuestionnaireSendResponse(BaseModel):
    success: bool = True
    sent: int
    failed: int
    results: list[QuestionnaireDeliveryView]


class TaskReorderItem(BaseModel):
    task_id: int
    status: TaskStatus
    order: int


class TaskReorderRequest(BaseModel):
    updates: list[TaskReorderItem]


class TaskReorderResponse(BaseModel):
    success: bool = True
    updated: int


class AssigneeView(BaseModel):
    kind: AssigneeKind
    id: int | None = None
    ref: str | None = None
    name: str | None = None
    email: str | None = None
    role: UserRole | None = None


class TaskResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    opportunity_id: int
    title: str
    question: str
    description: str | None = None
    answer: str | None = None
    answered_at: datetime | None = None
    notes: str | None = None
    status: TaskStatus
    order: int
    priority: int
    start_date: datetime | None = None
    due_date: datetime | None = None
    reminder_date: datetime | None = None
    email_sent_at: datetime | None = None
    assignee: AssigneeView
    created_at: datetime
    updated_at: datetime


def describe_assignee(task: OpportunityTask) -> AssigneeView:
    """Expand the task's assignee variant for display."""
    assignee = task.assignee
    view = AssigneeView(kind=assignee.kind, id=assignee.id, ref=format_assignee_ref(assignee))
    if assignee.kind is AssigneeKind.USER and task.assigned_user is not None:
        view.name = task.assigned_user.full_name
        view.email = task.assigned_user.email
        view.role = task.assigned_user.role
    elif assignee.kind is AssigneeKind.CONTACT and task.assigned_contact is not None:
        view.name = task.assigned_contact.name
        view.email = task.assigned_contact.email
    return view


def task_to_response(task: OpportunityTask) -> TaskResponse:
    return TaskResponse(
        id=task.id,
        opportunity_id=task.opportunity_id,
        title=task.title,
        question=task.question,
        description=task.description,
        answer=task.answer,
        answered_at=task.answered_at,
        notes=task.notes,
        status=task.status,
        order=task.order,
        priority=task.priority,
        start_date=task.start_date,
        due_date=task.due_date,
        reminder_date=task.reminder_date,
        email_sent_at=task.email_sent_at,
        assignee=describe_assignee(task),
        created_at=task.created_at,
        updated_at=task.updated_at,
    )


class TaskBulkCreateResponse(BaseModel):
    success: bool = True
    count: int
    tasks: list[TaskResponse]
