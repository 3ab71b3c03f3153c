"""Opportunity task board endpoints for API v1."""

from __future__ import annotations

from fastapi import APIRouter, Depends, File, Form, Header, UploadFile, status
from sqlalchemy.orm import Session

from oppflow.api.v1._authz import authorize
from oppflow.core.dependencies import get_blob_store, get_db_session, get_mailer
from oppflow.integrations.blob_store import BunnyBlobStore
from oppflow.integrations.mailer import Mailer
from oppflow.schemas import (
    APIEnvelope,
    AttachmentResponse,
    QuestionnaireDeliveryView,
    QuestionnaireSendRequest,
    QuestionnaireSendResponse,
    TaskBulkCreateRequest,
    TaskBulkCreateResponse,
    TaskCreateRequest,
    TaskReorderRequest,
    TaskReorderResponse,
    TaskResponse,
    TaskUpdateRequest,
)
from oppflow.schemas.tasks import task_to_response
from oppflow.services.attachment_service import FileUpload
from oppflow.services.task_board_service import TaskBoardService

router = APIRouter(prefix="/opportunities/{opportunity_id}/tasks", tags=["tasks"])


@router.get("", response_model=list[TaskResponse])
def list_tasks(
    opportunity_id: int,
    db: Session = Depends(get_db_session),
    authorization: str | None = Header(default=None, alias="Authorization"),
    x_tenant_id: str | None = Header(default=None, alias="X-Tenant-Id"),
) -> list[TaskResponse]:
    context = authorize(db, authorization, ["tasks.read"], x_tenant_id)
    service = TaskBoardService(db, context.tenant)
    return [task_to_response(task) for task in service.list_tasks(opportunity_id)]


@router.post("", response_model=TaskResponse, status_code=status.HTTP_201_CREATED)
def create_task(
    opportunity_id: int,
    payload: TaskCreateRequest,
    db: Session = Depends(get_db_session),
    authorization: str | None = Header(default=None, alias="Authorization"),
    x_tenant_id: str | None = Header(default=None, alias="X-Tenant-Id"),
) -> TaskResponse:
    context = authorize(db, authorization, ["tasks.write"], x_tenant_id)
    task = TaskBoardService(db, context.tenant).create_task(opportunity_id, payload)
    return task_to_response(task)


@router.post("/bulk", response_model=TaskBulkCreateResponse, status_code=status.HTTP_201_CREATED)
def create_tasks_bulk(
    opportunity_id: int,
    payload: TaskBulkCreateRequest,
    db: Session = Depends(get_db_session),
    authorization: str | None = Header(default=None, alias="Authorization"),
    x_tenant_id: str | None = Header(default=None, alias="X-Tenant-Id"),
) -> TaskBulkCreateResponse:
    context = authorize(db, authorization, ["tasks.write"], x_tenant_id)
    tasks = TaskBoardService(db, context.tenant).create_tasks(opportunity_id, payload.tasks)
    return TaskBulkCreateResponse(count=len(tasks), tasks=[task_to_response(task) for task in tasks])


@router.post("/questionnaire", response_model=QuestionnaireSendResponse)
def send_questionnaire(
    opportunity_id: int,
    payload: QuestionnaireSendRequest,
    db: Session = Depends(get_db_session),
    mailer: Mailer = Depends(get_mailer),
    authorization: str | None = Header(default=None, alias="Authorization"),
    x_tenant_id: str | None = Header(default=None, alias="X-Tenant-Id"),
) -> QuestionnaireSendResponse:
    context = authorize(db, authorization, ["tasks.write"], x_tenant_id)
    results = TaskBoardService(db, context.tenant, mailer=mailer).send_questionnaire(
        opportunity_id, payload.contact_ids, custom_content=payload.email_content
    )
    views = [
        QuestionnaireDeliveryView(
            contact_id=result.contact_id,
            email=result.email,
            task_ids=result.task_ids,
            delivered=result.delivered,
            error=result.error,
        )
        for result in results
    ]
    sent = sum(1 for view in views if view.delivered)
    return QuestionnaireSendResponse(sent=sent, failed=len(views) - sent, results=views)


@router.post("/reorder", response_model=TaskReorderResponse)
def reorder_tasks(
    opportunity_id: int,
    payload: TaskReorderRequest,
    db: Session = Depends(get_db_session),
    authorization: str | None = Header(default=None, alias="Authorization"),
    x_tenant_id: str | None = Header(default=None, alias="X-Tenant-Id"),
) -> TaskReorderResponse:
    context = authorize(db, authorization, ["tasks.write"], x_tenant_id)
    updated = TaskBoardService(db, context.tenant).reorder(opportunity_id, payload.updates)
    return TaskReorderResponse(updated=updated)


@router.get("/{task_id}", response_model=TaskResponse)
def get_task(
    opportunity_id: int,
    task_id: int,
    db: Session = Depends(get_db_session),
    authorization: str | None = Header(default=None, alias="Authorization"),
    x_tenant_id: str | None = Header(default=None, alias="X-Tenant-Id"),
) -> TaskResponse:
    context = authorize(db, authorization, ["tasks.read"], x_tenant_id)
    return task_to_response(TaskBoardService(db, context.tenant).get_task(opportunity_id, task_id))


@router.put("/{task_id}", response_model=TaskResponse)
def update_task(
    opportunity_id: int,
    task_id: int,
    payload: TaskUpdateRequest,
    db: Session = Depends(get_db_session),
    authorization: str | None = Header(default=None, alias="Authorization"),
    x_tenant_id: str | None = Header(default=None, alias="X-Tenant-Id"),
) -> TaskResponse:
    context = authorize(db, authorization, ["tasks.write"], x_tenant_id)
    task = TaskBoardService(db, context.tenant).update_task(opportunity_id, task_id, payload)
    return task_to_response(task)


@router.delete("/{task_id}", response_model=APIEnvelope)
def delete_task(
    opportunity_id: int,
    task_id: int,
    db: Session = Depends(get_db_session),
    blob_store: BunnyBlobStore | None = Depends(get_blob_store),
    authorization: str | None = Header(default=None, alias="Authorization"),
    x_tenant_id: str | None = Header(default=None, alias="X-Tenant-Id"),
) -> APIEnvelope:
    context = authorize(db, authorization, ["tasks.write"], x_tenant_id)
    TaskBoardService(db, context.tenant, blob_store=blob_store).delete_task(opportunity_id, task_id)
    return APIEnvelope(message="Task deleted.")


@router.post("/{task_id}/send-email", response_model=TaskResponse)
def send_task_email(
    opportunity_id: int,
    task_id: int,
    db: Session = Depends(get_db_session),
    mailer: Mailer = Depends(get_mailer),
    authorization: str | None = Header(default=None, alias="Authorization"),
    x_tenant_id: str | None = Header(default=None, alias="X-Tenant-Id"),
) -> TaskResponse:
    context = authorize(db, authorization, ["tasks.write"], x_tenant_id)
    task = TaskBoardService(db, context.tenant, mailer=mailer).send_question_email(opportunity_id, task_id)
    return task_to_response(task)


@router.get("/{task_id}/attachments", response_model=list[AttachmentResponse])
def list_task_attachments(
    opportunity_id: int,
    task_id: int,
    db: Session = Depends(get_db_session),
    authorization: str | None = Header(default=None, alias="Authorization"),
    x_tenant_id: str | None = Header(default=None, alias="X-Tenant-Id"),
) -> list[AttachmentResponse]:
    context = authorize(db, authorization, ["attachments.read"], x_tenant_id)
    rows = TaskBoardService(db, context.tenant).list_attachments(opportunity_id, task_id)
    return [AttachmentResponse.model_validate(row) for row in rows]


@router.post("/{task_id}/attachments", response_model=AttachmentResponse, status_code=status.HTTP_201_CREATED)
def upload_task_attachment(
    opportunity_id: int,
    task_id: int,
    file: UploadFile = File(...),
    description: str | None = Form(default=None),
    db: Session = Depends(get_db_session),
    blob_store: BunnyBlobStore | None = Depends(get_blob_store),
    authorization: str | None = Header(default=None, alias="Authorization"),
    x_tenant_id: str | None = Header(default=None, alias="X-Tenant-Id"),
) -> AttachmentResponse:
    context = authorize(db, authorization, ["attachments.write"], x_tenant_id)
    upload = FileUpload(
        filename=file.filename or "",
        data=file.file.read(),
        description=description,
        content_type=file.content_type,
    )
    attachment = TaskBoardService(db, context.tenant, blob_store=blob_store).attach_file(
        opportunity_id, task_id, context.principal, upload
    )
    return AttachmentResponse.model_validate(attachment)
