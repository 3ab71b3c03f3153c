"""Attachment ledger endpoints for company and opportunity files."""

from __future__ import annotations

from fastapi import APIRouter, Depends, File, Form, Header, UploadFile, status
from sqlalchemy.orm import Session

from oppflow.api.v1._authz import authorize
from oppflow.core.dependencies import get_blob_store, get_db_session
from oppflow.integrations.blob_store import BunnyBlobStore
from oppflow.models import AttachmentOwner
from oppflow.schemas import APIEnvelope, AttachmentResponse
from oppflow.services.attachment_service import AttachmentService, FileUpload

router = APIRouter(tags=["attachments"])


def _to_upload(file: UploadFile, description: str | None) -> FileUpload:
    return FileUpload(
        filename=file.filename or "",
        data=file.file.read(),
        description=description,
        content_type=file.content_type,
    )


@router.post("/companies/{company_id}/files", response_model=AttachmentResponse, status_code=status.HTTP_201_CREATED)
def upload_company_file(
    company_id: int,
    file: UploadFile = File(...),
    description: str | None = Form(default=None),
    db: Session = Depends(get_db_session),
    blob_store: BunnyBlobStore | None = Depends(get_blob_store),
    authorization: str | None = Header(default=None, alias="Authorization"),
    x_tenant_id: str | None = Header(default=None, alias="X-Tenant-Id"),
) -> AttachmentResponse:
    context = authorize(db, authorization, ["attachments.write"], x_tenant_id)
    service = AttachmentService(db, context.tenant, blob_store=blob_store)
    attachment = service.upload_file(AttachmentOwner.company(company_id), context.principal, _to_upload(file, description))
    return AttachmentResponse.model_validate(attachment)


@router.get("/companies/{company_id}/files", response_model=list[AttachmentResponse])
def list_company_files(
    company_id: int,
    db: Session = Depends(get_db_session),
    authorization: str | None = Header(default=None, alias="Authorization"),
    x_tenant_id: str | None = Header(default=None, alias="X-Tenant-Id"),
) -> list[AttachmentResponse]:
    context = authorize(db, authorization, ["attachments.read"], x_tenant_id)
    rows = AttachmentService(db, context.tenant).list_for_owner(AttachmentOwner.company(company_id))
    return [AttachmentResponse.model_validate(row) for row in rows]


@router.post(
    "/opportunities/{opportunity_id}/attachments",
    response_model=AttachmentResponse,
    status_code=status.HTTP_201_CREATED,
)
def upload_opportunity_attachment(
    opportunity_id: int,
    file: UploadFile = File(...),
    description: str | None = Form(default=None),
    db: Session = Depends(get_db_session),
    blob_store: BunnyBlobStore | None = Depends(get_blob_store),
    authorization: str | None = Header(default=None, alias="Authorization"),
    x_tenant_id: str | None = Header(default=None, alias="X-Tenant-Id"),
) -> AttachmentResponse:
    context = authorize(db, authorization, ["attachments.write"], x_tenant_id)
    service = AttachmentService(db, context.tenant, blob_store=blob_store)
    attachment = service.upload_file(
        AttachmentOwner.opportunity(opportunity_id), context.principal, _to_upload(file, description)
    )
    return AttachmentResponse.model_validate(attachment)


@router.get("/opportunities/{opportunity_id}/attachments", response_model=list[AttachmentResponse])
def list_opportunity_attachments(
    opportunity_id: int,
    db: Session = Depends(get_db_session),
    authorization: str | None = Header(default=None, alias="Authorization"),
    x_tenant_id: str | None = Header(default=None, alias="X-Tenant-Id"),
) -> list[AttachmentResponse]:
    context = authorize(db, authorization, ["attachments.read"], x_tenant_id)
    rows = AttachmentService(db, context.tenant).list_for_owner(AttachmentOwner.opportunity(opportunity_id))
    return [AttachmentResponse.model_validate(row) for row in rows]


@router.delete("/attachments/{attachment_id}", response_model=APIEnvelope)
def delete_attachment(
    attachment_id: int,
    db: Session = Depends(get_db_session),
    blob_store: BunnyBlobStore | None = Depends(get_blob_store),
    authorization: str | None = Header(default=None, alias="Authorization"),
    x_tenant_id: str | None = Header(default=None, alias="X-Tenant-Id"),
) -> APIEnvelope:
    context = authorize(db, authorization, ["attachments.write"], x_tenant_id)
    AttachmentService(db, context.tenant, blob_store=blob_store).delete(attachment_id)
    return APIEnvelope(message="Attachment deleted.")
