"""Proposal endpoints for API v1."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Header, Response, status
from sqlalchemy.orm import Session

from oppflow.api.v1._authz import authorize
from oppflow.core.dependencies import get_db_session, get_text_generator
from oppflow.integrations.text_generator import TextGenerator
from oppflow.schemas import APIEnvelope, ProposalCreateRequest, ProposalResponse, ProposalUpdateRequest
from oppflow.services.proposal_service import ProposalService

router = APIRouter(tags=["proposals"])


@router.get("/proposals", response_model=list[ProposalResponse])
def list_proposals(
    db: Session = Depends(get_db_session),
    authorization: str | None = Header(default=None, alias="Authorization"),
    x_tenant_id: str | None = Header(default=None, alias="X-Tenant-Id"),
) -> list[ProposalResponse]:
    context = authorize(db, authorization, ["proposals.read"], x_tenant_id)
    return [ProposalResponse.model_validate(row) for row in ProposalService(db, context.tenant).list_proposals()]


@router.get("/opportunities/{opportunity_id}/proposals", response_model=list[ProposalResponse])
def list_opportunity_proposals(
    opportunity_id: int,
    db: Session = Depends(get_db_session),
    authorization: str | None = Header(default=None, alias="Authorization"),
    x_tenant_id: str | None = Header(default=None, alias="X-Tenant-Id"),
) -> list[ProposalResponse]:
    context = authorize(db, authorization, ["proposals.read"], x_tenant_id)
    rows = ProposalService(db, context.tenant).list_proposals(opportunity_id=opportunity_id)
    return [ProposalResponse.model_validate(row) for row in rows]


@router.post("/proposals", response_model=ProposalResponse, status_code=status.HTTP_201_CREATED)
def create_proposal(
    payload: ProposalCreateRequest,
    db: Session = Depends(get_db_session),
    text_generator: TextGenerator | None = Depends(get_text_generator),
    authorization: str | None = Header(default=None, alias="Authorization"),
    x_tenant_id: str | None = Header(default=None, alias="X-Tenant-Id"),
) -> ProposalResponse:
    context = authorize(db, authorization, ["proposals.write"], x_tenant_id)
    service = ProposalService(db, context.tenant, text_generator=text_generator)
    return ProposalResponse.model_validate(service.create_proposal(context.principal, payload))


@router.post(
    "/opportunities/{opportunity_id}/generate-proposal",
    response_model=ProposalResponse,
    status_code=status.HTTP_201_CREATED,
)
def generate_opportunity_proposal(
    opportunity_id: int,
    db: Session = Depends(get_db_session),
    text_generator: TextGenerator | None = Depends(get_text_generator),
    authorization: str | None = Header(default=None, alias="Authorization"),
    x_tenant_id: str | None = Header(default=None, alias="X-Tenant-Id"),
) -> ProposalResponse:
    context = authorize(db, authorization, ["proposals.write"], x_tenant_id)
    service = ProposalService(db, context.tenant, text_generator=text_generator)
    return ProposalResponse.model_validate(service.generate_from_board(context.principal, opportunity_id))


@router.get("/proposals/{proposal_id}", response_model=ProposalResponse)
def get_proposal(
    proposal_id: int,
    db: Session = Depends(get_db_session),
    authorization: str | None = Header(default=None, alias="Authorization"),
    x_tenant_id: str | None = Header(default=None, alias="X-Tenant-Id"),
) -> ProposalResponse:
    context = authorize(db, authorization, ["proposals.read"], x_tenant_id)
    return ProposalResponse.model_validate(ProposalService(db, context.tenant).get_proposal(proposal_id))


@router.patch("/proposals/{proposal_id}", response_model=ProposalResponse)
def update_proposal(
    proposal_id: int,
    payload: ProposalUpdateRequest,
    db: Session = Depends(get_db_session),
    authorization: str | None = Header(default=None, alias="Authorization"),
    x_tenant_id: str | None = Header(default=None, alias="X-Tenant-Id"),
) -> ProposalResponse:
    context = authorize(db, authorization, ["proposals.write"], x_tenant_id)
    proposal = ProposalService(db, context.tenant).update_proposal(context.principal, proposal_id, payload)
    return ProposalResponse.model_validate(proposal)


@router.delete("/proposals/{proposal_id}", response_model=APIEnvelope)
def delete_proposal(
    proposal_id: int,
    db: Session = Depends(get_db_session),
    authorization: str | None = Header(default=None, alias="Authorization"),
    x_tenant_id: str | None = Header(default=None, alias="X-Tenant-Id"),
) -> APIEnvelope:
    context = authorize(db, authorization, ["proposals.write"], x_tenant_id)
    ProposalService(db, context.tenant).delete_proposal(proposal_id)
    return APIEnvelope(message="Proposal deleted.")


@router.get("/proposals/{proposal_id}/export")
def export_proposal(
    proposal_id: int,
    db: Session = Depends(get_db_session),
    authorization: str | None = Header(default=None, alias="Authorization"),
    x_tenant_id: str | None = Header(default=None, alias="X-Tenant-Id"),
) -> Response:
    context = authorize(db, authorization, ["proposals.read"], x_tenant_id)
    pdf = ProposalService(db, context.tenant).export_pdf(proposal_id)
    return Response(
        content=pdf,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="proposal-{proposal_id}.pdf"'},
    )
