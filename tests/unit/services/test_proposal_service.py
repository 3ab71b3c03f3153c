from __future__ import annotations

from decimal import Decimal

import pytest

from oppflow.core.exceptions import NotFoundError, ValidationError
from oppflow.models import OpportunityTask, Proposal, ProposalItem, ProposalStatus, TaskStatus
from oppflow.schemas import ProposalCreateRequest, ProposalItemInput, ProposalUpdateRequest
from oppflow.services.proposal_service import ProposalService


def _request(seed, items=None, **kwargs):
    if items is None:
        items = [
            ProposalItemInput(service_id=seed.design.id, quantity=2, price=Decimal("100")),
            ProposalItemInput(service_id=seed.build.id, quantity=1, price=Decimal("50")),
        ]
    return ProposalCreateRequest(title="Relaunch", company_id=seed.company.id, items=items, **kwargs)


def test_create_computes_totals_and_starts_as_draft(session, seed, principal_of, text_generator):
    service = ProposalService(session, seed.tenant, text_generator=text_generator)
    proposal = service.create_proposal(principal_of(seed.manager), _request(seed, opportunity_id=seed.opportunity.id))

    assert proposal.total_amount == Decimal("250.00")
    assert [item.total for item in proposal.items] == [Decimal("200.00"), Decimal("50.00")]
    assert proposal.status == ProposalStatus.DRAFT.value
    assert proposal.version == 1
    assert proposal.content == "# Generated proposal"
    assert "Acme Industries" in text_generator.prompts[0]


def test_generator_outage_falls_back_to_plain_content(session, seed, principal_of, text_generator):
    text_generator.fail = True
    service = ProposalService(session, seed.tenant, text_generator=text_generator)
    proposal = service.create_proposal(principal_of(seed.manager), _request(seed))

    assert proposal.content.startswith("# Proposal: Relaunch")
    assert "Total: $250.00" in proposal.content


def test_create_without_generator_uses_fallback(session, seed, principal_of):
    proposal = ProposalService(session, seed.tenant).create_proposal(principal_of(seed.owner), _request(seed))
    assert "## Investment" in proposal.content


def test_empty_items_rejected_without_writes(session, seed, principal_of):
    service = ProposalService(session, seed.tenant)
    with pytest.raises(ValidationError) as exc:
        service.create_proposal(principal_of(seed.owner), _request(seed, items=[]))
    assert exc.value.field == "items"
    assert session.query(Proposal).count() == 0


def test_foreign_company_rejected(session, seed, principal_of):
    request = ProposalCreateRequest(
        title="Steal",
        company_id=seed.other_company.id,
        items=[ProposalItemInput(service_id=seed.design.id, quantity=1, price=Decimal("1"))],
    )
    with pytest.raises(ValidationError) as exc:
        ProposalService(session, seed.tenant).create_proposal(principal_of(seed.owner), request)
    assert exc.value.field == "company_id"
    assert session.query(Proposal).count() == 0


def test_foreign_service_rejected(session, seed, principal_of):
    items = [ProposalItemInput(service_id=seed.other_service.id, quantity=1, price=Decimal("5"))]
    with pytest.raises(ValidationError) as exc:
        ProposalService(session, seed.tenant).create_proposal(principal_of(seed.owner), _request(seed, items=items))
    assert exc.value.field == "items[0].service_id"
    assert session.query(ProposalItem).count() == 0


def test_opportunity_must_belong_to_the_same_company(session, seed, principal_of):
    service = ProposalService(session, seed.tenant)
    with pytest.raises(ValidationError) as exc:
        service.create_proposal(
            principal_of(seed.owner),
            ProposalCreateRequest(
                title="Mismatch",
                company_id=seed.sister_company.id,
                opportunity_id=seed.opportunity.id,
                items=[ProposalItemInput(service_id=seed.design.id, quantity=1, price=Decimal("1"))],
            ),
        )
    assert exc.value.field == "opportunity_id"


def test_items_replace_recomputes_total_and_bumps_version(session, seed, principal_of):
    service = ProposalService(session, seed.tenant)
    proposal = service.create_proposal(principal_of(seed.owner), _request(seed))
    original_content = proposal.content

    updated = service.update_proposal(
        principal_of(seed.owner),
        proposal.id,
        ProposalUpdateRequest(items=[ProposalItemInput(service_id=seed.design.id, quantity=3, price=Decimal("100"))]),
    )

    assert updated.total_amount == Decimal("300.00")
    assert len(updated.items) == 1
    assert updated.version == 2
    assert updated.content == original_content
    assert session.query(ProposalItem).count() == 1


def test_invalid_replacement_items_leave_proposal_untouched(session, seed, principal_of):
    service = ProposalService(session, seed.tenant)
    proposal = service.create_proposal(principal_of(seed.owner), _request(seed))

    with pytest.raises(ValidationError):
        service.update_proposal(
            principal_of(seed.owner),
            proposal.id,
            ProposalUpdateRequest(
                title="Renamed",
                items=[ProposalItemInput(service_id=999999, quantity=1, price=Decimal("1"))],
            ),
        )

    session.refresh(proposal)
    assert proposal.title == "Relaunch"
    assert proposal.total_amount == Decimal("250.00")
    assert len(proposal.items) == 2


def test_sent_stamp_is_set_once(session, seed, principal_of):
    service = ProposalService(session, seed.tenant)
    proposal = service.create_proposal(principal_of(seed.owner), _request(seed))

    first = service.update_proposal(principal_of(seed.owner), proposal.id, ProposalUpdateRequest(status="SENT"))
    stamp = first.sent_at
    service.update_proposal(principal_of(seed.owner), proposal.id, ProposalUpdateRequest(status="DRAFT"))
    again = service.update_proposal(principal_of(seed.owner), proposal.id, ProposalUpdateRequest(status="SENT"))

    assert stamp is not None
    assert again.sent_at == stamp
    assert again.status == "SENT"


def test_review_records_reviewer_once(session, seed, principal_of):
    service = ProposalService(session, seed.tenant)
    proposal = service.create_proposal(principal_of(seed.owner), _request(seed))

    reviewed = service.update_proposal(principal_of(seed.manager), proposal.id, ProposalUpdateRequest(status="REVIEW"))
    again = service.update_proposal(principal_of(seed.owner), proposal.id, ProposalUpdateRequest(status="REVIEW"))

    assert reviewed.reviewed_by == seed.manager.id
    assert again.reviewed_by == seed.manager.id
    assert again.reviewed_at == reviewed.reviewed_at


def test_custom_status_and_manual_content_edits(session, seed, principal_of):
    service = ProposalService(session, seed.tenant)
    proposal = service.create_proposal(principal_of(seed.owner), _request(seed))
    updated = service.update_proposal(
        principal_of(seed.owner),
        proposal.id,
        ProposalUpdateRequest(status="ON_HOLD", content="Hand written"),
    )
    assert updated.status == "ON_HOLD"
    assert updated.content == "Hand written"
    assert updated.sent_at is None and updated.reviewed_at is None


def test_delete_cascades_items(session, seed, principal_of):
    service = ProposalService(session, seed.tenant)
    proposal = service.create_proposal(principal_of(seed.owner), _request(seed))
    service.delete_proposal(proposal.id)
    assert session.query(Proposal).count() == 0
    assert session.query(ProposalItem).count() == 0


def test_other_tenant_sees_nothing(session, seed, principal_of):
    proposal = ProposalService(session, seed.tenant).create_proposal(principal_of(seed.owner), _request(seed))
    intruder = ProposalService(session, seed.other_tenant)

    with pytest.raises(NotFoundError):
        intruder.get_proposal(proposal.id)
    with pytest.raises(NotFoundError):
        intruder.update_proposal(principal_of(seed.outsider), proposal.id, ProposalUpdateRequest(status="SENT"))
    with pytest.raises(NotFoundError):
        intruder.delete_proposal(proposal.id)
    assert intruder.list_proposals() == []


def test_list_per_opportunity_orders_by_version(session, seed, principal_of):
    service = ProposalService(session, seed.tenant)
    older = service.create_proposal(principal_of(seed.owner), _request(seed, opportunity_id=seed.opportunity.id))
    newer = service.create_proposal(principal_of(seed.owner), _request(seed, opportunity_id=seed.opportunity.id))
    service.update_proposal(
        principal_of(seed.owner),
        older.id,
        ProposalUpdateRequest(items=[ProposalItemInput(service_id=seed.build.id, quantity=1, price=Decimal("50"))]),
    )
    service.create_proposal(principal_of(seed.owner), _request(seed))

    listed = service.list_proposals(opportunity_id=seed.opportunity.id)
    assert [row.id for row in listed] == [older.id, newer.id]
    assert len(service.list_proposals()) == 3


def test_export_renders_pdf_bytes(session, seed, principal_of):
    service = ProposalService(session, seed.tenant)
    proposal = service.create_proposal(principal_of(seed.owner), _request(seed))
    pdf = service.export_pdf(proposal.id)
    assert pdf.startswith(b"%PDF")


class _SocketClosedGenerator:
    def generate(self, prompt):
        raise RuntimeError("socket closed")


def test_unexpected_generator_error_still_creates_proposal(session, seed, principal_of):
    service = ProposalService(session, seed.tenant, text_generator=_SocketClosedGenerator())
    proposal = service.create_proposal(principal_of(seed.manager), _request(seed))

    assert proposal.id is not None
    assert proposal.content.startswith("# Proposal: Relaunch")
    assert session.query(Proposal).count() == 1


def _board(session, seed, statuses):
    for index, status in enumerate(statuses):
        session.add(
            OpportunityTask(
                opportunity_id=seed.opportunity.id,
                title=f"Q{index}",
                question=f"Question {index}?",
                answer=f"Answer {index}",
                status=status,
                order=index,
            )
        )
    session.commit()


def test_board_generation_waits_for_every_task(session, seed, principal_of, text_generator):
    service = ProposalService(session, seed.tenant, text_generator=text_generator)
    with pytest.raises(ValidationError) as empty:
        service.generate_from_board(principal_of(seed.owner), seed.opportunity.id)
    assert empty.value.field == "tasks"

    _board(session, seed, [TaskStatus.DONE, TaskStatus.REVIEW])
    with pytest.raises(ValidationError) as pending:
        service.generate_from_board(principal_of(seed.owner), seed.opportunity.id)
    assert "1 of 2 pending" in str(pending.value)
    assert session.query(Proposal).count() == 0
    assert text_generator.prompts == []


def test_board_generation_uses_answers_and_next_version(session, seed, principal_of, text_generator):
    service = ProposalService(session, seed.tenant, text_generator=text_generator)
    service.create_proposal(principal_of(seed.owner), _request(seed, opportunity_id=seed.opportunity.id))
    _board(session, seed, [TaskStatus.DONE, TaskStatus.DONE])

    first = service.generate_from_board(principal_of(seed.owner), seed.opportunity.id)
    second = service.generate_from_board(principal_of(seed.owner), seed.opportunity.id)

    assert (first.version, second.version) == (2, 3)
    assert first.title == "Website relaunch - Proposal"
    assert first.status == ProposalStatus.DRAFT.value
    assert first.company_id == seed.company.id
    assert first.items == [] and first.total_amount == Decimal("0.00")
    assert first.content == "# Generated proposal"
    assert "1. Question 0?\n   Answer: Answer 0" in text_generator.prompts[1]


def test_board_generation_on_foreign_opportunity_is_not_found(session, seed, principal_of):
    with pytest.raises(NotFoundError):
        ProposalService(session, seed.tenant).generate_from_board(principal_of(seed.owner), seed.other_opportunity.id)
