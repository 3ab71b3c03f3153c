from __future__ import annotations

import io

import pytest
from starlette.datastructures import UploadFile

from oppflow.api.v1 import tasks
from oppflow.core.exceptions import AuthenticationError, AuthorizationError, NotFoundError
from oppflow.models import TaskStatus
from oppflow.schemas import (
    QuestionnaireSendRequest,
    TaskBulkCreateRequest,
    TaskCreateRequest,
    TaskReorderItem,
    TaskReorderRequest,
    TaskUpdateRequest,
)


def _create(session, auth, opportunity_id, title):
    return tasks.create_task(
        opportunity_id,
        TaskCreateRequest(title=title, question=f"{title}?"),
        db=session,
        authorization=auth,
        x_tenant_id=None,
    )


def test_board_flow_through_routes(session, seed, bearer_for):
    auth = bearer_for(seed.manager)
    first = _create(session, auth, seed.opportunity.id, "First")
    second = _create(session, auth, seed.opportunity.id, "Second")
    assert (first.order, second.order) == (0, 1)

    result = tasks.reorder_tasks(
        seed.opportunity.id,
        TaskReorderRequest(
            updates=[
                TaskReorderItem(task_id=first.id, status=TaskStatus.DONE, order=0),
                TaskReorderItem(task_id=second.id, status=TaskStatus.TODO, order=0),
            ]
        ),
        db=session,
        authorization=auth,
        x_tenant_id=None,
    )
    assert result.success is True
    assert result.updated == 2

    listed = tasks.list_tasks(seed.opportunity.id, db=session, authorization=auth, x_tenant_id=None)
    assert [task.title for task in listed] == ["Second", "First"]

    updated = tasks.update_task(
        seed.opportunity.id,
        second.id,
        TaskUpdateRequest(assigned_to=f"user-{seed.owner.id}"),
        db=session,
        authorization=auth,
        x_tenant_id=None,
    )
    assert updated.assignee.ref == f"user-{seed.owner.id}"
    assert updated.assignee.email == "owner@acme.test"


def test_send_email_route_stamps_task(session, seed, bearer_for, mailer):
    auth = bearer_for(seed.manager)
    task = tasks.create_task(
        seed.opportunity.id,
        TaskCreateRequest(title="Hosting", question="Where?", assigned_to=str(seed.contact.id)),
        db=session,
        authorization=auth,
        x_tenant_id=None,
    )
    sent = tasks.send_task_email(
        seed.opportunity.id, task.id, db=session, mailer=mailer, authorization=auth, x_tenant_id=None
    )
    assert sent.email_sent_at is not None
    assert mailer.sent[0][1]["email"] == "carla@client.test"


def test_upload_and_list_task_attachments(session, seed, bearer_for, blob_store):
    auth = bearer_for(seed.manager)
    task = _create(session, auth, seed.opportunity.id, "Files")
    upload = UploadFile(file=io.BytesIO(b"%PDF-1.4"), filename="brief.pdf")

    created = tasks.upload_task_attachment(
        seed.opportunity.id,
        task.id,
        file=upload,
        description="Brief",
        db=session,
        blob_store=blob_store,
        authorization=auth,
        x_tenant_id=None,
    )
    listed = tasks.list_task_attachments(
        seed.opportunity.id, task.id, db=session, authorization=auth, x_tenant_id=None
    )

    assert created.mime_type == "application/pdf"
    assert created.description == "Brief"
    assert [row.id for row in listed] == [created.id]


def test_missing_token_is_unauthorized(session, seed):
    with pytest.raises(AuthenticationError):
        tasks.list_tasks(seed.opportunity.id, db=session, authorization=None, x_tenant_id=None)


def test_client_cannot_write_tasks(session, seed, bearer_for):
    with pytest.raises(AuthorizationError):
        _create(session, bearer_for(seed.client), seed.opportunity.id, "Nope")


def test_cross_tenant_header_is_forbidden(session, seed, bearer_for):
    with pytest.raises(AuthorizationError):
        tasks.list_tasks(
            seed.opportunity.id,
            db=session,
            authorization=bearer_for(seed.owner),
            x_tenant_id=str(seed.other_tenant.id),
        )


def test_foreign_opportunity_is_not_found(session, seed, bearer_for):
    with pytest.raises(NotFoundError):
        tasks.list_tasks(seed.opportunity.id, db=session, authorization=bearer_for(seed.outsider), x_tenant_id=None)


def test_superadmin_switches_tenant_with_header(session, seed, bearer_for):
    auth = bearer_for(seed.superadmin)
    listed = tasks.list_tasks(
        seed.other_opportunity.id, db=session, authorization=auth, x_tenant_id=str(seed.other_tenant.id)
    )
    assert listed == []


def test_bulk_and_questionnaire_routes(session, seed, bearer_for, mailer):
    auth = bearer_for(seed.manager)
    created = tasks.create_tasks_bulk(
        seed.opportunity.id,
        TaskBulkCreateRequest(
            tasks=[
                TaskCreateRequest(title="Hosting", question="Where?", assigned_to=str(seed.contact.id)),
                TaskCreateRequest(title="Budget", question="How much?", assigned_to=str(seed.contact.id)),
            ]
        ),
        db=session,
        authorization=auth,
        x_tenant_id=None,
    )
    assert created.count == 2
    assert [task.order for task in created.tasks] == [0, 1]

    sent = tasks.send_questionnaire(
        seed.opportunity.id,
        QuestionnaireSendRequest(contact_ids=[seed.contact.id]),
        db=session,
        mailer=mailer,
        authorization=auth,
        x_tenant_id=None,
    )
    assert (sent.sent, sent.failed) == (1, 0)
    assert sent.results[0].task_ids == [task.id for task in created.tasks]


def test_client_cannot_bulk_create(session, seed, bearer_for):
    with pytest.raises(AuthorizationError):
        tasks.create_tasks_bulk(
            seed.opportunity.id,
            TaskBulkCreateRequest(tasks=[TaskCreateRequest(title="X", question="X?")]),
            db=session,
            authorization=bearer_for(seed.client),
            x_tenant_id=None,
        )
