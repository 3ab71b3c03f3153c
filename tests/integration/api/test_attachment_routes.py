from __future__ import annotations

import io

import pytest
from starlette.datastructures import UploadFile

from oppflow.api.v1 import attachments
from oppflow.core.exceptions import NotFoundError


def test_company_file_upload_list_and_delete(session, seed, bearer_for, blob_store):
    auth = bearer_for(seed.manager)
    created = attachments.upload_company_file(
        seed.company.id,
        file=UploadFile(file=io.BytesIO(b"id,name\n1,a\n"), filename="contacts.csv"),
        description=None,
        db=session,
        blob_store=blob_store,
        authorization=auth,
        x_tenant_id=None,
    )
    assert created.mime_type == "text/csv"
    assert created.owner_kind.value == "company"

    listed = attachments.list_company_files(seed.company.id, db=session, authorization=auth, x_tenant_id=None)
    assert [row.id for row in listed] == [created.id]

    result = attachments.delete_attachment(
        created.id, db=session, blob_store=blob_store, authorization=auth, x_tenant_id=None
    )
    assert result.status == "ok"
    assert blob_store.blobs == {}


def test_opportunity_upload_for_foreign_opportunity_is_not_found(session, seed, bearer_for, blob_store):
    with pytest.raises(NotFoundError):
        attachments.upload_opportunity_attachment(
            seed.other_opportunity.id,
            file=UploadFile(file=io.BytesIO(b"x"), filename="x.txt"),
            description=None,
            db=session,
            blob_store=blob_store,
            authorization=bearer_for(seed.owner),
            x_tenant_id=None,
        )
    assert blob_store.blobs == {}


def test_delete_without_blob_store_still_removes_row(session, seed, bearer_for, blob_store):
    auth = bearer_for(seed.owner)
    created = attachments.upload_opportunity_attachment(
        seed.opportunity.id,
        file=UploadFile(file=io.BytesIO(b"x"), filename="x.txt"),
        description="scan",
        db=session,
        blob_store=blob_store,
        authorization=auth,
        x_tenant_id=None,
    )
    attachments.delete_attachment(created.id, db=session, blob_store=None, authorization=auth, x_tenant_id=None)
    assert attachments.list_opportunity_attachments(
        seed.opportunity.id, db=session, authorization=auth, x_tenant_id=None
    ) == []
