from __future__ import annotations

import pytest
from sqlalchemy.dialects import sqlite
from sqlalchemy.exc import IntegrityError
from sqlalchemy.schema import CreateTable

from oppflow.models import Base, OpportunityTask
import oppflow.models  # noqa: F401


def test_model_metadata_contains_target_tables():
    expected = {
        "tenants",
        "users",
        "companies",
        "contacts",
        "services",
        "opportunities",
        "opportunity_tasks",
        "proposals",
        "proposal_items",
        "attachments",
    }
    assert expected.issubset(set(Base.metadata.tables.keys()))


def test_task_cannot_hold_user_and_contact_at_once(session, seed):
    task = OpportunityTask(
        opportunity_id=seed.opportunity.id,
        title="Both",
        question="?",
        assigned_user_id=seed.manager.id,
        assigned_contact_id=seed.contact.id,
    )
    session.add(task)
    with pytest.raises(IntegrityError):
        session.commit()
    session.rollback()


def test_constraints_are_named_by_convention():
    users_ddl = str(CreateTable(Base.metadata.tables["users"]).compile(dialect=sqlite.dialect()))
    tasks_ddl = str(CreateTable(Base.metadata.tables["opportunity_tasks"]).compile(dialect=sqlite.dialect()))

    assert "CONSTRAINT pk_users PRIMARY KEY" in users_ddl
    assert "CONSTRAINT uq_users_email UNIQUE" in users_ddl
    assert "CONSTRAINT fk_opportunity_tasks_opportunity_id_opportunities FOREIGN KEY" in tasks_ddl


def test_tenant_rows_get_timestamps_on_insert(session, seed):
    assert seed.opportunity.created_at is not None
    assert seed.opportunity.updated_at is not None
    assert Base.metadata.tables["opportunities"].c.tenant_id.index
