from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from types import SimpleNamespace

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from oppflow.auth.jwt import create_access_token
from oppflow.auth.tenant_context import Principal
from oppflow.core.config import get_config
from oppflow.core.exceptions import BlobStoreError, DeliveryError, UpstreamUnavailableError
from oppflow.models import (
    Base,
    Company,
    Contact,
    Opportunity,
    Service,
    Tenant,
    User,
    UserRole,
)


def _build_session():
    engine = create_engine("sqlite:///:memory:")
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.create_all(bind=engine)
    return TestingSessionLocal()


@pytest.fixture
def session():
    db = _build_session()
    try:
        yield db
    finally:
        db.close()


def _add(session, row):
    session.add(row)
    session.flush()
    return row


@pytest.fixture
def seed(session):
    """Two tenants with mirrored rows so isolation can be checked from either side."""
    acme = _add(session, Tenant(name="Acme"))
    globex = _add(session, Tenant(name="Globex"))

    owner = _add(session, User(tenant_id=acme.id, email="owner@acme.test", full_name="Olive Owner", role=UserRole.OWNER))
    manager = _add(
        session, User(tenant_id=acme.id, email="manager@acme.test", full_name="Max Manager", role=UserRole.MANAGER)
    )
    client = _add(session, User(tenant_id=acme.id, email="client@acme.test", full_name="Cleo Client", role=UserRole.CLIENT))
    superadmin = _add(session, User(tenant_id=None, email="root@platform.test", full_name="Root", role=UserRole.SUPERADMIN))
    outsider = _add(
        session, User(tenant_id=globex.id, email="owner@globex.test", full_name="Gus Globex", role=UserRole.OWNER)
    )

    company = _add(session, Company(tenant_id=acme.id, name="Acme Industries"))
    sister_company = _add(session, Company(tenant_id=acme.id, name="Acme Logistics"))
    other_company = _add(session, Company(tenant_id=globex.id, name="Globex Corp"))

    opportunity = _add(session, Opportunity(tenant_id=acme.id, company_id=company.id, title="Website relaunch"))
    second_opportunity = _add(session, Opportunity(tenant_id=acme.id, company_id=company.id, title="SEO retainer"))
    other_opportunity = _add(
        session, Opportunity(tenant_id=globex.id, company_id=other_company.id, title="Globex rollout")
    )

    contact = _add(session, Contact(tenant_id=acme.id, company_id=company.id, name="Carla Contact", email="carla@client.test"))
    silent_contact = _add(session, Contact(tenant_id=acme.id, company_id=company.id, name="No Mail", email=None))
    other_contact = _add(session, Contact(tenant_id=globex.id, name="Gina Globex", email="gina@globex.test"))

    design = _add(
        session, Service(tenant_id=acme.id, code="DSN", description="Design sprint", unit_price=Decimal("100.00"))
    )
    build = _add(session, Service(tenant_id=acme.id, code="BLD", description="Build", unit_price=Decimal("50.00")))
    other_service = _add(
        session, Service(tenant_id=globex.id, code="DSN", description="Globex design", unit_price=Decimal("10.00"))
    )
    session.commit()

    return SimpleNamespace(
        tenant=acme,
        other_tenant=globex,
        owner=owner,
        manager=manager,
        client=client,
        superadmin=superadmin,
        outsider=outsider,
        company=company,
        sister_company=sister_company,
        other_company=other_company,
        opportunity=opportunity,
        second_opportunity=second_opportunity,
        other_opportunity=other_opportunity,
        contact=contact,
        silent_contact=silent_contact,
        other_contact=other_contact,
        design=design,
        build=build,
        other_service=other_service,
    )


def principal_for(user: User) -> Principal:
    return Principal(id=user.id, email=user.email, role=user.role, tenant_id=user.tenant_id)


@pytest.fixture
def principal_of():
    return principal_for


@pytest.fixture
def bearer_for():
    def _bearer(user: User) -> str:
        token = create_access_token(
            user_id=user.id,
            email=user.email,
            role=user.role.value,
            secret=get_config().JWT_SECRET,
            tenant_id=user.tenant_id,
        )
        return f"Bearer {token}"

    return _bearer


@dataclass
class FakeMailer:
    fail: bool = False
    sent: list[tuple[str, dict]] = field(default_factory=list)

    def send(self, template_kind: str, payload: dict) -> None:
        if self.fail:
            raise DeliveryError("smtp down")
        self.sent.append((template_kind, payload))

    def notify(self, template_kind: str, payload: dict) -> bool:
        try:
            self.send(template_kind, payload)
        except DeliveryError:
            return False
        return True


@dataclass
class FakeBlobStore:
    fail_delete: bool = False
    blobs: dict[str, bytes] = field(default_factory=dict)
    deleted: list[str] = field(default_factory=list)

    def put(self, path: str, data: bytes, content_type: str) -> str:
        self.blobs[path] = data
        return f"https://cdn.example.test/{path}"

    def delete(self, path: str) -> None:
        if self.fail_delete:
            raise BlobStoreError("storage unavailable")
        self.deleted.append(path)
        self.blobs.pop(path, None)


@dataclass
class FakeTextGenerator:
    text: str = "# Generated proposal"
    fail: bool = False
    prompts: list[str] = field(default_factory=list)

    def generate(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if self.fail:
            raise UpstreamUnavailableError("generator offline")
        return self.text


@pytest.fixture
def mailer():
    return FakeMailer()


@pytest.fixture
def blob_store():
    return FakeBlobStore()


@pytest.fixture
def text_generator():
    return FakeTextGenerator()
