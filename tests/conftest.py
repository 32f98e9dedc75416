"""
Shared pytest fixtures.

Every test gets a fresh in-memory SQLite database with one seeded tenant
(admin and inputdata users), the platform company with its superadmin, and
a second tenant used to check isolation.
"""
import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SECRET_KEY", "test-secret-key-for-testing-only")
os.environ.setdefault("LOG_BODY", "false")

from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine, select

from prodtrack import models  # noqa: F401
from prodtrack.auth import RequestContext, issue_token
from prodtrack.bootstrap import bootstrap_platform
from prodtrack.database import get_session
from prodtrack.main import app
from prodtrack.models import ProductionStage, Role
from prodtrack.schemas import ClientIn, CompanyCreate, OperatorIn, ProductIn, UserCreate
from prodtrack.services import clients, companies, operators, products


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture(autouse=True)
def _override_session(session):
    """Route every request through the test session."""
    app.dependency_overrides[get_session] = lambda: session
    yield
    app.dependency_overrides.clear()


def _make_tenant(session, name, code, prefix):
    company = companies.create_company(session, CompanyCreate(name=name, code=code))
    admin = companies.create_user(
        session, company["id"],
        UserCreate(username=f"{prefix}_admin", password="secret123", full_name=f"{name} Admin", role=Role.ADMIN),
    )
    clerk = companies.create_user(
        session, company["id"],
        UserCreate(username=f"{prefix}_input", password="secret123", full_name=f"{name} Clerk", role=Role.INPUTDATA),
    )
    return SimpleNamespace(id=company["id"], code=company["code"], admin=admin, clerk=clerk)


@pytest.fixture
def tenant(session):
    return _make_tenant(session, "Keramik Jaya", "kj", "kj")


@pytest.fixture
def other_tenant(session):
    return _make_tenant(session, "Tanah Liat", "tl", "tl")


@pytest.fixture
def superadmin(session):
    return bootstrap_platform(session)


@pytest.fixture
def ctx(tenant):
    """Admin request context for service-level tests."""
    return RequestContext(user_id=tenant.admin.id, role=tenant.admin.role, company_id=tenant.id)


@pytest.fixture
def clerk_ctx(tenant):
    return RequestContext(user_id=tenant.clerk.id, role=tenant.clerk.role, company_id=tenant.id)


def _client_for(user=None):
    headers = {"Authorization": f"Bearer {issue_token(user)}"} if user is not None else {}
    return TestClient(app, headers=headers)


@pytest.fixture
def anon_client():
    return _client_for()


@pytest.fixture
def admin_client(tenant):
    return _client_for(tenant.admin)


@pytest.fixture
def input_client(tenant):
    return _client_for(tenant.clerk)


@pytest.fixture
def super_client(superadmin):
    return _client_for(superadmin)


@pytest.fixture
def other_admin_client(other_tenant):
    return _client_for(other_tenant.admin)


@pytest.fixture
def master(session, ctx):
    """A client, two operators, two products and the seeded stages of the tenant."""
    client = clients.create_client(session, ctx, ClientIn(name="Hotel Santika", region="Jakarta"))
    budi = operators.create_operator(
        session, ctx, OperatorIn(employee_id="OP-001", full_name="Budi Santoso", skills=["throwing", "glazing"]),
    )
    sari = operators.create_operator(
        session, ctx, OperatorIn(employee_id="OP-002", full_name="Sari Dewi", skills=["trimming"]),
    )
    plate = products.create_product(session, ctx, ProductIn(code="PL-01", name="Dinner Plate", color="white"))
    bowl = products.create_product(session, ctx, ProductIn(code="BW-01", name="Soup Bowl", color="blue"))
    stages = {
        s.code: s for s in session.exec(
            select(ProductionStage).where(ProductionStage.company_id == ctx.company_id)
        ).all()
    }
    return SimpleNamespace(client=client, budi=budi, sari=sari, plate=plate, bowl=bowl, stages=stages)

