"""Shared test fixtures."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import StaticPool
from sqlmodel.ext.asyncio.session import AsyncSession

from clientscope.access.passwords import hash_password
from clientscope.config.settings import get_settings
from clientscope.models.database import (
    ChangeRequest,
    ClientTask,
    Invoice,
    Lead,
    MaintenancePlan,
    Organization,
    OrganizationMember,
    Project,
    ProjectFile,
    User,
)
from clientscope.storage.database import get_engine, init_db
from clientscope.types import OrgRole, ProjectStatus, Role
from clientscope.web.app import create_app
from clientscope.web.auth.session import get_session_auth

PASSWORD = "correct-horse-battery"


def _clear_caches() -> None:
    get_settings.cache_clear()
    get_engine.cache_clear()
    get_session_auth.cache_clear()


@pytest.fixture(autouse=True)
def _test_settings(monkeypatch: pytest.MonkeyPatch):
    """Isolated settings for every test: in-memory database, fast hashing."""
    monkeypatch.setenv("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
    monkeypatch.setenv("SECRET_KEY", "test-secret-key")
    monkeypatch.setenv("BCRYPT_ROUNDS", "4")
    monkeypatch.setenv("LEAD_PROJECT_ACCESS", "false")
    monkeypatch.setenv("BROADCAST_TASK_COMPLETION", "false")
    _clear_caches()
    yield
    _clear_caches()


@pytest.fixture()
def password() -> str:
    """Password shared by every seeded user."""
    return PASSWORD


@pytest.fixture()
async def async_engine():
    """In-memory SQLite engine with all tables created."""
    engine = create_async_engine("sqlite+aiosqlite:///:memory:", poolclass=StaticPool)
    await init_db(engine)
    yield engine
    await engine.dispose()


@dataclass
class World:
    """Ids of the seeded agency: two client organizations and staff."""

    acme_id: str
    globex_id: str
    alice_id: str  # client, member of Acme
    bob_id: str  # client, member of Globex
    carol_id: str  # client without memberships; has a lead
    ceo_id: str
    cfo_id: str
    designer_id: str
    lead_id: str
    acme_project_id: str
    globex_project_id: str
    lead_project_id: str
    acme_task_id: str
    globex_task_id: str
    acme_file_id: str
    globex_file_id: str
    acme_invoice_id: str
    globex_invoice_id: str
    acme_plan_id: str
    globex_plan_id: str
    acme_change_request_id: str


@pytest.fixture()
async def world(async_engine) -> World:
    password_hash = hash_password(PASSWORD)

    def user(email: str, name: str, role: str) -> User:
        return User(email=email, name=name, role=role, password_hash=password_hash)

    acme = Organization(name="Acme")
    globex = Organization(name="Globex")
    internal = Organization(name="Agency")
    alice = user("alice@acme.com", "Alice", Role.CLIENT)
    bob = user("bob@globex.com", "Bob", Role.CLIENT)
    carol = user("carol@initech.com", "Carol", Role.CLIENT)
    ceo = user("ceo@agency.com", "Chief", Role.CEO)
    cfo = user("cfo@agency.com", "Finance", Role.CFO)
    designer = user("designer@agency.com", "Dana", Role.DESIGNER)
    lead = Lead(name="Carol", email="Carol@Initech.com", company="Initech")

    acme_project = Project(
        organization_id=acme.id,
        assignee_id=designer.id,
        name="Acme site",
        status=ProjectStatus.IN_PROGRESS,
    )
    globex_project = Project(
        organization_id=globex.id,
        assignee_id=ceo.id,
        name="Globex site",
        status=ProjectStatus.IN_PROGRESS,
    )
    lead_project = Project(
        organization_id=internal.id,
        lead_id=lead.id,
        name="Initech proposal",
        status=ProjectStatus.LEAD,
    )
    acme_task = ClientTask(project_id=acme_project.id, title="Send logo files")
    globex_task = ClientTask(project_id=globex_project.id, title="Approve copy")
    acme_file = ProjectFile(project_id=acme_project.id, name="brief.pdf", url="https://f/1")
    globex_file = ProjectFile(project_id=globex_project.id, name="plan.pdf", url="https://f/2")
    acme_invoice = Invoice(project_id=acme_project.id, number="INV-001", total_cents=150000)
    globex_invoice = Invoice(project_id=globex_project.id, number="INV-002", total_cents=90000)
    acme_plan = MaintenancePlan(project_id=acme_project.id, support_hours_included=4)
    globex_plan = MaintenancePlan(project_id=globex_project.id, support_hours_included=8)
    acme_change_request = ChangeRequest(
        project_id=acme_project.id,
        requested_by=alice.id,
        title="Footer",
        description="Update footer links",
        category="CONTENT",
    )

    world = World(
        acme_id=acme.id,
        globex_id=globex.id,
        alice_id=alice.id,
        bob_id=bob.id,
        carol_id=carol.id,
        ceo_id=ceo.id,
        cfo_id=cfo.id,
        designer_id=designer.id,
        lead_id=lead.id,
        acme_project_id=acme_project.id,
        globex_project_id=globex_project.id,
        lead_project_id=lead_project.id,
        acme_task_id=acme_task.id,
        globex_task_id=globex_task.id,
        acme_file_id=acme_file.id,
        globex_file_id=globex_file.id,
        acme_invoice_id=acme_invoice.id,
        globex_invoice_id=globex_invoice.id,
        acme_plan_id=acme_plan.id,
        globex_plan_id=globex_plan.id,
        acme_change_request_id=acme_change_request.id,
    )

    async with AsyncSession(async_engine) as session:
        session.add_all([acme, globex, internal, alice, bob, carol, ceo, cfo, designer, lead])
        await session.flush()
        session.add_all(
            [
                OrganizationMember(organization_id=acme.id, user_id=alice.id),
                OrganizationMember(
                    organization_id=globex.id, user_id=bob.id, role=OrgRole.OWNER
                ),
                acme_project,
                globex_project,
                lead_project,
            ]
        )
        await session.flush()
        session.add_all(
            [
                acme_task,
                globex_task,
                acme_file,
                globex_file,
                acme_invoice,
                globex_invoice,
                acme_plan,
                globex_plan,
                acme_change_request,
            ]
        )
        await session.commit()

    return world


@pytest.fixture()
def app(async_engine):
    """App wired to the test engine."""
    application = create_app()
    application.dependency_overrides[get_engine] = lambda: async_engine
    return application


@pytest.fixture()
async def client(app):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as http_client:
        yield http_client


@pytest.fixture()
def login(client) -> Callable[..., Awaitable[dict[str, str]]]:
    """Log in and return Bearer headers for the session."""

    async def _login(email: str, password: str = PASSWORD) -> dict[str, str]:
        resp = await client.post("/api/auth/login", json={"email": email, "password": password})
        assert resp.status_code == 200, resp.text
        client.cookies.clear()
        return {"Authorization": f"Bearer {resp.json()['token']}"}

    return _login
