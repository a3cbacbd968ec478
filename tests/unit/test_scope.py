import pytest
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from clientscope.access.identity import Identity
from clientscope.access.scope import build_project_scope, get_access_context, scoped_projects
from clientscope.models.database import OrganizationMember, Project
from clientscope.types import Role


async def _visible_ids(engine, identity: Identity, **kwargs) -> set[str]:
    async with AsyncSession(engine) as session:
        result = await session.execute(scoped_projects(identity, **kwargs))
        return {project.id for project in result.scalars().all()}


@pytest.mark.unit
class TestProjectScope:
    @pytest.mark.asyncio
    async def test_member_sees_only_own_organization(self, async_engine, world) -> None:
        alice = Identity(user_id=world.alice_id, email="alice@acme.com", role=Role.CLIENT)
        assert await _visible_ids(async_engine, alice) == {world.acme_project_id}

    @pytest.mark.asyncio
    async def test_membership_matched_by_email_alone(self, async_engine, world) -> None:
        alice = Identity(user_id=None, email="ALICE@acme.com")
        assert await _visible_ids(async_engine, alice) == {world.acme_project_id}

    @pytest.mark.asyncio
    async def test_id_and_email_are_unioned(self, async_engine, world) -> None:
        # Session id from another auth provider, email still matches Bob's row
        mixed = Identity(user_id=world.alice_id, email="bob@globex.com")
        assert await _visible_ids(async_engine, mixed) == {
            world.acme_project_id,
            world.globex_project_id,
        }

    @pytest.mark.asyncio
    async def test_empty_identity_sees_nothing(self, async_engine, world) -> None:
        assert await _visible_ids(async_engine, Identity(user_id=None, email=None)) == set()

    @pytest.mark.asyncio
    async def test_user_without_memberships_sees_nothing(self, async_engine, world) -> None:
        carol = Identity(user_id=world.carol_id, email="carol@initech.com")
        assert await _visible_ids(async_engine, carol) == set()

    @pytest.mark.asyncio
    async def test_elevated_role_sees_everything(self, async_engine, world) -> None:
        ceo = Identity(user_id=world.ceo_id, email="ceo@agency.com", role=Role.CEO)
        assert await _visible_ids(async_engine, ceo) == {
            world.acme_project_id,
            world.globex_project_id,
            world.lead_project_id,
        }

    @pytest.mark.asyncio
    async def test_staff_role_does_not_bypass(self, async_engine, world) -> None:
        designer = Identity(user_id=world.designer_id, email="designer@agency.com", role="DESIGNER")
        assert await _visible_ids(async_engine, designer) == set()

    @pytest.mark.asyncio
    async def test_lead_projects_only_when_enabled(self, async_engine, world) -> None:
        carol = Identity(user_id=world.carol_id, email="carol@initech.com")
        assert await _visible_ids(async_engine, carol, include_lead_projects=True) == {
            world.lead_project_id
        }
        assert await _visible_ids(async_engine, carol, include_lead_projects=False) == set()

    @pytest.mark.asyncio
    async def test_lead_access_follows_settings(
        self, async_engine, world, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        from clientscope.config.settings import get_settings

        monkeypatch.setenv("LEAD_PROJECT_ACCESS", "true")
        get_settings.cache_clear()
        carol = Identity(user_id=world.carol_id, email="carol@initech.com")
        assert await _visible_ids(async_engine, carol) == {world.lead_project_id}

    @pytest.mark.asyncio
    async def test_predicate_composes_with_other_filters(self, async_engine, world) -> None:
        bob = Identity(user_id=world.bob_id, email="bob@globex.com")
        async with AsyncSession(async_engine) as session:
            stmt = select(Project).where(
                Project.id == world.acme_project_id, build_project_scope(bob)
            )
            result = await session.execute(stmt)
            assert result.scalars().first() is None


@pytest.mark.unit
class TestAccessContext:
    @pytest.mark.asyncio
    async def test_member_context(self, async_engine, world) -> None:
        alice = Identity(user_id=world.alice_id, email="alice@acme.com")
        async with AsyncSession(async_engine) as session:
            context = await get_access_context(session, alice)
        assert context.organization_ids == (world.acme_id,)
        assert context.lead_project_ids == ()
        assert not context.is_empty

    @pytest.mark.asyncio
    async def test_empty_context(self, async_engine, world) -> None:
        carol = Identity(user_id=world.carol_id, email="carol@initech.com")
        async with AsyncSession(async_engine) as session:
            context = await get_access_context(session, carol)
        assert context.is_empty

    @pytest.mark.asyncio
    async def test_lead_project_ids(self, async_engine, world) -> None:
        carol = Identity(user_id=world.carol_id, email="carol@initech.com")
        async with AsyncSession(async_engine) as session:
            context = await get_access_context(session, carol, include_lead_projects=True)
        assert context.lead_project_ids == (world.lead_project_id,)
        assert context.organization_ids == ()

    @pytest.mark.asyncio
    async def test_bypass_context(self, async_engine, world) -> None:
        cfo = Identity(user_id=world.cfo_id, email="cfo@agency.com", role="CFO")
        async with AsyncSession(async_engine) as session:
            context = await get_access_context(session, cfo)
        assert context.bypass
        assert not context.is_empty

    @pytest.mark.asyncio
    async def test_membership_changes_apply_immediately(self, async_engine, world) -> None:
        carol = Identity(user_id=world.carol_id, email="carol@initech.com")
        member = OrganizationMember(organization_id=world.globex_id, user_id=world.carol_id)
        member_id = member.id
        async with AsyncSession(async_engine) as session:
            session.add(member)
            await session.commit()
        assert await _visible_ids(async_engine, carol) == {world.globex_project_id}

        async with AsyncSession(async_engine) as session:
            await session.delete(await session.get(OrganizationMember, member_id))
            await session.commit()
        assert await _visible_ids(async_engine, carol) == set()
