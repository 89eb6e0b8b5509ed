import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import StaticPool

from serverlist.models import init_models, make_session_factory
from serverlist.workflows.base import WorkflowContext
from tests.support import GUILD, OWNER_ID, FakeAvatars, FakeInviteResolver


@pytest_asyncio.fixture
async def engine():
    """Fresh in-memory database per test."""
    engine = create_async_engine("sqlite+aiosqlite:///:memory:", poolclass=StaticPool)
    await init_models(engine)
    try:
        yield engine
    finally:
        await engine.dispose()


@pytest.fixture
def sessions(engine):
    return make_session_factory(engine)


@pytest.fixture
def make_ctx(sessions):
    """Build a WorkflowContext around a scripted prompter."""
    def factory(prompter, guild=GUILD, author_id=OWNER_ID, avatars=None, invite_resolver=None, refresh_guild=None):
        return WorkflowContext(
            sessions=sessions,
            prompter=prompter,
            author_id=author_id,
            guild=guild,
            frontend_url="https://list.example.com",
            service_name="serverlist",
            prompt_timeout=1,
            avatars=avatars or FakeAvatars(),
            invite_resolver=invite_resolver or FakeInviteResolver(),
            refresh_guild=refresh_guild,
        )
    return factory
