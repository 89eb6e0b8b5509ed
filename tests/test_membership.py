import json

import pytest
from sqlalchemy import select

from serverlist.models.team import TeamMember
from serverlist.services.membership import revoke_implicit_access, should_revoke_on_update
from serverlist.services.teams import grant
from serverlist.workers.membership_worker import QUEUE_KEY, MembershipSyncWorker
from tests.support import ADMIN_ID, GUILD, MEMBER_ID, OUTSIDER_ID, OWNER_ID, seed_listing


class FakeRedis:
    """In-process list queue with the rpush/blpop semantics the worker relies on."""

    def __init__(self):
        self.lists = {}
        self.on_empty = None

    async def rpush(self, key, value):
        self.lists.setdefault(key, []).append(value)

    async def blpop(self, key, timeout=0):
        queue = self.lists.get(key) or []
        if not queue:
            if self.on_empty:
                self.on_empty()
            return None
        return key, queue.pop(0)


async def _member_ids(sessions):
    async with sessions() as session:
        return set(await session.scalars(select(TeamMember.user_id)))


@pytest.mark.parametrize("is_bot, is_admin, expected", [
    (False, False, True),
    (False, True, False),
    (True, False, False),
    (True, True, False),
])
def test_should_revoke_on_update(is_bot, is_admin, expected):
    assert should_revoke_on_update(is_bot, is_admin) is expected


@pytest.mark.asyncio
async def test_revoke_demoted_administrator(sessions):
    await seed_listing(sessions)

    assert await revoke_implicit_access(sessions, GUILD.id, ADMIN_ID, "serverlist") is True
    assert await _member_ids(sessions) == {str(OWNER_ID)}

    # Second run is a no-op
    assert await revoke_implicit_access(sessions, GUILD.id, ADMIN_ID, "serverlist") is False


@pytest.mark.asyncio
async def test_owner_is_never_revoked(sessions):
    await seed_listing(sessions)

    assert await revoke_implicit_access(sessions, GUILD.id, OWNER_ID, "serverlist") is False
    assert str(OWNER_ID) in await _member_ids(sessions)


@pytest.mark.asyncio
async def test_rows_from_other_services_are_kept(sessions):
    team_id = await seed_listing(sessions)
    async with sessions() as tx, tx.begin():
        await grant(tx, team_id, MEMBER_ID, ["server.edit"], "website")

    assert await revoke_implicit_access(sessions, GUILD.id, MEMBER_ID, "serverlist") is False
    assert str(MEMBER_ID) in await _member_ids(sessions)


@pytest.mark.asyncio
async def test_unknown_guild_or_member(sessions):
    assert await revoke_implicit_access(sessions, GUILD.id, ADMIN_ID, "serverlist") is False

    await seed_listing(sessions)
    assert await revoke_implicit_access(sessions, GUILD.id, OUTSIDER_ID, "serverlist") is False


@pytest.mark.asyncio
async def test_worker_enqueue_and_run(sessions):
    await seed_listing(sessions)
    redis_client = FakeRedis()
    worker = MembershipSyncWorker(redis_client, sessions, "serverlist")
    redis_client.on_empty = worker.stop

    await worker.enqueue(GUILD.id, ADMIN_ID, "member_update")
    assert json.loads(redis_client.lists[QUEUE_KEY][0]) == {
        'guild_id': str(GUILD.id),
        'user_id': str(ADMIN_ID),
        'reason': 'member_update',
    }

    await worker.run()

    assert redis_client.lists[QUEUE_KEY] == []
    assert await _member_ids(sessions) == {str(OWNER_ID)}


@pytest.mark.asyncio
async def test_worker_survives_bad_event(sessions):
    worker = MembershipSyncWorker(FakeRedis(), sessions, "serverlist")

    assert await worker.process_event({'user_id': '1'}) is False
