import pytest
from sqlalchemy import select

from serverlist.models.team import Team, TeamMember
from serverlist.models.user import User
from serverlist.models.vanity import Vanity
from serverlist.services.guild_stats import GuildMember
from serverlist.services.teams import ensure_user, grant, provision
from tests.support import ADMIN_ID, BOT_ID, GUILD, MEMBER_ID, OWNER_ID, count_rows


async def _members(sessions, team_id):
    async with sessions() as session:
        rows = await session.scalars(select(TeamMember).where(TeamMember.team_id == team_id))
        return {row.user_id: row.flags for row in rows}


@pytest.mark.asyncio
async def test_provision_grants_owner_and_administrators(sessions):
    async with sessions() as tx, tx.begin():
        team_id = await provision(tx, "Gamers's Team", OWNER_ID, GUILD.administrators, "serverlist")

    members = await _members(sessions, team_id)

    assert members == {
        str(OWNER_ID): ["global.*"],
        str(ADMIN_ID): ["server.*"],
    }
    assert str(BOT_ID) not in members
    assert str(MEMBER_ID) not in members


@pytest.mark.asyncio
async def test_provision_creates_team_vanity(sessions):
    async with sessions() as tx, tx.begin():
        team_id = await provision(tx, "Gamers's Team", OWNER_ID, [], "serverlist")

    async with sessions() as session:
        team = await session.get(Team, team_id)
        vanity = await session.get(Vanity, team.vanity_ref)

    assert team.name == "Gamers's Team"
    assert team.service == "serverlist"
    assert vanity.target_type == "team"
    assert vanity.target_id == team_id
    assert len(vanity.code) == 256


@pytest.mark.asyncio
async def test_owner_listed_as_administrator_gets_single_row(sessions):
    administrators = [GuildMember(OWNER_ID, administrator=True)]

    async with sessions() as tx, tx.begin():
        team_id = await provision(tx, "Team", OWNER_ID, administrators, "serverlist")

    assert await _members(sessions, team_id) == {str(OWNER_ID): ["global.*"]}


@pytest.mark.asyncio
async def test_provision_creates_missing_users(sessions):
    async with sessions() as tx, tx.begin():
        await provision(tx, "Team", OWNER_ID, GUILD.administrators, "serverlist")

    async with sessions() as session:
        user_ids = set(await session.scalars(select(User.user_id)))

    assert user_ids == {str(OWNER_ID), str(ADMIN_ID)}


@pytest.mark.asyncio
async def test_ensure_user_is_idempotent(sessions):
    async with sessions() as tx, tx.begin():
        assert await ensure_user(tx, OWNER_ID) is True
        assert await ensure_user(tx, OWNER_ID) is False

    assert await count_rows(sessions, User) == 1


@pytest.mark.asyncio
async def test_grant_merges_flags(sessions):
    async with sessions() as tx, tx.begin():
        team_id = await provision(tx, "Team", OWNER_ID, [], "serverlist")
        await grant(tx, team_id, MEMBER_ID, ["server.edit"], "serverlist")
        await grant(tx, team_id, MEMBER_ID, ["server.edit", "server.delete"], "serverlist")

    members = await _members(sessions, team_id)
    assert members[str(MEMBER_ID)] == ["server.edit", "server.delete"]
