import pytest
from sqlalchemy import select

from serverlist.models.server import Server
from serverlist.models.team import Team, TeamMember
from serverlist.models.vanity import Vanity
from serverlist.services.teams import grant
from serverlist.workflows import DeleteWorkflow, UpdateWorkflow, WorkflowStatus
from serverlist.workflows.delete import NOT_LISTED_MESSAGE
from serverlist.workflows.prompts import Outcome
from tests.support import ADMIN_ID, CHANNEL_ID, GUILD, MEMBER_ID, OUTSIDER_ID, FakePrompter, count_rows, seed_listing

NEW_INFO = {
    "short": "The friendliest gaming server",
    "long": "Daily tournaments, movie nights and a very active staff team.",
}


async def _server(sessions):
    async with sessions() as session:
        return await session.get(Server, str(GUILD.id))


@pytest.mark.asyncio
async def test_update_basic_info(sessions, make_ctx):
    await seed_listing(sessions)
    prompter = FakePrompter(Outcome.completed("basic_info"), Outcome.completed(dict(NEW_INFO)))

    result = await UpdateWorkflow(make_ctx(prompter, author_id=ADMIN_ID)).run()

    assert result.status == WorkflowStatus.SUCCESS
    assert prompter.titles == ["Server Updated"]
    server = await _server(sessions)
    assert server.short == NEW_INFO["short"]
    assert server.long == NEW_INFO["long"]


@pytest.mark.asyncio
async def test_update_basic_info_twice_is_idempotent(sessions, make_ctx):
    await seed_listing(sessions)

    for _ in range(2):
        prompter = FakePrompter(Outcome.completed("basic_info"), Outcome.completed(dict(NEW_INFO)))
        result = await UpdateWorkflow(make_ctx(prompter)).run()
        assert result.status == WorkflowStatus.SUCCESS

    server = await _server(sessions)
    assert (server.short, server.long) == (NEW_INFO["short"], NEW_INFO["long"])
    assert await count_rows(sessions, Server) == 1


@pytest.mark.asyncio
async def test_update_invite_pane(sessions, make_ctx):
    await seed_listing(sessions)
    per_user = {"channel_id": str(CHANNEL_ID), "max_uses": "2", "max_age": "600"}
    prompter = FakePrompter(
        Outcome.completed("invite"),
        Outcome.completed("per_user"),
        Outcome.completed(per_user),
    )

    result = await UpdateWorkflow(make_ctx(prompter)).run()

    assert result.status == WorkflowStatus.SUCCESS
    assert (await _server(sessions)).invite == f"per_user:{CHANNEL_ID}:2:600"


@pytest.mark.asyncio
async def test_update_requires_edit_capability(sessions, make_ctx):
    team_id = await seed_listing(sessions)
    async with sessions() as tx, tx.begin():
        await grant(tx, team_id, MEMBER_ID, ["server.*", "~server.edit"], "serverlist")

    prompter = FakePrompter(Outcome.completed("basic_info"), Outcome.completed(dict(NEW_INFO)))
    result = await UpdateWorkflow(make_ctx(prompter, author_id=MEMBER_ID)).run()

    assert result.status == WorkflowStatus.GUARD_FAILURE
    assert prompter.sent == [(
        "Update Failed",
        "You must have the ``server.edit`` permission to perform this operation!",
        None,
    )]
    assert prompter.asked == []
    assert (await _server(sessions)).short != NEW_INFO["short"]


@pytest.mark.asyncio
async def test_update_outside_team(sessions, make_ctx):
    await seed_listing(sessions)
    prompter = FakePrompter()

    result = await UpdateWorkflow(make_ctx(prompter, author_id=OUTSIDER_ID)).run()

    assert result.status == WorkflowStatus.GUARD_FAILURE
    assert result.message == "You are not in this server's team!"


@pytest.mark.asyncio
async def test_update_unlisted_server(sessions, make_ctx):
    prompter = FakePrompter()

    result = await UpdateWorkflow(make_ctx(prompter)).run()

    assert result.status == WorkflowStatus.GUARD_FAILURE
    assert "isn't listed yet" in result.message


@pytest.mark.asyncio
async def test_update_cancelled(sessions, make_ctx):
    await seed_listing(sessions)
    prompter = FakePrompter(Outcome.cancelled())

    result = await UpdateWorkflow(make_ctx(prompter)).run()

    assert result.status == WorkflowStatus.CANCELLED
    assert (await _server(sessions)).short != NEW_INFO["short"]


@pytest.mark.asyncio
async def test_delete_never_listed(sessions, make_ctx):
    prompter = FakePrompter(Outcome.completed("confirm"))

    result = await DeleteWorkflow(make_ctx(prompter)).run()

    assert result.status == WorkflowStatus.NOT_LISTED
    assert prompter.sent == [("Not Listed", NOT_LISTED_MESSAGE, None)]
    assert prompter.asked == []
    for model in (Team, TeamMember, Vanity, Server):
        assert await count_rows(sessions, model) == 0


@pytest.mark.asyncio
async def test_delete_removes_server_and_vanity(sessions, make_ctx):
    team_id = await seed_listing(sessions)
    prompter = FakePrompter(Outcome.completed("confirm"))

    result = await DeleteWorkflow(make_ctx(prompter)).run()

    assert result.status == WorkflowStatus.SUCCESS
    assert prompter.titles == ["Server Deleted"]
    assert await _server(sessions) is None

    async with sessions() as session:
        codes = list(await session.scalars(select(Vanity.code)))
        team = await session.get(Team, team_id)

    # Only the team's own vanity is left
    assert "myserver" not in codes
    assert len(codes) == 1
    assert team is not None
    assert await count_rows(sessions, TeamMember) == 2


@pytest.mark.asyncio
async def test_deleted_vanity_can_be_reused(sessions, make_ctx):
    await seed_listing(sessions)
    await DeleteWorkflow(make_ctx(FakePrompter(Outcome.completed("confirm")))).run()

    await seed_listing(sessions)

    assert (await _server(sessions)) is not None


@pytest.mark.asyncio
@pytest.mark.parametrize("outcome, status", [
    (Outcome.cancelled(), WorkflowStatus.CANCELLED),
    (None, WorkflowStatus.TIMED_OUT),
])
async def test_delete_not_confirmed(sessions, make_ctx, outcome, status):
    await seed_listing(sessions)
    prompter = FakePrompter(*([outcome] if outcome else []))

    result = await DeleteWorkflow(make_ctx(prompter)).run()

    assert result.status == status
    assert await _server(sessions) is not None
    assert await count_rows(sessions, Vanity) == 2


@pytest.mark.asyncio
async def test_delete_requires_delete_capability(sessions, make_ctx):
    team_id = await seed_listing(sessions)
    async with sessions() as tx, tx.begin():
        await grant(tx, team_id, MEMBER_ID, ["server.edit"], "serverlist")
    prompter = FakePrompter(Outcome.completed("confirm"))

    result = await DeleteWorkflow(make_ctx(prompter, author_id=MEMBER_ID)).run()

    assert result.status == WorkflowStatus.GUARD_FAILURE
    assert prompter.titles == ["Delete Failed"]
    assert await _server(sessions) is not None
