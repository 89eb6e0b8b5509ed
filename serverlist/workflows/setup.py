"""
/setup: list a guild in the directory.

Steps run strictly in order and stop at the first cancel, timeout or guard
failure:

    already set up?  -> redirect
    confirm          -> cancelled / timed out
    collect inputs   -> timed out
    invite selection -> cancelled / timed out
    guild stats      -> int32 check
    one transaction:
        provision team, convert avatar, owner user,
        server vanity (-> conflict), insert server
    commit

Nothing before the transaction writes, and anything raised inside it rolls
back every row it created.
"""

import logging
from typing import Dict

from serverlist.errors import GuardFailure, NotInServer, SlugTaken
from serverlist.models.server import Server
from serverlist.services import teams
from serverlist.services.guild_stats import GuildStats, to_int32
from serverlist.services.vanity import VanityTarget, reserve
from serverlist.workflows.base import WorkflowContext, WorkflowResult, WorkflowStatus, end_on_outcome, server_exists
from serverlist.workflows.invite import setup_invite
from serverlist.workflows.prompts import Field, Form

logger = logging.getLogger(__name__)

COMMAND = "setup"

SETUP_FORM = Form(
    "Initial Setup",
    (
        Field("vanity", "Vanity", min_length=1, max_length=20,
              placeholder="This must be unique, so think hard!"),
        Field("short", "Short Description", min_length=20, max_length=100,
              placeholder="Something short and snazzy to brag about!"),
        Field("long", "Long/Extended Description", min_length=30, max_length=4000, paragraph=True,
              placeholder="Both markdown and HTML are supported!"),
    ),
)

CONFIRM_DESCRIPTION = """
The following setup will now be performed:

- A new team will be created for your server. The server owner as well as all administrators will then be able to manage this server's listing. You can add more members later through `Team Settings`.
- This server will be added and will be owned by the team. You can transfer ownership of this team later if you want to.
- The server created will be set as a `draft` and will not be visible until it is published.

Notes:
- **Please now prepare a short and long description for your server.** You can change these later through `Server Settings` on the website.
"""


class SetupWorkflow:
    def __init__(self, ctx: WorkflowContext):
        self.ctx = ctx

    async def run(self) -> WorkflowResult:
        try:
            return await self._run()
        except GuardFailure as e:
            logger.info(f"setup: guard failure for {self.ctx.author_id} in guild {self.ctx.guild_id}: {e}")
            await self.ctx.prompter.send("Setup Failed", str(e), ephemeral=True)
            return WorkflowResult(WorkflowStatus.GUARD_FAILURE, str(e))

    async def _run(self) -> WorkflowResult:
        ctx = self.ctx
        if ctx.guild is None:
            raise NotInServer()

        if await server_exists(ctx.sessions, ctx.guild_id):
            await ctx.prompter.send(
                "Server Already Setup",
                "Currently, most server settings can only be changed from the website!",
                link=ctx.server_url(),
                ephemeral=True,
            )
            return WorkflowResult(WorkflowStatus.REDIRECT, ctx.server_url())

        outcome = await ctx.prompter.confirm("Confirm Setup?", CONFIRM_DESCRIPTION, ctx.prompt_timeout, opens_form=True)
        ended = await end_on_outcome(ctx, outcome, "Setup Timed Out", COMMAND)
        if ended:
            return ended

        outcome = await ctx.prompter.collect(SETUP_FORM, ctx.prompt_timeout)
        ended = await end_on_outcome(ctx, outcome, "Modal Timed Out", COMMAND)
        if ended:
            return ended
        inputs = SETUP_FORM.validate(outcome.data)

        await ctx.prompter.send("Setting up server...", "This may take a second, please wait...")

        outcome = await setup_invite(ctx)
        ended = await end_on_outcome(ctx, outcome, "Invite Setup Timed Out", COMMAND)
        if ended:
            return ended
        invite = outcome.data

        stats = ctx.current_guild()
        total_members = to_int32(stats.total_members, "total_members")
        online_members = to_int32(stats.online_members, "online_members")

        try:
            itag = await self._create_listing(stats, inputs, invite, total_members, online_members)
        except SlugTaken as e:
            logger.info(f"setup: vanity '{e.code}' taken, guild {stats.id} not set up")
            await ctx.prompter.send("Vanity Already Exists", "Please rerun `/setup` with a new vanity!", ephemeral=True)
            return WorkflowResult(WorkflowStatus.CONFLICT, str(e))

        logger.info(f"setup: guild {stats.id} listed by {ctx.author_id} with vanity {inputs['vanity']}")
        await ctx.prompter.send("All Done!", "All done :white_check_mark: ")
        return WorkflowResult(WorkflowStatus.SUCCESS, data={"vanity_ref": itag})

    async def _create_listing(
        self,
        stats: GuildStats,
        inputs: Dict[str, str],
        invite: str,
        total_members: int,
        online_members: int,
    ) -> str:
        ctx = self.ctx

        async with ctx.sessions() as tx, tx.begin():
            team_id = await teams.provision(
                tx,
                f"{stats.name}'s Team",
                stats.owner_id,
                stats.administrators,
                ctx.service_name,
            )

            await ctx.avatars.store(stats.icon_url, team_id, stats.id)

            await teams.ensure_user(tx, stats.owner_id)

            itag = await reserve(tx, inputs["vanity"], VanityTarget.server(stats.id))

            tx.add(Server(
                server_id=str(stats.id),
                name=stats.name,
                team_owner=team_id,
                vanity_ref=itag,
                short=inputs["short"],
                long=inputs["long"],
                invite=invite,
                total_members=total_members,
                online_members=online_members,
                nsfw=stats.nsfw,
                extra_links=[],
            ))
            await tx.flush()

        return itag
