import logging

from sqlalchemy import update

from serverlist.errors import GuardFailure, ServerNotListed
from serverlist.models.server import Server
from serverlist.services.permissions import SERVER_EDIT, check_for_permission
from serverlist.workflows.base import WorkflowContext, WorkflowResult, WorkflowStatus, end_on_outcome
from serverlist.workflows.invite import setup_invite
from serverlist.workflows.prompts import CANCEL, Choice, Field, Form

logger = logging.getLogger(__name__)

COMMAND = "update"

BASIC_INFO = "basic_info"
INVITE = "invite"

PANES = [
    Choice(BASIC_INFO, "Basic Info", opens_form=True),
    Choice(INVITE, "Invite"),
    CANCEL,
]

BASIC_INFO_FORM = Form(
    "Update Server Information",
    (
        Field("short", "Short Description", min_length=20, max_length=100,
              placeholder="Something short and snazzy to brag about!"),
        Field("long", "Long/Extended Description", min_length=30, max_length=4000, paragraph=True,
              placeholder="Both markdown and HTML are supported!"),
    ),
)


async def update_basic_info(ctx: WorkflowContext, short: str, long: str) -> None:
    """Replace the short and long descriptions. Single statement, no explicit transaction."""
    async with ctx.sessions() as session:
        result = await session.execute(
            update(Server).where(Server.server_id == str(ctx.guild_id)).values(short=short, long=long)
        )
        await session.commit()

    if result.rowcount == 0:
        raise ServerNotListed()


async def update_invite(ctx: WorkflowContext, invite: str) -> None:
    async with ctx.sessions() as session:
        result = await session.execute(
            update(Server).where(Server.server_id == str(ctx.guild_id)).values(invite=invite)
        )
        await session.commit()

    if result.rowcount == 0:
        raise ServerNotListed()


class UpdateWorkflow:
    def __init__(self, ctx: WorkflowContext):
        self.ctx = ctx

    async def run(self) -> WorkflowResult:
        try:
            return await self._run()
        except GuardFailure as e:
            logger.info(f"update: guard failure for {self.ctx.author_id} in guild {self.ctx.guild_id}: {e}")
            await self.ctx.prompter.send("Update Failed", str(e), ephemeral=True)
            return WorkflowResult(WorkflowStatus.GUARD_FAILURE, str(e))

    async def _run(self) -> WorkflowResult:
        ctx = self.ctx
        await check_for_permission(ctx, SERVER_EDIT)

        outcome = await ctx.prompter.choose(
            "Update Server Information",
            "What would you like to update?",
            PANES,
            ctx.prompt_timeout,
        )
        ended = await end_on_outcome(ctx, outcome, "Update Timed Out", COMMAND)
        if ended:
            return ended

        if outcome.data == BASIC_INFO:
            outcome = await ctx.prompter.collect(BASIC_INFO_FORM, ctx.prompt_timeout)
            ended = await end_on_outcome(ctx, outcome, "Modal Timed Out", COMMAND)
            if ended:
                return ended

            values = BASIC_INFO_FORM.validate(outcome.data)
            await update_basic_info(ctx, values["short"], values["long"])
            logger.info(f"update: basic info of guild {ctx.guild_id} updated by {ctx.author_id}")
        else:
            outcome = await setup_invite(ctx)
            ended = await end_on_outcome(ctx, outcome, "Invite Setup Timed Out", COMMAND)
            if ended:
                return ended

            await update_invite(ctx, outcome.data)
            logger.info(f"update: invite of guild {ctx.guild_id} set to {outcome.data} by {ctx.author_id}")

        await ctx.prompter.send("Server Updated", "Server has been successfully updated!")
        return WorkflowResult(WorkflowStatus.SUCCESS, data=outcome.data)
