import logging

from sqlalchemy import delete, select

from serverlist.errors import GuardFailure, ServerNotListed
from serverlist.models.server import Server
from serverlist.models.vanity import Vanity
from serverlist.services.permissions import SERVER_DELETE, check_for_permission
from serverlist.workflows.base import WorkflowContext, WorkflowResult, WorkflowStatus, end_on_outcome

logger = logging.getLogger(__name__)

COMMAND = "delete"

NOT_LISTED_MESSAGE = "This server isn't listed. Run `/setup`, if you wish to list it."


async def delete_server(ctx: WorkflowContext) -> bool:
    """Remove the server and its vanity in one transaction.

    The team and its members stay behind so ownership can be reused.
    Returns False when there was no server to delete.
    """
    server_id = str(ctx.guild_id)

    async with ctx.sessions() as tx, tx.begin():
        row = (await tx.execute(
            select(Server.server_id, Server.vanity_ref).where(Server.server_id == server_id)
        )).first()
        if row is None:
            return False

        # Server first: it holds the foreign key to the vanity row
        await tx.execute(delete(Server).where(Server.server_id == server_id))
        if row.vanity_ref is not None:
            await tx.execute(delete(Vanity).where(Vanity.itag == row.vanity_ref))

    return True


class DeleteWorkflow:
    def __init__(self, ctx: WorkflowContext):
        self.ctx = ctx

    async def _not_listed(self) -> WorkflowResult:
        await self.ctx.prompter.send("Not Listed", NOT_LISTED_MESSAGE, ephemeral=True)
        return WorkflowResult(WorkflowStatus.NOT_LISTED, NOT_LISTED_MESSAGE)

    async def run(self) -> WorkflowResult:
        try:
            return await self._run()
        except ServerNotListed:
            return await self._not_listed()
        except GuardFailure as e:
            logger.info(f"delete: guard failure for {self.ctx.author_id} in guild {self.ctx.guild_id}: {e}")
            await self.ctx.prompter.send("Delete Failed", str(e), ephemeral=True)
            return WorkflowResult(WorkflowStatus.GUARD_FAILURE, str(e))

    async def _run(self) -> WorkflowResult:
        ctx = self.ctx
        await check_for_permission(ctx, SERVER_DELETE)

        outcome = await ctx.prompter.confirm(
            "Confirm Server Deletion?",
            "Delete your server from the list! This action cannot be reversed.",
            ctx.prompt_timeout,
            confirm_label="Confirm",
        )
        ended = await end_on_outcome(ctx, outcome, "Delete Timed Out", COMMAND)
        if ended:
            return ended

        if not await delete_server(ctx):
            return await self._not_listed()

        logger.info(f"delete: guild {ctx.guild_id} removed by {ctx.author_id}")
        await ctx.prompter.send("Server Deleted", "Server has been successfully deleted from the list.")
        return WorkflowResult(WorkflowStatus.SUCCESS)
