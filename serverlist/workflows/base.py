import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import async_sessionmaker

from serverlist.models.server import Server
from serverlist.services.guild_stats import GuildStats
from serverlist.workflows.prompts import Outcome, OutcomeKind, Prompter

logger = logging.getLogger(__name__)

DEFAULT_PROMPT_TIMEOUT = 360  # seconds


class WorkflowStatus(str, Enum):
    SUCCESS = "success"
    REDIRECT = "redirect"
    CANCELLED = "cancelled"
    TIMED_OUT = "timed_out"
    GUARD_FAILURE = "guard_failure"
    CONFLICT = "conflict"
    NOT_LISTED = "not_listed"


@dataclass(frozen=True)
class WorkflowResult:
    status: WorkflowStatus
    message: Optional[str] = None
    data: Any = None


@dataclass
class WorkflowContext:
    """Everything one command invocation needs.

    ``sessions`` is the shared async session factory; each workflow opens its
    own session and transaction from it.
    """
    sessions: async_sessionmaker
    prompter: Prompter
    author_id: int
    guild: Optional[GuildStats] = None
    frontend_url: str = ""
    service_name: str = "serverlist"
    prompt_timeout: float = DEFAULT_PROMPT_TIMEOUT
    avatars: Any = None
    invite_resolver: Any = None
    # Rebuilds the guild snapshot from live gateway state
    refresh_guild: Optional[Callable[[], GuildStats]] = None

    @property
    def guild_id(self) -> Optional[int]:
        return self.guild.id if self.guild is not None else None

    def server_url(self) -> str:
        return f"{self.frontend_url}/servers/{self.guild_id}"

    def current_guild(self) -> Optional[GuildStats]:
        """Refresh and return the guild snapshot taken when the command started."""
        if self.refresh_guild is not None and self.guild is not None:
            self.guild = self.refresh_guild()
        return self.guild


async def server_exists(sessions: async_sessionmaker, server_id) -> bool:
    async with sessions() as session:
        found = await session.scalar(select(Server.server_id).where(Server.server_id == str(server_id)))
    return found is not None


async def end_on_outcome(ctx: WorkflowContext, outcome: Outcome, title: str, command: str) -> Optional[WorkflowResult]:
    """Turn a non-completed outcome into the workflow's final result.

    Timeouts are not errors: the user is told to rerun the command.
    Returns None when the outcome completed and the workflow should go on.
    """
    if outcome.kind == OutcomeKind.TIMED_OUT:
        logger.info(f"{command}: {title.lower()} for guild {ctx.guild_id}")
        await ctx.prompter.send(title, f"Please rerun `/{command}`!", ephemeral=True)
        return WorkflowResult(WorkflowStatus.TIMED_OUT, title)

    if outcome.kind == OutcomeKind.CANCELLED:
        logger.info(f"{command}: cancelled by {ctx.author_id} in guild {ctx.guild_id}")
        await ctx.prompter.send("Cancelled", f"`/{command}` was cancelled.", ephemeral=True)
        return WorkflowResult(WorkflowStatus.CANCELLED)

    return None
