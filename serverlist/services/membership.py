import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import async_sessionmaker

from serverlist.models.server import Server
from serverlist.models.team import TeamMember
from serverlist.services.permissions import GLOBAL_ALL, Capability

logger = logging.getLogger(__name__)


def should_revoke_on_update(is_bot: bool, is_administrator: bool) -> bool:
    """A member update only matters for humans who lost administrator."""
    return not is_bot and not is_administrator


async def revoke_implicit_access(pool: async_sessionmaker, guild_id, user_id, service: str) -> bool:
    """Drop a team membership that was granted for being a guild administrator.

    Only rows tagged with ``service`` are touched, and the owner grant is
    kept. Returns True when a row was deleted.
    """
    async with pool() as tx, tx.begin():
        team_id = await tx.scalar(select(Server.team_owner).where(Server.server_id == str(guild_id)))
        if team_id is None:
            return False

        member = await tx.get(TeamMember, (team_id, str(user_id)))
        if member is None or member.service != service:
            return False

        if any(Capability.parse(flag) == GLOBAL_ALL for flag in member.flags or []):
            logger.info(f"Keeping owner {user_id} on team {team_id}")
            return False

        await tx.delete(member)

    logger.info(f"Revoked team {team_id} access of {user_id} (guild {guild_id})")
    return True
