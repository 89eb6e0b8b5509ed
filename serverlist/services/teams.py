import logging
import uuid
from typing import Iterable, List, Union

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from serverlist.models.team import Team, TeamMember
from serverlist.models.user import User
from serverlist.services.guild_stats import GuildMember
from serverlist.services.permissions import GLOBAL_ALL, SERVER_ALL, Capability
from serverlist.services.vanity import VanityTarget, generate_code, reserve

logger = logging.getLogger(__name__)


async def ensure_user(tx: AsyncSession, user_id) -> bool:
    """Insert a default User row if absent. Returns True when one was created."""
    user_id = str(user_id)
    existing = await tx.scalar(select(User.user_id).where(User.user_id == user_id))
    if existing is not None:
        return False

    tx.add(User(user_id=user_id, developer=False, certified=False, staff=False, extra_links=[]))
    await tx.flush()
    logger.info(f"Created user row for {user_id}")
    return True


async def grant(tx: AsyncSession, team_id: str, user_id, flags: Iterable[Union[str, Capability]], service: str) -> TeamMember:
    """Add ``flags`` to a team membership, creating it if needed.

    A user belongs to a team at most once, so an existing row has the new
    flags merged in instead of getting a second row.
    """
    user_id = str(user_id)
    flags = [str(f) for f in flags]

    member = await tx.get(TeamMember, (team_id, user_id))
    if member is None:
        member = TeamMember(team_id=team_id, user_id=user_id, flags=list(dict.fromkeys(flags)), service=service)
        tx.add(member)
    else:
        # Reassign so the JSON column is marked dirty
        member.flags = list(dict.fromkeys(list(member.flags or []) + flags))

    await tx.flush()
    return member


async def provision(
    tx: AsyncSession,
    name: str,
    owner_user_id,
    administrators: Iterable[GuildMember],
    service: str,
) -> str:
    """Create a team owned by ``owner_user_id`` and return its id.

    Runs entirely inside the caller's transaction. Not idempotent: every call
    makes a new team, so callers must check that the server is not already
    set up first.
    """
    team_id = str(uuid.uuid4())

    vanity_ref = await reserve(tx, generate_code(), VanityTarget.team(team_id))

    tx.add(Team(id=team_id, name=name, vanity_ref=vanity_ref, service=service))
    await tx.flush()

    await ensure_user(tx, owner_user_id)
    await grant(tx, team_id, owner_user_id, [GLOBAL_ALL], service)

    added: List[str] = []
    for member in administrators:
        if member.bot or not member.administrator or str(member.id) == str(owner_user_id):
            continue

        await ensure_user(tx, member.id)
        await grant(tx, team_id, member.id, [SERVER_ALL], service)
        added.append(str(member.id))

    logger.info(f"Provisioned team {team_id} ({name}) with owner {owner_user_id} and {len(added)} administrators")
    return team_id
