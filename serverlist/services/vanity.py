import logging
import secrets
import string
from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from serverlist.errors import SlugTaken
from serverlist.models.vanity import Vanity

logger = logging.getLogger(__name__)

TEAM_CODE_LENGTH = 256
_CODE_ALPHABET = string.ascii_letters + string.digits


@dataclass(frozen=True)
class VanityTarget:
    """What a vanity code points at: a team or a server."""
    target_type: str
    target_id: str

    TEAM = "team"
    SERVER = "server"

    @classmethod
    def team(cls, team_id) -> "VanityTarget":
        return cls(cls.TEAM, str(team_id))

    @classmethod
    def server(cls, server_id) -> "VanityTarget":
        return cls(cls.SERVER, str(server_id))


def generate_code(length: int = TEAM_CODE_LENGTH) -> str:
    """Random code for vanities nobody picks by hand (team vanities)."""
    return "".join(secrets.choice(_CODE_ALPHABET) for _ in range(length))


async def is_taken(tx: AsyncSession, code: str) -> bool:
    existing = await tx.scalar(select(Vanity.itag).where(Vanity.code == code))
    return existing is not None


async def reserve(tx: AsyncSession, candidate_slug: str, target: VanityTarget) -> str:
    """Reserve ``candidate_slug`` for ``target`` inside the caller's transaction.

    Codes share one namespace whatever the target type. Raises SlugTaken when
    the code exists, including when a concurrent transaction won the race and
    the unique constraint fires at flush time. The caller must abandon the
    transaction in that case.
    """
    if await is_taken(tx, candidate_slug):
        raise SlugTaken(candidate_slug)

    vanity = Vanity(code=candidate_slug, target_id=target.target_id, target_type=target.target_type)
    tx.add(vanity)

    try:
        await tx.flush()
    except IntegrityError as e:
        logger.info(f"Vanity '{candidate_slug}' lost a reservation race: {e.orig}")
        raise SlugTaken(candidate_slug) from e

    logger.debug(f"Reserved vanity {vanity.itag} for {target.target_type} {target.target_id}")
    return vanity.itag
