import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import async_sessionmaker

from serverlist.models.api_session import ApiSession

logger = logging.getLogger(__name__)


async def clear_expired_sessions(sessions: async_sessionmaker) -> int:
    """Delete every API session past its expiry."""
    async with sessions() as session, session.begin():
        result = await session.execute(
            delete(ApiSession).where(ApiSession.expiry < datetime.now(timezone.utc))
        )

    if result.rowcount:
        logger.info(f"Cleared {result.rowcount} expired API sessions")
    return result.rowcount


async def session_from_token(sessions: async_sessionmaker, token: str) -> Optional[ApiSession]:
    """Look up the session owning ``token``, sweeping expired ones first."""
    await clear_expired_sessions(sessions)

    async with sessions() as session:
        return await session.scalar(select(ApiSession).where(ApiSession.token == token))
