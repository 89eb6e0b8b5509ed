import asyncio
import logging
from typing import Callable, Iterable

from sqlalchemy import update
from sqlalchemy.ext.asyncio import async_sessionmaker

from serverlist.errors import DataIntegrityViolation
from serverlist.models.server import Server
from serverlist.services.guild_stats import GuildStats, to_int32

logger = logging.getLogger(__name__)


class ServerSyncWorker:
    """Periodically copies live guild statistics onto listed servers."""

    def __init__(self, sessions: async_sessionmaker, guild_source: Callable[[], Iterable[GuildStats]], interval: float = 60):
        self.sessions = sessions
        self.guild_source = guild_source
        self.interval = interval

    async def sync_once(self) -> int:
        """Refresh every listed guild once. Returns the number of rows updated."""
        updated = 0

        async with self.sessions() as session:
            for stats in self.guild_source():
                try:
                    total = to_int32(stats.total_members, "total_members")
                    online = to_int32(stats.online_members, "online_members")
                except DataIntegrityViolation as e:
                    logger.error(f"Skipping sync of guild {stats.id}: {e}")
                    continue

                result = await session.execute(
                    update(Server)
                    .where(Server.server_id == str(stats.id))
                    .values(name=stats.name, total_members=total, online_members=online, nsfw=stats.nsfw)
                )
                updated += result.rowcount

            await session.commit()

        return updated

    async def run(self):
        """Main worker loop. The first sync happens one interval after start."""
        logger.info(f"Starting server sync worker ({self.interval}s interval)")

        while True:
            await asyncio.sleep(self.interval)
            try:
                updated = await self.sync_once()
                logger.info(f"TASK: server_sync updated {updated} servers")
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.error(f"TASK server_sync ERROR'd: {e}")
