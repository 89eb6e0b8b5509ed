import asyncio
import json
import logging
from typing import Any, Dict

from redis.asyncio import Redis
from sqlalchemy.ext.asyncio import async_sessionmaker

from serverlist.services.membership import revoke_implicit_access

logger = logging.getLogger(__name__)

QUEUE_KEY = "sync:membership"


class MembershipSyncWorker:
    """Consumes membership change events and revokes implicit team access."""

    def __init__(self, redis_client: Redis, sessions: async_sessionmaker, service: str):
        self.redis_client = redis_client
        self.sessions = sessions
        self.service = service
        self._running = False

    async def enqueue(self, guild_id, user_id, reason: str):
        """Queue a revocation check for ``user_id`` in ``guild_id``."""
        payload = {'guild_id': str(guild_id), 'user_id': str(user_id), 'reason': reason}
        await self.redis_client.rpush(QUEUE_KEY, json.dumps(payload))
        logger.info(f"Queued membership sync for {user_id} in {guild_id} ({reason})")

    async def process_event(self, payload: Dict[str, Any]) -> bool:
        """Process a single membership event."""
        try:
            return await revoke_implicit_access(
                self.sessions, payload['guild_id'], payload['user_id'], self.service
            )
        except Exception as e:
            logger.error(f"Failed to process membership event {payload}: {e}")
            return False

    def stop(self):
        self._running = False

    async def run(self):
        """Main worker loop."""
        logger.info("Starting membership sync worker...")
        self._running = True

        while self._running:
            try:
                result = await self.redis_client.blpop(QUEUE_KEY, timeout=1)

                if result:
                    _, payload_json = result
                    await self.process_event(json.loads(payload_json))

            except asyncio.CancelledError:
                logger.info("Stopping membership sync worker...")
                raise
            except Exception as e:
                logger.error(f"Error in membership sync worker: {e}")
                await asyncio.sleep(1)

        logger.info("Membership sync worker stopped")
