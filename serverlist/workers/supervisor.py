import asyncio
import logging
from typing import List

from serverlist.workers.membership_worker import MembershipSyncWorker
from serverlist.workers.server_sync_worker import ServerSyncWorker

logger = logging.getLogger(__name__)


class BackgroundTasks:
    """Starts the background workers once per process.

    The gateway can report ready more than once (reconnects), so ``start``
    is guarded and only the first call spawns anything.
    """

    def __init__(self, membership_worker: MembershipSyncWorker, server_sync_worker: ServerSyncWorker, enabled: bool = True):
        self.membership_worker = membership_worker
        self.server_sync_worker = server_sync_worker
        self.enabled = enabled
        self.started = False
        self.tasks: List[asyncio.Task] = []

    def start(self) -> bool:
        """Spawn the workers. Returns False when already started or disabled."""
        if self.started:
            return False
        self.started = True

        if not self.enabled:
            logger.info("Background tasks disabled for this environment")
            return False

        self.tasks = [
            asyncio.create_task(self.membership_worker.run(), name="membership_sync"),
            asyncio.create_task(self.server_sync_worker.run(), name="server_sync"),
        ]
        logger.info(f"Started {len(self.tasks)} background tasks")
        return True

    async def stop(self):
        self.membership_worker.stop()
        for task in self.tasks:
            task.cancel()
        await asyncio.gather(*self.tasks, return_exceptions=True)
        self.tasks = []
