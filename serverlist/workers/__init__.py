from .membership_worker import MembershipSyncWorker
from .server_sync_worker import ServerSyncWorker
from .supervisor import BackgroundTasks

__all__ = ['MembershipSyncWorker', 'ServerSyncWorker', 'BackgroundTasks']
