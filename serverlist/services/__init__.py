from .permissions import Capability, resolve, check_for_permission
from .vanity import VanityTarget, reserve
from .teams import provision
from .invites import InviteDescriptor, InviteResolver, create_invite_for_user
from .guild_stats import GuildStats, GuildMember
from .avatars import AvatarStore

__all__ = [
    'Capability', 'resolve', 'check_for_permission',
    'VanityTarget', 'reserve', 'provision',
    'InviteDescriptor', 'InviteResolver', 'create_invite_for_user',
    'GuildStats', 'GuildMember', 'AvatarStore'
]
