"""
Point-in-time statistics about a guild, detached from the gateway objects
so that workflows and tests do not need a live client.
"""

from dataclasses import dataclass, field
from typing import FrozenSet, Tuple

import discord

from serverlist.errors import DataIntegrityViolation

DEFAULT_ICON_URL = "https://cdn.discordapp.com/embed/avatars/0.png"

INT32_MIN = -(2 ** 31)
INT32_MAX = 2 ** 31 - 1


@dataclass(frozen=True)
class GuildMember:
    id: int
    bot: bool = False
    administrator: bool = False


@dataclass(frozen=True)
class GuildStats:
    id: int
    name: str
    owner_id: int
    icon_url: str = DEFAULT_ICON_URL
    total_members: int = 0
    online_members: int = 0
    nsfw: bool = False
    members: Tuple[GuildMember, ...] = ()
    channel_ids: FrozenSet[int] = field(default_factory=frozenset)

    @property
    def administrators(self) -> Tuple[GuildMember, ...]:
        return tuple(m for m in self.members if m.administrator)

    @classmethod
    def from_guild(cls, guild) -> "GuildStats":
        """Build a snapshot from a discord.py ``Guild``."""
        members = tuple(
            GuildMember(id=m.id, bot=m.bot, administrator=m.guild_permissions.administrator)
            for m in guild.members
        )
        online = sum(1 for m in guild.members if m.status != discord.Status.offline)

        return cls(
            id=guild.id,
            name=guild.name,
            owner_id=guild.owner_id,
            icon_url=str(guild.icon.url) if guild.icon else DEFAULT_ICON_URL,
            total_members=guild.member_count or len(guild.members),
            online_members=online,
            nsfw=guild.nsfw_level in (discord.NSFWLevel.explicit, discord.NSFWLevel.age_restricted),
            members=members,
            channel_ids=frozenset(c.id for c in guild.channels),
        )


def to_int32(value: int, name: str) -> int:
    """Return ``value`` unchanged if it fits a signed 32-bit column."""
    if not INT32_MIN <= value <= INT32_MAX:
        raise DataIntegrityViolation(f"{name}={value} does not fit a 32-bit signed integer")
    return value
