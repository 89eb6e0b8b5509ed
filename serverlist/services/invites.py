"""
Server invites: the stored descriptor format, checking user supplied invite
URLs, and minting invites for directory visitors.

Descriptor strings are colon delimited:

    none
    invite_url:<url>
    per_user:<channel_id>:<max_uses>:<max_age_seconds>
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional

import requests
from sqlalchemy import select
from sqlalchemy.ext.asyncio import async_sessionmaker

from serverlist.errors import (
    CreateInviteError,
    InvalidInviteDescriptor,
    InviteResolutionError,
    ServerHasInvalidInvite,
    ServerHasNoInvite,
    ServerNeedsLoginForInvite,
    ServerNotFound,
    ServerStateNotPublic,
    ServerTypeNotApprovedOrCertified,
    UserIsBlacklisted,
)
from serverlist.models.server import Server

logger = logging.getLogger(__name__)

NONE = "none"
INVITE_URL = "invite_url"
PER_USER = "per_user"

DEFAULT_MAX_USES = 1
DEFAULT_MAX_AGE = 300  # seconds

INVITE_URL_PREFIXES = ("https://discord.com/invite/", "https://discord.gg")
RESOLVE_TIMEOUT = 10


@dataclass(frozen=True)
class InviteDescriptor:
    kind: str
    url: Optional[str] = None
    channel_id: Optional[int] = None
    max_uses: int = DEFAULT_MAX_USES
    max_age: int = DEFAULT_MAX_AGE

    @classmethod
    def none(cls) -> "InviteDescriptor":
        return cls(NONE)

    @classmethod
    def invite_url(cls, url: str) -> "InviteDescriptor":
        return cls(INVITE_URL, url=url)

    @classmethod
    def per_user(cls, channel_id: int, max_uses: int = DEFAULT_MAX_USES, max_age: int = DEFAULT_MAX_AGE) -> "InviteDescriptor":
        return cls(PER_USER, channel_id=int(channel_id), max_uses=max_uses, max_age=max_age)

    @classmethod
    def parse(cls, raw: str) -> "InviteDescriptor":
        if raw == NONE:
            return cls.none()

        parts = raw.split(":")
        if len(parts) < 2:
            raise InvalidInviteDescriptor(f"Invalid invite descriptor: {raw!r}")

        kind = parts[0]
        if kind == INVITE_URL:
            # URLs contain colons themselves
            return cls.invite_url(":".join(parts[1:]))

        if kind == PER_USER:
            try:
                channel_id = int(parts[1])
                max_uses = int(parts[2]) if len(parts) >= 3 else DEFAULT_MAX_USES
                max_age = int(parts[3]) if len(parts) >= 4 else DEFAULT_MAX_AGE
            except ValueError as e:
                raise InvalidInviteDescriptor(f"Invalid per-user invite descriptor: {raw!r}") from e
            return cls.per_user(channel_id, max_uses, max_age)

        raise InvalidInviteDescriptor(f"Unknown invite type {kind!r}")

    def __str__(self):
        if self.kind == INVITE_URL:
            return f"{INVITE_URL}:{self.url}"
        if self.kind == PER_USER:
            return f"{PER_USER}:{self.channel_id}:{self.max_uses}:{self.max_age}"
        return NONE


FetchInviteExpiry = Callable[[str], Awaitable[Optional[object]]]


class InviteResolver:
    """Checks that an invite URL lands on a permanent platform invite."""

    def __init__(self, fetch_invite_expiry: FetchInviteExpiry, timeout: int = RESOLVE_TIMEOUT):
        """``fetch_invite_expiry(code)`` returns the invite's expiry, or None for permanent invites."""
        self.fetch_invite_expiry = fetch_invite_expiry
        self.timeout = timeout

    def _final_url(self, url: str) -> str:
        response = requests.get(url, timeout=self.timeout, allow_redirects=True)
        return response.url

    async def resolve(self, url: str) -> str:
        """Return the invite code behind ``url`` or raise InviteResolutionError."""
        try:
            final_url = await asyncio.to_thread(self._final_url, url)
        except requests.RequestException as e:
            raise InviteResolutionError(f"Could not reach invite URL: {e}") from e

        logger.info(f"Invite URL {url} resolved to {final_url}")

        if not final_url.startswith(INVITE_URL_PREFIXES):
            raise InviteResolutionError("Invalid invite URL")

        code = final_url.rstrip("/").split("/")[-1].split("?")[0]
        if not code:
            raise InviteResolutionError("Invalid invite URL: No code could be parsed")

        try:
            expires_at = await self.fetch_invite_expiry(code)
        except Exception as e:
            raise InviteResolutionError(f"Failed to fetch invite: {e}") from e

        if expires_at is not None:
            raise InviteResolutionError("Invite must be permanent")

        return code


class InviteAPI:
    """What invite creation needs from the chat platform."""

    async def create_channel_invite(self, channel_id: int, max_uses: int, max_age: int, reason: str) -> str:
        raise NotImplementedError


async def create_invite_for_user(
    pool: async_sessionmaker,
    invite_api: InviteAPI,
    guild_id,
    user_id=None,
    skip_checks: bool = False,
) -> str:
    """Return an invite URL for ``user_id`` (None for anonymous visitors)."""
    async with pool() as session:
        server = await session.scalar(select(Server).where(Server.server_id == str(guild_id)))

    if server is None:
        raise ServerNotFound()

    if not skip_checks:
        if server.login_required_for_invite:
            if user_id is None:
                raise ServerNeedsLoginForInvite()
            if str(user_id) in (server.blacklisted_users or []):
                raise UserIsBlacklisted()

        if server.type not in ("approved", "certified"):
            raise ServerTypeNotApprovedOrCertified()

        if server.state != "public":
            raise ServerStateNotPublic()

    if server.invite == NONE:
        raise ServerHasNoInvite()

    try:
        descriptor = InviteDescriptor.parse(server.invite)
    except InvalidInviteDescriptor as e:
        logger.error(f"Server {guild_id} has a broken invite descriptor: {e}")
        raise ServerHasInvalidInvite() from e

    if descriptor.kind == INVITE_URL:
        return descriptor.url

    reason = f"Invite created for user {user_id}" if user_id is not None else "Invite created for anonymous user"
    try:
        return await invite_api.create_channel_invite(
            descriptor.channel_id, descriptor.max_uses, descriptor.max_age, reason
        )
    except CreateInviteError:
        raise
    except Exception as e:
        logger.error(f"Failed to create invite for server {guild_id}: {e}")
        raise CreateInviteError(f"Failed to create invite: {e}") from e
