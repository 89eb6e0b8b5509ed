"""
Team permission resolution.

Team members carry a list of capability strings such as ``server.edit``,
``server.*`` or ``global.*``. The strings are treated as overrides layered
onto an empty base, there is no positional hierarchy. A leading ``~`` turns
an override into a negation. A token without a namespace, such as
``edit``, is short for ``global.edit`` and applies to every namespace.
"""

import logging
from dataclasses import dataclass
from typing import Iterable, List, Tuple, Union

from sqlalchemy import select
from sqlalchemy.ext.asyncio import async_sessionmaker

from serverlist.errors import MissingCapability, NotInServer, NotInTeam, ServerNotListed
from serverlist.models.server import Server
from serverlist.models.team import TeamMember

logger = logging.getLogger(__name__)

WILDCARD = "*"
NEGATOR = "~"
GLOBAL = "global"


@dataclass(frozen=True)
class Capability:
    namespace: str
    action: str
    negated: bool = False

    @classmethod
    def parse(cls, token: Union[str, "Capability"]) -> "Capability":
        if isinstance(token, Capability):
            return token

        token = token.strip()
        negated = token.startswith(NEGATOR)
        if negated:
            token = token[len(NEGATOR):]

        if "." in token:
            namespace, action = token.split(".", 1)
        else:
            # No namespace means the action applies everywhere
            namespace, action = GLOBAL, token

        return cls(namespace=namespace, action=action or WILDCARD, negated=negated)

    @property
    def is_wildcard(self) -> bool:
        return self.action == WILDCARD

    def positive(self) -> "Capability":
        return Capability(self.namespace, self.action, negated=False)

    def negation(self) -> "Capability":
        return Capability(self.namespace, self.action, negated=True)

    def covers(self, other: "Capability") -> bool:
        """Whether this grant (ignoring its sign) includes ``other``."""
        action_matches = self.is_wildcard or self.action == other.action
        if self.namespace == GLOBAL:
            return action_matches
        return self.namespace == other.namespace and action_matches

    def __str__(self):
        prefix = NEGATOR if self.negated else ""
        return f"{prefix}{self.namespace}.{self.action}"


GLOBAL_ALL = Capability(GLOBAL, WILDCARD)
SERVER_ALL = Capability("server", WILDCARD)
SERVER_EDIT = Capability("server", "edit")
SERVER_DELETE = Capability("server", "delete")


def resolve_overrides(flags: Iterable[Union[str, Capability]]) -> List[Capability]:
    """Layer override tokens in order into a deduplicated capability list."""
    applied: List[Capability] = []

    for flag in flags:
        cap = Capability.parse(flag)
        opposite = cap.positive() if cap.negated else cap.negation()

        if opposite in applied:
            applied.remove(opposite)
        if cap not in applied:
            applied.append(cap)

    return applied


def has_capability(capabilities: Iterable[Capability], required: Union[str, Capability]) -> bool:
    """True when a positive entry covers ``required`` and no negation does."""
    required = Capability.parse(required)
    granted = False

    for cap in capabilities:
        if not cap.covers(required):
            continue
        if cap.negated:
            return False
        granted = True

    return granted


@dataclass(frozen=True)
class Found:
    capabilities: Tuple[Capability, ...]

    def has(self, required: Union[str, Capability]) -> bool:
        return has_capability(self.capabilities, required)


@dataclass(frozen=True)
class ServerNotFound:
    pass


@dataclass(frozen=True)
class MemberNotInTeam:
    pass


PermissionResult = Union[Found, ServerNotFound, MemberNotInTeam]


async def resolve(pool: async_sessionmaker, server_id, user_id) -> PermissionResult:
    """Resolve the capabilities ``user_id`` holds on the team owning ``server_id``."""
    async with pool() as session:
        team_id = await session.scalar(
            select(Server.team_owner).where(Server.server_id == str(server_id))
        )
        if team_id is None:
            return ServerNotFound()

        flags = await session.scalar(
            select(TeamMember.flags).where(
                TeamMember.team_id == team_id,
                TeamMember.user_id == str(user_id),
            )
        )

    if flags is None:
        return MemberNotInTeam()

    return Found(tuple(resolve_overrides(flags)))


async def check_for_permission(context, required: Union[str, Capability]) -> Found:
    """Raise a GuardFailure unless the context's author holds ``required``."""
    if context.guild_id is None:
        raise NotInServer()

    required = Capability.parse(required)
    result = await resolve(context.sessions, context.guild_id, context.author_id)

    if isinstance(result, ServerNotFound):
        raise ServerNotListed()
    if isinstance(result, MemberNotInTeam):
        raise NotInTeam()
    if not result.has(required):
        logger.info(f"User {context.author_id} lacks {required} on server {context.guild_id}")
        raise MissingCapability(str(required))

    return result
