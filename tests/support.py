"""
Scripted stand-ins for the chat platform, the avatar pipeline and invite
resolution, plus small database helpers.
"""

from sqlalchemy import func, select

from serverlist.errors import InviteResolutionError
from serverlist.models.server import Server
from serverlist.services.guild_stats import GuildMember, GuildStats
from serverlist.services.teams import provision
from serverlist.services.vanity import VanityTarget, reserve
from serverlist.workflows.prompts import Outcome, Prompter

OWNER_ID = 111111111111111111
ADMIN_ID = 222222222222222222
BOT_ID = 333333333333333333
MEMBER_ID = 444444444444444444
OUTSIDER_ID = 555555555555555555
CHANNEL_ID = 123456789012345678

GUILD = GuildStats(
    id=900000000000000001,
    name="Gamers",
    owner_id=OWNER_ID,
    icon_url="https://cdn.example.com/icons/gamers.png",
    total_members=50,
    online_members=12,
    nsfw=False,
    members=(
        GuildMember(OWNER_ID, administrator=True),
        GuildMember(ADMIN_ID, administrator=True),
        GuildMember(BOT_ID, bot=True, administrator=True),
        GuildMember(MEMBER_ID),
    ),
    channel_ids=frozenset({CHANNEL_ID}),
)

SETUP_INPUTS = {
    'vanity': 'myserver',
    'short': 'A great community for gamers',
    'long': 'We play all sorts of games every single evening, come join us!',
}


class FakePrompter(Prompter):
    """Answers prompts from a script; an exhausted script behaves like a timeout."""

    def __init__(self, *responses: Outcome):
        self.responses = list(responses)
        self.sent = []
        self.asked = []

    async def send(self, title, description, *, link=None, ephemeral=False):
        self.sent.append((title, description, link))

    async def choose(self, title, description, choices, timeout):
        self.asked.append(title)
        return self._next()

    async def collect(self, form, timeout):
        self.asked.append(form.title)
        return self._next()

    def _next(self) -> Outcome:
        if not self.responses:
            return Outcome.timed_out()
        return self.responses.pop(0)

    @property
    def titles(self):
        return [title for title, _, _ in self.sent]


class FakeAvatars:
    def __init__(self, error: Exception = None):
        self.error = error
        self.stored = []

    async def store(self, icon_url, team_id, server_id):
        if self.error is not None:
            raise self.error
        self.stored.append((icon_url, team_id, str(server_id)))


class FakeInviteResolver:
    def __init__(self, valid: bool = True):
        self.valid = valid
        self.resolved = []

    async def resolve(self, url):
        self.resolved.append(url)
        if not self.valid:
            raise InviteResolutionError("Invite must be permanent")
        return url.rsplit("/", 1)[-1]


async def count_rows(sessions, model) -> int:
    async with sessions() as session:
        return await session.scalar(select(func.count()).select_from(model))


def setup_script(inputs=None, invite_choice="none", *extra):
    """Prompt answers for a complete /setup run."""
    return [
        Outcome.completed("confirm"),
        Outcome.completed(dict(inputs or SETUP_INPUTS)),
        Outcome.completed(invite_choice),
        *extra,
    ]


async def seed_listing(sessions, guild=GUILD, vanity="myserver", invite="none", **server_fields):
    """Provision a team and list ``guild`` directly, bypassing the prompts."""
    async with sessions() as tx, tx.begin():
        team_id = await provision(tx, f"{guild.name}'s Team", guild.owner_id, guild.administrators, "serverlist")
        itag = await reserve(tx, vanity, VanityTarget.server(guild.id))
        tx.add(Server(
            server_id=str(guild.id),
            name=guild.name,
            team_owner=team_id,
            vanity_ref=itag,
            short="A great community for gamers",
            long="We play all sorts of games every single evening, come join us!",
            invite=invite,
            total_members=guild.total_members,
            online_members=guild.online_members,
            **server_fields,
        ))
    return team_id
