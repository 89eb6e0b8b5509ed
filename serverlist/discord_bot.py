import discord
from discord import app_commands
import logging
from redis.asyncio import Redis
from serverlist.discord_prompts import DiscordPrompter
from serverlist.models.database import create_engine_from_url, make_session_factory
from serverlist.services.avatars import AvatarStore
from serverlist.services.guild_stats import GuildStats
from serverlist.services.invites import InviteAPI, InviteResolver
from serverlist.services.membership import should_revoke_on_update
from serverlist.workers.membership_worker import MembershipSyncWorker
from serverlist.workers.server_sync_worker import ServerSyncWorker
from serverlist.workers.supervisor import BackgroundTasks
from serverlist.workflows.base import WorkflowContext
from serverlist.workflows.delete import DeleteWorkflow
from serverlist.workflows.setup import SetupWorkflow
from serverlist.workflows.update import UpdateWorkflow
from config.config import get_config

logger = logging.getLogger(__name__)

class DiscordInviteAPI(InviteAPI):
    """Creates channel invites through the bot's connection."""

    def __init__(self, client: discord.Client):
        self.client = client

    async def create_channel_invite(self, channel_id: int, max_uses: int, max_age: int, reason: str) -> str:
        channel = self.client.get_channel(channel_id) or await self.client.fetch_channel(channel_id)
        invite = await channel.create_invite(max_uses=max_uses, max_age=max_age, unique=True, reason=reason)
        return invite.url

class ServerListBot(discord.Client):
    def __init__(self, config=None):
        intents = discord.Intents.default()
        intents.guilds = True
        intents.members = True
        intents.presences = True

        super().__init__(intents=intents)
        self.tree = app_commands.CommandTree(self)
        self.config = config or get_config()

        # Initialize components
        self.engine = create_engine_from_url(self.config.DATABASE_URL, pool_size=self.config.DATABASE_POOL_SIZE)
        self.sessions = make_session_factory(self.engine)
        self.redis_client = Redis.from_url(self.config.REDIS_URL)
        self.avatars = AvatarStore(self.config.CDN_PATH)
        self.invite_resolver = InviteResolver(self._fetch_invite_expiry)
        self.invite_api = DiscordInviteAPI(self)

        self.membership_worker = MembershipSyncWorker(self.redis_client, self.sessions, self.config.SERVICE_NAME)
        self.server_sync_worker = ServerSyncWorker(
            self.sessions, self._guild_stats, self.config.SERVER_SYNC_INTERVAL_SECONDS
        )
        self.background = BackgroundTasks(
            self.membership_worker,
            self.server_sync_worker,
            enabled=self.config.background_tasks_enabled(),
        )

        # Register commands
        self._register_commands()

    async def _fetch_invite_expiry(self, code: str):
        invite = await self.fetch_invite(code, with_expiration=True)
        return invite.expires_at

    def _guild_stats(self):
        return [GuildStats.from_guild(guild) for guild in self.guilds]

    def make_context(self, interaction: discord.Interaction) -> WorkflowContext:
        """Build the workflow context for one command invocation."""
        guild = GuildStats.from_guild(interaction.guild) if interaction.guild else None
        refresh = (lambda: GuildStats.from_guild(interaction.guild)) if interaction.guild else None
        return WorkflowContext(
            sessions=self.sessions,
            prompter=DiscordPrompter(interaction),
            author_id=interaction.user.id,
            guild=guild,
            frontend_url=self.config.FRONTEND_URL,
            service_name=self.config.SERVICE_NAME,
            prompt_timeout=self.config.PROMPT_TIMEOUT_SECONDS,
            avatars=self.avatars,
            invite_resolver=self.invite_resolver,
            refresh_guild=refresh,
        )

    async def _run_workflow(self, interaction: discord.Interaction, workflow_cls):
        """Run a workflow, turning unexpected failures into a generic reply."""
        name = interaction.command.name if interaction.command else workflow_cls.__name__
        logger.info(f"Executing command {name} for user {interaction.user.name} ({interaction.user.id})...")

        ctx = self.make_context(interaction)
        try:
            result = await workflow_cls(ctx).run()
            logger.info(f"Done executing command {name} for user {interaction.user.id}: {result.status.value}")
            return result
        except Exception as e:
            logger.error(f"Error in command `{name}`: {e!r}", exc_info=True)
            try:
                await ctx.prompter.send(
                    "Whoa There!",
                    "Something went wrong while processing your request. Please try again later.",
                    ephemeral=True,
                )
            except Exception as reply_error:
                logger.error(f"on_error returned error: {reply_error}")

    def _register_commands(self):
        """Register slash commands."""

        @self.tree.command(name="setup", description="Sets up this server on the list")
        @app_commands.guild_only()
        @app_commands.default_permissions(administrator=True)
        async def setup(interaction: discord.Interaction):
            await self._run_workflow(interaction, SetupWorkflow)

        @self.tree.command(name="update", description="Update your server information on the list")
        @app_commands.guild_only()
        async def update(interaction: discord.Interaction):
            await self._run_workflow(interaction, UpdateWorkflow)

        @self.tree.command(name="delete", description="Delete your server from the list")
        @app_commands.guild_only()
        async def delete(interaction: discord.Interaction):
            await self._run_workflow(interaction, DeleteWorkflow)

    async def setup_hook(self):
        """Sync commands when bot starts."""
        await self.tree.sync()
        logger.info("Discord bot commands synced")

    async def on_ready(self):
        """Bot ready event."""
        logger.info(f'Discord bot logged in as {self.user}')
        logger.info(f'Bot is in {len(self.guilds)} guilds')
        self.background.start()

    async def on_member_update(self, before: discord.Member, after: discord.Member):
        """Members who lose administrator lose the team access it gave them."""
        if should_revoke_on_update(after.bot, after.guild_permissions.administrator):
            await self.membership_worker.enqueue(after.guild.id, after.id, "member_update")

    async def on_raw_member_remove(self, payload: discord.RawMemberRemoveEvent):
        await self.membership_worker.enqueue(payload.guild_id, payload.user.id, "member_remove")

    async def close(self):
        """Stop background work and release connections."""
        await self.background.stop()
        await super().close()
        await self.redis_client.aclose()
        await self.engine.dispose()

def run_discord_bot(bot: ServerListBot = None):
    """Run the Discord bot."""
    bot = bot or ServerListBot()
    token = bot.config.DISCORD_TOKEN

    if not token:
        logger.error("DISCORD_TOKEN environment variable not set")
        return

    try:
        bot.run(token, log_handler=None)
    except Exception as e:
        logger.error(f"Failed to run Discord bot: {e}")

if __name__ == "__main__":
    run_discord_bot()
