"""
Interactive invite selection, shared by /setup and the invite pane of /update.
"""

import logging

from serverlist.errors import InvalidInput, InviteResolutionError
from serverlist.services.invites import INVITE_URL, NONE, PER_USER, InviteDescriptor
from serverlist.workflows.base import WorkflowContext
from serverlist.workflows.prompts import CANCEL, Choice, Field, Form, Outcome

logger = logging.getLogger(__name__)

MAX_INVITE_USES = 100
MAX_INVITE_AGE = 604800  # 7 days, the platform maximum

INVITE_CHOICES = [
    Choice(INVITE_URL, "Invite URL", opens_form=True),
    Choice(PER_USER, "Per-User Invite", opens_form=True),
    Choice(NONE, "No Invites"),
    CANCEL,
]

INVITE_SETUP_DESCRIPTION = """
Okay! Now, let's setup the invite for this server! To get started, choose which type of invite you would like

- **Invite URL** - Use a (permanent) invite link of your choice
- **Per-User Invite** - An invite will be created for this server for each user
- **None** - This server will not be invitable. Useful, if you wish to use a whitelist form and manually send out invites
"""

INVITE_URL_FORM = Form(
    "Invite URL Selection",
    (
        Field("invite_url", "Enter Invite URL", min_length=20, max_length=100,
              placeholder="Please enter the Invite URL you wish to use!"),
    ),
)

PER_USER_FORM = Form(
    "Per-User Invite Selection",
    (
        Field("channel_id", "Enter Channel ID", min_length=17, max_length=20,
              placeholder="Please enter the Channel ID you wish to use!"),
        Field("max_uses", "Max Uses", min_length=1, max_length=3,
              placeholder="How many times should a per-user invite be usable for. Use 1 if unsure"),
        Field("max_age", "Max Age", min_length=1, max_length=6,
              placeholder="How long (in seconds) should the invite be valid for. Use 300 if unsure"),
    ),
)


def _parse_int(value: str, label: str, low: int, high: int) -> int:
    try:
        number = int(value)
    except ValueError:
        raise InvalidInput(f"{label} must be a number")
    if not low <= number <= high:
        raise InvalidInput(f"{label} must be between {low} and {high}")
    return number


async def _invite_url(ctx: WorkflowContext) -> Outcome:
    outcome = await ctx.prompter.collect(INVITE_URL_FORM, ctx.prompt_timeout)
    if not outcome.is_completed:
        return outcome

    url = INVITE_URL_FORM.validate(outcome.data)["invite_url"]
    await ctx.prompter.send("Resolving invite", f"Please wait while we try to resolve this invite: {url}")

    try:
        await ctx.invite_resolver.resolve(url)
    except InviteResolutionError as e:
        logger.info(f"Invite {url} for guild {ctx.guild_id} rejected: {e}")
        raise InvalidInput(f"This invite could not be resolved: {e}")

    await ctx.prompter.send("Resolved invite successfully!", f"You have inputted: {url}")
    return Outcome.completed(str(InviteDescriptor.invite_url(url)))


async def _per_user(ctx: WorkflowContext) -> Outcome:
    outcome = await ctx.prompter.collect(PER_USER_FORM, ctx.prompt_timeout)
    if not outcome.is_completed:
        return outcome

    values = PER_USER_FORM.validate(outcome.data)
    try:
        channel_id = int(values["channel_id"])
    except ValueError:
        raise InvalidInput("Channel ID must be a number")

    if channel_id not in ctx.guild.channel_ids:
        raise InvalidInput("Channel must be in this server")

    max_uses = _parse_int(values["max_uses"], "Max Uses", 0, MAX_INVITE_USES)
    max_age = _parse_int(values["max_age"], "Max Age", 0, MAX_INVITE_AGE)

    return Outcome.completed(str(InviteDescriptor.per_user(channel_id, max_uses, max_age)))


async def setup_invite(ctx: WorkflowContext) -> Outcome:
    """Ask the user how the server should be invited to.

    Completed carries the descriptor string to store. Invalid input raises
    InvalidInput.
    """
    outcome = await ctx.prompter.choose("Invite Setup", INVITE_SETUP_DESCRIPTION, INVITE_CHOICES, ctx.prompt_timeout)
    if not outcome.is_completed:
        return outcome

    if outcome.data == INVITE_URL:
        return await _invite_url(ctx)
    if outcome.data == PER_USER:
        return await _per_user(ctx)
    if outcome.data == NONE:
        return Outcome.completed(NONE)

    raise InvalidInput("Invalid choice")
