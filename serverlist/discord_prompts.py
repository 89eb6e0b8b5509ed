"""
discord.py implementation of the workflow prompts.

Discord wants every component or modal interaction answered within three
seconds. A button that leads straight into a form is answered by opening
the modal on it; every other click, and every modal submission, is
deferred as soon as it arrives. Later messages go out as followups on the
most recent answered interaction, whose token stays valid for 15 minutes.
"""

import logging
from typing import Dict, List, Optional

import discord

from serverlist.workflows.prompts import CANCEL, Choice, Form, Outcome, Prompter

logger = logging.getLogger(__name__)


class ChoiceView(discord.ui.View):
    """Buttons for a set of choices, only clickable by the invoking user."""

    def __init__(self, author_id: int, choices: List[Choice], timeout: float):
        super().__init__(timeout=timeout)
        self.author_id = author_id
        self.choice: Optional[str] = None
        self.interaction: Optional[discord.Interaction] = None

        for choice in choices:
            style = discord.ButtonStyle.danger if choice.danger else discord.ButtonStyle.primary
            button = discord.ui.Button(label=choice.label, style=style, custom_id=choice.id)
            button.callback = self._make_callback(choice)
            self.add_item(button)

    def _make_callback(self, choice: Choice):
        async def callback(interaction: discord.Interaction):
            # Form choices keep the interaction open for the modal
            if not choice.opens_form:
                await interaction.response.defer()
            self.choice = choice.id
            self.interaction = interaction
            self.stop()
        return callback

    async def interaction_check(self, interaction: discord.Interaction) -> bool:
        return interaction.user.id == self.author_id


class FormModal(discord.ui.Modal):
    def __init__(self, form: Form, timeout: float):
        super().__init__(title=form.title, timeout=timeout)
        self.inputs: Dict[str, discord.ui.TextInput] = {}
        self.values: Optional[Dict[str, str]] = None
        self.interaction: Optional[discord.Interaction] = None

        for field in form.fields:
            text_input = discord.ui.TextInput(
                label=field.label,
                custom_id=field.id,
                style=discord.TextStyle.paragraph if field.paragraph else discord.TextStyle.short,
                placeholder=field.placeholder,
                min_length=field.min_length,
                max_length=field.max_length,
                required=field.required,
            )
            self.inputs[field.id] = text_input
            self.add_item(text_input)

    async def on_submit(self, interaction: discord.Interaction):
        await interaction.response.defer(thinking=True)
        self.values = {field_id: text_input.value for field_id, text_input in self.inputs.items()}
        self.interaction = interaction
        self.stop()


class DiscordPrompter(Prompter):
    def __init__(self, interaction: discord.Interaction):
        self.author_id = interaction.user.id
        # Interaction that still owes Discord a response
        self.pending: Optional[discord.Interaction] = interaction
        # Answered interaction whose followup webhook we send messages through
        self.origin: discord.Interaction = interaction

    def _can_respond(self) -> bool:
        return self.pending is not None and not self.pending.response.is_done()

    def _answered(self, interaction: discord.Interaction):
        self.pending = None
        self.origin = interaction

    async def send(self, title: str, description: str, *, link: Optional[str] = None, ephemeral: bool = False) -> None:
        embed = discord.Embed(title=title, description=description, url=link, color=discord.Color.blurple())
        view = discord.utils.MISSING
        if link:
            view = discord.ui.View()
            view.add_item(discord.ui.Button(label="Redirect", url=link))

        if self._can_respond():
            await self.pending.response.send_message(embed=embed, view=view, ephemeral=ephemeral)
            self._answered(self.pending)
        else:
            await self.origin.followup.send(embed=embed, view=view, ephemeral=ephemeral)

    async def choose(self, title: str, description: str, choices: List[Choice], timeout: float) -> Outcome:
        embed = discord.Embed(title=title, description=description, color=discord.Color.blurple())
        view = ChoiceView(self.author_id, choices, timeout)

        if self._can_respond():
            await self.pending.response.send_message(embed=embed, view=view)
            message = await self.pending.original_response()
            self._answered(self.pending)
        else:
            message = await self.origin.followup.send(embed=embed, view=view, wait=True)

        timed_out = await view.wait()

        # Remove the buttons once one was pressed or the wait ran out
        await message.edit(view=None)

        if timed_out or view.choice is None:
            return Outcome.timed_out()

        if view.interaction.response.is_done():
            self._answered(view.interaction)
        else:
            self.pending = view.interaction

        if view.choice == CANCEL.id:
            return Outcome.cancelled()
        return Outcome.completed(view.choice)

    async def collect(self, form: Form, timeout: float) -> Outcome:
        if not self._can_respond():
            logger.error(f"No open interaction to show modal '{form.title}' on")
            return Outcome.timed_out()

        modal = FormModal(form, timeout)
        await self.pending.response.send_modal(modal)
        self.pending = None

        timed_out = await modal.wait()
        if timed_out or modal.values is None:
            return Outcome.timed_out()

        self._answered(modal.interaction)
        return Outcome.completed(modal.values)
