"""
Interactive prompt primitives.

Every wait for the user is declared with its own timeout and returns one of
three outcomes instead of an optional value: ``Completed(data)``,
``Cancelled`` or ``TimedOut``. The chat-platform specific implementation lives
in ``serverlist.discord_prompts``.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence

from serverlist.errors import InvalidInput


class OutcomeKind(str, Enum):
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    TIMED_OUT = "timed_out"


@dataclass(frozen=True)
class Outcome:
    kind: OutcomeKind
    data: Any = None

    @classmethod
    def completed(cls, data: Any = None) -> "Outcome":
        return cls(OutcomeKind.COMPLETED, data)

    @classmethod
    def cancelled(cls) -> "Outcome":
        return cls(OutcomeKind.CANCELLED)

    @classmethod
    def timed_out(cls) -> "Outcome":
        return cls(OutcomeKind.TIMED_OUT)

    @property
    def is_completed(self) -> bool:
        return self.kind == OutcomeKind.COMPLETED


@dataclass(frozen=True)
class Choice:
    id: str
    label: str
    danger: bool = False
    # The caller shows a form right after this choice, on the same interaction
    opens_form: bool = False


@dataclass(frozen=True)
class Field:
    id: str
    label: str
    min_length: int = 0
    max_length: int = 4000
    paragraph: bool = False
    placeholder: Optional[str] = None
    required: bool = True


@dataclass(frozen=True)
class Form:
    title: str
    fields: Sequence[Field] = field(default_factory=tuple)

    def validate(self, values: Dict[str, str]) -> Dict[str, str]:
        """Check submitted values against the field bounds."""
        cleaned = {}
        for f in self.fields:
            value = (values.get(f.id) or "").strip()
            if not value and not f.required:
                cleaned[f.id] = value
                continue
            if not f.min_length <= len(value) <= f.max_length:
                raise InvalidInput(
                    f"{f.label} must be between {f.min_length} and {f.max_length} characters long"
                )
            cleaned[f.id] = value
        return cleaned


CANCEL = Choice("cancel", "Cancel", danger=True)


class Prompter:
    """Response surface and user-wait primitives for one interaction."""

    async def send(self, title: str, description: str, *, link: Optional[str] = None, ephemeral: bool = False) -> None:
        raise NotImplementedError

    async def choose(self, title: str, description: str, choices: List[Choice], timeout: float) -> Outcome:
        """Wait for one of ``choices``. Picking the ``cancel`` choice yields Cancelled."""
        raise NotImplementedError

    async def collect(self, form: Form, timeout: float) -> Outcome:
        """Show ``form``; Completed carries a dict of field id to value."""
        raise NotImplementedError

    async def confirm(
        self,
        title: str,
        description: str,
        timeout: float,
        confirm_label: str = "Next",
        opens_form: bool = False,
    ) -> Outcome:
        choices = [Choice("confirm", confirm_label, opens_form=opens_form), CANCEL]
        return await self.choose(title, description, choices, timeout)
