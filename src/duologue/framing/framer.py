"""Conversation framing.

The model never sees a user/assistant exchange. It sees a transcript
between two named personas and is cued to continue as the responder.
"""

import logging
from collections.abc import Mapping, Sequence
from functools import lru_cache
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..store.models import Role, Turn

logger = logging.getLogger(__name__)

DEFAULT_INITIATOR_NAME = "friend 1"
DEFAULT_RESPONDER_NAME = "friend 2"

PREAMBLE_FILENAME = "preamble.txt"
PLACEHOLDERS = ("{initiator}", "{responder}")


@lru_cache(maxsize=8)
def load_preamble(path: str | Path | None = None) -> str:
    """Load a preamble template.

    Search order:
    1. ``path``, when given (it must exist)
    2. Current working directory: ./prompts/preamble.txt
    3. The template packaged next to this module

    Results are cached per ``path``; call ``load_preamble.cache_clear()``
    after editing a template file.

    Raises:
        FileNotFoundError: If an explicit ``path`` does not exist
    """
    if path is not None:
        source = Path(path)
        if not source.is_file():
            raise FileNotFoundError(f"Preamble file not found: {source}")
    else:
        local_path = Path.cwd() / "prompts" / PREAMBLE_FILENAME
        if local_path.is_file():
            source = local_path
        else:
            source = Path(__file__).with_name(PREAMBLE_FILENAME)

    template = source.read_text(encoding="utf-8")
    missing = [p for p in PLACEHOLDERS if p not in template]
    if template.strip() and missing:
        logger.warning("Preamble %s does not mention %s", source, ", ".join(missing))
    return template


class PersonaConfig(BaseModel):
    """Fixed framing configuration: persona names and preamble.

    Attributes:
        names: Display name for each of the two roles
        preamble: Static text prepended once to every directive
    """

    model_config = ConfigDict(frozen=True)

    names: Mapping[Role, str] = Field(description="Role to display name mapping")
    preamble: str = Field(default="", description="Text prepended once")

    @field_validator("names")
    @classmethod
    def _check_names(cls, names: Mapping[Role, str]) -> dict[Role, str]:
        if set(names) != set(Role):
            raise ValueError("names must map exactly the initiator and responder roles")
        for name in names.values():
            if not name.strip():
                raise ValueError("display names must not be blank")
            if "\n" in name:
                raise ValueError("display names must fit on one line")
        if len(set(names.values())) != len(names):
            raise ValueError("display names must be distinct")
        return dict(names)

    @field_validator("preamble")
    @classmethod
    def _terminate_preamble(cls, preamble: str) -> str:
        # Turn lines must start on a fresh line
        if preamble and not preamble.endswith("\n"):
            return preamble + "\n"
        return preamble

    @classmethod
    def from_names(
        cls,
        initiator: str = DEFAULT_INITIATOR_NAME,
        responder: str = DEFAULT_RESPONDER_NAME,
        preamble_template: str | None = None
    ) -> "PersonaConfig":
        """Build a config, filling ``{initiator}``/``{responder}`` in the template.

        Args:
            initiator: Display name of the human
            responder: Display name of the model
            preamble_template: Template text (None uses load_preamble())

        Returns:
            PersonaConfig with the rendered preamble
        """
        if preamble_template is None:
            preamble_template = load_preamble()
        preamble = (
            preamble_template
            .replace("{initiator}", initiator)
            .replace("{responder}", responder)
        )
        return cls(
            names={Role.INITIATOR: initiator, Role.RESPONDER: responder},
            preamble=preamble,
        )

    def name_for(self, role: Role) -> str:
        """Get the display name of a role."""
        return self.names[Role(role)]


class FramingDirective(BaseModel):
    """Everything the model call needs to continue the conversation.

    Attributes:
        text: Preamble plus one ``name: content`` line per turn
        cue: Responder name and colon, sent as the trailing message
        stop_markers: Every persona name and colon
    """

    model_config = ConfigDict(frozen=True)

    text: str
    cue: str
    stop_markers: tuple[str, ...]


class PromptFramer:
    """Pure transformation from conversation history to a FramingDirective.

    Hidden design decisions:
    - Line format of the replayed transcript
    - How the model is cued to speak as the responder
    - Which strings end the model's turn
    """

    def __init__(self, persona: PersonaConfig):
        self._persona = persona

    @property
    def persona(self) -> PersonaConfig:
        return self._persona

    def frame(self, history: Sequence[Turn]) -> FramingDirective:
        """Frame an ordered conversation.

        Args:
            history: Turns in conversation order (may be empty)

        Returns:
            FramingDirective for the next responder turn
        """
        lines = [
            f"{self._persona.name_for(turn.role)}: {turn.content}\n"
            for turn in history
        ]
        return FramingDirective(
            text=self._persona.preamble + "".join(lines),
            cue=f"{self._persona.name_for(Role.RESPONDER)}:",
            stop_markers=tuple(
                f"{self._persona.name_for(role)}:"
                for role in (Role.INITIATOR, Role.RESPONDER)
            ),
        )
