from pydantic import BaseModel, ConfigDict, Field


class ChatMessage(BaseModel):
    """Represents a chat message sent to the model backend."""

    model_config = ConfigDict(frozen=True)

    role: str = Field(description="Role of the message sender: 'user' or 'assistant'")
    content: str = Field(description="Content of the message")


class ContentBlock(BaseModel):
    """One block of a model response.

    Only ``text`` blocks carry a reply; other block types (tool use,
    thinking, ...) are kept so callers can see what came back.
    """

    model_config = ConfigDict(frozen=True)

    type: str = Field(description="Block type as reported by the backend")
    text: str | None = Field(default=None, description="Text of a 'text' block")


class LLMResponse(BaseModel):
    """Response from an LLM provider."""

    model_config = ConfigDict(frozen=True)

    content: list[ContentBlock] = Field(
        default_factory=list,
        description="Content blocks in backend order"
    )
    model: str = Field(description="Model that generated the response")
    stop_reason: str | None = Field(default=None, description="Why generation ended")
    usage: dict[str, int] | None = Field(
        default=None,
        description="Token usage information"
    )

    def first_text(self) -> str | None:
        """Get the text of the first text block, or None if there is none."""
        for block in self.content:
            if block.type == "text" and block.text is not None:
                return block.text
        return None
