"""
Request Models

Vendor-agnostic representation of a chat completion request.

ChatCompletionRequest is what the surrounding chat feature hands in;
NormalizedRequest is the immutable per-call value the orchestrator and the
adapters work with.
"""

from enum import Enum

from pydantic import BaseModel, Field


class MessageRole(str, Enum):
    """Conversation turn roles understood by every adapter."""

    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


class ChatMessage(BaseModel):
    """A single conversation turn."""

    model_config = {"frozen": True}

    role: MessageRole
    content: str


class ChatCompletionRequest(BaseModel):
    """
    Caller-facing chat completion request.

    model, max_tokens and temperature are optional: when omitted, the
    provider instance's defaults are used.
    """

    messages: list[ChatMessage] = Field(..., min_length=1)
    model: str | None = Field(default=None, min_length=1)
    max_tokens: int | None = Field(default=None, gt=0)
    temperature: float | None = Field(default=None, ge=0.0, le=2.0)


class NormalizedRequest(BaseModel):
    """
    Immutable, vendor-agnostic request for one call.

    Constructed by the facade, handed to each candidate adapter with that
    candidate's defaults applied, and discarded afterwards.
    """

    model_config = {"frozen": True}

    messages: tuple[ChatMessage, ...] = Field(..., min_length=1)
    model: str | None = None
    max_tokens: int | None = Field(default=None, gt=0)
    temperature: float | None = Field(default=None, ge=0.0, le=2.0)
    stream: bool = False
    user_id: str
    project_id: str | None = None

    @classmethod
    def from_request(
        cls,
        request: ChatCompletionRequest,
        user_id: str,
        project_id: str | None = None,
        stream: bool = False,
    ) -> "NormalizedRequest":
        """Build the per-call request from a caller request and caller identity."""
        return cls(
            messages=tuple(request.messages),
            model=request.model,
            max_tokens=request.max_tokens,
            temperature=request.temperature,
            stream=stream,
            user_id=user_id,
            project_id=project_id,
        )

    def with_overrides(
        self,
        model: str | None = None,
        max_tokens: int | None = None,
        temperature: float | None = None,
    ) -> "NormalizedRequest":
        """Return a copy with the given non-None target parameters replaced."""
        updates = {
            key: value
            for key, value in (
                ("model", model),
                ("max_tokens", max_tokens),
                ("temperature", temperature),
            )
            if value is not None
        }
        return self.model_copy(update=updates)

    def with_defaults(
        self,
        model: str | None = None,
        max_tokens: int | None = None,
        temperature: float | None = None,
    ) -> "NormalizedRequest":
        """Return a copy where only the unset target parameters take the given defaults."""
        return self.model_copy(
            update={
                "model": self.model if self.model is not None else model,
                "max_tokens": self.max_tokens if self.max_tokens is not None else max_tokens,
                "temperature": self.temperature if self.temperature is not None else temperature,
            }
        )

    @property
    def system_prompt(self) -> str | None:
        """Joined content of every system turn, or None when there is none."""
        parts = [m.content for m in self.messages if m.role == MessageRole.SYSTEM]
        return "\n\n".join(parts) if parts else None

    @property
    def conversation(self) -> list[ChatMessage]:
        """Non-system turns, in order."""
        return [m for m in self.messages if m.role != MessageRole.SYSTEM]
