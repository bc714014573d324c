"""Chat message models for tool-calling conversations."""

from __future__ import annotations

from typing import Any, Literal, TypeAlias

from pydantic import BaseModel, Field

Role: TypeAlias = Literal["user", "assistant", "system", "tool"]
SuggestedAction: TypeAlias = Literal["continue", "remove_old_context", "request_final_answer"]


class ToolCall(BaseModel):
    """A tool invocation requested by the assistant."""

    id: str
    name: str
    arguments: dict[str, Any] = Field(default_factory=dict)


class ChatMessage(BaseModel):
    """A single message in a tool-calling conversation.

    ``tool_call_id`` links a ``tool`` result back to the assistant
    ``ToolCall`` that produced it.
    """

    role: Role
    content: str = ""
    tool_call_id: str | None = None
    tool_calls: list[ToolCall] = Field(default_factory=list)


class TokenValidationResult(BaseModel):
    """Token usage of a conversation against the model's window."""

    total_tokens: int = Field(ge=0)
    max_tokens: int = Field(gt=0)
    exceeds_warning_threshold: bool = False
    exceeds_max_tokens: bool = False
    suggested_action: SuggestedAction = "continue"


class ContextCleanupResult(BaseModel):
    """Outcome of evicting old tool interactions from a conversation."""

    cleaned_messages: list[ChatMessage] = Field(default_factory=list)
    tool_results_removed: int = Field(default=0, ge=0)
    assistant_messages_removed: int = Field(default=0, ge=0)
    context_full_message_added: bool = False
