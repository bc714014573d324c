"""Per-call token bundles and the results computed from them."""

from __future__ import annotations

from typing import NamedTuple, Self, assert_never

from pydantic import BaseModel, ConfigDict, Field

from .snippet import ContentType, ContextSnippet


class TokenComponents(BaseModel):
    """Everything that will consume tokens in one model request.

    Context may be supplied either as raw ``context_snippets`` or as the
    three pre-split strings; when snippets are present they take precedence
    and are split by type before any measurement.
    """

    system_prompt: str = ""
    diff_text: str = ""
    diff_structure_tokens: int | None = Field(default=None, ge=0)
    context_snippets: tuple[ContextSnippet, ...] | None = None
    embedding_context: str = ""
    lsp_reference_context: str = ""
    lsp_definition_context: str = ""
    user_messages: tuple[str, ...] = ()
    assistant_messages: tuple[str, ...] = ()
    response_prefill: str = ""

    model_config = ConfigDict(frozen=True)

    def content_for(self, content_type: ContentType) -> str:
        """Return the truncatable text held for a content type."""
        match content_type:
            case ContentType.DIFF:
                return self.diff_text
            case ContentType.EMBEDDING:
                return self.embedding_context
            case ContentType.LSP_REFERENCE:
                return self.lsp_reference_context
            case ContentType.LSP_DEFINITION:
                return self.lsp_definition_context
            case _:
                assert_never(content_type)

    def with_content(self, updates: dict[ContentType, str]) -> Self:
        """Return a copy with the given content types replaced."""
        fields: dict[str, str] = {}
        for content_type, text in updates.items():
            match content_type:
                case ContentType.DIFF:
                    fields["diff_text"] = text
                case ContentType.EMBEDDING:
                    fields["embedding_context"] = text
                case ContentType.LSP_REFERENCE:
                    fields["lsp_reference_context"] = text
                case ContentType.LSP_DEFINITION:
                    fields["lsp_definition_context"] = text
                case _:
                    assert_never(content_type)
        return self.model_copy(update=fields)

    @property
    def message_count(self) -> int:
        """Number of message-equivalent units billed with per-message overhead."""
        return (
            (1 if self.system_prompt else 0)
            + len(self.user_messages)
            + len(self.assistant_messages)
            + (1 if self.response_prefill else 0)
        )

    @property
    def combined_context(self) -> str:
        """Per-type context strings joined into one block, empties skipped."""
        parts = [
            text.strip()
            for text in (
                self.embedding_context,
                self.lsp_reference_context,
                self.lsp_definition_context,
            )
            if text and text.strip()
        ]
        return "\n\n".join(parts)


class TruncatedTokenComponents(TokenComponents):
    """Token components after waterfall truncation."""

    was_truncated: bool = False


class TokenAllocation(BaseModel):
    """Snapshot of how a request's tokens are spent.

    ``total_required_tokens`` is always the literal sum of the component
    fields, and ``context_allocation_tokens`` is never negative.
    """

    system_prompt_tokens: int = Field(default=0, ge=0)
    diff_text_tokens: int = Field(default=0, ge=0)
    context_tokens: int = Field(default=0, ge=0)
    user_messages_tokens: int = Field(default=0, ge=0)
    assistant_messages_tokens: int = Field(default=0, ge=0)
    response_prefill_tokens: int = Field(default=0, ge=0)
    message_overhead_tokens: int = Field(default=0, ge=0)
    other_tokens: int = Field(default=0, ge=0)
    total_available_tokens: int = Field(default=0, ge=0)
    context_tokens_by_type: dict[ContentType, int] = Field(default_factory=dict)

    model_config = ConfigDict(frozen=True)

    @property
    def total_required_tokens(self) -> int:
        return (
            self.system_prompt_tokens
            + self.diff_text_tokens
            + self.context_tokens
            + self.user_messages_tokens
            + self.assistant_messages_tokens
            + self.response_prefill_tokens
            + self.message_overhead_tokens
            + self.other_tokens
        )

    @property
    def context_allocation_tokens(self) -> int:
        """Tokens left for context once everything else is paid for."""
        everything_else = self.total_required_tokens - self.context_tokens
        return max(0, self.total_available_tokens - everything_else)

    @property
    def fits_within_limit(self) -> bool:
        return self.total_required_tokens <= self.total_available_tokens


class OptimizationResult(BaseModel):
    """Snippets selected for the context budget, in priority order."""

    optimized_snippets: list[ContextSnippet] = Field(default_factory=list)
    was_truncated: bool = False
    tokens_used: int = Field(default=0, ge=0)
    candidate_count: int = Field(default=0, ge=0)


class TruncationResult(NamedTuple):
    """Outcome of shrinking a single block of text."""

    content: str
    was_truncated: bool
