"""Tunable constants for token accounting and truncation.

The defaults mirror the values the engine was calibrated with. Every
engine accepts a :class:`TokenSettings` instance; construct one directly
to customise behaviour.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class TokenSettings(BaseModel):
    """Configuration shared by every budget and truncation tier.

    ``chars_per_token`` is a heuristic used only to pick a first cut point;
    the tokenizer is always consulted afterwards and remains the single
    source of truth.

    ``model_info_ttl`` is how long, in seconds, resolved model metadata is
    reused; ``None`` keeps it for the lifetime of the session.
    """

    token_overhead_per_message: int = Field(default=5, ge=0)
    formatting_overhead: int = Field(default=50, ge=0)
    safety_margin_ratio: float = Field(default=0.95, gt=0.0, le=1.0)
    default_max_input_tokens: int = Field(default=8000, gt=0)
    model_info_ttl: float | None = Field(default=300.0, gt=0.0)

    chars_per_token: float = Field(default=4.0, gt=0.0)
    min_content_tokens_for_partial: int = Field(default=10, ge=0)
    safety_buffer_for_partial: int = Field(default=5, ge=0)
    max_shrink_iterations: int = Field(default=16, ge=1)
    snippet_separator: str = "\n\n"

    min_hunk_tokens: int = Field(default=100, ge=0)
    max_summary_files: int = Field(default=10, ge=1)
    prefer_hunk_truncation: bool = False

    partial_marker: str = "\n\n[File content partially truncated to fit token limit]"
    context_marker: str = (
        "\n\n[Context truncated to fit token limit. Some information might be missing.]"
    )
    context_dropped_marker: str = (
        "\n\n[Context truncated to fit token limit. "
        "All context snippets were too large to fit.]"
    )
    diff_marker: str = (
        "\n\n[Large diff truncated to preserve structural integrity. "
        "Some hunks omitted to fit token limits.]"
    )

    context_warning_ratio: float = Field(default=0.9, gt=0.0, le=1.0)
    max_tool_response_chars: int = Field(default=8000, gt=0)
    context_full_message: str = (
        "Previous tool results removed due to context limits. "
        "Provide final analysis with available information."
    )

    model_config = ConfigDict(frozen=True)


DEFAULT_SETTINGS = TokenSettings()
