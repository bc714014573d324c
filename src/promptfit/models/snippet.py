"""Context snippet and content-type models."""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ContentType(StrEnum):
    """Category of variable prompt content, the unit of prioritization."""

    DIFF = "diff"
    EMBEDDING = "embedding"
    LSP_REFERENCE = "lsp-reference"
    LSP_DEFINITION = "lsp-definition"


DEFAULT_CONTENT_ORDER: tuple[ContentType, ...] = (
    ContentType.DIFF,
    ContentType.EMBEDDING,
    ContentType.LSP_REFERENCE,
    ContentType.LSP_DEFINITION,
)
"""Default truncation order: earlier entries are preserved longer."""

SNIPPET_CONTENT_TYPES: tuple[ContentType, ...] = (
    ContentType.EMBEDDING,
    ContentType.LSP_REFERENCE,
    ContentType.LSP_DEFINITION,
)
"""Content types a retrieved snippet may carry, in presentation order."""


class ContextSnippet(BaseModel):
    """A self-contained, pre-formatted context excerpt with a relevance score.

    Snippets are produced by upstream retrieval and are immutable. Truncation
    never edits a snippet in place; it derives a copy whose id carries a
    ``-partial`` or ``-tiny`` suffix.
    """

    id: str
    type: ContentType
    content: str
    relevance_score: float = 0.0
    file_path: str | None = None
    start_line: int | None = Field(default=None, ge=0)
    associated_hunk_identifiers: tuple[str, ...] = ()

    model_config = ConfigDict(frozen=True)

    @field_validator("type")
    @classmethod
    def _reject_diff_type(cls, value: ContentType) -> ContentType:
        if value == ContentType.DIFF:
            msg = "context snippets cannot carry the 'diff' content type"
            raise ValueError(msg)
        return value

    def derive(self, content: str, suffix: str) -> ContextSnippet:
        """Return a copy with new content and ``-{suffix}`` appended to the id."""
        return self.model_copy(update={"content": content, "id": f"{self.id}-{suffix}"})


class ContentPrioritization(BaseModel):
    """A total order over :class:`ContentType`.

    Types earlier in ``order`` are preserved longer under token pressure.
    A user-supplied order may omit types; the missing ones are appended in
    their default relative order so that the order is always total.
    """

    order: tuple[ContentType, ...] = DEFAULT_CONTENT_ORDER

    model_config = ConfigDict(frozen=True)

    @field_validator("order")
    @classmethod
    def _complete_order(cls, order: tuple[ContentType, ...]) -> tuple[ContentType, ...]:
        if len(set(order)) != len(order):
            msg = f"content prioritization contains duplicates: {[str(t) for t in order]}"
            raise ValueError(msg)
        missing = tuple(t for t in DEFAULT_CONTENT_ORDER if t not in order)
        return order + missing

    def priority(self, content_type: ContentType) -> int:
        """Priority weight of a content type; higher is preserved longer."""
        return len(self.order) - self.order.index(content_type)
