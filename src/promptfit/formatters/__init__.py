"""Context formatting helpers."""

from .context import (
    NO_CONTEXT_MESSAGE,
    SECTION_HEADINGS,
    format_context_snippets,
    normalize_components,
    separate_context_by_type,
)

__all__ = [
    "NO_CONTEXT_MESSAGE",
    "SECTION_HEADINGS",
    "format_context_snippets",
    "normalize_components",
    "separate_context_by_type",
]
