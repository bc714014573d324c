"""Markdown rendering of context snippets.

Snippet contents are already formatted markdown produced upstream; these
helpers only group them under section headings and attach truncation
notices.
"""

from __future__ import annotations

from collections.abc import Iterable

from promptfit.models.components import TokenComponents
from promptfit.models.settings import DEFAULT_SETTINGS, TokenSettings
from promptfit.models.snippet import SNIPPET_CONTENT_TYPES, ContentType, ContextSnippet

SECTION_HEADINGS: dict[ContentType, str] = {
    ContentType.EMBEDDING: "## Semantically Similar Code (Embeddings)",
    ContentType.LSP_REFERENCE: "## References Found (LSP)",
    ContentType.LSP_DEFINITION: "## Definitions Found (LSP)",
}

NO_CONTEXT_MESSAGE = "No relevant context snippets were selected or found."


def _render_section(content_type: ContentType, snippets: Iterable[ContextSnippet]) -> str:
    contents = [s.content for s in snippets if s.type == content_type]
    if not contents:
        return ""
    return "\n\n".join([SECTION_HEADINGS[content_type], *contents])


def separate_context_by_type(snippets: Iterable[ContextSnippet]) -> dict[ContentType, str]:
    """Render snippets into one markdown section per snippet content type.

    Types without snippets map to the empty string. Within a section,
    snippets keep their input order.
    """
    snippet_list = list(snippets)
    return {ct: _render_section(ct, snippet_list) for ct in SNIPPET_CONTENT_TYPES}


def format_context_snippets(
    snippets: Iterable[ContextSnippet],
    was_truncated: bool = False,
    settings: TokenSettings = DEFAULT_SETTINGS,
) -> str:
    """Format snippets into a single markdown context block.

    Sections appear as embeddings, references, then definitions. When
    ``was_truncated`` is set a notice is appended; it distinguishes
    "partially truncated" from "everything was omitted".
    """
    snippet_list = list(snippets)
    sections = separate_context_by_type(snippet_list)
    result = "\n\n".join(text for text in sections.values() if text).strip()

    if was_truncated and not snippet_list:
        return settings.context_dropped_marker.lstrip()
    if was_truncated:
        return result + settings.context_marker
    if not result:
        return NO_CONTEXT_MESSAGE
    return result


def normalize_components(components: TokenComponents) -> TokenComponents:
    """Replace raw ``context_snippets`` with the three per-type strings.

    Components without snippets are returned unchanged.
    """
    if not components.context_snippets:
        return components
    separated = separate_context_by_type(components.context_snippets)
    return components.with_content(separated).model_copy(update={"context_snippets": None})
