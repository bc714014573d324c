"""Relevance-driven selection of context snippets under a token budget."""

from __future__ import annotations

import hashlib
import logging
from collections.abc import Sequence

from promptfit.models.components import OptimizationResult
from promptfit.models.snippet import ContentPrioritization, ContextSnippet
from promptfit.tokens.session import TokenSession
from promptfit.truncation.structural import fit_prefix

logger = logging.getLogger(__name__)


def content_hash(snippet: ContextSnippet) -> str:
    """SHA-256 of the snippet's trimmed content; ids and metadata are ignored."""
    return hashlib.sha256(snippet.content.strip().encode("utf-8")).hexdigest()


def deduplicate_snippets(snippets: Sequence[ContextSnippet]) -> list[ContextSnippet]:
    """Drop snippets whose trimmed content was already seen; first one wins."""
    seen: set[str] = set()
    unique: list[ContextSnippet] = []
    for snippet in snippets:
        digest = content_hash(snippet)
        if digest in seen:
            logger.debug("Duplicate context snippet filtered out: %s", snippet.id)
            continue
        seen.add(digest)
        unique.append(snippet)
    removed = len(snippets) - len(unique)
    if removed:
        logger.info(
            "Context deduplication removed %d of %d snippets", removed, len(snippets)
        )
    return unique


class SnippetOptimizer:
    """Greedy, priority-ordered snippet selection with graceful degradation.

    Snippets are deduplicated, ordered by content-type priority then
    relevance, and accumulated whole while they fit. The first snippet that
    does not fit may still be kept as a partial prefix; once that boundary is
    reached, no lower-priority snippet is considered. When nothing fits at
    all, a tiny prefix of the most relevant snippet is tried.

    Example::

        optimizer = SnippetOptimizer(TokenSession(tokenizer))
        result = await optimizer.optimize_context(snippets, available_tokens=1500)
    """

    __slots__ = ("_prioritization", "_session")

    def __init__(
        self,
        session: TokenSession | None = None,
        prioritization: ContentPrioritization | None = None,
    ) -> None:
        self._session = session or TokenSession()
        self._prioritization = prioritization or ContentPrioritization()

    def __repr__(self) -> str:
        order = ", ".join(self._prioritization.order)
        return f"{type(self).__name__}(order=[{order}])"

    @property
    def session(self) -> TokenSession:
        return self._session

    def get_content_prioritization(self) -> ContentPrioritization:
        return self._prioritization

    def set_content_prioritization(self, prioritization: ContentPrioritization) -> None:
        self._prioritization = prioritization

    def prioritize(self, snippets: Sequence[ContextSnippet]) -> list[ContextSnippet]:
        """Stable sort by type priority, then relevance score, both descending."""
        priority = self._prioritization.priority
        return sorted(snippets, key=lambda s: (-priority(s.type), -s.relevance_score))

    async def optimize_context(
        self, snippets: Sequence[ContextSnippet], available_tokens: int
    ) -> OptimizationResult:
        """Select the snippets that best fill ``available_tokens``.

        A non-positive budget with snippets present selects nothing and
        reports ``was_truncated=True``; an empty input is never truncated.
        """
        candidates = self.prioritize(deduplicate_snippets(snippets))
        if not candidates:
            return OptimizationResult()
        if available_tokens <= 0:
            logger.info(
                "No context budget; dropping all %d snippets", len(candidates)
            )
            return OptimizationResult(was_truncated=True, candidate_count=len(candidates))

        session = self._session
        settings = session.settings
        marker = settings.partial_marker
        marker_tokens = await session.count(marker)
        separator_tokens = await session.count(settings.snippet_separator)

        selected: list[ContextSnippet] = []
        used = 0
        was_truncated = False

        for snippet in candidates:
            tokens = await session.count(snippet.content)
            separator = separator_tokens if selected else 0
            if used + tokens + separator <= available_tokens:
                selected.append(snippet)
                used += tokens + separator
                continue

            was_truncated = True
            remaining = available_tokens - used
            if remaining > marker_tokens + settings.min_content_tokens_for_partial:
                partial = await fit_prefix(
                    session,
                    snippet.content,
                    remaining - separator,
                    marker,
                    reserve_tokens=settings.safety_buffer_for_partial,
                    strict_lines=False,
                )
                if partial:
                    selected.append(snippet.derive(partial, "partial"))
                    used += await session.count(partial) + separator
            break

        if not selected and available_tokens > (
            marker_tokens
            + settings.min_content_tokens_for_partial
            + settings.safety_buffer_for_partial
        ):
            tiny = await self._tiny_prefix(candidates[0], available_tokens, marker_tokens)
            if tiny is not None:
                selected.append(tiny)
                used = await session.count(tiny.content)

        logger.info(
            "Context optimization: %d of %d snippets selected, %d/%d tokens, truncated=%s",
            len(selected),
            len(candidates),
            used,
            available_tokens,
            was_truncated,
        )
        return OptimizationResult(
            optimized_snippets=selected,
            was_truncated=was_truncated,
            tokens_used=used,
            candidate_count=len(candidates),
        )

    async def _tiny_prefix(
        self, snippet: ContextSnippet, available_tokens: int, marker_tokens: int
    ) -> ContextSnippet | None:
        settings = self._session.settings
        partial_budget = available_tokens - marker_tokens - settings.safety_buffer_for_partial
        content_budget = max(settings.min_content_tokens_for_partial, partial_budget // 2)
        tiny = await fit_prefix(
            self._session,
            snippet.content,
            available_tokens,
            settings.partial_marker,
            reserve_tokens=available_tokens - marker_tokens - content_budget,
            strict_lines=False,
        )
        if not tiny:
            return None
        logger.debug("Kept a tiny prefix of snippet %s", snippet.id)
        return snippet.derive(tiny, "tiny")
