"""Priority-ordered ("waterfall") truncation of variable prompt content.

The waterfall is the last line of defence once snippet selection is done:
fixed content (system prompt, messages, prefill) is paid for first, then
each content type is kept whole, cut to fit, or cleared, strictly in
:class:`ContentPrioritization` order.
"""

from __future__ import annotations

import logging

from promptfit.formatters.context import normalize_components
from promptfit.models.components import (
    TokenComponents,
    TruncatedTokenComponents,
    TruncationResult,
)
from promptfit.models.snippet import ContentPrioritization, ContentType
from promptfit.tokens.session import TokenSession

from .diff import emergency_truncate_diff
from .structural import fit_prefix

logger = logging.getLogger(__name__)


def _finish(components: TokenComponents, was_truncated: bool) -> TruncatedTokenComponents:
    return TruncatedTokenComponents.model_validate(
        {**dict(components), "was_truncated": was_truncated}
    )


class WaterfallTruncator:
    """Shrinks truncatable content until the whole request fits a target.

    Example::

        truncator = WaterfallTruncator(TokenSession(tokenizer))
        result = await truncator.perform_proportional_truncation(components, 4000)
        if result.was_truncated:
            ...
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

    async def perform_proportional_truncation(
        self, components: TokenComponents, target_tokens: int
    ) -> TruncatedTokenComponents:
        """Fit ``components`` into ``target_tokens``.

        Input that already fits comes back unchanged with
        ``was_truncated=False``, so applying this twice is a no-op. Raw
        context snippets are split into the three per-type strings first.
        """
        session = self._session
        order = self._prioritization.order
        normalized = normalize_components(components)

        fixed = await session.fixed_tokens(normalized)
        available = target_tokens - fixed
        if available <= 0:
            logger.warning(
                "Fixed content needs %d tokens but the target is %d; "
                "clearing all truncatable content",
                fixed,
                target_tokens,
            )
            cleared = {ct: "" for ct in order if normalized.content_for(ct)}
            return _finish(self._apply(normalized, cleared), True)

        sizes = {ct: await self._content_tokens(normalized, ct) for ct in order}
        if sum(sizes.values()) <= available:
            logger.debug(
                "Content fits: %d of %d available tokens", sum(sizes.values()), available
            )
            return _finish(normalized, False)

        remaining = available
        updates: dict[ContentType, str] = {}
        for content_type in order:
            text = normalized.content_for(content_type)
            size = sizes[content_type]
            if remaining <= 0:
                if text:
                    updates[content_type] = ""
                continue
            if size <= remaining:
                remaining -= size
                continue
            if content_type is ContentType.DIFF:
                result = await self._truncate_diff(text, remaining)
            else:
                result = await self._truncate_to(text, remaining)
            logger.debug(
                "Truncated %s from %d to fit %d tokens", content_type, size, remaining
            )
            updates[content_type] = result.content
            remaining = 0

        logger.info(
            "Waterfall truncation changed %d content type(s) to fit %d tokens",
            len(updates),
            target_tokens,
        )
        return _finish(self._apply(normalized, updates), True)

    async def truncate_content(self, text: str, tokens_to_remove: int) -> TruncationResult:
        """Remove at least ``tokens_to_remove`` tokens from the end of ``text``.

        The cut never splits a line and re-closes an open code fence; the
        partial-truncation marker is appended. If nothing fits the result is
        empty.
        """
        if tokens_to_remove <= 0 or not text:
            return TruncationResult(text, False)
        current = await self._session.count(text)
        return await self._truncate_to(text, current - tokens_to_remove)

    async def emergency_truncate_diff(
        self, diff_text: str, target_tokens: int
    ) -> TruncationResult:
        """Keep whole hunks of ``diff_text`` within ``target_tokens``."""
        return await emergency_truncate_diff(self._session, diff_text, target_tokens)

    async def _truncate_to(self, text: str, target_tokens: int) -> TruncationResult:
        if target_tokens <= 0:
            return TruncationResult("", True)
        fitted = await fit_prefix(
            self._session, text, target_tokens, self._session.settings.partial_marker
        )
        return TruncationResult(fitted, True)

    async def _truncate_diff(self, diff_text: str, target_tokens: int) -> TruncationResult:
        if not self._session.settings.prefer_hunk_truncation:
            result = await self._truncate_to(diff_text, target_tokens)
            if result.content:
                return result
            logger.warning(
                "Line truncation left nothing of the diff within %d tokens; "
                "falling back to hunk truncation",
                target_tokens,
            )
        return await self.emergency_truncate_diff(diff_text, target_tokens)

    async def _content_tokens(
        self, components: TokenComponents, content_type: ContentType
    ) -> int:
        if content_type is ContentType.DIFF:
            if not components.diff_text:
                return 0
            return await self._session.diff_tokens(components)
        return await self._session.count(components.content_for(content_type))

    @staticmethod
    def _apply(
        components: TokenComponents, updates: dict[ContentType, str]
    ) -> TokenComponents:
        updated = components.with_content(updates)
        if ContentType.DIFF in updates:
            # a rewritten diff no longer matches its pre-computed measurement
            updated = updated.model_copy(update={"diff_structure_tokens": None})
        return updated
