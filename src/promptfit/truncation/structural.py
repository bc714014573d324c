"""Structure-preserving prefix truncation.

The pure helpers cut text on line boundaries and repair markdown code
fences; :func:`fit_prefix` combines them with the tokenizer to find a
prefix that fits a token budget.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from promptfit.tokens.session import TokenSession

FENCE = "```"


def _is_fence_line(line: str) -> bool:
    return line.lstrip().startswith(FENCE)


def count_fences(text: str) -> int:
    """Number of lines that open or close a markdown code fence."""
    return sum(1 for line in text.split("\n") if _is_fence_line(line))


def find_unclosed_fence(text: str) -> int | None:
    """Offset of the fence line left open at the end of ``text``, if any."""
    open_at: int | None = None
    offset = 0
    for line in text.split("\n"):
        if _is_fence_line(line):
            open_at = offset if open_at is None else None
        offset += len(line) + 1
    return open_at


def close_open_fence(text: str) -> str:
    """Append a closing fence when ``text`` ends inside a code block."""
    if find_unclosed_fence(text) is None:
        return text
    separator = "" if text.endswith("\n") else "\n"
    return f"{text}{separator}{FENCE}"


def cut_at_line_boundary(text: str, max_chars: int, *, strict: bool = True) -> str:
    """Cut ``text`` to at most ``max_chars`` characters without splitting a line.

    The cut backs up to the last newline inside the budget. When the first
    line alone is longer than the budget, ``strict`` returns the empty
    string; otherwise the raw character prefix is kept.
    """
    if max_chars <= 0:
        return ""
    if len(text) <= max_chars:
        return text
    prefix = text[:max_chars]
    newline = prefix.rfind("\n")
    if newline >= 0:
        return prefix[:newline]
    return "" if strict else prefix


async def fit_prefix(
    session: TokenSession,
    text: str,
    budget_tokens: int,
    marker: str,
    *,
    reserve_tokens: int = 0,
    strict_lines: bool = True,
) -> str:
    """Largest structurally sound prefix of ``text`` that fits ``budget_tokens``.

    The first cut point comes from the chars-per-token estimate after
    reserving room for ``marker`` and ``reserve_tokens``. Each candidate
    (prefix, closing fence if needed, marker) is measured with the
    tokenizer; an oversized candidate shrinks the character budget in
    proportion to the overshoot and by at least one character. Returns the
    empty string when no non-blank prefix fits within
    ``max_shrink_iterations`` attempts.
    """
    settings = session.settings
    marker_tokens = await session.count(marker)
    content_tokens = budget_tokens - marker_tokens - reserve_tokens
    if content_tokens <= 0:
        return ""

    max_chars = min(len(text), session.chars_for_tokens(content_tokens))
    for _ in range(settings.max_shrink_iterations):
        cut = cut_at_line_boundary(text, max_chars, strict=strict_lines)
        if not cut.strip():
            return ""
        candidate = close_open_fence(cut) + marker
        tokens = await session.count(candidate)
        if tokens <= budget_tokens:
            return candidate
        measured = max(1, tokens - marker_tokens)
        max_chars = min(len(cut) - 1, len(cut) * content_tokens // measured)
    return ""
