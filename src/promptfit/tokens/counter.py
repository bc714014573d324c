"""Token counting implementations."""

from __future__ import annotations

import functools

_INSTALL_HINT = (
    "tiktoken is required for the default tokenizer. "
    "Install it with: pip install promptfit[tiktoken] "
    "or pip install tiktoken"
)


class TiktokenCounter:
    """Token counter using OpenAI's tiktoken library.

    Default encoding is cl100k_base (close enough to the tokenizers of
    other chat model families for budget estimation purposes).

    Implements the Tokenizer protocol via structural subtyping.

    The tiktoken import is deferred to ``__init__`` so that importing this
    module does not trigger BPE data loading when callers supply their own
    :class:`~promptfit.protocols.tokenizer.Tokenizer` implementation.
    """

    __slots__ = ("_cache", "_encoding", "_max_cache_size")

    def __init__(
        self, encoding_name: str = "cl100k_base", max_cache_size: int = 10_000
    ) -> None:
        try:
            import tiktoken
        except ImportError:
            raise ImportError(_INSTALL_HINT) from None

        self._encoding = tiktoken.get_encoding(encoding_name)
        self._max_cache_size = max_cache_size
        self._cache: dict[str, int] = {}

    @property
    def encoding_name(self) -> str:
        return str(self._encoding.name)

    def count_tokens(self, text: str) -> int:
        """Count the number of tokens in a text string."""
        if text in self._cache:
            return self._cache[text]
        # Special-token text inside diffs must count as ordinary text
        count = len(self._encoding.encode(text, disallowed_special=()))
        # Only cache strings under 10k chars to avoid memory bloat
        if len(text) < 10_000:
            if len(self._cache) >= self._max_cache_size:
                self._cache.clear()
            self._cache[text] = count
        return count

    def __repr__(self) -> str:
        return f"{type(self).__name__}(encoding={self.encoding_name!r})"


@functools.cache
def get_default_counter() -> TiktokenCounter:
    """Get or create the default TiktokenCounter singleton.

    Call ``get_default_counter.cache_clear()`` to reset the singleton
    (useful in tests).

    Raises:
        ImportError: If tiktoken is not installed.
    """
    return TiktokenCounter()
