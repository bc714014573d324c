"""Token accounting against the active model.

A :class:`TokenSession` is the single point through which every budget and
truncation tier talks to the tokenizer and the model metadata source. It
owns the memoized model metadata for one engine instance, so independent
sessions never interfere with each other.
"""

from __future__ import annotations

import inspect
import logging
import math
import time
from collections.abc import Iterable

from promptfit.exceptions import ConfigurationError, TokenizerError
from promptfit.formatters.context import normalize_components
from promptfit.models.components import TokenComponents
from promptfit.models.model_info import ModelInfo
from promptfit.models.settings import DEFAULT_SETTINGS, TokenSettings
from promptfit.protocols.model import AsyncModelInfoProvider, ModelInfoProvider
from promptfit.protocols.tokenizer import AsyncTokenizer, Tokenizer
from promptfit.tokens.counter import get_default_counter

logger = logging.getLogger(__name__)


class TokenSession:
    """Measures text and components in model tokens.

    Both synchronous (:class:`Tokenizer`) and asynchronous
    (:class:`AsyncTokenizer`) tokenizers are accepted. When the tokenizer
    fails, the session falls back to the ``chars_per_token`` estimate
    unless ``strict`` is set, in which case :class:`TokenizerError` is
    raised. Model metadata failures always degrade to defaults.

    Model metadata is fetched lazily and memoized on the instance. Two
    coroutines racing on the first fetch may both hit the provider; the
    results are interchangeable, so the last write simply wins.
    """

    __slots__ = (
        "_model_info",
        "_model_info_expires_at",
        "_model_provider",
        "_settings",
        "_strict",
        "_tokenizer",
    )

    def __init__(
        self,
        tokenizer: Tokenizer | AsyncTokenizer | None = None,
        model_provider: ModelInfoProvider | AsyncModelInfoProvider | None = None,
        settings: TokenSettings | None = None,
        *,
        strict: bool = False,
    ) -> None:
        self._settings = settings or DEFAULT_SETTINGS
        self._strict = strict
        self._model_provider = model_provider
        self._model_info: ModelInfo | None = None
        self._model_info_expires_at: float | None = None
        if tokenizer is None:
            try:
                tokenizer = get_default_counter()
            except Exception as e:
                # a missing package or encoding data that cannot be downloaded
                if strict:
                    raise
                logger.warning(
                    "No tokenizer available (%s); token counts will be estimated at "
                    "%.1f chars/token",
                    e,
                    self._settings.chars_per_token,
                )
        elif not isinstance(tokenizer, (Tokenizer, AsyncTokenizer)):
            msg = (
                f"{type(tokenizer).__name__} implements neither count_tokens() "
                "nor acount_tokens()"
            )
            raise ConfigurationError(msg)
        self._tokenizer = tokenizer

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(tokenizer={self._tokenizer!r}, "
            f"model={self._model_info!r}, strict={self._strict})"
        )

    @property
    def settings(self) -> TokenSettings:
        return self._settings

    @property
    def tokenizer(self) -> Tokenizer | AsyncTokenizer | None:
        return self._tokenizer

    # ------------------------------------------------------------------
    # Model metadata
    # ------------------------------------------------------------------

    async def model_info(self) -> ModelInfo:
        """Return the active model's metadata, fetching it on first use.

        The result is reused for ``model_info_ttl`` seconds; a ``None``
        lifetime keeps it until :meth:`invalidate` is called.
        """
        info = self._model_info
        expires_at = self._model_info_expires_at
        if info is not None and expires_at is not None and time.monotonic() >= expires_at:
            logger.debug("Model info expired; re-fetching")
            info = None
        if info is None:
            info = await self._fetch_model_info()
            ttl = self._settings.model_info_ttl
            self._model_info = info
            self._model_info_expires_at = None if ttl is None else time.monotonic() + ttl
        return info

    def invalidate(self) -> None:
        """Drop the memoized model metadata so the next call re-fetches it."""
        self._model_info = None
        self._model_info_expires_at = None

    async def _fetch_model_info(self) -> ModelInfo:
        provider = self._model_provider
        if provider is None:
            return self._default_model_info()
        try:
            if isinstance(provider, AsyncModelInfoProvider):
                info = await provider.aget_model_info()
            else:
                info = provider.get_model_info()
        except Exception as e:
            logger.warning("Could not resolve model info (%s); using defaults", e)
            return self._default_model_info()
        logger.debug(
            "Resolved model %s (family=%s, max_input_tokens=%d)",
            info.model_id,
            info.family,
            info.max_input_tokens,
        )
        return info

    def _default_model_info(self) -> ModelInfo:
        return ModelInfo(max_input_tokens=self._settings.default_max_input_tokens)

    async def model_token_limit(self) -> int:
        """Maximum input tokens of the active model."""
        return (await self.model_info()).max_input_tokens

    async def safe_token_limit(self) -> int:
        """Model ceiling reduced by the configured safety margin."""
        limit = await self.model_token_limit()
        return math.floor(limit * self._settings.safety_margin_ratio)

    # ------------------------------------------------------------------
    # Counting
    # ------------------------------------------------------------------

    async def count(self, text: str) -> int:
        """Count tokens in ``text``; empty text costs nothing."""
        if not text:
            return 0
        tokenizer = self._tokenizer
        if tokenizer is None:
            return self.estimate_tokens(text)
        try:
            if isinstance(tokenizer, AsyncTokenizer):
                result = await tokenizer.acount_tokens(text)
            else:
                result = tokenizer.count_tokens(text)
                if inspect.isawaitable(result):
                    result = await result
        except Exception as e:
            if self._strict:
                msg = f"Tokenizer {type(tokenizer).__name__} failed to count tokens"
                raise TokenizerError(msg, text_length=len(text)) from e
            logger.warning(
                "Tokenizer failed (%s); estimating %d chars at %.1f chars/token",
                e,
                len(text),
                self._settings.chars_per_token,
            )
            return self.estimate_tokens(text)
        return int(result)

    async def count_all(self, texts: Iterable[str]) -> int:
        """Sum of token counts for several texts, measured one by one."""
        total = 0
        for text in texts:
            total += await self.count(text)
        return total

    def estimate_tokens(self, text: str) -> int:
        """Heuristic token estimate from the character length."""
        return math.ceil(len(text) / self._settings.chars_per_token)

    def chars_for_tokens(self, tokens: int) -> int:
        """Heuristic character budget for a token budget."""
        return max(0, math.floor(tokens * self._settings.chars_per_token))

    # ------------------------------------------------------------------
    # Component accounting
    # ------------------------------------------------------------------

    def overhead_tokens(self, components: TokenComponents) -> int:
        """Per-message overhead plus the global formatting overhead."""
        settings = self._settings
        return (
            components.message_count * settings.token_overhead_per_message
            + settings.formatting_overhead
        )

    async def diff_tokens(self, components: TokenComponents) -> int:
        """Diff size, preferring a caller-supplied structure measurement."""
        if components.diff_structure_tokens is not None:
            return components.diff_structure_tokens
        return await self.count(components.diff_text)

    async def component_tokens(self, components: TokenComponents) -> int:
        """Total tokens of every component, including overhead."""
        normalized = normalize_components(components)
        total = await self.count_all(
            (
                normalized.system_prompt,
                normalized.embedding_context,
                normalized.lsp_reference_context,
                normalized.lsp_definition_context,
                *normalized.user_messages,
                *normalized.assistant_messages,
                normalized.response_prefill,
            )
        )
        total += await self.diff_tokens(normalized)
        return total + self.overhead_tokens(normalized)

    async def fixed_tokens(self, components: TokenComponents) -> int:
        """Tokens of the components that are never truncated, plus overhead.

        The diff is always truncatable; a pre-computed
        ``diff_structure_tokens`` only counts here when no diff text is
        supplied, since the diff is then rendered outside the engine's reach.
        """
        fixed = await self.count_all(
            (
                components.system_prompt,
                *components.user_messages,
                *components.assistant_messages,
                components.response_prefill,
            )
        )
        if components.diff_structure_tokens is not None and not components.diff_text:
            fixed += components.diff_structure_tokens
        return fixed + self.overhead_tokens(components)

    async def complete_message_tokens(
        self,
        system_prompt: str,
        user_prompt: str,
        response_prefill: str | None = None,
    ) -> int:
        """Tokens of a literal system/user(/prefill) chat array with overhead."""
        per_message = self._settings.token_overhead_per_message
        total = await self.count(system_prompt) + per_message
        total += await self.count(user_prompt) + per_message
        if response_prefill:
            total += await self.count(response_prefill) + per_message
        return total
