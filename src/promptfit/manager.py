"""One-stop facade over the budget, selection, and truncation engines."""

from __future__ import annotations

import logging
from collections.abc import Sequence

from promptfit.budget.calculator import BudgetCalculator
from promptfit.formatters.context import format_context_snippets
from promptfit.models.components import (
    OptimizationResult,
    TokenAllocation,
    TokenComponents,
    TruncatedTokenComponents,
)
from promptfit.models.settings import TokenSettings
from promptfit.models.snippet import ContentPrioritization, ContextSnippet
from promptfit.optimization.optimizer import SnippetOptimizer
from promptfit.protocols.model import AsyncModelInfoProvider, ModelInfoProvider
from promptfit.protocols.tokenizer import AsyncTokenizer, Tokenizer
from promptfit.tokens.session import TokenSession
from promptfit.truncation.waterfall import WaterfallTruncator
from promptfit.validator import TokenValidator

logger = logging.getLogger(__name__)


class TokenManager:
    """Shares one :class:`TokenSession` between every engine.

    The usual call sequence is :meth:`calculate_token_allocation`, then
    :meth:`optimize_context` with the resulting ``context_allocation_tokens``,
    then, only if the assembled prompt still measures too large,
    :meth:`perform_proportional_truncation`.

    Example::

        manager = TokenManager(tokenizer=my_tokenizer, model_provider=provider)
        allocation = await manager.calculate_token_allocation(components)
        selection = await manager.optimize_context(
            snippets, allocation.context_allocation_tokens
        )
        context = manager.format_context_snippets(
            selection.optimized_snippets, selection.was_truncated
        )
    """

    __slots__ = (
        "_calculator",
        "_optimizer",
        "_prioritization",
        "_session",
        "_truncator",
        "_validator",
    )

    def __init__(
        self,
        tokenizer: Tokenizer | AsyncTokenizer | None = None,
        model_provider: ModelInfoProvider | AsyncModelInfoProvider | None = None,
        settings: TokenSettings | None = None,
        prioritization: ContentPrioritization | None = None,
        *,
        session: TokenSession | None = None,
    ) -> None:
        self._session = session or TokenSession(tokenizer, model_provider, settings)
        self._prioritization = prioritization or ContentPrioritization()
        self._calculator = BudgetCalculator(self._session)
        self._optimizer = SnippetOptimizer(self._session, self._prioritization)
        self._truncator = WaterfallTruncator(self._session, self._prioritization)
        self._validator = TokenValidator(self._session)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(session={self._session!r})"

    @property
    def session(self) -> TokenSession:
        return self._session

    @property
    def validator(self) -> TokenValidator:
        return self._validator

    def get_content_prioritization(self) -> ContentPrioritization:
        return self._prioritization

    def set_content_prioritization(self, prioritization: ContentPrioritization) -> None:
        """Apply a new order to both snippet selection and truncation."""
        self._prioritization = prioritization
        self._optimizer.set_content_prioritization(prioritization)
        self._truncator.set_content_prioritization(prioritization)
        logger.debug("Content prioritization set to %s", list(prioritization.order))

    async def calculate_token_allocation(
        self, components: TokenComponents
    ) -> TokenAllocation:
        return await self._calculator.calculate_token_allocation(
            components, self._prioritization
        )

    async def optimize_context(
        self, snippets: Sequence[ContextSnippet], available_tokens: int
    ) -> OptimizationResult:
        return await self._optimizer.optimize_context(snippets, available_tokens)

    async def perform_proportional_truncation(
        self, components: TokenComponents, target_tokens: int
    ) -> TruncatedTokenComponents:
        return await self._truncator.perform_proportional_truncation(
            components, target_tokens
        )

    def format_context_snippets(
        self, snippets: Sequence[ContextSnippet], was_truncated: bool = False
    ) -> str:
        return format_context_snippets(snippets, was_truncated, self._session.settings)

    async def model_token_limit(self) -> int:
        return await self._session.model_token_limit()

    async def calculate_tokens(self, text: str) -> int:
        return await self._session.count(text)

    async def calculate_complete_message_tokens(
        self,
        system_prompt: str,
        user_prompt: str,
        response_prefill: str | None = None,
    ) -> int:
        """Tokens of a system/user(/prefill) chat array, overhead included."""
        return await self._session.complete_message_tokens(
            system_prompt, user_prompt, response_prefill
        )

    def dispose(self) -> None:
        """Forget cached model metadata; the manager stays usable."""
        self._session.invalidate()
