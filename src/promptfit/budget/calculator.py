"""Token allocation across the components of one model request."""

from __future__ import annotations

import logging

from promptfit.formatters.context import normalize_components
from promptfit.models.components import TokenAllocation, TokenComponents
from promptfit.models.snippet import SNIPPET_CONTENT_TYPES, ContentPrioritization
from promptfit.tokens.session import TokenSession

logger = logging.getLogger(__name__)


class BudgetCalculator:
    """Measures every component and works out how much room context may take.

    The model ceiling is reduced by ``safety_margin_ratio``; per-message and
    formatting overheads come from the session's :class:`TokenSettings`.
    Tokenizer and model metadata failures degrade inside the session and
    never surface here.
    """

    __slots__ = ("_session",)

    def __init__(self, session: TokenSession | None = None) -> None:
        self._session = session or TokenSession()

    def __repr__(self) -> str:
        return f"{type(self).__name__}(session={self._session!r})"

    @property
    def session(self) -> TokenSession:
        return self._session

    async def calculate_token_allocation(
        self,
        components: TokenComponents,
        prioritization: ContentPrioritization | None = None,
    ) -> TokenAllocation:
        """Build a :class:`TokenAllocation` snapshot for ``components``.

        ``context_tokens_by_type`` lists the snippet content types in
        ``prioritization`` order.
        """
        session = self._session
        settings = session.settings
        prioritization = prioritization or ContentPrioritization()
        normalized = normalize_components(components)

        total_available = await session.safe_token_limit()

        by_type = {
            ct: await session.count(normalized.content_for(ct))
            for ct in prioritization.order
            if ct in SNIPPET_CONTENT_TYPES
        }

        allocation = TokenAllocation(
            system_prompt_tokens=await session.count(normalized.system_prompt),
            diff_text_tokens=await session.diff_tokens(normalized),
            context_tokens=sum(by_type.values()),
            user_messages_tokens=await session.count_all(normalized.user_messages),
            assistant_messages_tokens=await session.count_all(normalized.assistant_messages),
            response_prefill_tokens=await session.count(normalized.response_prefill),
            message_overhead_tokens=(
                normalized.message_count * settings.token_overhead_per_message
            ),
            other_tokens=settings.formatting_overhead,
            total_available_tokens=total_available,
            context_tokens_by_type=by_type,
        )
        logger.debug(
            "Token allocation: required=%d available=%d context_allocation=%d",
            allocation.total_required_tokens,
            allocation.total_available_tokens,
            allocation.context_allocation_tokens,
        )
        return allocation
