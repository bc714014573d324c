"""Context-window checks for tool-calling conversations.

Unlike the waterfall, the validator never rewrites message content. It
reports how full the window is and, on request, evicts whole tool
interactions (a tool result together with the assistant message that
issued the call) oldest first.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Sequence

from promptfit.exceptions import TokenizerError
from promptfit.models.messages import (
    ChatMessage,
    ContextCleanupResult,
    SuggestedAction,
    TokenValidationResult,
)
from promptfit.tokens.session import TokenSession

logger = logging.getLogger(__name__)


class TokenValidator:
    """Measures a tool-calling conversation against the model's window."""

    __slots__ = ("_session",)

    def __init__(self, session: TokenSession | None = None) -> None:
        self._session = session or TokenSession()

    def __repr__(self) -> str:
        return f"{type(self).__name__}(session={self._session!r})"

    async def validate_tokens(
        self, messages: Sequence[ChatMessage], system_prompt: str
    ) -> TokenValidationResult:
        """Total the conversation and suggest what the caller should do next.

        ``remove_old_context`` is suggested from ``context_warning_ratio`` of
        the window onwards and ``request_final_answer`` once the window is
        full. If the tokenizer fails in strict mode, a permissive
        ``continue`` result is returned and the error is logged.
        """
        session = self._session
        settings = session.settings
        try:
            total = await session.count(system_prompt)
            for message in messages:
                total += await self._message_tokens(message)
        except TokenizerError:
            logger.exception("Token validation failed; assuming the conversation fits")
            return TokenValidationResult(
                total_tokens=0, max_tokens=settings.default_max_input_tokens
            )

        max_tokens = await session.model_token_limit()
        warning_threshold = math.floor(max_tokens * settings.context_warning_ratio)
        exceeds_warning = total >= warning_threshold
        exceeds_max = total >= max_tokens

        action: SuggestedAction = "continue"
        if exceeds_max:
            action = "request_final_answer"
        elif exceeds_warning:
            action = "remove_old_context"

        return TokenValidationResult(
            total_tokens=total,
            max_tokens=max_tokens,
            exceeds_warning_threshold=exceeds_warning,
            exceeds_max_tokens=exceeds_max,
            suggested_action=action,
        )

    async def cleanup_context(
        self,
        messages: Sequence[ChatMessage],
        system_prompt: str,
        target_utilization: float = 0.8,
    ) -> ContextCleanupResult:
        """Evict the oldest tool interactions until usage drops under target.

        When anything was removed, a user message explaining that the
        context is full is appended so the model stops requesting tools.
        """
        if not 0.0 < target_utilization <= 1.0:
            msg = f"target_utilization must be in (0, 1], got {target_utilization}"
            raise ValueError(msg)

        max_tokens = await self._session.model_token_limit()
        target_tokens = math.floor(max_tokens * target_utilization)

        cleaned = list(messages)
        tool_results_removed = 0
        assistant_removed = 0
        while cleaned:
            validation = await self.validate_tokens(cleaned, system_prompt)
            if validation.total_tokens <= target_tokens:
                break
            removed = _remove_oldest_tool_interaction(cleaned)
            if removed is None:
                break
            cleaned, assistant_count = removed
            tool_results_removed += 1
            assistant_removed += assistant_count

        added = False
        if tool_results_removed or assistant_removed:
            logger.info(
                "Context cleanup removed %d tool result(s) and %d assistant message(s)",
                tool_results_removed,
                assistant_removed,
            )
            cleaned.append(
                ChatMessage(role="user", content=self._session.settings.context_full_message)
            )
            added = True

        return ContextCleanupResult(
            cleaned_messages=cleaned,
            tool_results_removed=tool_results_removed,
            assistant_messages_removed=assistant_removed,
            context_full_message_added=added,
        )

    def is_response_size_acceptable(self, response_text: str) -> bool:
        return len(response_text) <= self._session.settings.max_tool_response_chars

    async def _message_tokens(self, message: ChatMessage) -> int:
        session = self._session
        tokens = session.settings.token_overhead_per_message
        tokens += await session.count(message.content)
        for call in message.tool_calls:
            tokens += await session.count(call.model_dump_json())
        return tokens


def _remove_oldest_tool_interaction(
    messages: list[ChatMessage],
) -> tuple[list[ChatMessage], int] | None:
    """Drop the oldest tool result and the assistant message that requested it.

    Returns the new message list and the number of assistant messages
    removed (0 or 1), or ``None`` when there is no tool result left.
    """
    index = next((i for i, m in enumerate(messages) if m.role == "tool"), None)
    if index is None:
        return None
    call_id = messages[index].tool_call_id
    owner = next(
        (
            i
            for i in range(index - 1, -1, -1)
            if messages[i].role == "assistant"
            and any(call.id == call_id for call in messages[i].tool_calls)
        ),
        None,
    )
    drop = {index} if owner is None else {index, owner}
    remaining = [m for i, m in enumerate(messages) if i not in drop]
    return remaining, len(drop) - 1
