"""Tests for promptfit.validator."""

from __future__ import annotations

import logging

import pytest

from promptfit.models.messages import ChatMessage, ToolCall
from promptfit.models.settings import TokenSettings
from promptfit.tokens.session import TokenSession
from promptfit.validator import TokenValidator
from tests.conftest import FailingTokenizer, FakeModelProvider, make_session, words


def _validator(max_input_tokens: int = 100, **settings: object) -> TokenValidator:
    return TokenValidator(make_session(max_input_tokens=max_input_tokens, **settings))


def _assistant_call(call_id: str, text: str = "calling") -> ChatMessage:
    # 5 overhead + 1 content + 1 for the compact JSON tool call
    return ChatMessage(
        role="assistant",
        content=text,
        tool_calls=[ToolCall(id=call_id, name="search", arguments={"q": "x"})],
    )


def _tool_result(call_id: str, size: int) -> ChatMessage:
    return ChatMessage(role="tool", content=words(size, "r"), tool_call_id=call_id)


def _conversation() -> list[ChatMessage]:
    # 15 + 7 + 45 + 7 + 35 = 109 tokens, plus 1 for the system prompt
    return [
        ChatMessage(role="user", content=words(10, "q")),
        _assistant_call("c1"),
        _tool_result("c1", 40),
        _assistant_call("c2", "again"),
        _tool_result("c2", 30),
    ]


class TestValidateTokens:
    """Usage totals and suggested actions."""

    @pytest.mark.asyncio
    async def test_continue_below_warning(self) -> None:
        validator = _validator()
        messages = [ChatMessage(role="user", content=words(10))]
        result = await validator.validate_tokens(messages, "a b")
        assert result.total_tokens == 2 + 10 + 5
        assert result.max_tokens == 100
        assert result.suggested_action == "continue"
        assert not result.exceeds_warning_threshold

    @pytest.mark.asyncio
    async def test_warning_threshold_is_inclusive(self) -> None:
        validator = _validator()
        messages = [ChatMessage(role="user", content=words(5))]
        result = await validator.validate_tokens(messages, words(80))
        assert result.total_tokens == 90
        assert result.exceeds_warning_threshold
        assert not result.exceeds_max_tokens
        assert result.suggested_action == "remove_old_context"

    @pytest.mark.asyncio
    async def test_full_window_requests_final_answer(self) -> None:
        validator = _validator()
        messages = [ChatMessage(role="user", content=words(10))]
        result = await validator.validate_tokens(messages, words(85))
        assert result.total_tokens == 100
        assert result.exceeds_max_tokens
        assert result.suggested_action == "request_final_answer"

    @pytest.mark.asyncio
    async def test_tool_calls_are_counted(self) -> None:
        validator = _validator()
        result = await validator.validate_tokens([_assistant_call("c1")], "")
        assert result.total_tokens == 7

    @pytest.mark.asyncio
    async def test_tokenizer_failure_is_permissive(
        self, caplog: pytest.LogCaptureFixture
    ) -> None:
        session = TokenSession(FailingTokenizer(), FakeModelProvider(100), strict=True)
        validator = TokenValidator(session)
        with caplog.at_level(logging.ERROR, logger="promptfit.validator"):
            result = await validator.validate_tokens(_conversation(), "sys")
        assert result.total_tokens == 0
        assert result.max_tokens == 8000
        assert result.suggested_action == "continue"
        assert "Token validation failed" in caplog.text


class TestCleanupContext:
    """Oldest-first eviction of tool interactions."""

    @pytest.mark.asyncio
    async def test_removes_oldest_interaction(self) -> None:
        validator = _validator()
        result = await validator.cleanup_context(_conversation(), "sys")
        assert result.tool_results_removed == 1
        assert result.assistant_messages_removed == 1
        assert result.context_full_message_added
        roles = [m.role for m in result.cleaned_messages]
        assert roles == ["user", "assistant", "tool", "user"]
        assert result.cleaned_messages[2].tool_call_id == "c2"
        assert result.cleaned_messages[-1].content == TokenSettings().context_full_message

    @pytest.mark.asyncio
    async def test_lower_target_removes_more(self) -> None:
        validator = _validator()
        result = await validator.cleanup_context(_conversation(), "sys", 0.2)
        assert result.tool_results_removed == 2
        assert result.assistant_messages_removed == 2
        assert [m.role for m in result.cleaned_messages] == ["user", "user"]

    @pytest.mark.asyncio
    async def test_orphan_tool_result(self) -> None:
        validator = _validator()
        messages = [
            ChatMessage(role="user", content=words(10)),
            _tool_result("missing", 90),
        ]
        result = await validator.cleanup_context(messages, "")
        assert result.tool_results_removed == 1
        assert result.assistant_messages_removed == 0

    @pytest.mark.asyncio
    async def test_within_target_is_untouched(self) -> None:
        validator = _validator(max_input_tokens=1000)
        messages = _conversation()
        result = await validator.cleanup_context(messages, "sys")
        assert result.cleaned_messages == messages
        assert not result.context_full_message_added
        assert result.tool_results_removed == 0

    @pytest.mark.asyncio
    async def test_nothing_removable(self) -> None:
        validator = _validator()
        messages = [ChatMessage(role="user", content=words(200))]
        result = await validator.cleanup_context(messages, "")
        assert result.cleaned_messages == messages
        assert not result.context_full_message_added

    @pytest.mark.asyncio
    async def test_input_list_is_not_mutated(self) -> None:
        validator = _validator()
        messages = _conversation()
        await validator.cleanup_context(messages, "sys")
        assert len(messages) == 5

    @pytest.mark.asyncio
    @pytest.mark.parametrize("target", [0.0, -0.5, 1.5])
    async def test_rejects_bad_target(self, target: float) -> None:
        validator = _validator()
        with pytest.raises(ValueError, match="target_utilization"):
            await validator.cleanup_context([], "", target)


class TestResponseSize:
    """Tool response size guard."""

    def test_default_limit(self) -> None:
        validator = _validator()
        assert validator.is_response_size_acceptable("x" * 8000)
        assert not validator.is_response_size_acceptable("x" * 8001)

    def test_custom_limit(self) -> None:
        validator = _validator(max_tool_response_chars=10)
        assert not validator.is_response_size_acceptable("x" * 11)
