"""Tests for promptfit.budget.calculator."""

from __future__ import annotations

import pytest

from promptfit.budget.calculator import BudgetCalculator
from promptfit.models.components import TokenComponents
from promptfit.models.snippet import ContentPrioritization, ContentType
from promptfit.tokens.session import TokenSession
from tests.conftest import (
    FailingModelProvider,
    FailingTokenizer,
    FakeTokenizer,
    make_session,
    make_snippet,
    words,
)


class TestCalculateTokenAllocation:
    """Allocation snapshot arithmetic."""

    @pytest.mark.asyncio
    async def test_counts_each_component(self) -> None:
        calculator = BudgetCalculator(make_session(max_input_tokens=1000))
        components = TokenComponents(
            system_prompt=words(10),
            diff_text=words(50),
            embedding_context=words(20),
            lsp_definition_context=words(5),
            user_messages=(words(3), words(4)),
            assistant_messages=(words(6),),
            response_prefill=words(1),
        )
        allocation = await calculator.calculate_token_allocation(components)

        assert allocation.total_available_tokens == 950
        assert allocation.system_prompt_tokens == 10
        assert allocation.diff_text_tokens == 50
        assert allocation.context_tokens == 25
        assert allocation.user_messages_tokens == 7
        assert allocation.assistant_messages_tokens == 6
        assert allocation.response_prefill_tokens == 1
        assert allocation.message_overhead_tokens == 5 * 5
        assert allocation.other_tokens == 50
        assert allocation.total_required_tokens == 10 + 50 + 25 + 7 + 6 + 1 + 25 + 50
        assert allocation.fits_within_limit

    @pytest.mark.asyncio
    async def test_context_allocation(self) -> None:
        calculator = BudgetCalculator(make_session(max_input_tokens=1000))
        components = TokenComponents(system_prompt=words(100), embedding_context=words(5000))
        allocation = await calculator.calculate_token_allocation(components)
        # 950 available - (100 system + 5 overhead + 50 formatting)
        assert allocation.context_allocation_tokens == 795
        assert not allocation.fits_within_limit

    @pytest.mark.asyncio
    async def test_context_allocation_clamps_to_zero(self) -> None:
        calculator = BudgetCalculator(make_session(max_input_tokens=100))
        components = TokenComponents(system_prompt=words(500))
        allocation = await calculator.calculate_token_allocation(components)
        assert allocation.context_allocation_tokens == 0

    @pytest.mark.asyncio
    async def test_snippets_are_split_by_type(self) -> None:
        calculator = BudgetCalculator(make_session())
        components = TokenComponents(
            context_snippets=(
                make_snippet("a", words(10), ContentType.EMBEDDING),
                make_snippet("b", words(7), ContentType.LSP_DEFINITION),
            )
        )
        allocation = await calculator.calculate_token_allocation(components)
        by_type = allocation.context_tokens_by_type
        # section headings add their own words
        assert by_type[ContentType.EMBEDDING] == 10 + 5
        assert by_type[ContentType.LSP_REFERENCE] == 0
        assert by_type[ContentType.LSP_DEFINITION] == 7 + 4
        assert allocation.context_tokens == sum(by_type.values())

    @pytest.mark.asyncio
    async def test_by_type_follows_prioritization(self) -> None:
        calculator = BudgetCalculator(make_session())
        prioritization = ContentPrioritization(
            order=(ContentType.LSP_DEFINITION, ContentType.LSP_REFERENCE)
        )
        allocation = await calculator.calculate_token_allocation(
            TokenComponents(), prioritization
        )
        assert list(allocation.context_tokens_by_type) == [
            ContentType.LSP_DEFINITION,
            ContentType.LSP_REFERENCE,
            ContentType.EMBEDDING,
        ]

    @pytest.mark.asyncio
    async def test_diff_structure_tokens_used(self) -> None:
        calculator = BudgetCalculator(make_session())
        components = TokenComponents(diff_text=words(3), diff_structure_tokens=77)
        allocation = await calculator.calculate_token_allocation(components)
        assert allocation.diff_text_tokens == 77

    @pytest.mark.asyncio
    async def test_deterministic(self) -> None:
        calculator = BudgetCalculator(make_session())
        components = TokenComponents(system_prompt=words(12), diff_text=words(30))
        first = await calculator.calculate_token_allocation(components)
        second = await calculator.calculate_token_allocation(components)
        assert first == second


class TestDegradedCollaborators:
    """Tokenizer and model failures never raise."""

    @pytest.mark.asyncio
    async def test_unknown_model_uses_default_ceiling(self) -> None:
        calculator = BudgetCalculator(TokenSession(FakeTokenizer(), FailingModelProvider()))
        allocation = await calculator.calculate_token_allocation(TokenComponents())
        assert allocation.total_available_tokens == 7600

    @pytest.mark.asyncio
    async def test_failing_tokenizer_estimates(self) -> None:
        calculator = BudgetCalculator(TokenSession(FailingTokenizer(), FailingModelProvider()))
        allocation = await calculator.calculate_token_allocation(
            TokenComponents(system_prompt="x" * 40)
        )
        assert allocation.system_prompt_tokens == 10
