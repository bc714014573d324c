"""promptfit: Token budgeting and structure-aware truncation for LLM prompts.

Engines:
    TokenManager, BudgetCalculator, SnippetOptimizer, WaterfallTruncator,
    TokenValidator, TokenSession

Truncation helpers:
    cut_at_line_boundary, close_open_fence, find_unclosed_fence,
    count_fences, fit_prefix, emergency_truncate_diff, parse_unified_diff

Formatting:
    format_context_snippets, separate_context_by_type

Protocols (extension points):
    Tokenizer, AsyncTokenizer, ModelInfoProvider, AsyncModelInfoProvider

Models & Types:
    ContentType, ContentPrioritization, ContextSnippet, TokenComponents,
    TruncatedTokenComponents, TokenAllocation, OptimizationResult,
    TruncationResult, TokenSettings, ModelInfo, ChatMessage, ToolCall,
    TokenValidationResult, ContextCleanupResult

Exceptions:
    PromptFitError, TokenizerError, ConfigurationError

Tokens:
    TiktokenCounter, StaticModelInfoProvider
"""

from importlib.metadata import PackageNotFoundError, version

from promptfit.budget import BudgetCalculator
from promptfit.exceptions import ConfigurationError, PromptFitError, TokenizerError
from promptfit.formatters import format_context_snippets, separate_context_by_type
from promptfit.manager import TokenManager
from promptfit.models import (
    ChatMessage,
    ContentPrioritization,
    ContentType,
    ContextCleanupResult,
    ContextSnippet,
    ModelInfo,
    OptimizationResult,
    TokenAllocation,
    TokenComponents,
    TokenSettings,
    TokenValidationResult,
    ToolCall,
    TruncatedTokenComponents,
    TruncationResult,
)
from promptfit.optimization import SnippetOptimizer
from promptfit.protocols import (
    AsyncModelInfoProvider,
    AsyncTokenizer,
    ModelInfoProvider,
    Tokenizer,
)
from promptfit.tokens import StaticModelInfoProvider, TiktokenCounter, TokenSession
from promptfit.truncation import (
    WaterfallTruncator,
    close_open_fence,
    count_fences,
    cut_at_line_boundary,
    emergency_truncate_diff,
    find_unclosed_fence,
    fit_prefix,
    parse_unified_diff,
)
from promptfit.validator import TokenValidator

try:
    __version__ = version("promptfit")
except PackageNotFoundError:
    __version__ = "0.0.0-dev"

__all__ = [
    "AsyncModelInfoProvider",
    "AsyncTokenizer",
    "BudgetCalculator",
    "ChatMessage",
    "ConfigurationError",
    "ContentPrioritization",
    "ContentType",
    "ContextCleanupResult",
    "ContextSnippet",
    "ModelInfo",
    "ModelInfoProvider",
    "OptimizationResult",
    "PromptFitError",
    "SnippetOptimizer",
    "StaticModelInfoProvider",
    "TiktokenCounter",
    "TokenAllocation",
    "TokenComponents",
    "TokenManager",
    "TokenSession",
    "TokenSettings",
    "TokenValidationResult",
    "TokenValidator",
    "Tokenizer",
    "TokenizerError",
    "ToolCall",
    "TruncatedTokenComponents",
    "TruncationResult",
    "WaterfallTruncator",
    "__version__",
    "close_open_fence",
    "count_fences",
    "cut_at_line_boundary",
    "emergency_truncate_diff",
    "find_unclosed_fence",
    "fit_prefix",
    "format_context_snippets",
    "parse_unified_diff",
    "separate_context_by_type",
]
