"""Core data models for promptfit."""

from .components import (
    OptimizationResult,
    TokenAllocation,
    TokenComponents,
    TruncatedTokenComponents,
    TruncationResult,
)
from .messages import ChatMessage, ContextCleanupResult, TokenValidationResult, ToolCall
from .model_info import UNKNOWN_MODEL_FAMILY, ModelInfo
from .settings import DEFAULT_SETTINGS, TokenSettings
from .snippet import (
    DEFAULT_CONTENT_ORDER,
    SNIPPET_CONTENT_TYPES,
    ContentPrioritization,
    ContentType,
    ContextSnippet,
)

__all__ = [
    "DEFAULT_CONTENT_ORDER",
    "DEFAULT_SETTINGS",
    "SNIPPET_CONTENT_TYPES",
    "UNKNOWN_MODEL_FAMILY",
    "ChatMessage",
    "ContentPrioritization",
    "ContentType",
    "ContextCleanupResult",
    "ContextSnippet",
    "ModelInfo",
    "OptimizationResult",
    "TokenAllocation",
    "TokenComponents",
    "TokenSettings",
    "TokenValidationResult",
    "ToolCall",
    "TruncatedTokenComponents",
    "TruncationResult",
]
