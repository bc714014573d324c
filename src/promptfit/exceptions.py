"""Custom exceptions for promptfit."""

from __future__ import annotations

__all__ = [
    "ConfigurationError",
    "PromptFitError",
    "TokenizerError",
]


class PromptFitError(Exception):
    """Base exception for all promptfit errors."""


class TokenizerError(PromptFitError):
    """Raised when the tokenizer fails and the session runs in strict mode."""

    def __init__(self, message: str, text_length: int = 0) -> None:
        super().__init__(message)
        self.text_length = text_length


class ConfigurationError(PromptFitError):
    """Raised when an engine is wired with an unusable collaborator."""
