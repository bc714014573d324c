"""Context snippet selection."""

from .optimizer import SnippetOptimizer, content_hash, deduplicate_snippets

__all__ = ["SnippetOptimizer", "content_hash", "deduplicate_snippets"]
