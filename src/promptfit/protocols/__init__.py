"""Protocol definitions for promptfit's pluggable collaborators."""

from .model import AsyncModelInfoProvider, ModelInfoProvider
from .tokenizer import AsyncTokenizer, Tokenizer

__all__ = [
    "AsyncModelInfoProvider",
    "AsyncTokenizer",
    "ModelInfoProvider",
    "Tokenizer",
]
