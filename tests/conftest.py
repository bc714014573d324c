"""Shared fixtures for promptfit tests."""

from __future__ import annotations

import math

import pytest

from promptfit.models.model_info import ModelInfo
from promptfit.models.settings import TokenSettings
from promptfit.models.snippet import ContentType, ContextSnippet
from promptfit.tokens.session import TokenSession


class FakeTokenizer:
    """A simple tokenizer that splits on whitespace for testing.

    Satisfies the Tokenizer protocol without requiring tiktoken's
    network-downloaded encoding data. ``overrides`` pins the count of
    specific strings, which lets tests make a marker expensive.
    """

    def __init__(self, overrides: dict[str, int] | None = None) -> None:
        self.overrides = dict(overrides or {})
        self.calls = 0

    def count_tokens(self, text: str) -> int:
        """Count tokens by splitting on whitespace."""
        self.calls += 1
        if text in self.overrides:
            return self.overrides[text]
        if not text or not text.strip():
            return 0
        return len(text.split())


class CharTokenizer:
    """Counts one token per ``ratio`` characters, rounding up."""

    def __init__(self, ratio: float = 4.0) -> None:
        self.ratio = ratio

    def count_tokens(self, text: str) -> int:
        return math.ceil(len(text) / self.ratio)


class AsyncFakeTokenizer:
    """Whitespace tokenizer exposing only the async protocol."""

    def __init__(self) -> None:
        self.calls = 0

    async def acount_tokens(self, text: str) -> int:
        self.calls += 1
        return len(text.split())


class FailingTokenizer:
    """Tokenizer whose every call raises."""

    def count_tokens(self, text: str) -> int:
        msg = "tokenizer backend unavailable"
        raise RuntimeError(msg)


class FakeModelProvider:
    """Model metadata source returning a fixed :class:`ModelInfo`."""

    def __init__(self, max_input_tokens: int = 1000, family: str = "fake") -> None:
        self.info = ModelInfo(
            model_id="fake-model", family=family, max_input_tokens=max_input_tokens
        )
        self.calls = 0

    def get_model_info(self) -> ModelInfo:
        self.calls += 1
        return self.info


class FailingModelProvider:
    """Model metadata source that is never reachable."""

    def get_model_info(self) -> ModelInfo:
        msg = "no model selected"
        raise RuntimeError(msg)


def make_session(
    tokenizer: object | None = None,
    max_input_tokens: int = 1000,
    **settings: object,
) -> TokenSession:
    """Create a TokenSession with FakeTokenizer and a fixed model window."""
    return TokenSession(
        tokenizer or FakeTokenizer(),
        FakeModelProvider(max_input_tokens),
        TokenSettings(**settings),
    )


def words(count: int, word: str = "tok") -> str:
    """A single line of ``count`` whitespace-separated words."""
    return " ".join([word] * count)


def make_snippet(
    snippet_id: str = "s1",
    content: str = "some snippet content",
    content_type: ContentType = ContentType.EMBEDDING,
    relevance_score: float = 0.5,
) -> ContextSnippet:
    return ContextSnippet(
        id=snippet_id,
        type=content_type,
        content=content,
        relevance_score=relevance_score,
    )


def make_diff(files: int = 1, hunks_per_file: int = 2, lines_per_hunk: int = 3) -> str:
    """Build a well-formed unified diff with counted hunk headers."""
    out: list[str] = []
    for f in range(files):
        path = f"src/module_{f}.py"
        out.extend(
            [
                f"diff --git a/{path} b/{path}",
                f"index 000000{f}..111111{f} 100644",
                f"--- a/{path}",
                f"+++ b/{path}",
            ]
        )
        for h in range(hunks_per_file):
            start = 1 + h * 20
            out.append(f"@@ -{start},{lines_per_hunk} +{start},{lines_per_hunk} @@")
            for n in range(lines_per_hunk - 1):
                out.append(f" context line {f} {h} {n}")
            out.append(f"-old value {f} {h}")
            out.append(f"+new value {f} {h}")
    return "\n".join(out)


@pytest.fixture
def session() -> TokenSession:
    return make_session()
