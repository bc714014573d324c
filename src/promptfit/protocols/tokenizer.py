"""Tokenizer protocols for token counting abstraction."""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class Tokenizer(Protocol):
    """Protocol for synchronous token counting.

    The default implementation uses tiktoken, but users can provide
    any tokenizer (e.g., HuggingFace tokenizers, sentencepiece, or the
    counting endpoint of a hosted model).
    """

    def count_tokens(self, text: str) -> int:
        """Count the number of tokens in a text string.

        Parameters:
            text: The input text to tokenize and count.

        Returns:
            The total number of tokens as determined by the underlying
            tokenization scheme for the active model.
        """
        ...


@runtime_checkable
class AsyncTokenizer(Protocol):
    """Protocol for tokenizers whose counting call is I/O bound.

    Remote counting endpoints (an IDE language-model API, a hosted
    tokenizer service) suspend while waiting for an answer. Engines await
    ``acount_tokens`` when the tokenizer provides it.
    """

    async def acount_tokens(self, text: str) -> int:
        """Asynchronously count the number of tokens in a text string.

        Parameters:
            text: The input text to tokenize and count.

        Returns:
            The total number of tokens for the active model.
        """
        ...
