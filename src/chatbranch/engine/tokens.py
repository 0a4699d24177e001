"""Token counting implementations for chatbranch.

Provides CharRatioTokenCounter (default estimate), TiktokenCounter
(real tokenizer) and NullTokenCounter (testing).
All implement the TokenCounter protocol from protocols.py.
"""

from __future__ import annotations

import math

from chatbranch.models.config import BranchStoreConfig


class CharRatioTokenCounter:
    """Token estimate of one token per ``chars_per_token`` characters.

    Rounds up, so any non-empty text counts as at least one token.
    """

    def __init__(self, chars_per_token: int = 4) -> None:
        if chars_per_token < 1:
            raise ValueError("chars_per_token must be >= 1")
        self._chars_per_token = chars_per_token

    def count_text(self, text: str) -> int:
        if not text:
            return 0
        return math.ceil(len(text) / self._chars_per_token)


class TiktokenCounter:
    """Token counter using tiktoken (OpenAI's tokenizer).

    Lazily imports tiktoken and caches the Encoding instance.
    Falls back to o200k_base encoding if model is unknown.
    """

    def __init__(self, model: str = "gpt-4o", encoding_name: str | None = None) -> None:
        import tiktoken

        if encoding_name is not None:
            self._enc = tiktoken.get_encoding(encoding_name)
        else:
            try:
                self._enc = tiktoken.encoding_for_model(model)
            except KeyError:
                self._enc = tiktoken.get_encoding("o200k_base")

        self._encoding_name = self._enc.name

    @property
    def encoding_name(self) -> str:
        """Name of the tiktoken encoding being used."""
        return self._encoding_name

    def count_text(self, text: str) -> int:
        """Count tokens in a plain text string. Returns 0 for empty string."""
        if not text:
            return 0
        return len(self._enc.encode(text))


class NullTokenCounter:
    """Token counter that always returns 0.

    Useful for testing when token counts are irrelevant.
    """

    def count_text(self, text: str) -> int:
        return 0


def counter_for_config(config: BranchStoreConfig) -> CharRatioTokenCounter | TiktokenCounter:
    """Pick the token counter named by ``config.tokenizer_encoding``."""
    if config.tokenizer_encoding is None:
        return CharRatioTokenCounter()
    return TiktokenCounter(encoding_name=config.tokenizer_encoding)
