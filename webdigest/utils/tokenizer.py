"""
Token counting for WebDigest.

Provides model-aware token counting using tiktoken, with a character
heuristic used when an encoding cannot be loaded (tiktoken fetches its BPE
files on first use) or when a caller asks for it explicitly.

Counts are only compared against budgets (chunk sizes, reporting); they are
not meant to match provider-side billing exactly.

Example:
    >>> tokenizer = get_tokenizer("gpt-4o")
    >>> count = tokenizer.count_tokens("Hello, world!")
"""

from __future__ import annotations

import functools
import logging
import math
from typing import Dict, Iterable, Optional

import tiktoken
from typing_extensions import Literal

logger = logging.getLogger(__name__)

CountingMethod = Literal["tiktoken", "heuristic"]

# Model → tiktoken encoding name mapping
_MODEL_ENCODING_MAP: Dict[str, str] = {
    "gpt-4": "cl100k_base",
    "gpt-4-turbo": "cl100k_base",
    "gpt-4-turbo-preview": "cl100k_base",
    "gpt-4o": "o200k_base",
    "gpt-4o-mini": "o200k_base",
    "gpt-3.5-turbo": "cl100k_base",
    "gpt-3.5-turbo-16k": "cl100k_base",
    "default": "cl100k_base",
}

CHARS_PER_TOKEN = 4


def heuristic_token_count(text: Optional[str]) -> int:
    """
    Estimate tokens as ``ceil(len(text) / 4)``.

    Monotonic under concatenation and sub-additive, so a buffer that fits a
    budget piecewise also fits it whole.
    """
    if not text:
        return 0
    return math.ceil(len(text) / CHARS_PER_TOKEN)


class TokenCounter:
    """
    Model-aware token counter.

    Uses tiktoken for exact counts, falls back to
    :func:`heuristic_token_count` when the encoding is unavailable.
    """

    def __init__(self, model: str = "default", method: CountingMethod = "tiktoken"):
        """
        Initialize token counter.

        Args:
            model: Model name for encoding selection
            method: ``"tiktoken"`` for BPE counts, ``"heuristic"`` for the
                character estimate
        """
        if method not in ("tiktoken", "heuristic"):
            raise ValueError(f"Unknown token counting method: {method}")

        self.model = model
        self.method = method
        self._encoder = None

        if method == "tiktoken":
            encoding_name = _MODEL_ENCODING_MAP.get(model, _MODEL_ENCODING_MAP["default"])
            try:
                self._encoder = tiktoken.get_encoding(encoding_name)
            except Exception as e:
                logger.warning(f"Failed to load encoding {encoding_name} ({e}), using heuristic")

    @property
    def exact(self) -> bool:
        """True when counts come from a BPE encoder."""
        return self._encoder is not None

    def count_tokens(self, text: Optional[str]) -> int:
        """
        Count tokens in text.

        Args:
            text: Input text

        Returns:
            Token count, 0 for empty or ``None`` input
        """
        if not text:
            return 0

        if self._encoder is not None:
            return len(self._encoder.encode(text, disallowed_special=()))

        return heuristic_token_count(text)

    def count_message_tokens(self, messages: Optional[Iterable[str]]) -> int:
        """Sum token counts over a sequence of messages."""
        if not messages:
            return 0
        return sum(self.count_tokens(message) for message in messages)

    def fits_in_budget(self, text: str, budget: int) -> bool:
        """Check if text fits within token budget."""
        return self.count_tokens(text) <= budget


# Module-level cached instances
@functools.lru_cache(maxsize=8)
def get_tokenizer(model: str = "default", method: CountingMethod = "tiktoken") -> TokenCounter:
    """
    Get a cached TokenCounter instance for a model.

    Args:
        model: Model name
        method: Counting method

    Returns:
        TokenCounter instance (cached per model and method)
    """
    return TokenCounter(model=model, method=method)


def count_tokens(text: Optional[str], model: str = "default") -> int:
    """Convenience function for one-off token counting."""
    return get_tokenizer(model).count_tokens(text)


def count_message_tokens(messages: Optional[Iterable[str]], model: str = "default") -> int:
    """Convenience function summing token counts over messages."""
    return get_tokenizer(model).count_message_tokens(messages)
