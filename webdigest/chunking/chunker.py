"""
Text chunking module for WebDigest.

Splits a document into an ordered sequence of chunks whose estimated token
cost stays under a budget, without ever cutting through a line.

Example usage:
    >>> chunker = LineChunker(token_budget=12952)
    >>> chunks = chunker.chunk(document_text)
    >>> for chunk in chunks:
    ...     print(f"Chunk {chunk.index}: {chunk.estimated_tokens} tokens")
"""

from __future__ import annotations

import logging
from typing import List, Optional

from ..types.types import Chunk, ValidationError
from ..utils.tokenizer import TokenCounter, get_tokenizer

logger = logging.getLogger(__name__)

LINE_SEPARATOR = "\n"


class LineChunker:
    """Line-aware chunker under a token budget."""

    def __init__(
        self,
        token_budget: int,
        token_counter: Optional[TokenCounter] = None,
    ):
        """
        Args:
            token_budget: Maximum estimated tokens per chunk (> 0)
            token_counter: Counter used for estimates (default: cached tiktoken counter)

        Raises:
            ValidationError: If ``token_budget`` is not positive
        """
        if token_budget <= 0:
            raise ValidationError(
                f"token_budget must be > 0, got {token_budget}",
                context={"token_budget": token_budget},
            )
        self.token_budget = token_budget
        self.token_counter = token_counter or get_tokenizer()

    @property
    def name(self) -> str:
        return "line"

    def chunk(self, text: Optional[str]) -> List[Chunk]:
        """
        Split text into chunks.

        Lines are appended to a running buffer while
        ``count(buffer) + count(line)`` stays within the budget; otherwise
        the buffer is closed (stripped) and the line starts a new one. A line
        that alone exceeds the budget becomes its own oversized chunk.

        Args:
            text: Input text; normally already normalized, but multi-line
                input is accepted

        Returns:
            Chunks indexed from 0 in emission order; ``[]`` for empty text
        """
        if not text:
            return []

        count = self.token_counter.count_tokens
        contents: List[str] = []
        buffer = ""

        for line in text.split(LINE_SEPARATOR):
            if buffer.strip() and count(buffer) + count(line) > self.token_budget:
                contents.append(buffer.strip())
                buffer = ""
            buffer += line + LINE_SEPARATOR

        if buffer.strip():
            contents.append(buffer.strip())

        chunks = [
            Chunk(index=i, content=content, estimated_tokens=count(content))
            for i, content in enumerate(contents)
        ]

        oversized = sum(1 for c in chunks if c.estimated_tokens > self.token_budget)
        if oversized:
            logger.debug(
                f"{oversized} chunk(s) exceed the {self.token_budget}-token budget "
                "because a single line is larger than the budget"
            )

        return chunks


def chunk_text(
    text: Optional[str],
    token_budget: int,
    token_counter: Optional[TokenCounter] = None,
) -> List[Chunk]:
    """Functional form of :meth:`LineChunker.chunk`."""
    return LineChunker(token_budget, token_counter).chunk(text)
