"""Token-budgeted text chunking."""

from .chunker import LINE_SEPARATOR, LineChunker, chunk_text

__all__ = ["LINE_SEPARATOR", "LineChunker", "chunk_text"]
