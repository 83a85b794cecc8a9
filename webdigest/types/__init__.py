"""Type definitions for WebDigest."""

from .protocols import CompletionProvider, PageFetcher, PipelineLogger
from .types import (
    AggregationError,
    Chunk,
    ChunkDispatchError,
    ChunkResult,
    ConfigurationError,
    Document,
    DocumentText,
    FailurePolicy,
    FetchError,
    Link,
    PipelineEvent,
    PipelineResult,
    PipelineTimeoutError,
    SummaryRequest,
    ValidationError,
    WebDigestError,
)

__all__ = [
    "DocumentText",
    "FailurePolicy",
    "Link",
    "Document",
    "Chunk",
    "ChunkResult",
    "SummaryRequest",
    "PipelineResult",
    "PipelineEvent",
    "WebDigestError",
    "FetchError",
    "ChunkDispatchError",
    "AggregationError",
    "ConfigurationError",
    "ValidationError",
    "PipelineTimeoutError",
    "PageFetcher",
    "CompletionProvider",
    "PipelineLogger",
]
