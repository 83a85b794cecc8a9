"""
WebDigest: summarize web pages through chunked LLM fact extraction.

A page is fetched, its text normalized and split into token-budgeted chunks,
each chunk is sent to a completion provider for fact extraction in paced
windows, and the collected facts are summarized by one final request.
"""

__version__ = "0.1.0"

from .chunking.chunker import LineChunker, chunk_text  # noqa: F401
from .pipeline.aggregator import Aggregator, build_fact_list  # noqa: F401
from .pipeline.batch_processor import BatchDispatcher  # noqa: F401
from .pipeline.summarize_pipeline import (  # noqa: F401
    PipelineOptions,
    SummarizationPipeline,
    build_pipeline_options,
    run_pipeline,
)
from .types.types import (  # noqa: F401
    Chunk,
    ChunkResult,
    Document,
    PipelineResult,
    SummaryRequest,
    WebDigestError,
)
from .utils.text_normalization import normalize_text  # noqa: F401
from .utils.tokenizer import TokenCounter  # noqa: F401

__all__ = [
    "__version__",
    "LineChunker",
    "chunk_text",
    "Aggregator",
    "build_fact_list",
    "BatchDispatcher",
    "PipelineOptions",
    "SummarizationPipeline",
    "build_pipeline_options",
    "run_pipeline",
    "Chunk",
    "ChunkResult",
    "Document",
    "PipelineResult",
    "SummaryRequest",
    "WebDigestError",
    "normalize_text",
    "TokenCounter",
]
