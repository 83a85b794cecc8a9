"""
Type system for WebDigest.

Records exchanged between the fetch, chunking, dispatch and aggregation
stages, plus the exception hierarchy shared by the whole package.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from typing_extensions import Literal

# Type aliases
DocumentText = str
FailurePolicy = Literal["abort", "skip"]
EventLevel = Literal["debug", "info", "warning", "error"]


@dataclass(frozen=True)
class Link:
    """A hyperlink found on a fetched page."""

    text: str
    href: str


@dataclass(frozen=True)
class Document:
    """
    Immutable fetched page.

    Attributes:
        url: Address the page was fetched from
        title: Page title (may be empty)
        raw_text: Extracted text before normalization
        links: Hyperlinks in document order
    """

    url: str
    title: str
    raw_text: DocumentText
    links: Tuple[Link, ...] = ()


@dataclass(frozen=True)
class Chunk:
    """
    A bounded-size, ordered segment of a document's text.

    Attributes:
        index: Position in the chunk sequence (reassembly order)
        content: Chunk text
        estimated_tokens: Token estimate of ``content``
    """

    index: int
    content: str
    estimated_tokens: int = 0


@dataclass
class ChunkResult:
    """Provider response for one chunk; ``error`` is set when the call failed."""

    index: int
    text: str
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class SummaryRequest:
    """
    Request parameters handed to a completion provider.

    The pipeline does not interpret these; ``prompt`` is the instruction
    template that the rendered prompt was built from.
    """

    model: str
    max_tokens: int = 2048
    temperature: float = 0.5
    top_p: float = 1.0
    frequency_penalty: float = 0.0
    presence_penalty: float = 0.0
    prompt: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "model": self.model,
            "max_tokens": self.max_tokens,
            "temperature": self.temperature,
            "top_p": self.top_p,
            "frequency_penalty": self.frequency_penalty,
            "presence_penalty": self.presence_penalty,
        }


@dataclass
class PipelineResult:
    """
    Terminal artifact of a summarization run.

    Attributes:
        url: Source URL (empty for raw-text runs)
        title: Page title
        summary: Final provider response, verbatim
        fact_list: Newline-joined per-chunk responses sent to the final request
        chunk_count: Number of chunks dispatched
        token_count: Token estimate of the normalized document
        failed_chunks: Indices of chunks that failed under the skip policy
        elapsed_seconds: Wall-clock duration of the run
    """

    url: str
    title: str
    summary: str
    fact_list: str = ""
    chunk_count: int = 0
    token_count: int = 0
    failed_chunks: List[int] = field(default_factory=list)
    elapsed_seconds: float = 0.0


@dataclass(frozen=True)
class PipelineEvent:
    """A single observable step of a pipeline run."""

    name: str
    message: str
    level: EventLevel = "info"
    data: Dict[str, Any] = field(default_factory=dict)


# Exception Hierarchy
class WebDigestError(Exception):
    """Base exception class for WebDigest."""

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        cause: Optional[BaseException] = None,
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.context = context or {}
        self.cause = cause
        self.timestamp = datetime.now()

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        return {
            "error_type": self.__class__.__name__,
            "error_code": self.error_code,
            "message": self.message,
            "context": self.context,
            "timestamp": self.timestamp.isoformat(),
            "cause": str(self.cause) if self.cause else None,
        }


class FetchError(WebDigestError):
    """
    Raised when a page cannot be retrieved or parsed.

    Examples:
        - DNS/connection failure
        - Non-2xx HTTP status
        - Navigation timeout
    """


class ChunkDispatchError(WebDigestError):
    """Raised when a chunk-level provider call fails under the abort policy."""


class AggregationError(WebDigestError):
    """Raised when the final summarization request fails."""


class ConfigurationError(WebDigestError):
    """
    Raised when there's an issue with configuration.

    Examples:
        - Invalid config values
        - Unknown provider name
        - Unreadable config file
    """


class ValidationError(WebDigestError):
    """Errors related to input validation."""


class PipelineTimeoutError(WebDigestError):
    """Raised when a run exceeds the caller-level timeout."""
