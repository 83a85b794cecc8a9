"""Utility functions and helpers for WebDigest."""

from .async_retry import NO_RETRY, BackoffPolicy
from .config import ConfigManager, load_config
from .error_handling import ErrorContext, wrap_error
from .logging_config import (
    LoggingEventSink,
    NullLogger,
    RecordingLogger,
    StructuredLogger,
    get_logger,
    setup_logging,
)
from .text_normalization import clean_url, normalize_lines, normalize_text
from .tokenizer import (
    TokenCounter,
    count_message_tokens,
    count_tokens,
    get_tokenizer,
    heuristic_token_count,
)

__all__ = [
    "BackoffPolicy",
    "NO_RETRY",
    "ConfigManager",
    "load_config",
    "ErrorContext",
    "wrap_error",
    "LoggingEventSink",
    "NullLogger",
    "RecordingLogger",
    "StructuredLogger",
    "get_logger",
    "setup_logging",
    "clean_url",
    "normalize_lines",
    "normalize_text",
    "TokenCounter",
    "count_message_tokens",
    "count_tokens",
    "get_tokenizer",
    "heuristic_token_count",
]
