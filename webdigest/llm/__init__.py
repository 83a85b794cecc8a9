"""Completion providers for WebDigest."""

from .async_providers import (
    AsyncCompletionProvider,
    OllamaCompletionProvider,
    OpenAICompletionProvider,
    create_completion_provider,
)
from .providers import ModelProvider, UsageTracker

__all__ = [
    "AsyncCompletionProvider",
    "OpenAICompletionProvider",
    "OllamaCompletionProvider",
    "create_completion_provider",
    "ModelProvider",
    "UsageTracker",
]
