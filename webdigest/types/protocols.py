"""Collaborator interfaces consumed by the summarization pipeline.

Any object with matching methods can be used; nothing has to inherit from
these classes.

Example:
    >>> class EchoProvider:
    ...     async def complete(self, request, prompt):
    ...         return prompt
    >>> isinstance(EchoProvider(), CompletionProvider)
    True
"""

from typing import Protocol, runtime_checkable

from .types import Document, PipelineEvent, SummaryRequest


@runtime_checkable
class PageFetcher(Protocol):
    """Retrieves a page and extracts its title, text and links."""

    async def fetch(self, url: str) -> Document:
        """Fetch ``url``; raise on navigation or timeout errors."""
        ...


@runtime_checkable
class CompletionProvider(Protocol):
    """External LLM completion service."""

    async def complete(self, request: SummaryRequest, prompt: str) -> str:
        """Return the model's text response for ``prompt``."""
        ...


@runtime_checkable
class PipelineLogger(Protocol):
    """Sink for pipeline events."""

    def log(self, event: PipelineEvent) -> None:
        ...
