"""
Final aggregation: fold per-chunk facts into a single summary request.

Example usage:
    >>> aggregator = Aggregator(provider, final_request, DEFAULT_SUMMARY_PROMPT)
    >>> summary = await aggregator.aggregate(results, url="https://example.com")
"""

from __future__ import annotations

import logging
from typing import Iterable, Optional

from ..prompts.templates import render_final_prompt
from ..types.protocols import CompletionProvider, PipelineLogger
from ..types.types import AggregationError, ChunkResult, PipelineEvent, SummaryRequest
from ..utils.error_handling import ErrorContext
from ..utils.logging_config import NullLogger

logger = logging.getLogger(__name__)

FACT_SEPARATOR = "\n"


def build_fact_list(results: Iterable[ChunkResult]) -> str:
    """Join result texts in chunk-index order, one per line."""
    ordered = sorted(results, key=lambda result: result.index)
    return FACT_SEPARATOR.join(result.text for result in ordered)


class Aggregator:
    """Issues the single final summarization request."""

    def __init__(
        self,
        provider: CompletionProvider,
        request: SummaryRequest,
        prompt_template: str,
        logger: Optional[PipelineLogger] = None,
    ):
        self.provider = provider
        self.request = request
        self.prompt_template = prompt_template
        self.logger = logger or NullLogger()

    async def aggregate(self, results: Iterable[ChunkResult], url: str = "", title: str = "") -> str:
        """
        Summarize the fact list built from ``results``.

        Returns:
            The provider's response, verbatim

        Raises:
            AggregationError: If the provider call fails
        """
        facts = build_fact_list(results)
        prompt = render_final_prompt(self.prompt_template, facts, url=url, title=title)

        self.logger.log(
            PipelineEvent(
                name="aggregate.start",
                message=f"Generating summary of {len(facts.split(FACT_SEPARATOR))} facts",
                data={"model": self.request.model, "max_tokens": self.request.max_tokens},
            )
        )

        with ErrorContext(
            "aggregate",
            error_type=AggregationError,
            context={"model": self.request.model, "url": url},
            logger=logger,
        ):
            summary = await self.provider.complete(self.request, prompt)

        self.logger.log(
            PipelineEvent(
                name="aggregate.done",
                message="Summary generated",
                data={"summary_chars": len(summary)},
            )
        )
        return summary
