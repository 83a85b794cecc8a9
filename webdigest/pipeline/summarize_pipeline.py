"""
End-to-end summarization pipeline.

fetch -> normalize -> chunk -> dispatch -> aggregate

Collaborators are injected: a :class:`~webdigest.types.PageFetcher`, a
:class:`~webdigest.types.CompletionProvider` and a
:class:`~webdigest.types.PipelineLogger`. The pipeline holds no state
between runs.

Example:
    >>> pipeline = SummarizationPipeline(HttpPageFetcher(), provider, PipelineOptions())
    >>> result = await run_pipeline(pipeline.summarize_url(url), timeout=300)
    >>> print(result.summary)
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field, replace
from typing import Any, Awaitable, Callable, Optional, TypeVar

from omegaconf import DictConfig

from ..chunking.chunker import LineChunker
from ..prompts.templates import DEFAULT_SUMMARY_PROMPT, WEBPAGE_UNDERSTANDER_PROMPT
from ..types.protocols import CompletionProvider, PageFetcher, PipelineLogger
from ..types.types import (
    Document,
    FailurePolicy,
    FetchError,
    PipelineEvent,
    PipelineResult,
    PipelineTimeoutError,
    SummaryRequest,
    ValidationError,
)
from ..utils.async_retry import NO_RETRY, BackoffPolicy
from ..utils.error_handling import ErrorContext
from ..utils.logging_config import NullLogger
from ..utils.text_normalization import clean_url, normalize_lines
from ..utils.tokenizer import TokenCounter, get_tokenizer
from .aggregator import Aggregator, build_fact_list
from .batch_processor import BatchDispatcher

T = TypeVar("T")
SleepFn = Callable[[float], Awaitable[Any]]

logger = logging.getLogger(__name__)


def _default_chunk_request() -> SummaryRequest:
    return SummaryRequest(model="gpt-3.5-turbo", max_tokens=2048, temperature=0.5, presence_penalty=-0.1)


def _default_final_request() -> SummaryRequest:
    return SummaryRequest(
        model="gpt-4-turbo-preview",
        max_tokens=4096,
        temperature=1.3,
        top_p=0.88,
        frequency_penalty=0.1,
    )


@dataclass
class PipelineOptions:
    """Caller-facing options bag for one pipeline."""

    chunk_request: SummaryRequest = field(default_factory=_default_chunk_request)
    final_request: SummaryRequest = field(default_factory=_default_final_request)
    chunk_token_budget: int = 12952
    chunk_prompt: str = WEBPAGE_UNDERSTANDER_PROMPT
    final_prompt_template: str = DEFAULT_SUMMARY_PROMPT
    concurrency_limit: int = 2
    inter_request_delay: float = 2.0
    aggregation_delay: float = 1.0
    failure_policy: FailurePolicy = "abort"
    backoff: BackoffPolicy = NO_RETRY

    def __post_init__(self):
        # requests record the template they are rendered from
        self.chunk_request = replace(self.chunk_request, prompt=self.chunk_prompt)
        self.final_request = replace(self.final_request, prompt=self.final_prompt_template)

    @classmethod
    def from_config(cls, config: DictConfig) -> "PipelineOptions":
        """Build options from a loaded :func:`~webdigest.utils.config.load_config` result."""
        return build_pipeline_options(config)


def _request_from_section(section: Any) -> SummaryRequest:
    return SummaryRequest(
        model=section.model,
        max_tokens=section.max_tokens,
        temperature=section.temperature,
        top_p=section.top_p,
        frequency_penalty=section.frequency_penalty,
        presence_penalty=section.presence_penalty,
        prompt=section.prompt,
    )


def build_pipeline_options(config: DictConfig) -> PipelineOptions:
    """Convert configuration sections into :class:`PipelineOptions`."""
    pipeline = config.pipeline
    return PipelineOptions(
        chunk_request=_request_from_section(config.chunk),
        final_request=_request_from_section(config.final),
        chunk_token_budget=pipeline.chunk_token_budget,
        chunk_prompt=config.chunk.prompt or WEBPAGE_UNDERSTANDER_PROMPT,
        final_prompt_template=config.final.prompt or DEFAULT_SUMMARY_PROMPT,
        concurrency_limit=pipeline.concurrency_limit,
        inter_request_delay=pipeline.inter_request_delay,
        aggregation_delay=pipeline.aggregation_delay,
        failure_policy=pipeline.failure_policy,
        backoff=BackoffPolicy(
            max_attempts=pipeline.retry_attempts,
            base_delay=pipeline.retry_base_delay,
            jitter=pipeline.retry_attempts > 1,
        ),
    )


async def run_pipeline(coro: Awaitable[T], timeout: Optional[float] = None) -> T:
    """
    Await a pipeline run with an optional caller-level timeout.

    Raises:
        PipelineTimeoutError: If ``timeout`` seconds elapse first
    """
    if timeout is None:
        return await coro
    try:
        return await asyncio.wait_for(coro, timeout=timeout)
    except asyncio.TimeoutError as e:
        raise PipelineTimeoutError(
            f"Pipeline did not finish within {timeout}s",
            context={"timeout": timeout},
            cause=e,
        ) from e


class SummarizationPipeline:
    """Summarizes web pages through chunked fact extraction."""

    def __init__(
        self,
        fetcher: PageFetcher,
        provider: CompletionProvider,
        options: Optional[PipelineOptions] = None,
        logger: Optional[PipelineLogger] = None,
        token_counter: Optional[TokenCounter] = None,
        sleep: SleepFn = asyncio.sleep,
    ):
        self.fetcher = fetcher
        self.provider = provider
        self.options = options or PipelineOptions()
        self.logger = logger or NullLogger()
        self.token_counter = token_counter or get_tokenizer(self.options.chunk_request.model)
        self.sleep = sleep
        self.chunker = LineChunker(self.options.chunk_token_budget, self.token_counter)

    def _emit(self, name: str, message: str, level: str = "info", **data: Any) -> None:
        self.logger.log(PipelineEvent(name=name, message=message, level=level, data=data))

    async def summarize_url(self, url: str) -> PipelineResult:
        """
        Fetch ``url`` and summarize it.

        Raises:
            ValidationError: If the URL is empty after cleaning
            FetchError: If the page cannot be retrieved
            ChunkDispatchError: If a chunk fails under the abort policy
            AggregationError: If the final request fails
        """
        start_time = time.perf_counter()
        url = clean_url(url)
        if not url:
            raise ValidationError("No URL provided")

        self._emit("fetch.start", f"Navigating to {url}", url=url)
        with ErrorContext("fetch", error_type=FetchError, context={"url": url}, logger=logger):
            document = await self.fetcher.fetch(url)
        self._emit(
            "fetch.done",
            f"Fetched {document.title or url}",
            url=url,
            title=document.title,
            links=len(document.links),
        )

        return await self.summarize_document(document, start_time=start_time)

    async def summarize_text(self, text: str, url: str = "", title: str = "") -> PipelineResult:
        """Summarize already-extracted text."""
        return await self.summarize_document(Document(url=url, title=title, raw_text=text))

    async def summarize_document(
        self, document: Document, start_time: Optional[float] = None
    ) -> PipelineResult:
        """Normalize, chunk, dispatch and aggregate one document."""
        start_time = time.perf_counter() if start_time is None else start_time
        opts = self.options

        text = normalize_lines(document.raw_text)
        token_count = self.token_counter.count_tokens(text)
        self._emit("normalize.done", f"Document has {token_count} tokens", tokens=token_count)

        chunks = self.chunker.chunk(text)
        self._emit(
            "chunk.done",
            f"Split text into {len(chunks)} chunks",
            chunks=len(chunks),
            token_budget=opts.chunk_token_budget,
        )

        if not chunks:
            self._emit(
                "pipeline.empty",
                "No extractable text, skipping summarization",
                level="warning",
                url=document.url,
            )
            return PipelineResult(
                url=document.url,
                title=document.title,
                summary="",
                fact_list="",
                chunk_count=0,
                token_count=token_count,
                failed_chunks=[],
                elapsed_seconds=time.perf_counter() - start_time,
            )

        dispatcher = BatchDispatcher(
            self.provider,
            opts.chunk_request,
            opts.chunk_prompt,
            concurrency_limit=opts.concurrency_limit,
            inter_request_delay=opts.inter_request_delay,
            backoff=opts.backoff,
            failure_policy=opts.failure_policy,
            logger=self.logger,
            sleep=self.sleep,
            url=document.url,
            title=document.title,
        )
        results = await dispatcher.dispatch_all(chunks)

        await self.sleep(opts.aggregation_delay)

        aggregator = Aggregator(
            self.provider, opts.final_request, opts.final_prompt_template, logger=self.logger
        )
        summary = await aggregator.aggregate(results, url=document.url, title=document.title)

        elapsed = time.perf_counter() - start_time
        self._emit("pipeline.done", f"Summary ready in {elapsed:.2f}s", elapsed_seconds=elapsed)

        return PipelineResult(
            url=document.url,
            title=document.title,
            summary=summary,
            fact_list=build_fact_list(results),
            chunk_count=len(chunks),
            token_count=token_count,
            failed_chunks=[result.index for result in results if not result.ok],
            elapsed_seconds=elapsed,
        )
