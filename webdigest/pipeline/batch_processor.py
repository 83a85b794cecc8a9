"""
Windowed batch dispatch of chunk prompts to a completion provider.

Chunks are sent in fixed-size windows: every request in a window starts
concurrently after a pacing delay, and the next window starts only once
every request of the current one has settled. Completion order inside a
window is not guaranteed, so each result carries its chunk's index.
"""

from __future__ import annotations

import asyncio
import time
from typing import Any, Awaitable, Callable, List, Optional, Sequence

from ..prompts.templates import render_chunk_prompt
from ..types.protocols import CompletionProvider, PipelineLogger
from ..types.types import (
    Chunk,
    ChunkDispatchError,
    ChunkResult,
    FailurePolicy,
    PipelineEvent,
    SummaryRequest,
    ValidationError,
)
from ..utils.async_retry import NO_RETRY, BackoffPolicy
from ..utils.logging_config import NullLogger

SleepFn = Callable[[float], Awaitable[Any]]

FAILURE_POLICIES = ("abort", "skip")


def make_windows(chunks: Sequence[Chunk], size: int) -> List[List[Chunk]]:
    """Split ``chunks`` into consecutive windows of at most ``size``."""
    return [list(chunks[i : i + size]) for i in range(0, len(chunks), size)]


class BatchDispatcher:
    """
    Sends every non-empty chunk to the provider, ``concurrency_limit`` at a time.

    Example:
        >>> dispatcher = BatchDispatcher(provider, request, WEBPAGE_UNDERSTANDER_PROMPT)
        >>> results = await dispatcher.dispatch_all(chunks)
    """

    def __init__(
        self,
        provider: CompletionProvider,
        request: SummaryRequest,
        prompt_template: str,
        concurrency_limit: int = 2,
        inter_request_delay: float = 1.0,
        backoff: BackoffPolicy = NO_RETRY,
        failure_policy: FailurePolicy = "abort",
        logger: Optional[PipelineLogger] = None,
        sleep: SleepFn = asyncio.sleep,
        url: str = "",
        title: str = "",
    ):
        if concurrency_limit <= 0:
            raise ValidationError(
                f"concurrency_limit must be > 0, got {concurrency_limit}",
                context={"concurrency_limit": concurrency_limit},
            )
        if inter_request_delay < 0:
            raise ValidationError(
                f"inter_request_delay must be >= 0, got {inter_request_delay}",
                context={"inter_request_delay": inter_request_delay},
            )
        if failure_policy not in FAILURE_POLICIES:
            raise ValidationError(
                f"failure_policy must be one of {FAILURE_POLICIES}, got {failure_policy!r}",
                context={"failure_policy": failure_policy},
            )

        self.provider = provider
        self.request = request
        self.prompt_template = prompt_template
        self.concurrency_limit = concurrency_limit
        self.inter_request_delay = inter_request_delay
        self.backoff = backoff
        self.failure_policy = failure_policy
        self.logger = logger or NullLogger()
        self.sleep = sleep
        self.url = url
        self.title = title

    def _emit(self, name: str, message: str, level: str = "info", **data: Any) -> None:
        self.logger.log(PipelineEvent(name=name, message=message, level=level, data=data))

    async def _send(self, chunk: Chunk) -> ChunkResult:
        await self.sleep(self.inter_request_delay)
        prompt = render_chunk_prompt(self.prompt_template, chunk.content, self.url, self.title)
        self._emit(
            "chunk.sent",
            f"Sending chunk {chunk.index}",
            level="debug",
            chunk_index=chunk.index,
            tokens=chunk.estimated_tokens,
        )
        text = await self.backoff.run(
            self.provider.complete, self.request, prompt, sleep=self.sleep
        )
        return ChunkResult(index=chunk.index, text=text)

    async def dispatch_all(self, chunks: Sequence[Chunk]) -> List[ChunkResult]:
        """
        Dispatch ``chunks`` and return one result per non-empty chunk.

        Returns:
            Results sorted by chunk index

        Raises:
            ChunkDispatchError: Under the abort policy, for the lowest-index
                failure of the first window that had one
        """
        pending = [chunk for chunk in chunks if chunk.content]
        windows = make_windows(pending, self.concurrency_limit)
        start_time = time.perf_counter()

        self._emit(
            "dispatch.start",
            f"Dispatching {len(pending)} chunks in {len(windows)} windows",
            chunks=len(pending),
            skipped_empty=len(chunks) - len(pending),
            windows=len(windows),
            concurrency_limit=self.concurrency_limit,
        )

        results: List[ChunkResult] = []
        for number, window in enumerate(windows, start=1):
            self._emit(
                "window.start",
                f"Starting window {number}/{len(windows)}",
                window=number,
                size=len(window),
                chunk_indices=[chunk.index for chunk in window],
            )

            outcomes = await asyncio.gather(
                *(self._send(chunk) for chunk in window), return_exceptions=True
            )

            failures = []
            for chunk, outcome in zip(window, outcomes):
                if isinstance(outcome, BaseException):
                    if not isinstance(outcome, Exception):
                        raise outcome
                    failures.append((chunk, outcome))
                    self._emit(
                        "chunk.failed",
                        f"Chunk {chunk.index} failed: {outcome}",
                        level="error",
                        chunk_index=chunk.index,
                        error=str(outcome),
                        error_type=type(outcome).__name__,
                    )
                    results.append(ChunkResult(index=chunk.index, text="", error=str(outcome)))
                else:
                    results.append(outcome)

            self._emit(
                "window.done",
                f"Window {number}/{len(windows)} done",
                window=number,
                size=len(window),
                failed=len(failures),
            )

            if failures and self.failure_policy == "abort":
                chunk, error = min(failures, key=lambda pair: pair[0].index)
                raise ChunkDispatchError(
                    f"Chunk {chunk.index} failed: {error}",
                    context={"chunk_index": chunk.index, "window": number},
                    cause=error,
                ) from error

        results.sort(key=lambda result: result.index)
        failed = [result.index for result in results if not result.ok]

        self._emit(
            "dispatch.done",
            f"Dispatched {len(results)} chunks in {time.perf_counter() - start_time:.2f}s",
            level="warning" if failed else "info",
            results=len(results),
            failed_chunks=failed,
        )
        return results
