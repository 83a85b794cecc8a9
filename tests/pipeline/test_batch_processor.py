"""Tests for windowed chunk dispatch."""

import asyncio

import pytest

from webdigest.pipeline.batch_processor import BatchDispatcher, make_windows
from webdigest.types import Chunk, ChunkDispatchError, ValidationError
from webdigest.utils.async_retry import BackoffPolicy


def make_chunks(*contents):
    return [Chunk(index=i, content=c, estimated_tokens=len(c)) for i, c in enumerate(contents)]


class TimelineProvider:
    """Records start/end of every call so window boundaries can be checked."""

    def __init__(self):
        self.timeline = []

    async def complete(self, request, prompt):
        self.timeline.append(("start", prompt))
        await asyncio.sleep(0)
        await asyncio.sleep(0)
        self.timeline.append(("end", prompt))
        return prompt.upper()


def test_make_windows():
    chunks = make_chunks("a", "b", "c", "d", "e")
    assert [[c.index for c in w] for w in make_windows(chunks, 2)] == [[0, 1], [2, 3], [4]]
    assert make_windows([], 3) == []


class TestBatchDispatcher:
    """Test BatchDispatcher.dispatch_all."""

    @pytest.fixture
    def dispatcher_factory(self, fake_provider, chunk_request, no_sleep, recording_logger):
        def factory(provider=None, **kwargs):
            kwargs.setdefault("inter_request_delay", 1.5)
            kwargs.setdefault("logger", recording_logger)
            kwargs.setdefault("sleep", no_sleep)
            return BatchDispatcher(provider or fake_provider, chunk_request, "{text}", **kwargs)

        return factory

    @pytest.mark.asyncio
    async def test_results_keep_chunk_order(self, dispatcher_factory, fake_provider):
        chunks = make_chunks("c0", "c1", "c2", "c3", "c4")
        results = await dispatcher_factory(concurrency_limit=2).dispatch_all(chunks)

        assert [r.index for r in results] == [0, 1, 2, 3, 4]
        assert [r.text for r in results] == [f"FACT<c{i}>" for i in range(5)]
        assert all(r.ok for r in results)
        assert len(fake_provider.prompts) == 5

    @pytest.mark.asyncio
    async def test_empty_chunks_are_not_sent(self, dispatcher_factory, fake_provider):
        chunks = make_chunks("c0", "", "c2")
        results = await dispatcher_factory().dispatch_all(chunks)

        assert [r.index for r in results] == [0, 2]
        assert fake_provider.prompts.count("") == 0
        assert len(fake_provider.prompts) == 2

    @pytest.mark.asyncio
    async def test_no_chunks(self, dispatcher_factory, fake_provider, recording_logger):
        assert await dispatcher_factory().dispatch_all([]) == []
        assert fake_provider.prompts == []
        assert recording_logger.named("window.start") == []

    @pytest.mark.asyncio
    async def test_windows_are_sequential(self, dispatcher_factory, recording_logger):
        provider = TimelineProvider()
        chunks = make_chunks("c0", "c1", "c2")
        results = await dispatcher_factory(provider, concurrency_limit=2).dispatch_all(chunks)

        assert [r.text for r in results] == ["C0", "C1", "C2"]
        # both window-1 calls start before either ends; window 2 starts after both end
        assert provider.timeline[:2] == [("start", "c0"), ("start", "c1")]
        assert provider.timeline.index(("start", "c2")) > provider.timeline.index(("end", "c0"))
        assert provider.timeline.index(("start", "c2")) > provider.timeline.index(("end", "c1"))
        assert [e.data["size"] for e in recording_logger.named("window.start")] == [2, 1]

    @pytest.mark.asyncio
    async def test_concurrency_limit_respected(self, dispatcher_factory, fake_provider):
        chunks = make_chunks(*[f"c{i}" for i in range(7)])
        await dispatcher_factory(concurrency_limit=3).dispatch_all(chunks)
        assert fake_provider.max_in_flight == 3

    @pytest.mark.asyncio
    async def test_limit_one_is_serial(self, dispatcher_factory, fake_provider):
        await dispatcher_factory(concurrency_limit=1).dispatch_all(make_chunks("a", "b", "c"))
        assert fake_provider.max_in_flight == 1

    @pytest.mark.asyncio
    async def test_each_request_is_paced(self, dispatcher_factory, no_sleep):
        await dispatcher_factory(concurrency_limit=2).dispatch_all(make_chunks("a", "b", "c"))
        assert no_sleep.delays == [1.5, 1.5, 1.5]

    @pytest.mark.asyncio
    async def test_abort_policy_raises_dispatch_error(self, dispatcher_factory, provider_factory):
        provider = provider_factory(fail_on=["c3"])
        chunks = make_chunks("c0", "c1", "c2", "c3", "c4", "c5")

        with pytest.raises(ChunkDispatchError) as exc_info:
            await dispatcher_factory(provider, concurrency_limit=2).dispatch_all(chunks)

        assert exc_info.value.context["chunk_index"] == 3
        assert isinstance(exc_info.value.cause, RuntimeError)
        # window 3 is never started
        assert sorted(provider.prompts) == ["c0", "c1", "c2", "c3"]

    @pytest.mark.asyncio
    async def test_abort_reports_lowest_failed_index(self, dispatcher_factory, provider_factory):
        provider = provider_factory(fail_on=["c0", "c1"])
        with pytest.raises(ChunkDispatchError) as exc_info:
            await dispatcher_factory(provider, concurrency_limit=2).dispatch_all(make_chunks("c0", "c1"))
        assert exc_info.value.context["chunk_index"] == 0

    @pytest.mark.asyncio
    async def test_skip_policy_marks_failed_chunks(
        self, dispatcher_factory, provider_factory, recording_logger
    ):
        provider = provider_factory(fail_on=["c1"])
        chunks = make_chunks("c0", "c1", "c2")
        results = await dispatcher_factory(
            provider, concurrency_limit=2, failure_policy="skip"
        ).dispatch_all(chunks)

        assert [r.index for r in results] == [0, 1, 2]
        assert results[1].text == ""
        assert not results[1].ok
        assert "c1" in results[1].error
        assert results[0].ok and results[2].ok
        failed = recording_logger.named("chunk.failed")
        assert [e.data["chunk_index"] for e in failed] == [1]
        assert recording_logger.named("dispatch.done")[0].data["failed_chunks"] == [1]

    @pytest.mark.asyncio
    async def test_backoff_retries_transient_failures(
        self, dispatcher_factory, provider_factory, no_sleep
    ):
        provider = provider_factory(fail_times={"c1": 2})
        policy = BackoffPolicy(max_attempts=3, base_delay=0.25)
        results = await dispatcher_factory(
            provider, concurrency_limit=2, backoff=policy
        ).dispatch_all(make_chunks("c0", "c1"))

        assert [r.text for r in results] == ["FACT<c0>", "FACT<c1>"]
        assert provider.prompts.count("c1") == 3
        assert sorted(no_sleep.delays) == [0.25, 0.5, 1.5, 1.5]

    @pytest.mark.asyncio
    async def test_no_retry_by_default(self, dispatcher_factory, provider_factory):
        provider = provider_factory(fail_times={"c0": 1})
        with pytest.raises(ChunkDispatchError):
            await dispatcher_factory(provider).dispatch_all(make_chunks("c0"))
        assert provider.prompts == ["c0"]

    @pytest.mark.asyncio
    async def test_events(self, dispatcher_factory, recording_logger):
        await dispatcher_factory(concurrency_limit=2).dispatch_all(make_chunks("a", "b", "c"))
        names = [e.name for e in recording_logger.events]

        assert names[0] == "dispatch.start"
        assert names[-1] == "dispatch.done"
        assert names.count("window.start") == 2
        assert names.count("window.done") == 2
        assert names.count("chunk.sent") == 3
        assert recording_logger.named("dispatch.start")[0].data["windows"] == 2

    @pytest.mark.parametrize(
        "kwargs",
        [{"concurrency_limit": 0}, {"inter_request_delay": -1.0}, {"failure_policy": "retry"}],
    )
    def test_invalid_settings(self, fake_provider, chunk_request, kwargs):
        with pytest.raises(ValidationError):
            BatchDispatcher(fake_provider, chunk_request, "{text}", **kwargs)

    @pytest.mark.asyncio
    async def test_url_reaches_prompt(self, fake_provider, chunk_request, no_sleep):
        dispatcher = BatchDispatcher(
            fake_provider, chunk_request, "{url}|{text}", sleep=no_sleep, url="https://example.com"
        )
        await dispatcher.dispatch_all(make_chunks("c0"))
        assert fake_provider.prompts == ["https://example.com|c0"]
