"""
Shared pytest fixtures for WebDigest tests.
"""
import asyncio
import os
from typing import Dict, Iterable, List, Optional, Set

import pytest

from webdigest.types.types import Document, FetchError, SummaryRequest
from webdigest.utils.config import ConfigManager
from webdigest.utils.logging_config import RecordingLogger
from webdigest.utils.tokenizer import TokenCounter

SAMPLE_TEXT = (
    "The sky is blue.\n"
    "The sun is bright.\n"
    "\tThe sun in the sky is bright.\n"
    "We can see the shining sun,   the bright sun.\n"
    "The quick brown fox jumps over the lazy dog."
)


class FakeProvider:
    """
    In-memory completion provider.

    Records every prompt, tracks how many calls are in flight at once and
    can be told to fail for prompts containing given markers.
    """

    def __init__(
        self,
        fail_on: Iterable[str] = (),
        fail_times: Optional[Dict[str, int]] = None,
        jitter: bool = True,
        final_response: str = "FINAL SUMMARY",
    ):
        self.fail_on: Set[str] = set(fail_on)
        self.fail_times = dict(fail_times or {})
        self.jitter = jitter
        self.final_response = final_response
        self.prompts: List[str] = []
        self.requests: List[SummaryRequest] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def complete(self, request: SummaryRequest, prompt: str) -> str:
        self.prompts.append(prompt)
        self.requests.append(request)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.jitter:
                # Later-started calls finish first
                for _ in range(max(0, 5 - len(self.prompts))):
                    await asyncio.sleep(0)

            for marker in self.fail_on:
                if marker in prompt:
                    raise RuntimeError(f"provider failed on {marker}")
            for marker, remaining in self.fail_times.items():
                if marker in prompt and remaining > 0:
                    self.fail_times[marker] = remaining - 1
                    raise ConnectionError(f"transient failure on {marker}")

            if request.model == "final-model":
                return self.final_response
            return f"FACT<{prompt}>"
        finally:
            self.in_flight -= 1


class EchoProvider:
    """Returns each chunk prompt unchanged."""

    def __init__(self, final_response: str = "FINAL SUMMARY"):
        self.prompts: List[str] = []
        self.final_response = final_response

    async def complete(self, request: SummaryRequest, prompt: str) -> str:
        self.prompts.append(prompt)
        if request.model == "final-model":
            return self.final_response
        return prompt


class FakeFetcher:
    """Returns canned documents keyed by URL."""

    def __init__(self, pages: Optional[Dict[str, Document]] = None, error: Optional[Exception] = None):
        self.pages = pages or {}
        self.error = error
        self.urls: List[str] = []

    async def fetch(self, url: str) -> Document:
        self.urls.append(url)
        if self.error is not None:
            raise self.error
        if url not in self.pages:
            raise FetchError(f"no page for {url}", context={"url": url})
        return self.pages[url]


class SleepRecorder:
    """No-op async sleep that records requested delays."""

    def __init__(self):
        self.delays: List[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)
        await asyncio.sleep(0)


@pytest.fixture
def sample_text() -> str:
    """Multi-line sample text with tabs and repeated spaces."""
    return SAMPLE_TEXT


@pytest.fixture
def heuristic_counter() -> TokenCounter:
    """Deterministic counter that never needs tiktoken data."""
    return TokenCounter(method="heuristic")


@pytest.fixture
def fake_provider() -> FakeProvider:
    return FakeProvider()


@pytest.fixture
def no_sleep() -> SleepRecorder:
    return SleepRecorder()


@pytest.fixture
def recording_logger() -> RecordingLogger:
    return RecordingLogger()


@pytest.fixture
def chunk_request() -> SummaryRequest:
    return SummaryRequest(model="chunk-model", max_tokens=256)


@pytest.fixture
def final_request() -> SummaryRequest:
    return SummaryRequest(model="final-model", max_tokens=512)


@pytest.fixture
def isolated_config(tmp_path, monkeypatch):
    """Point config loading at an empty directory and clear overrides."""
    config_dir = tmp_path / "config"
    config_dir.mkdir()
    monkeypatch.setenv("WEBDIGEST_CONFIG_DIR", str(config_dir))
    for key in list(os.environ):
        if key.startswith("WEBDIGEST_") and "__" in key:
            monkeypatch.delenv(key)
    ConfigManager.reset()
    yield config_dir
    ConfigManager.reset()


@pytest.fixture
def provider_factory():
    """The :class:`FakeProvider` class, for tests that need custom failures."""
    return FakeProvider


@pytest.fixture
def echo_provider() -> EchoProvider:
    return EchoProvider()


@pytest.fixture
def fetcher_factory():
    """The :class:`FakeFetcher` class."""
    return FakeFetcher
