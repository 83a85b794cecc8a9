"""
Async completion provider implementations.

Each provider turns a :class:`~webdigest.types.SummaryRequest` plus a
rendered prompt into the model's text response. Errors are logged and
re-raised unchanged; the dispatcher and aggregator decide what a failure
means for the run.
"""

from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

import aiohttp
from openai import AsyncOpenAI

from ..types.types import ConfigurationError, SummaryRequest
from ..utils.tokenizer import heuristic_token_count
from .providers import ModelProvider, UsageTracker


class AsyncCompletionProvider(ABC):
    """Abstract base class for async completion providers."""

    provider: ModelProvider

    def __init__(self) -> None:
        self.logger = logging.getLogger(f"webdigest.llm.{self.provider.value}")
        self.usage = UsageTracker()

    @abstractmethod
    async def complete(self, request: SummaryRequest, prompt: str) -> str:
        """Return the model's response text for ``prompt``."""

    async def close(self) -> None:
        """Release network resources held by the provider."""


class OpenAICompletionProvider(AsyncCompletionProvider):
    """OpenAI chat-completions provider."""

    provider = ModelProvider.OPENAI

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: float = 60.0,
        client: Optional[Any] = None,
    ):
        """
        Args:
            api_key: API key; the client falls back to ``OPENAI_API_KEY``
            base_url: Alternative API endpoint
            timeout: Request timeout in seconds
            client: Pre-built ``AsyncOpenAI``-compatible client (tests)
        """
        super().__init__()
        self.client = client or AsyncOpenAI(api_key=api_key, base_url=base_url, timeout=timeout)

    async def complete(self, request: SummaryRequest, prompt: str) -> str:
        start_time = time.perf_counter()

        try:
            response = await self.client.chat.completions.create(
                model=request.model,
                max_tokens=request.max_tokens,
                temperature=request.temperature,
                top_p=request.top_p,
                frequency_penalty=request.frequency_penalty,
                presence_penalty=request.presence_penalty,
                messages=[{"role": "user", "content": prompt}],
            )
        except Exception as e:
            self.logger.error(f"OpenAI API error: {e!s}")
            raise

        content = response.choices[0].message.content or ""
        usage = getattr(response, "usage", None)
        if usage is not None:
            self.usage.add_call(usage.prompt_tokens, usage.completion_tokens)
        else:
            self.usage.add_call(heuristic_token_count(prompt), heuristic_token_count(content))

        self.logger.debug(
            f"OpenAI {request.model} responded in "
            f"{(time.perf_counter() - start_time) * 1000:.0f}ms"
        )
        return content

    async def close(self) -> None:
        close = getattr(self.client, "close", None)
        if close is not None:
            await close()


class OllamaCompletionProvider(AsyncCompletionProvider):
    """Ollama local model provider (``/api/generate``)."""

    provider = ModelProvider.OLLAMA

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: float = 60.0,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        super().__init__()
        self.base_url = (base_url or "http://localhost:11434").rstrip("/")
        self.timeout = timeout
        self._session = session
        self._owns_session = session is None

    def _payload(self, request: SummaryRequest, prompt: str) -> Dict[str, Any]:
        return {
            "model": request.model,
            "prompt": prompt,
            "stream": False,
            "options": {
                "temperature": request.temperature,
                "top_p": request.top_p,
                "num_predict": request.max_tokens,
                "frequency_penalty": request.frequency_penalty,
                "presence_penalty": request.presence_penalty,
            },
        }

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout)
            )
            self._owns_session = True
        return self._session

    async def complete(self, request: SummaryRequest, prompt: str) -> str:
        endpoint = f"{self.base_url}/api/generate"

        try:
            async with self._get_session().post(
                endpoint, json=self._payload(request, prompt)
            ) as response:
                response.raise_for_status()
                result = await response.json()
        except Exception as e:
            self.logger.error(f"Ollama error: {e!s}")
            raise

        content = result.get("response", "") or ""
        self.usage.add_call(
            result.get("prompt_eval_count") or heuristic_token_count(prompt),
            result.get("eval_count") or heuristic_token_count(content),
        )
        return content

    async def close(self) -> None:
        if self._owns_session and self._session is not None and not self._session.closed:
            await self._session.close()


def create_completion_provider(
    name: str,
    api_key: Optional[str] = None,
    base_url: Optional[str] = None,
    timeout: float = 60.0,
) -> AsyncCompletionProvider:
    """
    Factory function to create a completion provider.

    Raises:
        ConfigurationError: For unknown provider names
    """
    provider = ModelProvider.parse(name)
    if provider == ModelProvider.OLLAMA:
        return OllamaCompletionProvider(base_url=base_url, timeout=timeout)

    try:
        return OpenAICompletionProvider(api_key=api_key, base_url=base_url, timeout=timeout)
    except Exception as e:
        # AsyncOpenAI refuses to build without a key
        raise ConfigurationError(
            f"Could not create OpenAI client: {e!s}. Set OPENAI_API_KEY or provider.api_key.",
            context={"provider": provider.value},
            cause=e,
        )
