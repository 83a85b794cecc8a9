"""
Configuration schemas for validation.

Loaded with ``OmegaConf.structured`` so YAML files and environment overrides
are type-checked against these dataclasses.
"""
from dataclasses import dataclass, field
from typing import Optional


@dataclass
class ProviderSettings:
    name: str = "openai"
    api_key: Optional[str] = None
    base_url: Optional[str] = None
    timeout: float = 60.0


@dataclass
class RequestSettings:
    model: str = "gpt-3.5-turbo"
    max_tokens: int = 2048
    temperature: float = 0.5
    top_p: float = 1.0
    frequency_penalty: float = 0.0
    presence_penalty: float = -0.1
    # Empty means "use the built-in template"
    prompt: str = ""


def _final_request() -> RequestSettings:
    return RequestSettings(
        model="gpt-4-turbo-preview",
        max_tokens=4096,
        temperature=1.3,
        top_p=0.88,
        frequency_penalty=0.1,
        presence_penalty=0.0,
    )


@dataclass
class PipelineSettings:
    chunk_token_budget: int = 12952
    concurrency_limit: int = 2
    inter_request_delay: float = 2.0
    aggregation_delay: float = 1.0
    failure_policy: str = "abort"
    timeout: Optional[float] = None
    retry_attempts: int = 1
    retry_base_delay: float = 1.0
    token_counting: str = "tiktoken"


@dataclass
class FetchSettings:
    timeout: float = 30.0


@dataclass
class LoggingSettings:
    level: str = "INFO"
    file: Optional[str] = None
    json_format: bool = False


@dataclass
class WebDigestConfig:
    provider: ProviderSettings = field(default_factory=ProviderSettings)
    chunk: RequestSettings = field(default_factory=RequestSettings)
    final: RequestSettings = field(default_factory=_final_request)
    pipeline: PipelineSettings = field(default_factory=PipelineSettings)
    fetch: FetchSettings = field(default_factory=FetchSettings)
    logging: LoggingSettings = field(default_factory=LoggingSettings)
