"""
Provider identifiers and usage bookkeeping shared by completion providers.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict

from ..types.types import ConfigurationError


class ModelProvider(Enum):
    """Supported completion providers."""

    OPENAI = "openai"
    OLLAMA = "ollama"

    @classmethod
    def parse(cls, name: str) -> "ModelProvider":
        """Resolve a case-insensitive provider name."""
        try:
            return cls((name or "").strip().lower())
        except ValueError:
            available = ", ".join(p.value for p in cls)
            raise ConfigurationError(
                f"Unknown provider: {name!r}. Available providers: {available}",
                context={"provider": name},
            )


@dataclass
class UsageTracker:
    """Tracks token usage across provider calls."""

    calls: int = 0
    prompt_tokens: int = 0
    completion_tokens: int = 0

    @property
    def total_tokens(self) -> int:
        return self.prompt_tokens + self.completion_tokens

    def add_call(self, prompt_tokens: int, completion_tokens: int) -> None:
        """Record one call's token usage."""
        self.calls += 1
        self.prompt_tokens += prompt_tokens
        self.completion_tokens += completion_tokens

    def get_summary(self) -> Dict[str, int]:
        """Get token usage summary."""
        return {
            "calls": self.calls,
            "prompt_tokens": self.prompt_tokens,
            "completion_tokens": self.completion_tokens,
            "total_tokens": self.total_tokens,
        }
