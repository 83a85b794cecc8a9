"""Prompt templates used by the summarization pipeline."""

from .templates import (
    CHUNK_PROMPT_SUFFIX,
    DEFAULT_SUMMARY_PROMPT,
    WEBPAGE_UNDERSTANDER_PROMPT,
    render_chunk_prompt,
    render_final_prompt,
)

__all__ = [
    "CHUNK_PROMPT_SUFFIX",
    "DEFAULT_SUMMARY_PROMPT",
    "WEBPAGE_UNDERSTANDER_PROMPT",
    "render_chunk_prompt",
    "render_final_prompt",
]
