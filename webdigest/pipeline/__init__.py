"""Summarization pipeline stages."""

from .aggregator import Aggregator, build_fact_list
from .batch_processor import BatchDispatcher, make_windows
from .summarize_pipeline import (
    PipelineOptions,
    SummarizationPipeline,
    build_pipeline_options,
    run_pipeline,
)

__all__ = [
    "Aggregator",
    "build_fact_list",
    "BatchDispatcher",
    "make_windows",
    "PipelineOptions",
    "SummarizationPipeline",
    "build_pipeline_options",
    "run_pipeline",
]
