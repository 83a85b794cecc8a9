import asyncio
import sys
from pathlib import Path
from typing import Any, Dict, Optional

import typer
from typing_extensions import Annotated

from webdigest.chunking.chunker import LineChunker
from webdigest.fetchers.page_fetcher import HttpPageFetcher
from webdigest.llm.async_providers import create_completion_provider
from webdigest.pipeline.summarize_pipeline import (
    SummarizationPipeline,
    build_pipeline_options,
    run_pipeline,
)
from webdigest.types.types import PipelineResult, WebDigestError
from webdigest.utils.config import ConfigManager
from webdigest.utils.logging_config import LoggingEventSink, setup_logging
from webdigest.utils.text_normalization import clean_url, normalize_lines
from webdigest.utils.tokenizer import get_tokenizer

app = typer.Typer(help="Summarize web pages with chunked LLM fact extraction.")


def _summary_overrides(
    model: Optional[str],
    final_model: Optional[str],
    chunk_token_budget: Optional[int],
    chunk_prompt: Optional[str],
    summary_prompt: Optional[str],
    summary_max_tokens: Optional[int],
    concurrency: Optional[int],
    delay: Optional[float],
    failure_policy: Optional[str],
    provider: Optional[str],
    timeout: Optional[float],
    log_level: Optional[str],
) -> Dict[str, Any]:
    return {
        "chunk.model": model,
        "final.model": final_model,
        "pipeline.chunk_token_budget": chunk_token_budget,
        "chunk.prompt": chunk_prompt,
        "final.prompt": summary_prompt,
        "final.max_tokens": summary_max_tokens,
        "pipeline.concurrency_limit": concurrency,
        "pipeline.inter_request_delay": delay,
        "pipeline.failure_policy": failure_policy,
        "provider.name": provider,
        "pipeline.timeout": timeout,
        "logging.level": log_level,
    }


async def _summarize(config: Any, url: str) -> PipelineResult:
    provider = create_completion_provider(
        config.provider.name,
        api_key=config.provider.api_key,
        base_url=config.provider.base_url,
        timeout=config.provider.timeout,
    )
    pipeline = SummarizationPipeline(
        HttpPageFetcher(timeout=config.fetch.timeout),
        provider,
        build_pipeline_options(config),
        logger=LoggingEventSink(),
        token_counter=get_tokenizer(config.chunk.model, config.pipeline.token_counting),
    )
    try:
        return await run_pipeline(pipeline.summarize_url(url), timeout=config.pipeline.timeout)
    finally:
        await provider.close()


@app.command()
def summarize(
    url: Annotated[Optional[str], typer.Option("--url", "-u", help="URL of the page to summarize.")] = None,
    model: Annotated[Optional[str], typer.Option("--model", "-m", help="Model for chunk requests.")] = None,
    final_model: Annotated[Optional[str], typer.Option(help="Model for the final summary request.")] = None,
    chunk_token_budget: Annotated[
        Optional[int], typer.Option("--chunk-token-budget", "-c", help="Maximum tokens per chunk.")
    ] = None,
    chunk_prompt: Annotated[
        Optional[str], typer.Option("--chunk-prompt", "-cp", help="Prompt used for each chunk.")
    ] = None,
    summary_prompt: Annotated[
        Optional[str], typer.Option("--summary-prompt", "-sp", help="Prompt used for the final summary.")
    ] = None,
    summary_max_tokens: Annotated[
        Optional[int], typer.Option("--summary-max-tokens", "-smt", help="Max tokens of the summary.")
    ] = None,
    concurrency: Annotated[Optional[int], typer.Option(help="Chunk requests per window.")] = None,
    delay: Annotated[Optional[float], typer.Option(help="Seconds to wait before each chunk request.")] = None,
    failure_policy: Annotated[Optional[str], typer.Option(help="abort or skip failed chunks.")] = None,
    provider: Annotated[Optional[str], typer.Option(help="Completion provider: openai or ollama.")] = None,
    timeout: Annotated[Optional[float], typer.Option(help="Overall timeout in seconds.")] = None,
    log_level: Annotated[Optional[str], typer.Option(help="Log level for the webdigest loggers.")] = None,
    show_facts: Annotated[bool, typer.Option(help="Print the fact list before the summary.")] = False,
):
    """
    Fetch a web page, extract facts chunk by chunk and print a summary.
    """
    url = clean_url(url)
    if not url:
        raise typer.BadParameter("No URL provided", param_hint="--url")

    try:
        config = ConfigManager.get_instance().reload(
            overrides=_summary_overrides(
                model,
                final_model,
                chunk_token_budget,
                chunk_prompt,
                summary_prompt,
                summary_max_tokens,
                concurrency,
                delay,
                failure_policy,
                provider,
                timeout,
                log_level,
            )
        )
        setup_logging(
            level=config.logging.level,
            log_file=config.logging.file,
            json_format=config.logging.json_format,
        )
        result = asyncio.run(_summarize(config, url))
    except WebDigestError as e:
        typer.echo(f"❌ {type(e).__name__}: {e.message}", err=True)
        raise typer.Exit(code=1)

    if result.chunk_count == 0:
        typer.echo(f"⚠️  No extractable text found at {url}", err=True)
        return

    if show_facts:
        typer.echo("Facts:")
        typer.echo(result.fact_list)
        typer.echo("")

    typer.echo(result.summary)
    typer.echo(
        f"\n{result.chunk_count} chunks, {result.token_count} tokens, "
        f"{result.elapsed_seconds:.1f}s",
        err=True,
    )
    if result.failed_chunks:
        typer.echo(f"⚠️  Skipped failed chunks: {result.failed_chunks}", err=True)


@app.command()
def chunk(
    file: Annotated[str, typer.Argument(help="Text file to chunk, or - for stdin.")],
    chunk_token_budget: Annotated[
        Optional[int], typer.Option("--chunk-token-budget", "-c", help="Maximum tokens per chunk.")
    ] = None,
    heuristic: Annotated[bool, typer.Option(help="Use the character heuristic instead of tiktoken.")] = False,
    normalize: Annotated[bool, typer.Option(help="Normalize whitespace line by line before chunking.")] = True,
):
    """
    Show how a local text would be chunked, without calling any model.
    """
    try:
        config = ConfigManager.get_instance().reload(
            overrides={"pipeline.chunk_token_budget": chunk_token_budget}
        )
    except WebDigestError as e:
        typer.echo(f"❌ {e.message}", err=True)
        raise typer.Exit(code=1)

    if file == "-":
        text = sys.stdin.read()
    else:
        path = Path(file)
        if not path.is_file():
            raise typer.BadParameter(f"File not found: {file}", param_hint="FILE")
        text = path.read_text(encoding="utf-8")

    if normalize:
        text = normalize_lines(text)

    counter = get_tokenizer(
        config.chunk.model, "heuristic" if heuristic else config.pipeline.token_counting
    )
    chunks = LineChunker(config.pipeline.chunk_token_budget, counter).chunk(text)

    typer.echo(f"Document tokens: {counter.count_tokens(text)}")
    typer.echo(f"Chunks: {len(chunks)} (budget {config.pipeline.chunk_token_budget})")
    for c in chunks:
        marker = "  (over budget)" if c.estimated_tokens > config.pipeline.chunk_token_budget else ""
        typer.echo(f"  [{c.index}] {c.estimated_tokens} tokens, {len(c.content)} chars{marker}")


if __name__ == "__main__":
    app()
