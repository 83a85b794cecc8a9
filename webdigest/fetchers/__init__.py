"""Page fetchers."""

from .page_fetcher import ALLOWED_TEXT_ELEMENTS, DEFAULT_USER_AGENTS, HttpPageFetcher, parse_html

__all__ = ["ALLOWED_TEXT_ELEMENTS", "DEFAULT_USER_AGENTS", "HttpPageFetcher", "parse_html"]
