"""
Web page fetcher: fetch a URL and extract readable text.

Uses aiohttp + BeautifulSoup. Text is taken from content-bearing elements
only (paragraphs, headings, links, table rows, code and quotes), one line
per outermost element, which drops scripts, styles and most layout chrome.
JavaScript-rendered pages need a browser-based fetcher; anything implementing
:class:`~webdigest.types.PageFetcher` can be passed to the pipeline.
"""

from __future__ import annotations

import logging
import random
import re
from typing import Optional, Sequence, Tuple, Union
from urllib.parse import urljoin

import aiohttp
from bs4 import BeautifulSoup

from ..types.types import Document, FetchError, Link

logger = logging.getLogger(__name__)

ALLOWED_TEXT_ELEMENTS = "p, h1, h2, h3, h4, h5, h6, a, td, th, tr, pre, code, blockquote"
_ALLOWED_TAGS = [name.strip() for name in ALLOWED_TEXT_ELEMENTS.split(",")]

DEFAULT_USER_AGENTS = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/92.0.4515.159 Safari/537.36",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/605.1.15 (KHTML, like Gecko) "
    "Version/14.0 Safari/605.1.15",
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/92.0.4515.159 Safari/537.36",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:91.0) Gecko/20100101 Firefox/91.0",
)

_WHITESPACE = re.compile(r"\s+")


def parse_html(
    html: Union[str, bytes], url: str = "", encoding: Optional[str] = None
) -> Document:
    """
    Extract title, text and links from an HTML page.

    Args:
        html: Page markup, decoded or raw bytes
        url: Page address, used to resolve relative links
        encoding: Charset declared by the server for raw bytes; BeautifulSoup
            tries it first and falls back to its own detection when the
            bytes do not decode

    Returns:
        Document whose text holds one whitespace-collapsed line per
        content element, in document order
    """
    if isinstance(html, bytes):
        soup = BeautifulSoup(html, "html.parser", from_encoding=encoding)
    else:
        soup = BeautifulSoup(html, "html.parser")

    title = soup.title.get_text(strip=True) if soup.title else ""

    lines = []
    for element in soup.select(ALLOWED_TEXT_ELEMENTS):
        # nested matches (a link inside a paragraph) are covered by the outer element
        if element.find_parent(_ALLOWED_TAGS) is not None:
            continue
        line = _WHITESPACE.sub(" ", element.get_text(" ")).strip()
        if line:
            lines.append(line)
    text = "\n".join(lines)

    links = tuple(
        Link(text=anchor.get_text(strip=True), href=urljoin(url, anchor["href"]))
        for anchor in soup.find_all("a", href=True)
    )

    return Document(url=url, title=title, raw_text=text, links=links)


class HttpPageFetcher:
    """Fetches pages over HTTP with a rotating user agent."""

    def __init__(
        self,
        timeout: float = 30.0,
        user_agents: Sequence[str] = DEFAULT_USER_AGENTS,
        rng: Optional[random.Random] = None,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        if not user_agents:
            raise ValueError("user_agents must not be empty")
        self.timeout = timeout
        self.user_agents = tuple(user_agents)
        self._rng = rng or random.Random()
        self._session = session

    def pick_user_agent(self) -> str:
        """Pick a user agent for the next request."""
        user_agent = self._rng.choice(self.user_agents)
        logger.debug(f"Picked User Agent: {user_agent}")
        return user_agent

    async def _get(self, session: aiohttp.ClientSession, url: str) -> Tuple[bytes, Optional[str]]:
        headers = {"User-Agent": self.pick_user_agent()}
        async with session.get(url, headers=headers) as response:
            response.raise_for_status()
            # raw bytes; parse_html decodes them
            return await response.read(), response.charset

    async def fetch(self, url: str) -> Document:
        """
        Fetch and parse ``url``.

        Raises:
            FetchError: On network errors, timeouts and non-2xx responses
        """
        logger.info(f"Navigating to {url}")
        try:
            if self._session is not None:
                body, charset = await self._get(self._session, url)
            else:
                timeout = aiohttp.ClientTimeout(total=self.timeout)
                async with aiohttp.ClientSession(timeout=timeout) as session:
                    body, charset = await self._get(session, url)
        except Exception as e:
            logger.error(f"Error fetching and parsing URL: {e!s}")
            raise FetchError(
                f"Failed to fetch {url}: {e!s}",
                context={"url": url},
                cause=e,
            ) from e

        document = parse_html(body, url, encoding=charset)
        logger.debug(f"Page raw text: {document.raw_text[:500]}")
        return document
