"""
Text and URL cleanup applied before chunking and fetching.

Scraped page text arrives with layout whitespace (newlines between
elements, tab-indented table cells, runs of spaces). The pipeline
keeps line breaks as chunk boundaries and single-spaces each line with
:func:`normalize_lines`; :func:`normalize_text` flattens a whole string.
"""

from __future__ import annotations

import re
from typing import Optional

# Line breaks, tabs and the other ASCII layout controls all become spaces.
_LAYOUT_CHARS = re.compile(r"[\n\r\t\v\f]")
_MULTI_SPACE = re.compile(r" {2,}")
_EDGE_QUOTES = re.compile(r"^'+|'+$")


def normalize_text(text: Optional[str]) -> str:
    """
    Replace newlines and tabs with spaces, then collapse runs of spaces.

    Idempotent: ``normalize_text(normalize_text(x)) == normalize_text(x)``.

    Args:
        text: Raw extracted text

    Returns:
        Text without newline/tab characters and without consecutive spaces
    """
    if not text:
        return ""
    return _MULTI_SPACE.sub(" ", _LAYOUT_CHARS.sub(" ", text))


def clean_url(url: Optional[str]) -> str:
    """Strip surrounding whitespace and single quotes from a user-supplied URL."""
    if not url:
        return ""
    return _EDGE_QUOTES.sub("", str(url).strip())


def normalize_lines(text: Optional[str]) -> str:
    """
    Normalize each line on its own, keeping the line breaks.

    Lines that are empty after normalization are dropped, so the result has
    no blank lines and every line satisfies :func:`normalize_text`'s
    guarantees once stripped.
    """
    if not text:
        return ""
    lines = (normalize_text(line).strip() for line in text.splitlines())
    return "\n".join(line for line in lines if line)
