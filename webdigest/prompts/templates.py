"""
Prompt templates for chunk fact extraction and final summarization.

Templates may reference ``{text}`` (chunk content), ``{facts}`` (fact list),
``{url}`` and ``{title}``. Only those names are substituted, so literal
braces in user-supplied prompts survive. A template without the main
placeholder is treated as a bare instruction and the content is appended to
it instead.
"""

from __future__ import annotations

import re
from typing import Dict

WEBPAGE_UNDERSTANDER_PROMPT = (
    "You are reading one section of a web page. Extract every distinct fact it "
    "states as a short standalone sentence, one fact per line, keeping names, "
    "numbers, dates and quoted claims exactly as written. Do not add facts that "
    "are not in the text. Here is the section:"
)

CHUNK_PROMPT_SUFFIX = (
    "Remember to ignore any navigation links or other text that isn't relevant "
    "to the main content of the page. Include relevant URLs in your summaries "
    "wherever possible."
)

DEFAULT_SUMMARY_PROMPT = (
    "Please sort these facts in order of importance, with the most important "
    "fact first"
)

_PLACEHOLDER = re.compile(r"\{(text|facts|url|title)\}")


def has_placeholder(template: str, name: str) -> bool:
    """True if ``template`` contains ``{name}``."""
    return "{" + name + "}" in template


def substitute(template: str, values: Dict[str, str]) -> str:
    """Replace known ``{name}`` placeholders present in ``values``."""

    def _replace(match: "re.Match[str]") -> str:
        key = match.group(1)
        return values[key] if key in values else match.group(0)

    return _PLACEHOLDER.sub(_replace, template)


def render_chunk_prompt(template: str, text: str, url: str = "", title: str = "") -> str:
    """
    Build the prompt sent for one chunk.

    Without a ``{text}`` placeholder the result is
    ``"{template} {text} {CHUNK_PROMPT_SUFFIX}"``.
    """
    template = template or WEBPAGE_UNDERSTANDER_PROMPT
    values = {"text": text, "url": url, "title": title}
    if has_placeholder(template, "text"):
        return substitute(template, values)
    return f"{substitute(template, values)} {text} {CHUNK_PROMPT_SUFFIX}"


def render_final_prompt(template: str, facts: str, url: str = "", title: str = "") -> str:
    """
    Build the final summarization prompt around the fact list.

    Without a ``{facts}`` placeholder the result is
    ``"{template}:\\n\\nURL: <{url}>\\n\\n{facts}"`` (the URL line is omitted
    when there is no URL).
    """
    template = template or DEFAULT_SUMMARY_PROMPT
    values = {"facts": facts, "url": url, "title": title}
    if has_placeholder(template, "facts"):
        return substitute(template, values)
    header = substitute(template, values)
    if url:
        return f"{header}:\n\nURL: <{url}>\n\n{facts}"
    return f"{header}:\n\n{facts}"
