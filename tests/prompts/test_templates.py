"""Tests for prompt rendering."""

from webdigest.prompts.templates import (
    CHUNK_PROMPT_SUFFIX,
    DEFAULT_SUMMARY_PROMPT,
    WEBPAGE_UNDERSTANDER_PROMPT,
    render_chunk_prompt,
    render_final_prompt,
)


class TestRenderChunkPrompt:
    """Test chunk prompt rendering."""

    def test_bare_instruction_gets_text_and_suffix(self):
        prompt = render_chunk_prompt("List facts:", "Cats purr.")
        assert prompt == f"List facts: Cats purr. {CHUNK_PROMPT_SUFFIX}"

    def test_placeholder_substitution(self):
        prompt = render_chunk_prompt("From {url}: {text}", "Cats purr.", url="https://cats.example")
        assert prompt == "From https://cats.example: Cats purr."
        assert CHUNK_PROMPT_SUFFIX not in prompt

    def test_unknown_braces_survive(self):
        prompt = render_chunk_prompt('Reply as JSON {"facts": []} for {text}', "X")
        assert prompt == 'Reply as JSON {"facts": []} for X'

    def test_empty_template_uses_default(self):
        prompt = render_chunk_prompt("", "Cats purr.")
        assert prompt.startswith(WEBPAGE_UNDERSTANDER_PROMPT)
        assert "Cats purr." in prompt


class TestRenderFinalPrompt:
    """Test final prompt rendering."""

    def test_default_shape_with_url(self):
        prompt = render_final_prompt("Sort these", "A\nB", url="https://example.com")
        assert prompt == "Sort these:\n\nURL: <https://example.com>\n\nA\nB"

    def test_default_shape_without_url(self):
        assert render_final_prompt("Sort these", "A\nB") == "Sort these:\n\nA\nB"

    def test_facts_placeholder(self):
        prompt = render_final_prompt("Title: {title}\n{facts}\nEnd", "A\nB", title="Page")
        assert prompt == "Title: Page\nA\nB\nEnd"

    def test_empty_template_uses_default(self):
        assert render_final_prompt("", "A").startswith(DEFAULT_SUMMARY_PROMPT)

    def test_facts_text_is_not_reinterpreted(self):
        prompt = render_final_prompt("{facts}", "literal {url} in a fact", url="https://x")
        assert prompt == "literal {url} in a fact"
