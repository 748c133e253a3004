"""Markdown + LaTeX rendering for question prompts served to students.

Prompts are stored as Markdown source. Student-facing views carry an HTML
fragment next to the source so clients can display it directly; LaTeX is
left untouched for MathJax to typeset in the browser.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from markdown_it import MarkdownIt

EMPTY_PROMPT_HTML = "<p><em>No content provided.</em></p>"


@dataclass(slots=True)
class MarkdownMathRenderer:
    """Converts markdown-with-math into HTML fragments."""

    _markdown: MarkdownIt = field(init=False, repr=False)

    def __post_init__(self) -> None:
        # Raw HTML stays disabled: prompts are authored by users.
        self._markdown = (
            MarkdownIt("commonmark", {"html": False})
            .enable("table")
            .enable("strikethrough")
        )

    def render_fragment(self, markdown_text: str) -> str:
        """Render a markdown string into an HTML fragment."""

        sanitized = (markdown_text or "").strip()
        if not sanitized:
            return EMPTY_PROMPT_HTML
        return self._markdown.render(sanitized)


# MarkdownIt is safe to share for read-only renders.
renderer = MarkdownMathRenderer()
