"""HTML preview rendering for generated playbooks."""

from __future__ import annotations

import html

from markdown_it import MarkdownIt

DARK_THEME = "dark-plus"
LIGHT_THEME = "light-plus"
PLAYBOOK_LANGUAGE = "yaml"


def theme_for(dark_mode: bool) -> str:
    return DARK_THEME if dark_mode else LIGHT_THEME


class MarkdownPlaybookRenderer:
    """Renders code as a fenced markdown block through ``markdown-it-py``."""

    def __init__(self) -> None:
        self._parser = MarkdownIt("commonmark")

    def code_to_html(self, code: str, theme: str, language: str) -> str:
        source = code or ""
        fence = _fence_for(source)
        block = f"{fence}{language}\n{source}\n{fence}\n"
        body = self._parser.render(block)
        return f'<div class="playbook-preview {html.escape(theme, quote=True)}">{body}</div>'


def _fence_for(source: str) -> str:
    # A fence must be longer than any backtick run inside the block.
    longest = 0
    run = 0
    for char in source:
        run = run + 1 if char == "`" else 0
        longest = max(longest, run)
    return "`" * max(3, longest + 1)


__all__ = [
    "DARK_THEME",
    "LIGHT_THEME",
    "MarkdownPlaybookRenderer",
    "PLAYBOOK_LANGUAGE",
    "theme_for",
]
