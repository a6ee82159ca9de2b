"""Markdown rendering with deferred syntax highlighting.

mistune renders code blocks through a synchronous callback, while the
highlighter is asynchronous. Rendering therefore happens in two passes:

1. mistune runs to completion with a renderer that replaces every code block
   by a unique placeholder token and remembers the code and language.
2. All remembered blocks are highlighted concurrently and each placeholder is
   substituted with its highlighted markup.

Key classes:
- PygmentsHighlighter: Default Highlighter backed by Pygments.
- render_markdown: Render a markdown body to an HTML fragment.
"""

from __future__ import annotations

import asyncio
import re
import secrets

import mistune
from pygments import highlight
from pygments.formatters import HtmlFormatter
from pygments.lexers import get_lexer_by_name
from pygments.util import ClassNotFound

from .html_utils import escape_html
from .protocols import Highlighter

PLACEHOLDER_RE = re.compile(r"\{\{hl-[0-9a-f]+-\d+\}\}")

MARKDOWN_PLUGINS = ["strikethrough", "footnotes", "table", "url"]


def _generate_heading_id(text: str) -> str:
    """Generate a URL-friendly ID from heading text.

    Args:
        text: The heading text.

    Returns:
        URL-friendly slug suitable for anchor links.
    """
    slug = text.lower().strip()
    slug = re.sub(r"<[^>]+>", "", slug)
    slug = re.sub(r"[^\w\s-]", "", slug)
    slug = re.sub(r"[-\s]+", "-", slug)
    return slug.strip("-")


class PygmentsHighlighter:
    """Highlights code with Pygments in a worker thread.

    Attributes:
        cssclass: CSS class of the wrapping ``div``.
    """

    def __init__(self, cssclass: str = "highlight"):
        self.cssclass = cssclass

    async def highlight(self, code: str, lang: str | None) -> str:
        return await asyncio.to_thread(self.highlight_sync, code, lang)

    def highlight_sync(self, code: str, lang: str | None) -> str:
        """Render a code block with Pygments syntax highlighting.

        Falls back to an escaped ``<pre><code>`` block when the language is
        missing or unknown to Pygments.
        """
        if lang:
            try:
                lexer = get_lexer_by_name(lang, stripall=True)
            except ClassNotFound:
                lexer = None
            if lexer is not None:
                formatter = HtmlFormatter(nowrap=False, cssclass=self.cssclass)
                return highlight(code, lexer, formatter)
        lang_class = f' class="language-{lang}"' if lang else ""
        return f"<pre><code{lang_class}>{escape_html(code)}</code></pre>\n"


class _DeferredHighlightRenderer(mistune.HTMLRenderer):
    """Markdown renderer that defers code blocks to a later pass.

    One instance serves exactly one render call; the counter, the nonce and
    the pending blocks never leak between documents.

    Attributes:
        pending: Placeholder token -> (code, language).
    """

    def __init__(self):
        super().__init__(escape=False)
        self.pending: dict[str, tuple[str, str | None]] = {}
        self._nonce = secrets.token_hex(8)
        self._counter = 0
        self._heading_id_counts: dict[str, int] = {}

    def heading(self, text: str, level: int, **attrs) -> str:
        """Render a heading with an auto-generated, per-document unique ID."""
        base_id = _generate_heading_id(text)
        if base_id in self._heading_id_counts:
            self._heading_id_counts[base_id] += 1
            heading_id = f"{base_id}-{self._heading_id_counts[base_id]}"
        else:
            self._heading_id_counts[base_id] = 0
            heading_id = base_id
        return f'<h{level} id="{heading_id}">{text}</h{level}>\n'

    def block_code(self, code: str, info: str | None = None) -> str:
        self._counter += 1
        key = f"{{{{hl-{self._nonce}-{self._counter}}}}}"
        lang = info.split()[0] if info and info.strip() else None
        self.pending[key] = (code, lang)
        return key + "\n"


async def render_markdown(text: str, highlighter: Highlighter | None = None) -> str:
    """Render a markdown body to an HTML fragment with highlighted code.

    Args:
        text: Markdown source (front matter already removed).
        highlighter: Highlighter for code blocks; Pygments by default.

    Returns:
        HTML fragment with every code block highlighted.
    """
    renderer = _DeferredHighlightRenderer()
    markdown = mistune.create_markdown(renderer=renderer, plugins=MARKDOWN_PLUGINS)
    html = markdown(text)
    if not renderer.pending:
        return html

    highlighter = highlighter or PygmentsHighlighter()
    keys = list(renderer.pending)
    results = await asyncio.gather(
        *(highlighter.highlight(*renderer.pending[key]) for key in keys)
    )
    highlighted = dict(zip(keys, results))
    return PLACEHOLDER_RE.sub(
        lambda m: highlighted.get(m.group(0), m.group(0)), html
    )
