"""HTML utility functions for tinygen.

This module provides the string-level markup operations shared by the build
and the dev server.

Functions:
    escape_html: Escape special HTML characters in a string.
    document_preamble: Doctype or XML prolog for a route.
    prettify: Pretty-print an HTML document.
    inject_before_body_end: Insert a snippet before ``</body>``.
    error_page: Render an exception as an HTML page.
"""

from __future__ import annotations

import traceback

from bs4 import BeautifulSoup
from bs4.element import PageElement, Tag
from markupsafe import Markup, escape

HTML_DOCTYPE = "<!DOCTYPE html>\n"
XML_PROLOG = '<?xml version="1.0" encoding="UTF-8"?>\n'

# Elements laid out on their own lines; everything else is phrasing content
# and stays inline with its surrounding text.
BLOCK_TAGS = frozenset(
    {
        "address", "article", "aside", "blockquote", "body", "dd", "details",
        "dialog", "div", "dl", "dt", "fieldset", "figcaption", "figure",
        "footer", "form", "h1", "h2", "h3", "h4", "h5", "h6", "head",
        "header", "hr", "html", "li", "link", "main", "meta", "nav",
        "noscript", "ol", "p", "pre", "script", "section", "style",
        "summary", "table", "tbody", "td", "template", "textarea", "tfoot",
        "th", "thead", "title", "tr", "ul",
    }
)

# Block elements whose contents are whitespace sensitive.
VERBATIM_TAGS = frozenset({"pre", "textarea", "script", "style"})

INDENT = " "

_ERROR_PAGE = Markup(
    "<!DOCTYPE html>\n"
    "<html><head><meta charset=\"utf-8\"><title>{title}</title></head>"
    "<body><h1>{title}</h1><pre>{details}</pre></body></html>"
)


def escape_html(text: str) -> str:
    """Escape special HTML characters in a string.

    Examples:
        >>> escape_html('<script>alert("XSS")</script>')
        '&lt;script&gt;alert(&#34;XSS&#34;)&lt;/script&gt;'
    """
    return str(escape(text))


def document_preamble(extension: str) -> str:
    """Return the preamble for a document with the given route extension.

    Args:
        extension: Route extension such as ``".xml"``, or empty for HTML.

    Returns:
        XML prolog for ``.xml`` routes, an HTML doctype otherwise.
    """
    if extension == ".xml":
        return XML_PROLOG
    return HTML_DOCTYPE


def prettify(markup: str) -> str:
    """Pretty-print HTML markup.

    Block-level elements are placed on their own lines and indented by
    nesting depth. Inline content (text, ``<em>``, ``<code>``, links) is kept
    on one line exactly as rendered, so the text a browser displays does not
    change. Contents of ``<pre>``, ``<textarea>``, ``<script>`` and
    ``<style>`` are emitted untouched.

    Examples:
        >>> print(prettify("<ul><li>Say <em>hi</em>.</li></ul>"))
        <ul>
         <li>Say <em>hi</em>.</li>
        </ul>
    """
    soup = BeautifulSoup(markup, "html.parser")
    lines: list[str] = []
    _pretty_nodes(soup.contents, 0, lines)
    return "\n".join(lines)


def _is_block(node: PageElement) -> bool:
    return isinstance(node, Tag) and node.name in BLOCK_TAGS


def _pretty_nodes(nodes: list[PageElement], depth: int, lines: list[str]) -> None:
    run: list[PageElement] = []
    for node in nodes:
        if _is_block(node):
            _flush_inline(run, depth, lines)
            _pretty_block(node, depth, lines)
        else:
            run.append(node)
    _flush_inline(run, depth, lines)


def _flush_inline(run: list[PageElement], depth: int, lines: list[str]) -> None:
    text = "".join(_inline_markup(node) for node in run).strip()
    run.clear()
    if text:
        lines.append(INDENT * depth + text)


def _inline_markup(node: PageElement) -> str:
    if isinstance(node, Tag):
        return node.decode(formatter="minimal")
    return node.output_ready(formatter="minimal")


def _pretty_block(tag: Tag, depth: int, lines: list[str]) -> None:
    pad = INDENT * depth
    if tag.name in VERBATIM_TAGS or not any(_is_block(child) for child in tag.children):
        lines.append(pad + tag.decode(formatter="minimal"))
        return
    lines.append(pad + _open_tag(tag))
    _pretty_nodes(tag.contents, depth + 1, lines)
    lines.append(f"{pad}</{tag.name}>")


def _open_tag(tag: Tag) -> str:
    parts = [tag.name]
    for key, value in tag.attrs.items():
        if isinstance(value, list):
            value = " ".join(value)
        parts.append(f'{key}="{escape_html(value)}"')
    return f"<{' '.join(parts)}>"


def inject_before_body_end(html: str, snippet: str) -> str:
    """Insert a snippet before ``</body>``, or append it when there is none."""
    if "</body>" in html:
        head, _, tail = html.rpartition("</body>")
        return f"{head}{snippet}</body>{tail}"
    return html + snippet


def error_page(exc: BaseException, title: str = "Build error") -> str:
    """Render an exception and its traceback as an HTML page."""
    details = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    return str(_ERROR_PAGE.format(title=title, details=details))
