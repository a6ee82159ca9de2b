"""Content loading for tinygen.

This module turns one source file into a Page: a route plus a deferred view
that produces the page's virtual node tree when called.

Key classes:
- Page: Frozen dataclass representing one resolvable route.
- PageBuilder: Builds Page objects from markdown documents and programmatic
  page templates.

Source kinds:
- Markdown (``.md``): front matter + markdown body, wrapped in a layout.
- Programmatic templates (``.py``): modules exporting a ``view``; they get
  the root layout in their context and apply it themselves.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .extractors import ensure_frontmatter, extract_frontmatter
from .layouts import DEFAULT, LayoutResolver
from .modules import load_view
from .paths import is_markdown, is_page_module
from .protocols import Highlighter
from .renderers import render_markdown
from .vnode import Element, h

LAYOUT_KEY = "layout"


@dataclass(frozen=True)
class Page:
    """Represents one resolvable route.

    Front-matter fields are readable as attributes (``page.title``) so that
    listings can query metadata without invoking the view.

    Attributes:
        src: Absolute path to the source file.
        path: Route of the page (``/``-rooted, no extension, index folded).
        view: Zero-argument callable producing the page's virtual node tree.
        frontmatter: Front-matter fields (without ``layout``).
    """

    src: Path
    path: str
    view: Callable[[], Element]
    frontmatter: dict[str, Any] = field(default_factory=dict)

    def __getattr__(self, name: str) -> Any:
        if name.startswith("__") or name == "frontmatter":
            raise AttributeError(name)
        try:
            return self.frontmatter[name]
        except KeyError:
            raise AttributeError(
                f"{type(self).__name__} {self.path!r} has no attribute {name!r}"
            ) from None

    def get(self, name: str, default: Any = None) -> Any:
        """Return a front-matter field, or ``default`` if it is not set."""
        return self.frontmatter.get(name, default)


class PageBuilder:
    """Builds Page objects from source files.

    Attributes:
        layouts: Resolver for layout views.
        highlighter: Highlighter for markdown code blocks (None for Pygments).
    """

    def __init__(self, layouts: LayoutResolver, highlighter: Highlighter | None = None):
        self.layouts = layouts
        self.highlighter = highlighter

    async def build(
        self,
        src: Path,
        route: str,
        globals_: Mapping[str, Any],
        site: Any = None,
    ) -> Page | None:
        """Build a Page from a source file.

        Args:
            src: Absolute path to the source file.
            route: Route the page is served under.
            globals_: Global values merged into the render context.
            site: Generator handle exposed to programmatic templates.

        Returns:
            The Page, or None if the file is not a page source.

        Raises:
            FrontMatterError: If a markdown document has malformed front matter.
            TemplateLoadError: If a template or layout module fails to load.
        """
        if is_markdown(src):
            return await self._build_markdown(src, route, globals_)
        if is_page_module(src):
            return self._build_module(src, route, globals_, site)
        return None

    async def _build_markdown(
        self, src: Path, route: str, globals_: Mapping[str, Any]
    ) -> Page:
        text = ensure_frontmatter(src.read_text(encoding="utf-8"))
        frontmatter, body = extract_frontmatter(text)
        content = await render_markdown(body, self.highlighter)
        layout = self.layouts.resolve(frontmatter.pop(LAYOUT_KEY, DEFAULT))
        context = {**globals_, **frontmatter, "path": route}

        def view() -> Element:
            return h(layout, dict(context), content)

        return Page(src=src, path=route, view=view, frontmatter=frontmatter)

    def _build_module(
        self, src: Path, route: str, globals_: Mapping[str, Any], site: Any
    ) -> Page:
        page_view = load_view(src)
        layout = self.layouts.resolve()
        context = {**globals_, "site": site, LAYOUT_KEY: layout, "path": route}

        def view() -> Element:
            return h(page_view, dict(context))

        return Page(src=src, path=route, view=view)
