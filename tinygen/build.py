"""Site building functionality for tinygen.

This module contains the Generator, which owns the page registry and drives
full builds and single-page rebuilds.

Key objects:
- Generator: Page registry plus load/build/rebuild operations.
- build_site: Load configuration and run one full build.
- BuildError: Failure of a specific source file during a build.
"""

from __future__ import annotations

import asyncio
import os
import shutil
from dataclasses import dataclass
from pathlib import Path

from .config import Config, load_config
from .content import Page, PageBuilder
from .extractors import FrontMatterError
from .html_utils import document_preamble, prettify
from .layouts import DEFAULT, LayoutResolver
from .modules import TemplateLoadError
from .paths import is_ignored, iter_files, output_path, route_extension, route_of
from .protocols import Highlighter
from .vnode import Component, RenderError
from .vnode import render as render_node


class BuildError(Exception):
    """Error during site build with file context.

    Attributes:
        source_path: Path to the source file that caused the error.
        message: Human-readable error message.
        original_error: The original exception that was caught.
    """

    def __init__(
        self,
        source_path: Path,
        message: str,
        original_error: Exception | None = None,
    ):
        self.source_path = source_path
        self.message = message
        self.original_error = original_error
        super().__init__(f"{source_path}: {message}")


@dataclass
class BuildResult:
    """Result of a site build operation.

    Attributes:
        pages: Pages rendered into the output directory.
        copied: Number of files copied verbatim.
        output_dir: Directory where the site was built.
    """

    pages: list[Page]
    copied: int
    output_dir: Path


def _format_error_message(exc: Exception) -> str:
    """Format an exception into a user-friendly error message.

    Args:
        exc: The exception to format.

    Returns:
        A human-readable error message.
    """
    if isinstance(exc, FrontMatterError):
        return f"Invalid front matter: {exc}"
    if isinstance(exc, TemplateLoadError):
        return f"Template error: {exc.message}"
    if isinstance(exc, RenderError):
        return f"Render error: {exc}"
    if isinstance(exc, OSError):
        return f"I/O error: {exc}"
    return f"{type(exc).__name__}: {exc}"


def _broken_view(exc: Exception):
    def view():
        raise exc

    return view


def _write_text_atomic(target: Path, text: str) -> None:
    """Write text so that readers never see a partially written file."""
    target.parent.mkdir(parents=True, exist_ok=True)
    tmp = target.with_name(f".{target.name}.tmp")
    try:
        with open(tmp, "w", encoding="utf-8") as f:
            f.write(text)
        os.replace(tmp, target)
    finally:
        if tmp.exists():
            tmp.unlink()


class Generator:
    """Owns the page registry and drives builds.

    Attributes:
        config: Generator configuration.
    """

    def __init__(self, config: Config, highlighter: Highlighter | None = None):
        self.config = config
        self._pages: dict[str, Page] = {}
        self._layouts = LayoutResolver(self.src_dir)
        self._builder = PageBuilder(self._layouts, highlighter)
        self._build_lock = asyncio.Lock()

    @property
    def src_dir(self) -> Path:
        return Path(self.config.src).resolve()

    @property
    def dest_dir(self) -> Path:
        return Path(self.config.dest).resolve()

    def is_ignored(self, path: Path) -> bool:
        return is_ignored(Path(path).resolve(), self.src_dir, self.dest_dir)

    def route_of(self, path: Path) -> str:
        return route_of(Path(path).resolve(), self.src_dir)

    def layout(self, name=DEFAULT) -> Component:
        """Resolve a layout view by name (root layout when omitted)."""
        return self._layouts.resolve(name)

    def page(self, route: str) -> Page | None:
        """Return the page registered at a route."""
        return self._pages.get(route)

    def pages(self, prefix: str | None = None) -> list[Page]:
        """Return registered pages whose source lies under ``<src>/<prefix>``.

        Args:
            prefix: Subdirectory of the source directory, or None for all.

        Returns:
            Pages sorted by route.
        """
        root = self.src_dir / prefix.strip("/") if prefix else self.src_dir
        found = [p for p in self._pages.values() if p.src.is_relative_to(root)]
        return sorted(found, key=lambda p: p.path)

    def iter_sources(self) -> list[Path]:
        """Return every non-ignored file in the source tree."""
        return [p for p in iter_files(self.src_dir) if not self.is_ignored(p)]

    async def load_page(self, path: Path) -> Page | None:
        """Load one source file and register the resulting page.

        Args:
            path: Source file.

        Returns:
            The registered Page, or None if the file is not a page source.
        """
        src = Path(path).resolve()
        page = await self._builder.build(
            src, self.route_of(src), self.config.globals, site=self
        )
        if page is not None:
            self._pages[page.path] = page
        return page

    async def discover(self, path: Path) -> Page | None:
        """Load a page, reporting failures instead of raising.

        A page that fails to load is registered with a view that re-raises
        the failure, so its route keeps resolving and a later rebuild reports
        the error.
        """
        src = Path(path).resolve()
        try:
            return await self.load_page(src)
        except (FrontMatterError, TemplateLoadError, OSError, UnicodeDecodeError) as exc:
            print(f"Failed to load {src}: {exc}")
            route = self.route_of(src)
            page = Page(src=src, path=route, view=_broken_view(exc))
            self._pages[route] = page
            return page

    async def load_all(self, strict: bool = True) -> None:
        """Load every source file into the registry.

        Args:
            strict: Raise BuildError on the first failure; when False,
                failures are reported and the walk continues.
        """
        async with self._build_lock:
            await self._load_all(strict)

    async def _load_all(self, strict: bool) -> None:
        for path in self.iter_sources():
            if not strict:
                await self.discover(path)
                continue
            try:
                await self.load_page(path)
            except Exception as exc:
                raise BuildError(path, _format_error_message(exc), exc) from exc

    def render(self, page: Page) -> str:
        """Render a page to a complete document.

        Args:
            page: Page to render.

        Returns:
            Preamble plus markup; HTML is pretty-printed when enabled.
        """
        extension = route_extension(page.path)
        markup = render_node(page.view())
        if self.config.pretty and extension in ("", ".html", ".htm"):
            markup = prettify(markup)
        return document_preamble(extension) + markup

    async def rebuild(self, route: str) -> str | None:
        """Reload and render the page at a route.

        Args:
            route: Route to rebuild.

        Returns:
            The rendered document, or None if no page is registered at the
            route (or its source file has been deleted).
        """
        page = self._pages.get(route)
        if page is None:
            return None
        if not page.src.exists():
            if self._pages.get(route) is page:
                del self._pages[route]
            return None
        reloaded = await self.load_page(page.src)
        if reloaded is None:
            return None
        return self.render(reloaded)

    async def build_all(self) -> BuildResult:
        """Build the entire site into the destination directory.

        Pages are rendered to their output paths; every other non-ignored
        file is copied verbatim.

        Returns:
            BuildResult describing what was written.

        Raises:
            BuildError: If any file fails to load, render or write.
        """
        async with self._build_lock:
            await self._load_all(strict=True)
            src_dir = self.src_dir
            dest_dir = self.dest_dir
            dest_dir.mkdir(parents=True, exist_ok=True)
            written: list[Page] = []
            copied = 0
            for path in self.iter_sources():
                page = self._pages.get(self.route_of(path))
                try:
                    if page is not None and page.src == path.resolve():
                        _write_text_atomic(
                            output_path(page.path, dest_dir), self.render(page)
                        )
                        written.append(page)
                    else:
                        target = dest_dir / path.relative_to(src_dir)
                        target.parent.mkdir(parents=True, exist_ok=True)
                        shutil.copy2(path, target)
                        copied += 1
                except Exception as exc:
                    raise BuildError(path, _format_error_message(exc), exc) from exc
        return BuildResult(pages=written, copied=copied, output_dir=dest_dir)


def build_site(project_root: Path, highlighter: Highlighter | None = None) -> BuildResult:
    """Build the site configured in ``project_root``.

    Args:
        project_root: Directory holding tinygen.yaml.
        highlighter: Optional highlighter override.

    Returns:
        BuildResult of the build.
    """
    generator = Generator(load_config(project_root), highlighter=highlighter)
    return asyncio.run(generator.build_all())
