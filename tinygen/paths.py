"""Path classification for tinygen.

This module decides which files in the source tree take part in a build and
which route each source file is served under.

Key functions:
    is_ignored: Check whether a path is excluded from pages and asset copies.
    route_of: Derive the route of a source file.
    output_path: Map a route to its file in the destination directory.
    iter_files: Walk the source tree.
"""

from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path, PurePosixPath

# Files that configure the generator rather than being part of the site.
BUILD_METADATA_FILES = frozenset({"tinygen.yaml", "tinygen.yml"})

MARKDOWN_SUFFIXES = (".md", ".markdown")
PAGE_MODULE_SUFFIX = ".py"


def is_private_name(name: str) -> bool:
    """Check if a file or directory name marks it as private or hidden."""
    return name.startswith(("_", "."))


def is_ignored(path: Path, src_dir: Path, dest_dir: Path) -> bool:
    """Check if a path is excluded from page registration and copying.

    A path is ignored when it lies under the destination directory, when its
    filename is a build-metadata file, or when its filename or any directory
    between it and the source directory starts with ``_`` or ``.``. Layouts
    (``_layout.py``), partials and generator config are excluded this way.

    Args:
        path: Absolute path to check.
        src_dir: Absolute source directory.
        dest_dir: Absolute destination directory.

    Returns:
        True if the path should be skipped.
    """
    if path == dest_dir or path.is_relative_to(dest_dir):
        return True
    if path.name in BUILD_METADATA_FILES:
        return True
    if path.is_relative_to(src_dir):
        parts = path.relative_to(src_dir).parts
    else:
        parts = (path.name,)
    return any(is_private_name(part) for part in parts)


def route_of(path: Path, src_dir: Path) -> str:
    """Derive the route for a source path.

    Strips the source directory and the file extension, folds a trailing
    ``index`` segment into its parent and maps the empty route to ``/``.

    Args:
        path: Absolute source path inside ``src_dir``.
        src_dir: Absolute source directory.

    Returns:
        ``/``-rooted route.

    Raises:
        ValueError: If the path is not inside the source directory.

    Examples:
        >>> route_of(Path("/site/a/b.md"), Path("/site"))
        '/a/b'

        >>> route_of(Path("/site/a/index.md"), Path("/site"))
        '/a'
    """
    rel = PurePosixPath(path.relative_to(src_dir).as_posix())
    if rel.suffix:
        rel = rel.with_suffix("")
    route = "/" + rel.as_posix()
    if route == "/index":
        return "/"
    if route.endswith("/index"):
        route = route[: -len("/index")]
    return route or "/"


def output_path(route: str, dest_dir: Path) -> Path:
    """Return the destination file for a route.

    Routes without an extension become ``<route>/index.html``; routes that
    carry one (``/feed.xml``) are written verbatim.
    """
    rel = route.strip("/")
    if PurePosixPath(rel).suffix:
        return dest_dir / rel
    return dest_dir / rel / "index.html"


def route_extension(route: str) -> str:
    """Return the extension of a route (``".xml"``), or an empty string."""
    return PurePosixPath(route).suffix.lower()


def is_markdown(path: Path) -> bool:
    """Check if a path is a Markdown document."""
    return path.suffix.lower() in MARKDOWN_SUFFIXES


def is_page_module(path: Path) -> bool:
    """Check if a path is a programmatic page template."""
    return path.suffix == PAGE_MODULE_SUFFIX


def iter_files(src_dir: Path) -> Iterator[Path]:
    """Yield every regular file below ``src_dir`` in a stable order."""
    for path in sorted(src_dir.rglob("*")):
        if path.is_file():
            yield path
