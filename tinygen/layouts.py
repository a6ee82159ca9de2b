"""Layout resolution for tinygen.

A layout is a view stored as ``_layout.py`` either at the root of the source
directory or inside a named subdirectory. Markdown pages pick a layout with
the ``layout`` front-matter key; programmatic pages receive the root layout
and decide themselves whether to apply it.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from .modules import load_view
from .vnode import Component, Props

LAYOUT_FILENAME = "_layout.py"

# Marker for "no layout requested", distinct from an explicit None.
DEFAULT = object()


def _passthrough(props: Props) -> Any:
    return props.children


# Identity layout: renders its children unchanged.
PASSTHROUGH = Component(_passthrough, name="passthrough")


class LayoutResolver:
    """Resolves layout views for pages.

    Attributes:
        src_dir: Source directory holding the layouts.
    """

    def __init__(self, src_dir: Path):
        self.src_dir = src_dir

    def path_for(self, name: str | None = None) -> Path:
        """Return where the root layout or a named layout would live."""
        if name:
            return self.src_dir / name / LAYOUT_FILENAME
        return self.src_dir / LAYOUT_FILENAME

    def resolve(self, name: Any = DEFAULT) -> Component:
        """Resolve a layout view.

        Rules, in order:
        1. ``None`` or ``False``: explicit opt-out, the passthrough layout.
        2. Not given: the root layout if present, else passthrough.
        3. A name: the layout in that subdirectory if present, else passthrough.

        Only a missing file falls back to passthrough; a layout module that
        fails to load raises ``TemplateLoadError``.

        Args:
            name: Layout name from front matter, None, or DEFAULT.

        Returns:
            The layout view.
        """
        if name is None or name is False:
            return PASSTHROUGH
        path = self.path_for(None if name is DEFAULT else str(name))
        if not path.is_file():
            return PASSTHROUGH
        return load_view(path)
