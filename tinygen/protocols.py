"""Protocol definitions for tinygen.

This module defines the interfaces (protocols) that page templates, layouts
and highlighters implement. Keeping them here lets the loader, the renderer
and the markdown adapter depend on capabilities instead of concrete classes.

These protocols enable:
- Page templates and layouts written as plain Python objects or functions
- Swapping the syntax highlighter (e.g. in tests) without touching the loader
"""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from .vnode import Props


@runtime_checkable
class View(Protocol):
    """Protocol for anything that can be used as a polymorphic tag.

    Layouts and programmatic pages export a View. When the renderer meets an
    element whose tag is a View it calls ``view`` and renders the result.
    """

    @abstractmethod
    def view(self, props: Props) -> Any:
        """Produce a renderable result.

        Args:
            props: The element's attributes and children.

        Returns:
            A string, a list of virtual nodes, or an Element.
        """
        ...


@runtime_checkable
class Highlighter(Protocol):
    """Protocol for asynchronous syntax highlighters.

    The markdown adapter collects code blocks synchronously and resolves them
    through a Highlighter once parsing has finished.
    """

    @abstractmethod
    async def highlight(self, code: str, lang: str | None) -> str:
        """Highlight a block of code.

        Args:
            code: Source code of the block.
            lang: Language name from the fence info string, if any.

        Returns:
            HTML markup for the highlighted block.
        """
        ...
