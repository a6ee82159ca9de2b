"""Virtual nodes and their serialization to markup.

Pages and layouts describe their output as a tree of virtual nodes instead of
text. A node is one of:

- a plain string, emitted verbatim (markdown and highlighted code are trusted
  and never escaped),
- a list of nodes, emitted one after another,
- an ``Element`` whose tag is either a literal element name or a
  ``Component`` (a view that is invoked and whose result is rendered in turn).

Key objects:
- h: Hyperscript helper for building elements.
- component: Decorator turning a function into a Component.
- render: Serialize a node tree to a markup string.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any

from .protocols import View

# Deepest chain of views delegating to views before rendering gives up.
MAX_VIEW_DEPTH = 200

_UPPER_RE = re.compile(r"[A-Z]")


class RenderError(Exception):
    """Error raised when a node tree cannot be serialized."""


@dataclass
class Props:
    """Arguments handed to a view.

    Attributes:
        attrs: Attribute mapping of the element (the render context for pages).
        children: Child nodes of the element.
    """

    attrs: dict[str, Any] = field(default_factory=dict)
    children: list[Any] = field(default_factory=list)


class Component:
    """A view backed by a function taking ``Props``."""

    def __init__(self, fn: Callable[[Props], Any], name: str | None = None):
        self.fn = fn
        self.name = name or getattr(fn, "__name__", "component")

    def view(self, props: Props) -> Any:
        return self.fn(props)

    def __repr__(self) -> str:
        return f"<Component {self.name}>"


@dataclass
class Element:
    """A structured virtual node.

    Attributes:
        tag: Literal element name or a Component.
        attrs: Attribute mapping; values may be nested style mappings.
        children: Child nodes, or None for an element without children.
    """

    tag: str | Component
    attrs: dict[str, Any] | None = None
    children: list[Any] | None = None


def as_component(obj: Any) -> Component:
    """Adapt a view-like object into a Component.

    Accepts an existing Component, any object with a ``view`` method, or a
    plain callable taking ``Props``.

    Raises:
        TypeError: If the object offers no view capability.
    """
    if isinstance(obj, Component):
        return obj
    if isinstance(obj, View):
        return Component(obj.view, name=type(obj).__name__)
    if callable(obj):
        return Component(obj)
    raise TypeError(f"{obj!r} is not a view")


def h(tag: Any, attrs: Mapping[str, Any] | None = None, *children: Any) -> Element:
    """Build an Element.

    A single list passed as the only child is used as the children list, so
    ``h("ul", None, items)`` and ``h("ul", None, *items)`` are equivalent.

    Args:
        tag: Element name, Component, view object or callable.
        attrs: Attribute mapping.
        *children: Child nodes.

    Returns:
        The new Element.
    """
    if len(children) == 1 and isinstance(children[0], (list, tuple)):
        children = tuple(children[0])
    if not isinstance(tag, str):
        tag = as_component(tag)
    return Element(tag, dict(attrs) if attrs else None, list(children))


def component(fn: Callable[[dict[str, Any]], Any] | None = None, /, **defaults: Any):
    """Decorator turning an attrs-taking function into a Component.

    The function receives a single dict: the defaults, overridden by the
    element's attributes, plus ``content`` holding the children. When that
    dict contains a ``layout`` view it is removed and the function's result
    is wrapped in it, which is how programmatic pages apply the root layout.

    Usable bare (``@component``) or with defaults (``@component(title="x")``).
    """

    def wrap(func: Callable[[dict[str, Any]], Any]) -> Component:
        def view(props: Props) -> Any:
            attrs = {**defaults, **props.attrs, "content": props.children}
            layout = attrs.pop("layout", None)
            if layout is not None:
                return h(layout, attrs, func(attrs))
            return func(attrs)

        return Component(view, name=func.__name__)

    if fn is not None:
        return wrap(fn)
    return wrap


def css_name(name: str) -> str:
    """Convert a camelCase style key to a kebab-case CSS property."""
    return _UPPER_RE.sub(lambda m: f"-{m.group(0).lower()}", name)


def render_style(styles: Mapping[str, Any]) -> str:
    """Flatten a style mapping to inline declarations.

    Examples:
        >>> render_style({"fontSize": "12px", "color": "red"})
        'font-size: 12px; color: red;'
    """
    return " ".join(f"{css_name(key)}: {value};" for key, value in styles.items())


def render_attrs(attrs: Mapping[str, Any] | None) -> str:
    """Serialize an attribute mapping, skipping None values."""
    if not attrs:
        return ""
    parts = []
    for key, value in attrs.items():
        if value is None:
            continue
        if isinstance(value, Mapping):
            value = render_style(value)
        parts.append(f'{key}="{value}"')
    return " ".join(parts)


def render(node: Any) -> str:
    """Serialize a virtual node tree to markup.

    Args:
        node: String, list of nodes, Element or None.

    Returns:
        Markup string.

    Raises:
        RenderError: If the tree contains something that is not a node, a
            view returns an unsupported result, or views keep delegating to
            views (directly or through lists and child elements).
    """
    try:
        return _render(node, 0)
    except RecursionError as exc:
        raise RenderError("Node tree nests too deeply to render") from exc


def _render(node: Any, depth: int) -> str:
    if node is None:
        return ""
    if isinstance(node, str):
        return node
    if isinstance(node, (list, tuple)):
        return "".join(_render(child, depth) for child in node)
    if isinstance(node, Element):
        return _render_element(node, depth)
    raise RenderError(f"Cannot render {type(node).__name__}: {node!r}")


def _render_element(element: Element, depth: int) -> str:
    # depth counts the views invoked on the path from the root
    tag = element.tag
    if isinstance(tag, Component):
        if depth >= MAX_VIEW_DEPTH:
            raise RenderError(
                f"View delegation did not terminate after {MAX_VIEW_DEPTH} steps"
                f" (last view: {tag!r})"
            )
        result = tag.view(Props(dict(element.attrs or {}), list(element.children or [])))
        if isinstance(result, str):
            return result
        if isinstance(result, (list, tuple, Element)):
            return _render(result, depth + 1)
        raise RenderError(f"View {tag!r} returned unsupported {type(result).__name__}")
    if not isinstance(tag, str):
        raise RenderError(f"Invalid tag {tag!r}")

    attrs = render_attrs(element.attrs)
    opentag = f"{tag} {attrs}" if attrs else tag
    if not element.children:
        return f"<{opentag} />"
    inner = "".join(_render(child, depth) for child in element.children)
    return f"<{opentag}>{inner}</{tag}>"
