"""tinygen static site generator.

This package converts a tree of markdown documents and programmatic page
templates into rendered files, and serves the same tree with on-demand
rebuilds and live reload during development.

Pages and layouts describe their output as virtual nodes; the helpers needed
to write them are re-exported here:

    from tinygen import component, h

The main entry point is the CLI module, which provides the ``build`` and
``serve`` commands.
"""

from .vnode import Component, Element, Props, component, h, render

__all__ = ["Component", "Element", "Props", "__version__", "component", "h", "render"]
__version__ = "0.1.0"
