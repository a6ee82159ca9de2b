"""Loading of programmatic page templates and layouts.

Page templates (``*.py`` in the source tree) and layouts (``_layout.py``) are
Python modules exposing a module-level ``view``. They are compiled from
source on every load, so edits are picked up by the next rebuild without
stale bytecode or module caching getting in the way.
"""

from __future__ import annotations

import hashlib
import sys
from pathlib import Path
from types import ModuleType

from .vnode import Component, as_component

# Module attribute holding the view of a page template or layout.
VIEW_ATTRIBUTE = "view"


class TemplateLoadError(Exception):
    """Error raised when a page template or layout module cannot be used.

    Attributes:
        path: Path to the module file.
        message: Human-readable error message.
    """

    def __init__(self, path: Path, message: str):
        self.path = path
        self.message = message
        super().__init__(f"{path}: {message}")


def _module_name(path: Path) -> str:
    digest = hashlib.sha1(str(path).encode("utf-8")).hexdigest()[:12]
    return f"_tinygen_view_{path.stem.replace('.', '_')}_{digest}"


def load_module(path: Path) -> ModuleType:
    """Execute a module file and return the fresh module object.

    The module is registered in ``sys.modules`` under a name derived from its
    path, replacing any previous load of the same file.

    Raises:
        FileNotFoundError: If the file does not exist.
        TemplateLoadError: If the module fails to compile or execute.
    """
    source = path.read_text(encoding="utf-8")
    name = _module_name(path)
    module = ModuleType(name)
    module.__file__ = str(path)
    sys.modules[name] = module
    try:
        code = compile(source, str(path), "exec")
        exec(code, module.__dict__)
    except Exception as exc:
        sys.modules.pop(name, None)
        raise TemplateLoadError(path, f"{type(exc).__name__}: {exc}") from exc
    return module


def load_view(path: Path) -> Component:
    """Load the ``view`` exported by a page template or layout module.

    Raises:
        TemplateLoadError: If the module fails to load, has no ``view`` or the
            ``view`` is not a view.
    """
    module = load_module(path)
    target = getattr(module, VIEW_ATTRIBUTE, None)
    if target is None:
        raise TemplateLoadError(path, f"module does not define '{VIEW_ATTRIBUTE}'")
    try:
        return as_component(target)
    except TypeError as exc:
        raise TemplateLoadError(path, str(exc)) from exc
