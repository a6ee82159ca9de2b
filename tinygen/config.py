"""Site configuration for tinygen.

Configuration is read once from ``tinygen.yaml`` in the project root and is
immutable afterwards; the dev server derives a copy with ``dev`` set in the
global values.

Recognized keys:
- src: Source directory (default ``.``).
- dest: Destination directory (default ``./out``).
- port: Dev server HTTP port (default 9090).
- ws_port: Live reload websocket port (default ``port + 1``).
- global: Values injected into every render context.
- pretty: Pretty-print HTML output (default true).
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any

import yaml

CONFIG_FILENAME = "tinygen.yaml"

DEFAULT_CONFIG = {
    "src": ".",
    "dest": "./out",
    "port": 9090,
    "ws_port": None,
    "global": {},
    "pretty": True,
}


class ConfigError(Exception):
    """Error raised when the configuration file is invalid."""


@dataclass(frozen=True)
class Config:
    """Generator-wide configuration.

    Attributes:
        src: Source directory.
        dest: Destination directory.
        port: Dev server HTTP port.
        globals: Values merged into every page's render context.
        ws_port: Live reload websocket port, or None for ``port + 1``.
        pretty: Whether HTML output is pretty-printed.
    """

    src: Path = Path(".")
    dest: Path = Path("./out")
    port: int = 9090
    globals: dict[str, Any] = field(default_factory=dict)
    ws_port: int | None = None
    pretty: bool = True

    def for_dev(self) -> Config:
        """Return a copy flagged for the dev server (``globals["dev"]``)."""
        return replace(self, globals={**self.globals, "dev": True})


def load_config(project_root: Path) -> Config:
    """Load site configuration from tinygen.yaml.

    Relative ``src`` and ``dest`` are resolved against the project root.
    A missing file yields the defaults.

    Args:
        project_root: Root directory of the project.

    Returns:
        Config with defaults applied.

    Raises:
        ConfigError: If the file is not valid YAML or has invalid values.
    """
    values = dict(DEFAULT_CONFIG)
    config_path = project_root / CONFIG_FILENAME
    if config_path.exists():
        try:
            with open(config_path, encoding="utf-8") as f:
                loaded = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise ConfigError(f"{config_path}: invalid YAML: {exc}") from exc
        if not isinstance(loaded, dict):
            raise ConfigError(f"{config_path}: expected a mapping at top level")
        values.update(loaded)

    global_values = values.get("global") or {}
    if not isinstance(global_values, dict):
        raise ConfigError(f"'global' must be a mapping, got {type(global_values).__name__}")
    try:
        port = int(values["port"])
        ws_port = int(values["ws_port"]) if values.get("ws_port") is not None else None
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"invalid port: {exc}") from exc

    return Config(
        src=(project_root / str(values["src"])).resolve(),
        dest=(project_root / str(values["dest"])).resolve(),
        port=port,
        globals=dict(global_values),
        ws_port=ws_port,
        pretty=bool(values.get("pretty", True)),
    )
