"""Front matter extraction for tinygen.

Markdown documents may open with a YAML block delimited by ``---`` lines.
The block becomes page metadata and render-context values; the rest of the
file is the markdown body.

Key functions:
- extract_frontmatter: Split a document into front matter and body.
- ensure_frontmatter: Prepend an empty block to documents without one.
"""

from __future__ import annotations

import re
from typing import Any

import yaml

FRONTMATTER_DELIMITER = "---"

FRONTMATTER_RE = re.compile(
    r"\A---[ \t]*\r?\n(?P<yaml>.*?)^---[ \t]*(?:\r?\n|\Z)",
    re.DOTALL | re.MULTILINE,
)


class FrontMatterError(Exception):
    """Error raised when a document's front matter cannot be parsed."""


def ensure_frontmatter(text: str) -> str:
    """Return the text with an empty front-matter block if it has none.

    Args:
        text: Raw document text.

    Returns:
        Text guaranteed to open with a front-matter delimiter.
    """
    if text.startswith(FRONTMATTER_DELIMITER):
        return text
    return f"{FRONTMATTER_DELIMITER}\n{FRONTMATTER_DELIMITER}\n{text}"


def extract_frontmatter(text: str) -> tuple[dict[str, Any], str]:
    """Extract YAML front matter from a document.

    Args:
        text: Document text opening with a front-matter block.

    Returns:
        Tuple of (front matter dict, remaining body). An empty block yields
        an empty dict.

    Raises:
        FrontMatterError: If the block is not terminated, is not valid YAML,
            or does not hold a mapping.
    """
    match = FRONTMATTER_RE.match(text)
    if not match:
        raise FrontMatterError("front matter block is not terminated by '---'")
    try:
        data = yaml.safe_load(match.group("yaml"))
    except yaml.YAMLError as exc:
        raise FrontMatterError(f"invalid YAML in front matter: {exc}") from exc
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise FrontMatterError(
            f"front matter must be a mapping, got {type(data).__name__}"
        )
    return data, text[match.end() :]
