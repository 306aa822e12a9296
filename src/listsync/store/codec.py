"""YAML front matter encoding for Markdown documents.

A document is::

    ---
    key: value
    ---
    body text

Timestamps are kept as strings when loading so values written by the sync
engine read back unchanged.
"""

from __future__ import annotations

import re
from typing import Any

import yaml

from listsync.core.types import FrontmatterError

FRONTMATTER_PATTERN = re.compile(r"\A---[ \t]*\r?\n(.*?)(?:\r?\n)?^---[ \t]*(?:\r?\n|\Z)", re.DOTALL | re.MULTILINE)

_TIMESTAMP_TAG = "tag:yaml.org,2002:timestamp"


class _FrontmatterLoader(yaml.SafeLoader):
    """SafeLoader that leaves timestamps as plain strings."""


_FrontmatterLoader.yaml_implicit_resolvers = {
    first: [(tag, regexp) for tag, regexp in resolvers if tag != _TIMESTAMP_TAG]
    for first, resolvers in yaml.SafeLoader.yaml_implicit_resolvers.items()
}


def split_document(text: str) -> tuple[str | None, str]:
    """Split text into (raw front matter, body).

    Returns:
        The raw YAML block (None when the document has none) and the body.
    """
    match = FRONTMATTER_PATTERN.match(text)
    if not match:
        return None, text
    return match.group(1), text[match.end():]


def parse_document(text: str) -> tuple[dict[str, Any], str]:
    """Parse a Markdown document into (front matter, body).

    Raises:
        FrontmatterError: If the YAML block is malformed or not a mapping.
    """
    raw, body = split_document(text)
    if raw is None:
        return {}, body
    try:
        data = yaml.load(raw, Loader=_FrontmatterLoader)
    except yaml.YAMLError as e:
        raise FrontmatterError(f"Invalid front matter: {e}") from e
    if data is None:
        return {}, body
    if not isinstance(data, dict):
        raise FrontmatterError(f"Front matter is not a mapping: {type(data).__name__}")
    return data, body


def dump_frontmatter(frontmatter: dict[str, Any]) -> str:
    """Serialize front matter to YAML, preserving key order."""
    return yaml.safe_dump(
        frontmatter,
        default_flow_style=False,
        sort_keys=False,
        allow_unicode=True,
    )


def dump_document(frontmatter: dict[str, Any], body: str) -> str:
    """Assemble the full text of a document."""
    if not frontmatter:
        return body
    return f"---\n{dump_frontmatter(frontmatter)}---\n{body}"
