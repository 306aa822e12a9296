"""Document file naming."""

from __future__ import annotations

import re

MAX_FILENAME_LENGTH = 200
UNTITLED = "Untitled"
DOCUMENT_SUFFIX = ".md"

# Characters not allowed in file names on common platforms or that break links
_DISALLOWED = re.compile(r'[\\/:*?"<>|#^\[\]]')
_WHITESPACE = re.compile(r"\s+")


def sanitize_filename(name: str | None) -> str:
    """Make a string usable as a document file name (without extension).

    Disallowed characters become "-", whitespace runs collapse to one space,
    and the result is capped at MAX_FILENAME_LENGTH characters.

    Example:
        >>> sanitize_filename('Re:Zero  "Starting Life"')
        'Re-Zero -Starting Life-'
    """
    if not name:
        return UNTITLED
    text = name
    if text.lower().endswith(DOCUMENT_SUFFIX):
        text = text[: -len(DOCUMENT_SUFFIX)]
    text = _DISALLOWED.sub("-", text)
    text = _WHITESPACE.sub(" ", text).strip()
    text = text[:MAX_FILENAME_LENGTH].rstrip(" .")
    return text or UNTITLED


def document_path(folder: str, stem: str, attempt: int = 0) -> str:
    """Build the path of a document in folder.

    Attempts after the first get a "-N" suffix: "Title.md", "Title-1.md"...
    """
    name = stem if attempt == 0 else f"{stem}-{attempt}"
    folder = folder.strip("/")
    return f"{folder}/{name}{DOCUMENT_SUFFIX}" if folder else f"{name}{DOCUMENT_SUFFIX}"
