"""Quote-aware scanning helpers shared by the parser and the filters."""

from __future__ import annotations

QUOTES = ('"', "'")


def find_unquoted(text: str, char: str, start: int = 0) -> int:
    """Find the first occurrence of char outside quotes.

    A backslash escapes the next character.

    Returns:
        Index of the character, or -1 if not found.
    """
    quote: str | None = None
    i = start
    while i < len(text):
        c = text[i]
        if c == "\\":
            i += 2
            continue
        if quote:
            if c == quote:
                quote = None
        elif c in QUOTES:
            quote = c
        elif c == char:
            return i
        i += 1
    return -1


def split_unquoted(text: str, sep: str) -> list[str]:
    """Split text on every occurrence of sep outside quotes."""
    parts: list[str] = []
    start = 0
    while True:
        index = find_unquoted(text, sep, start)
        if index == -1:
            parts.append(text[start:])
            return parts
        parts.append(text[start:index])
        start = index + 1


def unquote(text: str) -> str:
    """Strip one level of matching surrounding quotes and unescape them."""
    text = text.strip()
    # Only a single quoted string, not "a":"b"
    if len(text) >= 2 and text[0] in QUOTES and _closes_at_end(text):
        quote = text[0]
        return text[1:-1].replace("\\" + quote, quote)
    return text


def _closes_at_end(text: str) -> bool:
    """Check that the quote opening text is first closed by its last char."""
    quote = text[0]
    i = 1
    while i < len(text):
        if text[i] == "\\":
            i += 2
            continue
        if text[i] == quote:
            return i == len(text) - 1
        i += 1
    return False


def split_args(arg: str | None) -> list[str]:
    """Split a comma-separated filter argument list.

    Surrounding parentheses are removed, then each argument is trimmed
    and unquoted: ``( summary, "A, B", true)`` -> ``["summary", "A, B", "true"]``.
    """
    if arg is None:
        return []
    text = arg.strip()
    if text.startswith("(") and text.endswith(")"):
        text = text[1:-1]
    if not text.strip():
        return []
    return [unquote(part) for part in split_unquoted(text, ",")]
