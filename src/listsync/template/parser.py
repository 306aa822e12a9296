"""Template resolution.

Resolves template strings by replacing ``{{variables}}`` with values from a
MediaRecord. Supports:
- Single variables, keeping their shape: ``{{alternativeTitles}}`` -> list
- Mixed content: ``Score: {{userScore}}/10``
- Multiple variables: ``{{numEpisodesWatched}} of {{numEpisodes}}``
- Static text: ``My custom value``
- Filter chains: ``{{studios|wikilink|join:", "}}``
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from listsync.template.filters import apply_filters
from listsync.template.scanner import QUOTES, find_unquoted
from listsync.template.variables import lookup_variable

if TYPE_CHECKING:
    from listsync.core.types import MediaRecord

logger = logging.getLogger(__name__)

OPEN = "{{"
CLOSE = "}}"

ResolvedValue = str | list[str] | None


@dataclass(frozen=True)
class TemplateToken:
    """One ``{{...}}`` span in a template.

    Attributes:
        start: Offset of the opening braces
        end: Offset just past the closing braces
        variable: Variable name
        filters: Raw filter chain (empty when there is none)
    """

    start: int
    end: int
    variable: str
    filters: str


def _find_close(template: str, start: int) -> int:
    """Find the closing braces of a span, ignoring braces inside quotes."""
    quote: str | None = None
    i = start
    while i < len(template) - 1:
        c = template[i]
        if c == "\\":
            i += 2
            continue
        if quote:
            if c == quote:
                quote = None
        elif c in QUOTES:
            quote = c
        elif template.startswith(CLOSE, i):
            return i
        i += 1
    # Unbalanced quote: fall back to the first closing braces
    return template.find(CLOSE, start)


def parse_template_variable(expression: str) -> tuple[str, str]:
    """Split a span's content into variable name and filter chain.

    Args:
        expression: Span content, with or without the surrounding braces

    Returns:
        Tuple of (variable name, filter chain). The chain is "" when absent.

    Example:
        >>> parse_template_variable("{{title|lower|default:'Untitled'}}")
        ('title', "lower|default:'Untitled'")
    """
    content = expression.strip()
    if content.startswith(OPEN) and content.endswith(CLOSE):
        content = content[len(OPEN):-len(CLOSE)]
    content = content.strip()

    index = find_unquoted(content, "|")
    if index == -1:
        return content, ""
    return content[:index].strip(), content[index + 1:].strip()


def tokenize(template: str) -> list[TemplateToken]:
    """Find every ``{{...}}`` span in a template, in order."""
    tokens: list[TemplateToken] = []
    position = 0
    while True:
        start = template.find(OPEN, position)
        if start == -1:
            return tokens
        close = _find_close(template, start + len(OPEN))
        if close == -1:
            return tokens
        variable, filters = parse_template_variable(template[start + len(OPEN):close])
        end = close + len(CLOSE)
        if variable:
            tokens.append(TemplateToken(start=start, end=end, variable=variable, filters=filters))
        position = end


def extract_variables(template: str) -> list[str]:
    """List the variable names used by a template, in order of appearance."""
    return [token.variable for token in tokenize(template)]


def _is_empty(value: Any) -> bool:
    return value is None or value == "" or value == []


def _stringify(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, list):
        return ", ".join(_stringify(item) for item in value)
    return str(value)


def _resolve_token(token: TemplateToken, record: MediaRecord) -> Any:
    value = lookup_variable(record, token.variable)
    if value is None:
        logger.debug("Template variable '%s' has no value", token.variable)
        return None
    if token.filters:
        value = apply_filters(value, token.filters)
    return value


def resolve_template(template: str | None, record: MediaRecord) -> ResolvedValue:
    """Resolve a template against a record.

    A template made of exactly one span keeps the native shape of its value
    (lists stay lists); numbers and booleans become strings. In mixed
    content every span is stringified, lists joined with ", ", and spans
    without a value are removed.

    Args:
        template: Template string
        record: Record providing the variable values

    Returns:
        The resolved string or list, or None when the field should be
        omitted (blank template, no value, or only whitespace left).
    """
    if not template or not template.strip():
        return None

    tokens = tokenize(template)
    if not tokens:
        return template

    stripped = template.strip()
    if len(tokens) == 1 and template[tokens[0].start:tokens[0].end] == stripped:
        value = _resolve_token(tokens[0], record)
        if value is None:
            return None
        if isinstance(value, list):
            return [_stringify(item) for item in value]
        return _stringify(value)

    parts: list[str] = []
    position = 0
    has_value = False
    for token in tokens:
        parts.append(template[position:token.start])
        value = _resolve_token(token, record)
        if not _is_empty(value):
            has_value = True
            parts.append(_stringify(value))
        position = token.end
    parts.append(template[position:])

    result = "".join(parts).strip()
    if not has_value or not result:
        return None
    return result
