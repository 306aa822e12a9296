"""Template filters.

Filters transform a resolved variable value and are chained with pipes:
``{{studios|wikilink|join:", "}}``. Each filter receives the current value
and the raw argument string (or None), and returns the new value.

Filters never raise: on a type mismatch they return their input (or its
string form) unchanged. apply_filters() enforces this for the whole chain.
"""

from __future__ import annotations

import calendar
import json
import logging
import re
from collections.abc import Callable
from datetime import date, datetime, timedelta
from typing import Any

from listsync.template.scanner import find_unquoted, split_args, split_unquoted, unquote

logger = logging.getLogger(__name__)

FilterFunction = Callable[[Any, str | None], Any]


def _is_empty(value: Any) -> bool:
    return value is None or value == "" or value == []


def _to_str(value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (int, float)):
        return str(value)
    return json.dumps(value, ensure_ascii=False, default=str)


def _each(value: Any, func: Callable[[str], str]) -> Any:
    """Apply a string function to a scalar or to each list element."""
    if _is_empty(value):
        return value
    if isinstance(value, list):
        return [func(_to_str(item)) for item in value]
    return func(_to_str(value))


def _to_number(value: Any) -> float | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value.strip())
        except ValueError:
            return None
    return None


def _format_number(num: float) -> str:
    result = round(num, 10)
    if result.is_integer():
        return str(int(result))
    return repr(result)


# =============================================================================
# Value filters
# =============================================================================


def default(value: Any, arg: str | None) -> Any:
    """Substitute a fallback for empty values."""
    if _is_empty(value):
        return unquote(arg) if arg is not None else ""
    return value


def wikilink(value: Any, arg: str | None) -> Any:
    """Wrap values in [[wikilinks]]."""
    def link(text: str) -> str:
        text = text.strip()
        return f"[[{text}]]" if text else text

    return _each(value, link)


def join(value: Any, arg: str | None) -> Any:
    """Join a list into a string (default separator ", ")."""
    separator = unquote(arg) if arg is not None else ", "
    if value is None:
        return ""
    if not isinstance(value, list):
        return _to_str(value)
    return separator.join(_to_str(item) for item in value if not _is_empty(item))


def split(value: Any, arg: str | None) -> Any:
    """Split a string into a list (default separator ",")."""
    if _is_empty(value):
        return []
    if isinstance(value, list):
        return value
    separator = unquote(arg) if arg else ","
    return [part.strip() for part in _to_str(value).split(separator) if part.strip()]


def first(value: Any, arg: str | None) -> Any:
    if isinstance(value, list):
        return _to_str(value[0]) if value else ""
    return value


def last(value: Any, arg: str | None) -> Any:
    if isinstance(value, list):
        return _to_str(value[-1]) if value else ""
    return value


def nth(value: Any, arg: str | None) -> Any:
    """Select list elements by position.

    Forms: ``3`` (third), ``2n`` (every second), ``n+3`` (third onwards),
    ``1,2:4`` (positions 1 and 2 of every group of 4). Positions are 1-based.
    """
    if not isinstance(value, list) or not arg:
        return value
    expr = unquote(arg.strip().strip("()")).strip()

    if ":" in expr:
        positions_text, _, basis_text = expr.partition(":")
        try:
            basis = int(basis_text)
        except ValueError:
            return value
        if basis <= 0:
            return value
        positions = {int(p) for p in positions_text.split(",") if p.strip().isdigit()}
        return [v for i, v in enumerate(value) if (i % basis) + 1 in positions]

    if expr.isdigit():
        position = int(expr)
        return [v for i, v in enumerate(value) if i + 1 == position]

    match = re.fullmatch(r"(\d+)n", expr)
    if match:
        step = int(match[1])
        if step == 0:
            return value
        return [v for i, v in enumerate(value) if (i + 1) % step == 0]

    match = re.fullmatch(r"n\+(\d+)", expr)
    if match:
        offset = int(match[1])
        return [v for i, v in enumerate(value) if i + 1 >= offset]

    logger.debug("Invalid nth expression: %s", arg)
    return value


def slice_(value: Any, arg: str | None) -> Any:
    """Slice a list or string with ``start,end`` (either may be omitted)."""
    if not arg or _is_empty(value):
        return value
    bounds: list[int | None] = []
    for part in unquote(arg).split(",")[:2]:
        part = part.strip()
        try:
            bounds.append(int(part) if part else None)
        except ValueError:
            return value
    while len(bounds) < 2:
        bounds.append(None)
    start, end = bounds

    if isinstance(value, list):
        sliced = value[start:end]
        return sliced[0] if len(sliced) == 1 else sliced
    return _to_str(value)[start:end]


def length(value: Any, arg: str | None) -> Any:
    if value is None:
        return "0"
    if isinstance(value, (list, dict)):
        return str(len(value))
    return str(len(_to_str(value)))


def reverse(value: Any, arg: str | None) -> Any:
    if isinstance(value, list):
        return list(reversed(value))
    if _is_empty(value):
        return value
    return _to_str(value)[::-1]


def unique(value: Any, arg: str | None) -> Any:
    if not isinstance(value, list):
        return value
    seen: set[str] = set()
    result = []
    for item in value:
        key = _to_str(item)
        if key not in seen:
            seen.add(key)
            result.append(item)
    return result


# =============================================================================
# Structure filters
# =============================================================================

ARROW_PATTERN = re.compile(r"^\s*(\w+)\s*=>\s*(.+)$", re.DOTALL)
PLACEHOLDER_PATTERN = re.compile(r"\$\{([\w.]+)\}")
OBJECT_STRING_PATTERN = re.compile(r"(\w+):\s*(\"(?:\\.|[^\"\\])*\"|[^,}]+)")


def _loads(value: Any) -> Any:
    """Decode a JSON string; other values (and non-JSON text) are returned as-is."""
    if not isinstance(value, str):
        return value
    try:
        return json.loads(value)
    except ValueError:
        return value


def _as_list(value: Any) -> list[Any]:
    data = _loads(value)
    if isinstance(data, list):
        return data
    if isinstance(data, dict):
        return list(data.values())
    return [value]


def _clean_arg(arg: str) -> str:
    text = arg.strip()
    if text.startswith("(") and text.endswith(")"):
        text = text[1:-1]
    return unquote(text)


def _get_path(obj: Any, path: str) -> Any:
    """Follow ``a.b[0].c`` through dicts and lists. Missing steps yield None."""
    current = obj
    for key in filter(None, re.split(r"[.\[\]]", path)):
        if isinstance(current, list) and key.isdigit():
            index = int(key)
            current = current[index] if index < len(current) else None
        elif isinstance(current, dict):
            current = current.get(key)
        else:
            return None
    return current


def merge(value: Any, arg: str | None) -> Any:
    """Append items to a list: ``merge:"Mystery","Thriller"``."""
    if _is_empty(value):
        return []
    return _as_list(value) + split_args(arg)


def object_(value: Any, arg: str | None) -> Any:
    """Extract ``keys``, ``values`` or ``array`` (key/value pairs) from a mapping."""
    if _is_empty(value):
        return ""
    data = _loads(value)
    if not isinstance(data, dict):
        return value
    mode = _clean_arg(arg).lower() if arg else ""
    if mode == "keys":
        return list(data)
    if mode == "values":
        return list(data.values())
    if mode == "array":
        return [[key, item] for key, item in data.items()]
    return value


def _evaluate(expression: str, item: Any, name: str) -> Any:
    expression = expression.strip()
    if expression == name:
        return item
    whole = re.fullmatch(rf"{re.escape(name)}\.([\w.\[\]]+)", expression)
    if whole:
        return _get_path(item, whole[1])
    text = re.sub(
        rf"{re.escape(name)}\.([\w.\[\]]+)",
        lambda m: _to_str(_get_path(item, m[1])),
        expression,
    )
    return unquote(text)


def map_(value: Any, arg: str | None) -> Any:
    """Transform each list element with an arrow expression.

    Forms: ``x => x.name`` (property), ``x => {title: x.name, id: x.id}``
    (mapping) and ``x => '${x} (TV)'`` (string with the element spliced in).
    """
    if _is_empty(value):
        return ""
    if not arg:
        return value
    match = ARROW_PATTERN.match(_clean_arg(arg))
    if match is None:
        logger.debug("map: not an arrow expression: %s", arg)
        return value
    name, expression = match[1], match[2].strip()

    def transform(item: Any) -> Any:
        if expression.startswith("{") and expression.endswith("}"):
            mapped = {}
            for assignment in split_unquoted(expression[1:-1], ","):
                key, _, item_expression = assignment.partition(":")
                if key.strip():
                    mapped[unquote(key)] = _evaluate(item_expression, item, name)
            return mapped
        if len(expression) >= 2 and expression[0] in "\"'" and expression[-1] == expression[0]:
            return expression[1:-1].replace("${" + name + "}", _to_str(item))
        return _evaluate(expression, item, name)

    return [transform(item) for item in _as_list(value)]


def _template_context(item: Any) -> Any:
    if isinstance(item, str):
        pairs = {key: unquote(text) for key, text in OBJECT_STRING_PATTERN.findall(item)}
        return pairs or {"value": item}
    if isinstance(item, dict):
        return item
    return {"value": item}


def template(value: Any, arg: str | None) -> Any:
    """Format each element with ``${field}`` placeholders, one block per element.

    Plain values are available as ``${value}``; ``\\n`` in the argument
    starts a new line. Lines left empty by missing fields are dropped.
    """
    if _is_empty(value):
        return ""
    if not arg:
        return value
    pattern = _clean_arg(arg)
    data = _loads(value)
    items = data if isinstance(data, list) else [data]

    blocks = []
    for item in items:
        context = _template_context(item)

        def substitute(match: re.Match[str]) -> str:
            found = _get_path(context, match[1])
            return "" if found is None else _to_str(found)

        text = PLACEHOLDER_PATTERN.sub(substitute, pattern).replace("\\n", "\n")
        text = "\n".join(line for line in text.split("\n") if line.strip()).strip()
        if text:
            blocks.append(text)
    return "\n\n".join(blocks)


# =============================================================================
# String case filters
# =============================================================================

LOWERCASE_WORDS = frozenset(
    {"a", "an", "the", "and", "but", "or", "nor", "for", "on", "at", "to", "from", "by", "in", "of"}
)


def upper(value: Any, arg: str | None) -> Any:
    return _each(value, str.upper)


def lower(value: Any, arg: str | None) -> Any:
    return _each(value, str.lower)


def capitalize(value: Any, arg: str | None) -> Any:
    return _each(value, lambda s: s[:1].upper() + s[1:].lower())


def title(value: Any, arg: str | None) -> Any:
    def to_title(text: str) -> str:
        words = text.split()
        titled = []
        for i, word in enumerate(words):
            if i > 0 and word.lower() in LOWERCASE_WORDS:
                titled.append(word.lower())
            else:
                titled.append(word[:1].upper() + word[1:].lower())
        return " ".join(titled)

    return _each(value, to_title)


def trim(value: Any, arg: str | None) -> Any:
    return _each(value, str.strip)


def camel(value: Any, arg: str | None) -> Any:
    def to_camel(text: str) -> str:
        words = [w.lower() for w in re.split(r"[\s_-]+", text) if w]
        return "".join(w if i == 0 else w[:1].upper() + w[1:] for i, w in enumerate(words))

    return _each(value, to_camel)


def pascal(value: Any, arg: str | None) -> Any:
    def to_pascal(text: str) -> str:
        text = re.sub(r"[\s_-]+(.)", lambda m: m[1].upper(), text)
        return text[:1].upper() + text[1:]

    return _each(value, to_pascal)


def snake(value: Any, arg: str | None) -> Any:
    def to_snake(text: str) -> str:
        text = re.sub(r"([a-z])([A-Z])", r"\1_\2", text)
        return re.sub(r"[\s-]+", "_", text).lower()

    return _each(value, to_snake)


def kebab(value: Any, arg: str | None) -> Any:
    def to_kebab(text: str) -> str:
        text = re.sub(r"([a-z])([A-Z])", r"\1-\2", text)
        return re.sub(r"[\s_]+", "-", text).lower()

    return _each(value, to_kebab)


def uncamel(value: Any, arg: str | None) -> Any:
    def from_camel(text: str) -> str:
        text = re.sub(r"([a-z0-9])([A-Z])", r"\1 \2", text)
        text = re.sub(r"([A-Z])([A-Z][a-z])", r"\1 \2", text)
        return text.lower()

    return _each(value, from_camel)


def unsnake(value: Any, arg: str | None) -> Any:
    return _each(value, lambda s: re.sub(r"[_-]+", " ", s))


def replace(value: Any, arg: str | None) -> Any:
    """Replace text: ``replace:"old":"new"``, several pairs comma-separated.

    A search of the form ``/pattern/flags`` is treated as a regex.
    """
    if not arg or _is_empty(value):
        return value

    text = arg.strip()
    if text.startswith("(") and text.endswith(")"):
        text = text[1:-1]

    pairs: list[tuple[str, str]] = []
    for pair in split_unquoted(text, ","):
        index = find_unquoted(pair, ":")
        if index == -1:
            search, replacement = pair, ""
        else:
            search, replacement = pair[:index], pair[index + 1:]
        pairs.append((unquote(search), unquote(replacement)))

    def apply(text: str) -> str:
        for search, replacement in pairs:
            regex = re.fullmatch(r"/(.+)/([gimsux]*)", search)
            if regex:
                flags = 0
                if "i" in regex[2]:
                    flags |= re.IGNORECASE
                if "m" in regex[2]:
                    flags |= re.MULTILINE
                if "s" in regex[2]:
                    flags |= re.DOTALL
                try:
                    text = re.sub(regex[1], replacement, text, flags=flags)
                except re.error as e:
                    logger.debug("Invalid regex in replace filter: %s", e)
            elif search:
                text = text.replace(search, replacement)
        return text

    return _each(value, apply)


def safe_name(value: Any, arg: str | None) -> Any:
    """Make a value safe to use as a file name."""
    if _is_empty(value):
        return "Untitled"
    text = re.sub(r"[#|^\[\]]", "", _to_str(value))
    text = re.sub(r'[<>:"/\\|?*\x00-\x1f]', "", text)
    text = re.sub(r"^(con|prn|aux|nul|com[0-9]|lpt[0-9])(\..*)?$", r"_\1\2", text, flags=re.IGNORECASE)
    text = re.sub(r"[\s.]+$", "", text).lstrip(".")[:245]
    return text if text.strip() else "Untitled"


# =============================================================================
# Number filters
# =============================================================================


def round_(value: Any, arg: str | None) -> Any:
    """Round numbers, optionally to ``arg`` decimal places."""
    places: int | None = None
    if arg:
        try:
            places = int(unquote(arg))
        except ValueError:
            return value

    def round_one(item: Any) -> Any:
        num = _to_number(item)
        if num is None:
            return item
        rounded = round(num, places) if places is not None else round(num)
        result = _format_number(float(rounded))
        return result if isinstance(item, str) else float(result) if "." in result else int(result)

    if isinstance(value, list):
        return [round_one(item) for item in value]
    return round_one(value)


def number_format(value: Any, arg: str | None) -> Any:
    """Format numbers: ``number_format:(2, ".", ",")``."""
    args = split_args(arg)
    try:
        decimals = int(args[0]) if args and args[0] else 0
    except ValueError:
        decimals = 0
    dec_point = args[1] if len(args) > 1 else "."
    thousands = args[2] if len(args) > 2 else ","

    def format_one(item: Any) -> Any:
        num = _to_number(item)
        if num is None:
            return item
        integer, _, fraction = f"{num:,.{decimals}f}".partition(".")
        integer = integer.replace(",", thousands)
        return integer + (dec_point + fraction if fraction else "")

    if isinstance(value, list):
        return [format_one(item) for item in value]
    if _is_empty(value):
        return ""
    return format_one(value)


def calc(value: Any, arg: str | None) -> Any:
    """Arithmetic: ``calc:"+5"``, ``calc:"*2"``, ``calc:"**2"``."""
    num = _to_number(value)
    if not arg or num is None:
        return value
    operation = unquote(arg).strip()
    operator = "**" if operation.startswith("**") else operation[:1]
    operand = _to_number(operation[len(operator):])
    if operand is None:
        return value

    if operator == "+":
        result = num + operand
    elif operator == "-":
        result = num - operand
    elif operator == "*":
        result = num * operand
    elif operator == "/":
        if operand == 0:
            return value
        result = num / operand
    elif operator in ("**", "^"):
        result = num**operand
    else:
        return value
    return _format_number(result)


# =============================================================================
# Date filters
# =============================================================================

_DATE_TOKENS = re.compile(
    r"\[([^\]]*)\]|YYYY|YY|MMMM|MMM|MM|M|DD|D|dddd|ddd|HH|H|hh|h|mm|m|ss|s|A|a"
)


def parse_date(value: Any) -> datetime | None:
    """Parse ISO-8601 dates and partial dates (``2013``, ``2013-04``)."""
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if not isinstance(value, str) or not value.strip():
        return None
    text = value.strip()
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        pass
    match = re.fullmatch(r"(\d{4})(?:-(\d{1,2}))?", text)
    if match:
        try:
            return datetime(int(match[1]), int(match[2] or 1), 1)
        except ValueError:
            return None
    return None


def format_date(moment: datetime, fmt: str) -> str:
    """Format a datetime with moment-style tokens (YYYY, MM, DD, HH...)."""
    def token(match: re.Match[str]) -> str:
        if match[1] is not None:
            return match[1]
        t = match[0]
        hour12 = moment.hour % 12 or 12
        return {
            "YYYY": f"{moment.year:04d}",
            "YY": f"{moment.year % 100:02d}",
            "MMMM": calendar.month_name[moment.month],
            "MMM": calendar.month_abbr[moment.month],
            "MM": f"{moment.month:02d}",
            "M": str(moment.month),
            "DD": f"{moment.day:02d}",
            "D": str(moment.day),
            "dddd": calendar.day_name[moment.weekday()],
            "ddd": calendar.day_abbr[moment.weekday()],
            "HH": f"{moment.hour:02d}",
            "H": str(moment.hour),
            "hh": f"{hour12:02d}",
            "h": str(hour12),
            "mm": f"{moment.minute:02d}",
            "m": str(moment.minute),
            "ss": f"{moment.second:02d}",
            "s": str(moment.second),
            "A": "AM" if moment.hour < 12 else "PM",
            "a": "am" if moment.hour < 12 else "pm",
        }[t]

    return _DATE_TOKENS.sub(token, fmt)


def date_(value: Any, arg: str | None) -> Any:
    """Reformat a date (default ``YYYY-MM-DD``)."""
    if _is_empty(value):
        return ""
    parsed = parse_date(value)
    if parsed is None:
        logger.debug("Invalid date: %s", value)
        return value
    return format_date(parsed, unquote(arg) if arg else "YYYY-MM-DD")


def _add_months(moment: datetime, months: int) -> datetime:
    index = moment.month - 1 + months
    year, month = moment.year + index // 12, index % 12 + 1
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)


def date_modify(value: Any, arg: str | None) -> Any:
    """Shift a date: ``date_modify:"+1 month"``, ``date_modify:"-2 days"``."""
    if _is_empty(value):
        return ""
    parsed = parse_date(value)
    if parsed is None or not arg:
        return value
    match = re.fullmatch(r"([+-])\s*(\d+)\s*([a-z]+?)s?", unquote(arg.strip().strip("()")).strip())
    if not match:
        logger.debug("Invalid date_modify argument: %s", arg)
        return value
    amount = int(match[2]) * (1 if match[1] == "+" else -1)
    unit = match[3]

    if unit in ("year", "y"):
        shifted = _add_months(parsed, 12 * amount)
    elif unit == "month":
        shifted = _add_months(parsed, amount)
    elif unit in ("week", "w"):
        shifted = parsed + timedelta(weeks=amount)
    elif unit in ("day", "d"):
        shifted = parsed + timedelta(days=amount)
    elif unit in ("hour", "h"):
        shifted = parsed + timedelta(hours=amount)
    elif unit in ("minute", "m"):
        shifted = parsed + timedelta(minutes=amount)
    else:
        return value
    return format_date(shifted, "YYYY-MM-DD")


_ISO_DURATION = re.compile(
    r"P(?:(\d+)Y)?(?:(\d+)M)?(?:(\d+)D)?(?:T(?:(\d+)H)?(?:(\d+)M)?(?:(\d+)S)?)?"
)


def duration(value: Any, arg: str | None) -> Any:
    """Format a duration given in seconds or ISO-8601 (``PT1H30M``).

    Tokens: HH, H, mm, m, ss, s. Default ``HH:mm:ss`` for an hour or more,
    else ``mm:ss``.
    """
    if _is_empty(value):
        return ""
    text = unquote(_to_str(value))
    match = _ISO_DURATION.fullmatch(text)
    if match and text != "P":
        years, months, days, hours, minutes, seconds = (int(g or 0) for g in match.groups())
        total = (
            ((years * 365 + months * 30 + days) * 24 + hours) * 3600 + minutes * 60 + seconds
        )
    else:
        number = _to_number(text)
        if number is None:
            logger.debug("Invalid duration: %s", value)
            return value
        total = int(number)

    hours, remainder = divmod(total, 3600)
    minutes, seconds = divmod(remainder, 60)
    fmt = unquote(arg.strip().strip("()")) if arg else ("HH:mm:ss" if hours else "mm:ss")
    parts = {
        "HH": f"{hours:02d}",
        "H": str(hours),
        "mm": f"{minutes:02d}",
        "m": str(minutes),
        "ss": f"{seconds:02d}",
        "s": str(seconds),
    }
    return re.sub(r"HH|H|mm|m|ss|s", lambda m: parts[m[0]], fmt)


# =============================================================================
# Markdown filters
# =============================================================================


def blockquote(value: Any, arg: str | None) -> Any:
    if _is_empty(value):
        return ""

    def quote(item: Any, depth: int) -> str:
        if isinstance(item, list):
            return "\n".join(quote(i, depth + 1) for i in item)
        prefix = "> " * depth
        return "\n".join(prefix + line for line in _to_str(item).split("\n"))

    if isinstance(value, list):
        return "\n".join(quote(item, 1) for item in value)
    return quote(value, 1)


def callout(value: Any, arg: str | None) -> Any:
    """Render a callout block: ``callout:(type, title, folded)``."""
    if _is_empty(value):
        return ""
    args = split_args(arg)
    kind = args[0] if args and args[0] else "info"
    heading = args[1] if len(args) > 1 else ""
    fold = ""
    if len(args) > 2:
        fold = {"true": "-", "false": "+"}.get(args[2].lower(), "")

    header = f"> [!{kind}]{fold}"
    if heading:
        header += f" {heading}"
    text = "\n".join(_to_str(v) for v in value) if isinstance(value, list) else _to_str(value)
    body = "\n".join(f"> {line}" for line in text.split("\n"))
    return f"{header}\n{body}"


def footnote(value: Any, arg: str | None) -> Any:
    if _is_empty(value):
        return ""
    if isinstance(value, list):
        return "\n\n".join(f"[^{i}]: {_to_str(item)}" for i, item in enumerate(value, start=1))
    if isinstance(value, dict):
        return "\n\n".join(f"[^{kebab(str(k), None)}]: {_to_str(v)}" for k, v in value.items())
    return _to_str(value)


def list_(value: Any, arg: str | None) -> Any:
    """Render a Markdown list: bullet (default), numbered, task, numbered-task."""
    if _is_empty(value):
        return ""
    kind = unquote(arg.strip().strip("()")).lower() if arg else "bullet"

    def render(items: list[Any], depth: int) -> str:
        lines = []
        for index, item in enumerate(items, start=1):
            if isinstance(item, list):
                lines.append(render(item, depth + 1))
                continue
            if kind == "numbered":
                prefix = f"{index}. "
            elif kind == "task":
                prefix = "- [ ] "
            elif kind == "numbered-task":
                prefix = f"{index}. [ ] "
            else:
                prefix = "- "
            lines.append("\t" * depth + prefix + _to_str(item))
        return "\n".join(lines)

    return render(value if isinstance(value, list) else [value], 0)


def _cell(item: Any) -> str:
    text = "" if item is None else _to_str(item)
    return text.replace("|", "\\|").replace("\n", " ")


def _table(headers: list[str], rows: list[list[Any]]) -> str:
    lines = [
        "| " + " | ".join(headers) + " |",
        "| " + " | ".join("-" for _ in headers) + " |",
    ]
    lines.extend("| " + " | ".join(_cell(item) for item in row) + " |" for row in rows)
    return "\n".join(lines)


def table(value: Any, arg: str | None) -> Any:
    """Render a Markdown table.

    A mapping becomes key/value rows, a list of mappings one row per
    mapping, a list of lists one row per list and a plain list a single
    ``Value`` column. ``table:"Name,Score"`` sets the headers; with a plain
    list it also splits the items into rows of that many columns.
    """
    if _is_empty(value):
        return ""
    data = _loads(value)
    headers = [unquote(part) for part in split_unquoted(_clean_arg(arg), ",")] if arg else []

    if isinstance(data, dict):
        if not data:
            return value
        (first_key, first_value), *rest = data.items()
        return _table([_cell(first_key), _cell(first_value)], [[key, item] for key, item in rest])

    if not isinstance(data, list) or not data:
        return value

    if isinstance(data[0], dict):
        columns = headers or [str(key) for key in data[0]]
        rows = [[row.get(column) if isinstance(row, dict) else None for column in columns] for row in data]
        return _table(columns, rows)

    if isinstance(data[0], list):
        width = max(len(row) for row in data if isinstance(row, list))
        columns = headers or [""] * width
        rows = [(row + [""] * (width - len(row))) if isinstance(row, list) else [row] for row in data]
        return _table(columns, rows)

    if headers:
        width = len(headers)
        rows = [data[i:i + width] for i in range(0, len(data), width)]
        return _table(headers, [row + [""] * (width - len(row)) for row in rows])
    return _table(["Value"], [[item] for item in data])


FILTERS: dict[str, FilterFunction] = {
    "blockquote": blockquote,
    "calc": calc,
    "callout": callout,
    "camel": camel,
    "capitalize": capitalize,
    "date": date_,
    "date_modify": date_modify,
    "default": default,
    "duration": duration,
    "first": first,
    "footnote": footnote,
    "join": join,
    "kebab": kebab,
    "last": last,
    "length": length,
    "list": list_,
    "lower": lower,
    "map": map_,
    "merge": merge,
    "nth": nth,
    "number_format": number_format,
    "object": object_,
    "pascal": pascal,
    "replace": replace,
    "reverse": reverse,
    "round": round_,
    "safe_name": safe_name,
    "slice": slice_,
    "snake": snake,
    "split": split,
    "table": table,
    "template": template,
    "title": title,
    "trim": trim,
    "uncamel": uncamel,
    "unique": unique,
    "unsnake": unsnake,
    "upper": upper,
    "wikilink": wikilink,
}


def parse_filter_chain(chain: str) -> list[tuple[str, str | None]]:
    """Split ``wikilink|join:", "`` into [(name, arg), ...].

    Pipes and colons inside quotes are not treated as delimiters.
    """
    filters: list[tuple[str, str | None]] = []
    for expr in split_unquoted(chain, "|"):
        expr = expr.strip()
        if not expr:
            continue
        index = find_unquoted(expr, ":")
        if index == -1:
            filters.append((expr, None))
        else:
            filters.append((expr[:index].strip(), expr[index + 1:].strip()))
    return filters


def apply_filters(value: Any, chain: str) -> Any:
    """Apply a filter chain left to right.

    Unknown filters and filters that fail pass the value through unchanged.
    """
    for name, arg in parse_filter_chain(chain):
        func = FILTERS.get(name)
        if func is None:
            logger.debug("Unknown filter: %s", name)
            continue
        try:
            value = func(value, arg)
        except Exception as e:
            logger.debug("Filter %s failed on %r: %s", name, value, e)
    return value


def available_filters() -> list[str]:
    """Names of all registered filters."""
    return sorted(FILTERS)
