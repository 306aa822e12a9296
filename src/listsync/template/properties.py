"""Coercion of resolved template values to declared property types."""

from __future__ import annotations

import re
from typing import Any

from listsync.core.config import PropertyType


ISO_DATETIME_PATTERN = re.compile(r"(\d{4}-\d{2}-\d{2})T")


def _is_empty(value: Any) -> bool:
    return value is None or value == "" or value == []


def _to_number(value: Any) -> int | float | None:
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, (int, float)):
        return value
    if isinstance(value, list):
        return _to_number(value[0]) if len(value) == 1 else None
    try:
        number = float(str(value).strip())
    except ValueError:
        return None
    if number != number or number in (float("inf"), float("-inf")):
        return None
    return int(number) if number.is_integer() else number


def _to_checkbox(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    if isinstance(value, str):
        return value.strip().lower() in ("true", "1")
    return bool(value)


def _to_date(value: Any) -> Any:
    if isinstance(value, str):
        match = ISO_DATETIME_PATTERN.match(value)
        if match:
            return match[1]
    return value


def format_property_value(value: Any, property_type: PropertyType | str | None) -> Any:
    """Coerce a value to the canonical form of a property type.

    Never raises: values that cannot be converted become None (number) or
    are passed through.

    Args:
        value: Resolved template value
        property_type: Declared type, or None for no coercion

    Returns:
        The coerced value.
    """
    if property_type is None:
        return value
    try:
        kind = PropertyType(property_type)
    except ValueError:
        return value
    if kind is PropertyType.TEXT:
        return value

    if _is_empty(value):
        if kind is PropertyType.CHECKBOX:
            return False
        if kind is PropertyType.MULTITEXT:
            return []
        return None

    if kind is PropertyType.NUMBER:
        return _to_number(value)
    if kind is PropertyType.CHECKBOX:
        return _to_checkbox(value)
    if kind is PropertyType.MULTITEXT:
        return list(value) if isinstance(value, (list, tuple)) else [value]
    if kind is PropertyType.DATE:
        return _to_date(value)
    return value
