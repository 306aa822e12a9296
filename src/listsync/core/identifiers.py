"""Sync identifier derivation and validation.

A sync identifier is the durable key linking a record to at most one
document. Format: ``provider:category:externalId``, for example
``mal:anime:1245``.

All functions here are pure. Bad input is a programmer error and raises
InvalidIdentifierError immediately.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

from listsync.core.types import InvalidIdentifierError

if TYPE_CHECKING:
    from listsync.core.types import MediaRecord

SYNC_IDENTIFIER_PATTERN = re.compile(
    r"(?P<provider>[a-z0-9_-]+):(?P<category>[a-z0-9_-]+):(?P<external_id>[A-Za-z0-9_-]+)"
)


def is_valid_sync_identifier(value: object) -> bool:
    """Check whether a value is a well-formed sync identifier."""
    return isinstance(value, str) and SYNC_IDENTIFIER_PATTERN.fullmatch(value) is not None


def derive_sync_identifier(
    provider: str | None,
    category: str | None,
    external_id: str | int | None,
) -> str:
    """Derive the canonical sync identifier for a triple.

    Provider and category are lowercased; the id is stringified as-is.

    Args:
        provider: Provider tag (e.g., "MAL" or "mal")
        category: Record category (e.g., "anime")
        external_id: Provider-side id

    Returns:
        Identifier string ``provider:category:externalId``

    Raises:
        InvalidIdentifierError: If a part is missing or contains
            characters that would make the identifier ambiguous.
    """
    if not provider or not category or external_id is None or external_id == "":
        raise InvalidIdentifierError(
            f"Cannot derive sync identifier from provider={provider!r}, "
            f"category={category!r}, external_id={external_id!r}"
        )
    if isinstance(external_id, bool):
        raise InvalidIdentifierError(f"Invalid external id: {external_id!r}")

    category_value = getattr(category, "value", category)
    identifier = f"{str(provider).lower()}:{str(category_value).lower()}:{external_id}"

    if not is_valid_sync_identifier(identifier):
        raise InvalidIdentifierError(f"Invalid sync identifier generated: {identifier}")

    return identifier


def sync_identifier_for(record: MediaRecord) -> str:
    """Derive the sync identifier of a record."""
    return derive_sync_identifier(record.provider, record.category, record.external_id)


def parse_sync_identifier(value: str) -> tuple[str, str, str]:
    """Split an identifier into (provider, category, external_id).

    Raises:
        InvalidIdentifierError: If the value is not a valid identifier.
    """
    match = SYNC_IDENTIFIER_PATTERN.fullmatch(value) if isinstance(value, str) else None
    if match is None:
        raise InvalidIdentifierError(f"Not a sync identifier: {value!r}")
    return match["provider"], match["category"], match["external_id"]
