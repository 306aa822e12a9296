"""Front matter and body construction for one record.

build_frontmatter() maps a TemplateConfig onto a record: the permanent
sync key and synced properties carry the identifier and the record's
updated_at; every other property is resolved and coerced to its type.
Empty results are left out so documents never carry blank properties.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from listsync.core.config import SYNC_KEY_TEMPLATE, SYNCED_TEMPLATE
from listsync.store.codec import dump_document
from listsync.template.parser import resolve_template
from listsync.template.properties import format_property_value

if TYPE_CHECKING:
    from listsync.core.config import TemplateConfig
    from listsync.core.types import MediaRecord

logger = logging.getLogger(__name__)


def build_frontmatter(
    record: MediaRecord,
    template: TemplateConfig,
    sync_identifier: str,
) -> dict[str, Any]:
    """Build the property set for a record.

    Args:
        record: Record to project
        template: Template configuration for the record's category
        sync_identifier: Identifier written to the sync key property

    Returns:
        Ordered mapping of property name to value, in item order.
    """
    properties: dict[str, Any] = {}

    for item in template.ordered_properties:
        if item.template == SYNC_KEY_TEMPLATE:
            value: Any = sync_identifier
        elif item.template == SYNCED_TEMPLATE:
            value = record.updated_at
        else:
            value = resolve_template(item.template, record)

        if value is None or value == "":
            continue

        value = format_property_value(value, item.type)
        if value is None:
            logger.debug("Property '%s' dropped after type coercion", item.custom_name)
            continue
        properties[item.custom_name] = value

    return properties


def render_body(record: MediaRecord, template: TemplateConfig) -> str:
    """Resolve the body template of a new document."""
    body = resolve_template(template.note_content, record)
    if body is None:
        return ""
    if isinstance(body, list):
        return "\n".join(body)
    return body


def render_document(frontmatter: dict[str, Any], body: str) -> str:
    """Full Markdown text of a document with the given properties and body."""
    if body and not body.endswith("\n"):
        body += "\n"
    return dump_document(frontmatter, body)
