"""Core module - Records, identifiers, configuration and errors."""

from listsync.core.config import (
    PERMANENT_TEMPLATES,
    SYNC_KEY_TEMPLATE,
    SYNCED_TEMPLATE,
    PropertyItem,
    PropertyType,
    SyncSettings,
    TemplateConfig,
    default_anime_template,
    default_manga_template,
)
from listsync.core.identifiers import (
    derive_sync_identifier,
    is_valid_sync_identifier,
    parse_sync_identifier,
    sync_identifier_for,
)
from listsync.core.types import (
    AlternativeTitles,
    Author,
    ConfigError,
    DocumentCreateError,
    DocumentExistsError,
    DocumentNotFoundError,
    FrontmatterError,
    Genre,
    InvalidIdentifierError,
    ListSyncError,
    LockTimeoutError,
    MediaCategory,
    MediaRecord,
    Picture,
    StoreError,
    SyncAction,
    SyncActionResult,
)

__all__ = [
    # Config
    "PERMANENT_TEMPLATES",
    "PropertyItem",
    "PropertyType",
    "SYNCED_TEMPLATE",
    "SYNC_KEY_TEMPLATE",
    "SyncSettings",
    "TemplateConfig",
    "default_anime_template",
    "default_manga_template",
    # Identifiers
    "derive_sync_identifier",
    "is_valid_sync_identifier",
    "parse_sync_identifier",
    "sync_identifier_for",
    # Types
    "AlternativeTitles",
    "Author",
    "ConfigError",
    "DocumentCreateError",
    "DocumentExistsError",
    "DocumentNotFoundError",
    "FrontmatterError",
    "Genre",
    "InvalidIdentifierError",
    "ListSyncError",
    "LockTimeoutError",
    "MediaCategory",
    "MediaRecord",
    "Picture",
    "StoreError",
    "SyncAction",
    "SyncActionResult",
]
