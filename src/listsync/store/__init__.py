"""Document storage for listsync."""

from listsync.store.base import Document, DocumentStore, FrontmatterMutator
from listsync.store.codec import dump_document, dump_frontmatter, parse_document, split_document
from listsync.store.markdown import MarkdownStore

__all__ = [
    "Document",
    "DocumentStore",
    "FrontmatterMutator",
    "MarkdownStore",
    "dump_document",
    "dump_frontmatter",
    "parse_document",
    "split_document",
]
