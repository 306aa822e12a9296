"""listsync - Reconcile anime/manga list records with Markdown notes."""

__version__ = "0.1.0"
