"""Relational media store adapters."""

from mediaquery.providers.media_store.sqlite_media_store import SQLiteMediaStore

__all__ = ["SQLiteMediaStore"]
