"""Keeps the relational and vector stores in agreement on delete.

Both operations delete relational rows first and embeddings second.  If the
second step fails the rows are already gone and the embeddings are orphaned;
the error propagates so the caller can retry (re-deleting missing ids is a
no-op in both stores).  There is no background reconciliation.
"""

from __future__ import annotations

import structlog

from mediaquery.interfaces.media_store import IMediaStore
from mediaquery.interfaces.vector_store_provider import IVectorStoreProvider

logger = structlog.get_logger(logger_name=__name__)


class DeletionService:
    def __init__(self, media_store: IMediaStore, vector_store: IVectorStoreProvider) -> None:
        self._media_store = media_store
        self._vector_store = vector_store

    async def delete_batch(self, site_key: str, hashes: list[str]) -> int:
        """Delete *hashes* from both stores; returns the number requested."""
        if not hashes:
            return 0
        unique = list(dict.fromkeys(hashes))
        rows = await self._media_store.delete_hashes(site_key, unique)
        await self._vector_store.delete(site_key, unique)
        logger.info(
            "media_batch_deleted",
            site_key=site_key,
            requested=len(hashes),
            rows_deleted=rows,
        )
        return len(hashes)

    async def clear_site(self, site_key: str) -> int:
        """Remove every record and embedding for *site_key*.

        The vector store has no delete-by-site, so the site's hashes are
        read before the rows go.
        """
        hashes = await self._media_store.list_hashes(site_key)
        rows = await self._media_store.delete_site(site_key)
        if hashes:
            await self._vector_store.delete(site_key, hashes)
        logger.info("site_cleared", site_key=site_key, rows_deleted=rows, embeddings=len(hashes))
        return rows
