"""Abstract base class for vector-store service providers.

The vector index holds one embedding per described media record.  It has
no "delete by site" primitive by contract: callers that clear a site read
the site's hashes from the media store first and delete by id.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from mediaquery.models.media import EmbeddingRecord, VectorMatch


class IVectorStoreProvider(ABC):
    """Contract for nearest-neighbour indexes over alt-text embeddings."""

    @abstractmethod
    async def upsert(self, records: list[EmbeddingRecord]) -> int:
        """Insert or replace embeddings by id.

        Returns
        -------
        int
            Number of embeddings written.

        Raises
        ------
        mediaquery.utils.errors.VectorStoreError
            If the write fails.
        """

    @abstractmethod
    async def query(
        self,
        vector: list[float],
        site_key: str,
        top_k: int = 20,
    ) -> list[VectorMatch]:
        """Return the *top_k* nearest embeddings belonging to *site_key*.

        Results are ordered by descending similarity and hydrated from the
        stored metadata, so no media-store join is needed.
        """

    @abstractmethod
    async def delete(self, site_key: str, hashes: list[str]) -> int:
        """Delete the embeddings for *hashes* within *site_key*.

        Missing ids are ignored.  Returns the number of ids requested.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable name for this vector store."""

    @abstractmethod
    def is_available(self) -> bool:
        """Return ``True`` if the store is initialised and usable."""
