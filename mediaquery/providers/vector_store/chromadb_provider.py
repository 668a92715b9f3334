"""ChromaDB vector store provider adapter.

Wraps ``chromadb.PersistentClient`` to implement :class:`IVectorStoreProvider`.
One collection holds the alt-text embeddings of every site; ids are
namespaced ``"{site_key}:{hash}"`` and each entry carries ``site_key`` in
its metadata so queries can be scoped with a ``where`` clause.
"""

from __future__ import annotations

import os
from typing import Any

# Telemetry must be off before chromadb is imported.
os.environ["ANONYMIZED_TELEMETRY"] = "False"

import chromadb
import structlog

from mediaquery.interfaces.vector_store_provider import IVectorStoreProvider
from mediaquery.models.media import EmbeddingRecord, VectorMatch, vector_id
from mediaquery.utils.errors import VectorStoreError

logger = structlog.get_logger(logger_name=__name__)

_UPSERT_BATCH = 500


class _NoopEmbeddingFunction(chromadb.EmbeddingFunction[list[str]]):
    """Stops ChromaDB from loading its default ONNX model.

    Every vector is computed by the injected embedding provider, so the
    collection's own embedding function must never run.
    """

    def __call__(self, input: list[str]) -> list[list[float]]:
        raise NotImplementedError("mediaquery passes pre-computed embeddings only.")

    def name(self) -> str:
        return "noop_precomputed"


class ChromaDBProvider(IVectorStoreProvider):
    """Vector store backed by a local persistent ChromaDB collection."""

    def __init__(
        self,
        persist_directory: str = "./data/chromadb",
        collection_name: str = "media_alt_text",
        client: Any = None,
    ) -> None:
        self._persist_directory = persist_directory
        self._collection_name = collection_name
        self._client = client or chromadb.PersistentClient(
            path=persist_directory,
            settings=chromadb.config.Settings(anonymized_telemetry=False),
        )
        try:
            self._collection = self._client.get_or_create_collection(
                name=collection_name,
                metadata={"hnsw:space": "cosine"},
                embedding_function=_NoopEmbeddingFunction(),
            )
        except ValueError:
            # Collection persisted with a different embedding function.
            logger.info("chromadb_embedding_function_fallback", collection=collection_name)
            self._collection = self._client.get_or_create_collection(
                name=collection_name,
                metadata={"hnsw:space": "cosine"},
            )

    # ------------------------------------------------------------------
    # IVectorStoreProvider implementation
    # ------------------------------------------------------------------

    async def upsert(self, records: list[EmbeddingRecord]) -> int:
        """Upsert embeddings in slices of 500 to bound peak memory."""
        if not records:
            return 0
        try:
            stored = 0
            for start in range(0, len(records), _UPSERT_BATCH):
                batch = records[start : start + _UPSERT_BATCH]
                self._collection.upsert(
                    ids=[r.vector_id for r in batch],
                    embeddings=[r.vector for r in batch],
                    documents=[r.alt for r in batch],
                    metadatas=[r.metadata() for r in batch],
                )
                stored += len(batch)
        except Exception as exc:
            raise VectorStoreError(
                message=f"ChromaDB upsert failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        logger.info("chromadb_upsert", count=stored)
        return stored

    async def query(
        self,
        vector: list[float],
        site_key: str,
        top_k: int = 20,
    ) -> list[VectorMatch]:
        try:
            total = self._collection.count()
            if total == 0:
                return []

            results = self._collection.query(
                query_embeddings=[vector],
                n_results=min(top_k, total),
                where={"site_key": site_key},
            )
            if not results["ids"] or not results["ids"][0]:
                return []

            metadatas = results["metadatas"][0] if results["metadatas"] else []
            distances = results["distances"][0] if results["distances"] else []

            matches = [
                self._metadata_to_match(meta, distance)
                for meta, distance in zip(metadatas, distances, strict=True)
            ]
        except Exception as exc:
            raise VectorStoreError(
                message=f"ChromaDB query failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        matches.sort(key=lambda m: m.score, reverse=True)
        logger.info(
            "chromadb_query",
            site_key=site_key,
            results_count=len(matches),
            top_score=matches[0].score if matches else 0.0,
        )
        return matches

    async def delete(self, site_key: str, hashes: list[str]) -> int:
        if not hashes:
            return 0
        try:
            for start in range(0, len(hashes), _UPSERT_BATCH):
                chunk = hashes[start : start + _UPSERT_BATCH]
                self._collection.delete(ids=[vector_id(site_key, h) for h in chunk])
        except Exception as exc:
            raise VectorStoreError(
                message=f"ChromaDB delete failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        logger.info("chromadb_delete", site_key=site_key, requested=len(hashes))
        return len(hashes)

    def get_provider_name(self) -> str:
        return "chromadb"

    def is_available(self) -> bool:
        """Return ``True`` if the ChromaDB collection is accessible."""
        try:
            self._collection.count()
            return True
        except Exception:
            return False

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _metadata_to_match(meta: dict[str, Any], distance: float) -> VectorMatch:
        # Cosine distance is 0..2; similarity clamps to 0..1.
        similarity = max(0.0, min(1.0, 1.0 - distance))
        return VectorMatch(
            hash=str(meta.get("hash", "")),
            url=str(meta.get("url", "")),
            page_url=str(meta.get("page_url", "")),
            alt=str(meta.get("alt", "")),
            score=similarity,
        )
