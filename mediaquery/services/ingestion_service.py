"""Media batch ingestion: validate -> chunk -> upsert -> embed -> index.

Chunks are processed one after another.  Within a chunk every record is
written to the relational store in one transaction; records with
descriptive alt text are then embedded concurrently and the successful
vectors are upserted into the vector index.

Failure semantics:

* Validation runs over the whole batch before anything is written and
  reports up to ten offending ``batch[i].field`` paths at once.
* A relational write failure aborts ingestion with
  :class:`IngestionChunkError`; chunks already written stay committed.
* Individual embedding failures are dropped, and a vector index failure is
  logged; neither fails the chunk.  ``embeddings`` counts only vectors
  actually written.
"""

from __future__ import annotations

import asyncio
import time
from typing import Any

import structlog
from pydantic import ValidationError as PydanticValidationError

from mediaquery.interfaces.embedding_provider import IEmbeddingProvider
from mediaquery.interfaces.media_store import IMediaStore
from mediaquery.interfaces.vector_store_provider import IVectorStoreProvider
from mediaquery.models.media import EmbeddingRecord, IngestionSummary, MediaRecord
from mediaquery.utils.concurrency import throttled_gather
from mediaquery.utils.errors import IngestionChunkError, StoreError, ValidationError

logger = structlog.get_logger(logger_name=__name__)

_MAX_REPORTED_ERRORS = 10


class MediaIngestionService:
    """Index crawler batches into the relational store and vector index."""

    def __init__(
        self,
        media_store: IMediaStore,
        embedding_provider: IEmbeddingProvider,
        vector_store: IVectorStoreProvider,
        max_batch_size: int = 500,
        embedding_concurrency: int = 16,
    ) -> None:
        self._media_store = media_store
        self._embedding_provider = embedding_provider
        self._vector_store = vector_store
        self._max_batch_size = max(1, max_batch_size)
        self._embedding_concurrency = max(1, embedding_concurrency)

    async def ingest(self, site_key: str, batch: Any) -> IngestionSummary:
        if not site_key or not isinstance(site_key, str):
            raise ValidationError("siteKey is required", details=["siteKey"])
        if not isinstance(batch, list):
            raise ValidationError("batch must be an array", details=["batch"])
        if not batch:
            return IngestionSummary()

        records = self.validate_batch(batch)
        indexed_at = int(time.time() * 1000)
        chunk_count = (len(records) + self._max_batch_size - 1) // self._max_batch_size

        indexed = 0
        embedded = 0
        for chunk_no, start in enumerate(range(0, len(records), self._max_batch_size), start=1):
            chunk = records[start : start + self._max_batch_size]

            try:
                indexed += await self._media_store.upsert_batch(site_key, chunk, indexed_at)
            except StoreError as exc:
                logger.error(
                    "media_chunk_failed",
                    site_key=site_key,
                    chunk=chunk_no,
                    chunk_size=len(chunk),
                    error=exc.message,
                )
                raise IngestionChunkError(
                    details=exc.message,
                    chunk_size=len(chunk),
                    sample_item=batch[start],
                ) from exc

            embedded += await self._embed_chunk(site_key, chunk)
            logger.debug("media_chunk_indexed", site_key=site_key, chunk=chunk_no, rows=len(chunk))

        logger.info(
            "media_batch_indexed",
            site_key=site_key,
            indexed=indexed,
            embeddings=embedded,
            chunks=chunk_count,
        )
        return IngestionSummary(indexed=indexed, embeddings=embedded, chunks=chunk_count)

    @staticmethod
    def validate_batch(batch: list[Any]) -> list[MediaRecord]:
        """Parse every element, collecting ``batch[i].field`` paths for failures."""
        records: list[MediaRecord] = []
        problems: list[str] = []
        for idx, item in enumerate(batch):
            try:
                records.append(MediaRecord.model_validate(item))
            except PydanticValidationError as exc:
                for err in exc.errors():
                    loc = ".".join(str(part) for part in err["loc"])
                    problems.append(f"batch[{idx}].{loc}" if loc else f"batch[{idx}]")

        if problems:
            raise ValidationError(
                "Missing or invalid fields in batch",
                details=problems[:_MAX_REPORTED_ERRORS],
            )
        return records

    async def _embed_chunk(self, site_key: str, chunk: list[MediaRecord]) -> int:
        described = [r for r in chunk if r.has_description]
        if not described:
            return 0

        semaphore = asyncio.Semaphore(self._embedding_concurrency)
        results = await throttled_gather(
            [self._embedding_provider.embed_single(r.alt or "") for r in described],
            semaphore=semaphore,
        )

        embeddings: list[EmbeddingRecord] = []
        failures = 0
        for record, result in zip(described, results, strict=True):
            if isinstance(result, BaseException):
                failures += 1
                continue
            embeddings.append(
                EmbeddingRecord(
                    site_key=site_key,
                    hash=record.hash,
                    vector=result,
                    url=record.url,
                    page_url=record.page_url,
                    alt=record.alt or "",
                )
            )
        if failures:
            logger.warning("embedding_failures_dropped", site_key=site_key, failed=failures)

        if not embeddings:
            return 0
        try:
            return await self._vector_store.upsert(embeddings)
        except Exception as exc:
            logger.error(
                "vector_upsert_failed",
                site_key=site_key,
                count=len(embeddings),
                error=str(exc),
            )
            return 0
