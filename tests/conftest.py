"""Shared pytest fixtures for the mediaquery test suite."""

from __future__ import annotations

import math
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio

from mediaquery.interfaces.embedding_provider import IEmbeddingProvider
from mediaquery.interfaces.llm_provider import ILLMProvider
from mediaquery.interfaces.media_store import IMediaStore
from mediaquery.interfaces.vector_store_provider import IVectorStoreProvider
from mediaquery.models.media import EmbeddingRecord, FilterCounts, MediaRecord, VectorMatch
from mediaquery.providers.media_store.sqlite_media_store import SQLiteMediaStore


# ---------------------------------------------------------------------------
# Record factories
# ---------------------------------------------------------------------------


def make_record_dict(index: int = 0, **overrides: Any) -> dict[str, Any]:
    """Crawler-shaped (camelCase) media record."""
    record: dict[str, Any] = {
        "hash": f"h{index}",
        "url": f"https://example.com/img/{index}.jpg",
        "pageUrl": "https://example.com/",
        "type": "img > jpg",
        "alt": f"a red shoe number {index}",
        "width": 800,
        "height": 600,
        "orientation": "landscape",
    }
    record.update(overrides)
    return record


def make_record(index: int = 0, **overrides: Any) -> MediaRecord:
    return MediaRecord.model_validate(make_record_dict(index, **overrides))


# ---------------------------------------------------------------------------
# In-memory vector store
# ---------------------------------------------------------------------------


def _cosine(a: list[float], b: list[float]) -> float:
    dot = sum(x * y for x, y in zip(a, b))
    norm = math.sqrt(sum(x * x for x in a)) * math.sqrt(sum(y * y for y in b))
    return dot / norm if norm else 0.0


class InMemoryVectorStore(IVectorStoreProvider):
    """Dict-backed vector store with cosine scoring, for service tests."""

    def __init__(self) -> None:
        self.records: dict[str, EmbeddingRecord] = {}

    async def upsert(self, records: list[EmbeddingRecord]) -> int:
        for record in records:
            self.records[record.vector_id] = record
        return len(records)

    async def query(self, vector: list[float], site_key: str, top_k: int = 20) -> list[VectorMatch]:
        scored = [
            VectorMatch(
                hash=r.hash,
                url=r.url,
                page_url=r.page_url,
                alt=r.alt,
                score=max(0.0, min(1.0, _cosine(vector, r.vector))),
            )
            for r in self.records.values()
            if r.site_key == site_key
        ]
        scored.sort(key=lambda m: m.score, reverse=True)
        return scored[:top_k]

    async def delete(self, site_key: str, hashes: list[str]) -> int:
        for h in hashes:
            self.records.pop(f"{site_key}:{h}", None)
        return len(hashes)

    def get_provider_name(self) -> str:
        return "in_memory"

    def is_available(self) -> bool:
        return True


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def vector_store() -> InMemoryVectorStore:
    return InMemoryVectorStore()


@pytest_asyncio.fixture
async def media_store(tmp_path) -> SQLiteMediaStore:
    store = SQLiteMediaStore(db_path=tmp_path / "media.db")
    await store.initialize()
    return store


@pytest.fixture()
def mock_media_store() -> MagicMock:
    store = MagicMock(spec=IMediaStore)
    for name in (
        "initialize",
        "upsert_batch",
        "delete_hashes",
        "delete_site",
        "list_hashes",
        "count",
        "list_sites",
        "images_without_alt",
        "decorative_images",
        "page_images",
        "large_images",
        "lazy_loaded_images",
        "seo_issues",
        "most_used_images",
        "image_occurrences",
        "orientation_images",
        "type_media",
        "format_images",
    ):
        setattr(store, name, AsyncMock(return_value=[]))
    store.filter_counts = AsyncMock(return_value=FilterCounts())
    store.get_provider_name.return_value = "mock_media"
    return store


@pytest.fixture()
def mock_llm() -> MagicMock:
    llm = MagicMock(spec=ILLMProvider)
    llm.complete = AsyncMock(return_value="{}")
    llm.call_tools = AsyncMock(return_value=None)
    llm.get_provider_name.return_value = "mock_llm"
    llm.is_available.return_value = True
    return llm


@pytest.fixture()
def mock_embedding_provider() -> MagicMock:
    provider = MagicMock(spec=IEmbeddingProvider)
    provider.embed_single = AsyncMock(return_value=[1.0, 0.0, 0.0])
    provider.embed = AsyncMock(return_value=[[1.0, 0.0, 0.0]])
    provider.get_provider_name.return_value = "mock_embedding"
    provider.is_available.return_value = True
    return provider


@pytest.fixture()
def record_dict():
    """Factory for crawler-shaped record dicts: ``record_dict(3, alt=None)``."""
    return make_record_dict


@pytest.fixture()
def record():
    """Factory for validated :class:`MediaRecord` instances."""
    return make_record
