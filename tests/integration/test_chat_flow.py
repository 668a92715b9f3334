"""End-to-end chat flow: index a batch over HTTP, then ask about it.

Uses the real SQLite store and query pipeline with an in-memory vector
index and a mocked LLM, so nothing leaves the process.
"""

from __future__ import annotations

import json
from contextlib import asynccontextmanager

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from mediaquery.api.middleware import ErrorHandlingMiddleware, configure_error_handlers
from mediaquery.api.routes import router as api_router
from mediaquery.models.query import ToolCall
from mediaquery.providers.media_store.sqlite_media_store import SQLiteMediaStore
from mediaquery.services.deletion_service import DeletionService
from mediaquery.services.ingestion_service import MediaIngestionService
from mediaquery.services.query_resolver import QueryResolver
from mediaquery.services.stream_encoder import StreamEncoder

SITE = "example.com"


def _create_app(media_store, vector_store, llm, embeddings) -> FastAPI:
    @asynccontextmanager
    async def lifespan(application: FastAPI):
        await media_store.initialize()
        yield

    app = FastAPI(lifespan=lifespan)
    app.add_middleware(ErrorHandlingMiddleware)
    configure_error_handlers(app)
    app.include_router(api_router)

    resolver = QueryResolver(
        media_store=media_store,
        llm=llm,
        embedding_provider=embeddings,
        vector_store=vector_store,
    )
    app.state.media_store = media_store
    app.state.vector_store = vector_store
    app.state.ingestion_service = MediaIngestionService(
        media_store=media_store, embedding_provider=embeddings, vector_store=vector_store
    )
    app.state.deletion_service = DeletionService(media_store=media_store, vector_store=vector_store)
    app.state.stream_encoder = StreamEncoder(resolver)
    return app


@pytest.fixture
def client(tmp_path, vector_store, mock_llm, mock_embedding_provider, record_dict):
    store = SQLiteMediaStore(db_path=tmp_path / "flow.db")
    app = _create_app(store, vector_store, mock_llm, mock_embedding_provider)
    with TestClient(app) as test_client:
        resp = test_client.post(
            "/media/index-batch",
            json={
                "siteKey": SITE,
                "batch": [
                    record_dict(1, alt=None),
                    record_dict(2, alt=""),
                    record_dict(3, alt="Red trail running shoe"),
                ],
            },
        )
        assert resp.json() == {"success": True, "indexed": 3, "embeddings": 1, "chunks": 1}
        yield test_client


def _ask(client: TestClient, query: str, history: list | None = None) -> list[dict]:
    resp = client.post(
        "/chat",
        json={"query": query, "siteKey": SITE, "conversationHistory": history or []},
    )
    assert resp.status_code == 200
    return [
        json.loads(block[len("data: ") :])
        for block in resp.text.split("\n\n")
        if block.startswith("data: ")
    ]


class TestChatFlow:
    def test_missing_alt_count_via_patterns(self, client: TestClient) -> None:
        frames = _ask(client, "how many images are missing alt text?")

        assert frames[0]["count"] == 1
        assert "1" in frames[0]["chunk"]
        assert frames[-1] == {"chunk": "", "done": True}

    def test_tool_call_listing(self, client: TestClient, mock_llm) -> None:
        mock_llm.call_tools.return_value = ToolCall(name="getImagesWithoutAlt")

        frames = _ask(client, "which images need alt text?")

        assert frames[0]["tool"] == "getImagesWithoutAlt"
        assert frames[0]["count"] == 1
        assert frames[1]["images"][0]["url"] == "https://example.com/img/1.jpg"
        assert frames[-1]["done"] is True

    def test_filter_counts(self, client: TestClient) -> None:
        frames = _ask(client, "give me a breakdown")

        text = frames[1]["chunk"]
        assert "Filled: **1**" in text
        assert "Decorative: **1**" in text
        assert "Empty: **1**" in text

    def test_semantic_search(self, client: TestClient) -> None:
        frames = _ask(client, "photos of our products")

        assert frames[0]["tool"] == "semanticSearch"
        assert frames[1]["images"][0]["alt"] == "Red trail running shoe"

    def test_greeting(self, client: TestClient, mock_llm) -> None:
        frames = _ask(client, "what can you do?")

        assert SITE in frames[0]["chunk"]
        mock_llm.call_tools.assert_not_called()

    def test_loose_crawler_records_are_indexed(self, client: TestClient, record_dict) -> None:
        resp = client.post(
            "/media/index-batch",
            json={
                "siteKey": SITE,
                "batch": [
                    record_dict(10, width=640.5),
                    record_dict(11, isLazyLoaded=None, ariaHidden=None),
                ],
            },
        )

        assert resp.status_code == 200
        assert resp.json()["indexed"] == 2
        assert client.get("/media/count", params={"siteKey": SITE}).json()["count"] == 5

    def test_delete_then_count(self, client: TestClient) -> None:
        client.post("/media/delete-batch", json={"siteKey": SITE, "hashes": ["h1"]})

        assert client.get("/media/count", params={"siteKey": SITE}).json()["count"] == 2
        frames = _ask(client, "how many images are missing alt text?")
        assert frames[0]["count"] == 0
        assert frames[0]["chunk"].startswith("No images without alt text")
