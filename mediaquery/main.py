"""mediaquery FastAPI application entry point.

Wires together all providers, services, and routes via dependency injection.
Loads configuration from ``.env`` and ``config/config.yaml`` and configures
structured logging before the app is built.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any

import structlog
import uvicorn
from fastapi import FastAPI

from mediaquery import __version__
from mediaquery.api.middleware import (
    AdmissionGateMiddleware,
    ErrorHandlingMiddleware,
    RequestLoggingMiddleware,
    configure_cors,
    configure_error_handlers,
)
from mediaquery.api.routes import router as api_router
from mediaquery.config.loader import load_config
from mediaquery.config.settings import Settings
from mediaquery.providers.cache.memory_cache import MemoryCacheProvider
from mediaquery.providers.embedding.openai_embedding_provider import OpenAIEmbeddingProvider
from mediaquery.providers.llm.openai_provider import OpenAILLMProvider
from mediaquery.providers.media_store.sqlite_media_store import SQLiteMediaStore
from mediaquery.providers.page_fetcher.http_page_fetcher import HttpPageFetcher
from mediaquery.providers.vector_store.chromadb_provider import ChromaDBProvider
from mediaquery.services.deep_analysis_service import DeepAnalysisService
from mediaquery.services.deletion_service import DeletionService
from mediaquery.services.ingestion_service import MediaIngestionService
from mediaquery.services.query_resolver import QueryResolver
from mediaquery.services.rate_limiter import RateLimiter
from mediaquery.services.stream_encoder import StreamEncoder
from mediaquery.utils.logging import configure_logging, get_logger

# ---------------------------------------------------------------------------
# Module-level settings & logging
# ---------------------------------------------------------------------------

settings = Settings()
config = load_config(settings=settings)

configure_logging(
    log_level=settings.log_level,
    json_output=(settings.app_env == "production"),
)
_logger: structlog.BoundLogger = get_logger(__name__)


# ---------------------------------------------------------------------------
# Full DI assembly for the FastAPI application
# ---------------------------------------------------------------------------


def build_stores(app_settings: Settings, app_config: dict) -> dict[str, Any]:
    """Construct the relational store, vector store and embedding provider.

    Shared with the CLI, which needs ingestion and deletion but not chat.
    """
    limits = app_config["query_limits"]
    media_store = SQLiteMediaStore(
        db_path=app_settings.media_db_path,
        default_limit=limits["default"],
        large_images_limit=limits["large_images"],
        page_images_limit=limits["page_images"],
    )
    vector_store = ChromaDBProvider(
        persist_directory=app_settings.chromadb_persist_dir,
        collection_name=app_settings.chromadb_collection,
    )
    embedding_provider = OpenAIEmbeddingProvider(settings=app_settings)
    return {
        "media_store": media_store,
        "vector_store": vector_store,
        "embeddings": embedding_provider,
    }


def _build_all(app_settings: Settings, app_config: dict) -> dict[str, Any]:
    """Construct every provider and service instance for the application.

    Returns a flat dict of named components to be stored on ``app.state``.
    """
    stores = build_stores(app_settings, app_config)
    media_store = stores["media_store"]
    vector_store = stores["vector_store"]
    embedding_provider = stores["embeddings"]

    llm = OpenAILLMProvider(settings=app_settings)
    cache = MemoryCacheProvider(max_size=app_settings.cache_max_size)
    page_fetcher = HttpPageFetcher(
        proxy_url=app_settings.cors_proxy_url,
        timeout=app_settings.page_fetch_timeout,
    )

    chat_cfg = app_config["chat"]
    resolver = QueryResolver(
        media_store=media_store,
        llm=llm,
        embedding_provider=embedding_provider,
        vector_store=vector_store,
        history_turns=chat_cfg["history_turns"],
        semantic_top_k=app_config["semantic_search"]["top_k"],
        tool_temperature=chat_cfg["tool_temperature"],
        tool_max_tokens=chat_cfg["tool_max_tokens"],
        large_image_min_width=app_config["large_image_min_width"],
    )

    return {
        **stores,
        "llm": llm,
        "cache": cache,
        "page_fetcher": page_fetcher,
        "ingestion_service": MediaIngestionService(
            media_store=media_store,
            embedding_provider=embedding_provider,
            vector_store=vector_store,
            max_batch_size=app_settings.max_batch_size,
            embedding_concurrency=app_settings.embedding_concurrency,
        ),
        "deletion_service": DeletionService(media_store=media_store, vector_store=vector_store),
        "stream_encoder": StreamEncoder(resolver, inline_preview=chat_cfg["inline_preview"]),
        "analysis_service": DeepAnalysisService(
            page_fetcher=page_fetcher,
            llm=llm,
            cache=cache,
            cache_ttl=app_settings.analysis_cache_ttl_seconds,
        ),
        "rate_limiter": RateLimiter(
            cache=cache,
            limit=app_settings.rate_limit_per_hour,
            window_seconds=app_settings.rate_limit_window_seconds,
        ),
    }


# ---------------------------------------------------------------------------
# Application lifespan (startup / shutdown)
# ---------------------------------------------------------------------------


@asynccontextmanager
async def _lifespan(application: FastAPI):  # noqa: ANN201
    """Initialise all providers and services on startup, clean up on shutdown."""
    app_settings: Settings = application.state.settings
    components = _build_all(app_settings, application.state.config)

    for key, value in components.items():
        setattr(application.state, key, value)

    await components["media_store"].initialize()

    _logger.info(
        "app_startup",
        version=__version__,
        environment=app_settings.app_env,
        llm=components["llm"].get_provider_name(),
        llm_available=components["llm"].is_available(),
        require_api_key=app_settings.require_api_key,
    )

    yield

    page_fetcher: HttpPageFetcher = components["page_fetcher"]
    await page_fetcher.aclose()
    _logger.info("app_shutdown", message="HTTP client closed")


# ---------------------------------------------------------------------------
# FastAPI application factory
# ---------------------------------------------------------------------------


def create_app(app_settings: Settings | None = None) -> FastAPI:
    """Build and configure the FastAPI application."""
    app_settings = app_settings or settings
    application = FastAPI(
        title="mediaquery API",
        version=__version__,
        description=(
            "Index a site's media inventory, answer natural-language questions "
            "about it over server-sent events, and suggest WCAG-compliant alt text."
        ),
        lifespan=_lifespan,
    )
    application.state.settings = app_settings
    application.state.config = (
        config if app_settings is settings else load_config(settings=app_settings)
    )

    # -- Middleware (order matters: last added = first executed) --
    application.add_middleware(
        AdmissionGateMiddleware,
        api_key=app_settings.api_key,
        require_api_key=app_settings.require_api_key,
        enable_rate_limiting=app_settings.enable_rate_limiting,
        client_ip_header=app_settings.client_ip_header,
    )
    application.add_middleware(ErrorHandlingMiddleware)
    application.add_middleware(RequestLoggingMiddleware)
    configure_cors(application)
    configure_error_handlers(application)

    application.include_router(api_router)
    return application


app = create_app()

# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    uvicorn.run(
        "mediaquery.main:app",
        host=settings.app_host,
        port=settings.app_port,
        reload=(settings.app_env == "development"),
    )
