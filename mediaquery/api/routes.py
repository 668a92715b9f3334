"""FastAPI routes for the mediaquery service.

Service dependencies are resolved from ``app.state`` via FastAPI's
``Depends`` using the ``Annotated`` pattern, so tests can assemble a bare
app with mocks on its state.

# ─── API ROUTE MAP ─────────────────────────────────────────────────────
#
# Endpoint                Method  Description
# ──────────────────────────────────────────────────────────────────────
# /media/index-batch      POST    Crawler batch → store + embeddings
# /media/delete-batch     POST    Remove records (and vectors) by hash
# /media/clear-site       POST    Remove a whole site
# /media/count            GET     Record count for one site
# /media/sites            GET     Indexed sites, freshest first
# /chat                   POST    Conversational query (SSE stream)
# /analyze                POST    Alt-text suggestion for one image
# /health                 GET     Liveness + configured bindings
# /suggested-questions    GET     Example questions by category
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

import time
from typing import Annotated, Any

import structlog
from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import StreamingResponse

from mediaquery.api.schemas import (
    AnalyzeRequest,
    ChatRequest,
    ClearSiteRequest,
    CountResponse,
    DeleteBatchRequest,
    DeleteResponse,
    ErrorResponse,
    HealthResponse,
    IndexBatchRequest,
    IndexBatchResponse,
    QuestionCategory,
    SitesResponse,
    SuggestedQuestionsResponse,
)
from mediaquery.interfaces.media_store import IMediaStore
from mediaquery.models.query import ChatTurn
from mediaquery.services.deep_analysis_service import DeepAnalysisService
from mediaquery.services.deletion_service import DeletionService
from mediaquery.services.ingestion_service import MediaIngestionService
from mediaquery.services.prompts import SUGGESTED_QUESTIONS
from mediaquery.services.stream_encoder import SSE_HEADERS, StreamEncoder
from mediaquery.utils.logging import get_logger

_logger: structlog.BoundLogger = get_logger(__name__)

router = APIRouter()

AVAILABLE_ENDPOINTS = [
    "POST /media/index-batch",
    "POST /media/delete-batch",
    "POST /media/clear-site",
    "GET /media/count",
    "GET /media/sites",
    "POST /chat",
    "POST /analyze",
    "GET /health",
    "GET /suggested-questions",
]

_BINDINGS = ("llm", "embeddings", "media_store", "vector_store", "cache")


# ---------------------------------------------------------------------------
# Dependency helpers
# ---------------------------------------------------------------------------


def _get_ingestion_service(request: Request) -> MediaIngestionService:
    return request.app.state.ingestion_service


def _get_deletion_service(request: Request) -> DeletionService:
    return request.app.state.deletion_service


def _get_media_store(request: Request) -> IMediaStore:
    return request.app.state.media_store


def _get_stream_encoder(request: Request) -> StreamEncoder:
    return request.app.state.stream_encoder


def _get_analysis_service(request: Request) -> DeepAnalysisService:
    return request.app.state.analysis_service


IngestionDep = Annotated[MediaIngestionService, Depends(_get_ingestion_service)]
DeletionDep = Annotated[DeletionService, Depends(_get_deletion_service)]
MediaStoreDep = Annotated[IMediaStore, Depends(_get_media_store)]
EncoderDep = Annotated[StreamEncoder, Depends(_get_stream_encoder)]
AnalysisDep = Annotated[DeepAnalysisService, Depends(_get_analysis_service)]


# ---------------------------------------------------------------------------
# Media inventory
# ---------------------------------------------------------------------------


@router.post(
    "/media/index-batch",
    response_model=IndexBatchResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
    summary="Index a crawler batch",
)
async def index_batch(body: IndexBatchRequest, ingestion: IngestionDep) -> IndexBatchResponse:
    summary = await ingestion.ingest(body.site_key, body.batch)
    return IndexBatchResponse(
        indexed=summary.indexed,
        embeddings=summary.embeddings,
        chunks=summary.chunks,
    )


@router.post(
    "/media/delete-batch",
    response_model=DeleteResponse,
    responses={400: {"model": ErrorResponse}},
    summary="Delete records by hash",
)
async def delete_batch(body: DeleteBatchRequest, deletion: DeletionDep) -> DeleteResponse:
    deleted = await deletion.delete_batch(body.site_key, body.hashes)
    return DeleteResponse(deleted=deleted)


@router.post(
    "/media/clear-site",
    response_model=DeleteResponse,
    responses={400: {"model": ErrorResponse}},
    summary="Delete every record of a site",
)
async def clear_site(body: ClearSiteRequest, deletion: DeletionDep) -> DeleteResponse:
    deleted = await deletion.clear_site(body.site_key)
    return DeleteResponse(deleted=deleted)


@router.get(
    "/media/count",
    response_model=CountResponse,
    response_model_by_alias=True,
    summary="Count records for a site",
)
async def media_count(
    media_store: MediaStoreDep,
    site_key: Annotated[str, Query(alias="siteKey", min_length=1)],
) -> CountResponse:
    return CountResponse(site_key=site_key, count=await media_store.count(site_key))


@router.get(
    "/media/sites",
    response_model=SitesResponse,
    summary="List indexed sites",
)
async def media_sites(
    media_store: MediaStoreDep,
    limit: Annotated[int, Query(ge=1, le=1000)] = 50,
) -> SitesResponse:
    """Sites ordered by most recent indexing, newest first."""
    sites = await media_store.list_sites(limit=limit)
    return SitesResponse(sites=sites, count=len(sites))


# ---------------------------------------------------------------------------
# Chat and analysis
# ---------------------------------------------------------------------------


def _history_turns(raw: list[Any]) -> list[ChatTurn]:
    """Keep well-formed user/assistant turns and silently drop the rest."""
    turns: list[ChatTurn] = []
    for entry in raw:
        if not isinstance(entry, dict):
            continue
        role, content = entry.get("role"), entry.get("content")
        if role in ("user", "assistant") and isinstance(content, str):
            turns.append(ChatTurn(role=role, content=content))
    return turns


@router.post(
    "/chat",
    responses={
        200: {"content": {"text/event-stream": {}}},
        400: {"model": ErrorResponse},
    },
    summary="Ask a question about a site's media (server-sent events)",
)
async def chat(body: ChatRequest, encoder: EncoderDep) -> StreamingResponse:
    history = _history_turns(body.conversation_history)
    _logger.info(
        "chat_request",
        site_key=body.site_key,
        query_length=len(body.query),
        history_turns=len(history),
    )
    return StreamingResponse(
        encoder.stream(body.query, body.site_key, history),
        media_type="text/event-stream",
        headers=SSE_HEADERS,
    )


@router.post(
    "/analyze",
    responses={
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        502: {"model": ErrorResponse},
    },
    summary="Suggest alt text for one image occurrence",
)
async def analyze_image(body: AnalyzeRequest, analysis: AnalysisDep) -> dict[str, Any]:
    return await analysis.analyze(
        image_url=body.image_url,
        page_url=body.page_url,
        occurrence=body.occurrence,
        site_key=body.site_key,
    )


# ---------------------------------------------------------------------------
# Service metadata
# ---------------------------------------------------------------------------


@router.get("/health", response_model=HealthResponse, summary="Health check")
async def health_check(request: Request) -> HealthResponse:
    """Liveness plus which backing services were configured at startup."""
    state = request.app.state
    bindings: dict[str, bool] = {}
    for name in _BINDINGS:
        provider = getattr(state, name, None)
        if provider is None:
            bindings[name] = False
        elif hasattr(provider, "is_available"):
            bindings[name] = bool(provider.is_available())
        else:
            bindings[name] = True

    return HealthResponse(status="ok", timestamp=int(time.time() * 1000), bindings=bindings)


@router.get(
    "/suggested-questions",
    response_model=SuggestedQuestionsResponse,
    summary="Example questions grouped by category",
)
async def suggested_questions() -> SuggestedQuestionsResponse:
    return SuggestedQuestionsResponse(
        categories=[
            QuestionCategory(id=key, name=entry["name"], questions=list(entry["questions"]))
            for key, entry in SUGGESTED_QUESTIONS.items()
        ]
    )
