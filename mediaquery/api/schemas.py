"""Pydantic request/response schemas for the mediaquery API.

The crawler and browser panel speak camelCase JSON (``siteKey``,
``conversationHistory``), so request models use a camelCase alias
generator while keeping snake_case attribute names in Python.  Site
listings keep the snake_case keys (``site_key``, ``last_indexed``) that the
panel already consumes.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from mediaquery.models.media import SiteSummary


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel)


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------


class IndexBatchRequest(_CamelModel):
    """Crawler batch; elements are validated individually by the ingestion service."""

    site_key: str = Field(..., min_length=1)
    batch: list[Any]


class DeleteBatchRequest(_CamelModel):
    site_key: str = Field(..., min_length=1)
    hashes: list[str]


class ClearSiteRequest(_CamelModel):
    site_key: str = Field(..., min_length=1)


class ChatRequest(_CamelModel):
    """Chat query.  Malformed history entries are dropped, not rejected."""

    query: str = Field(..., min_length=1, max_length=2000)
    site_key: str = Field(..., min_length=1)
    conversation_history: list[Any] = Field(default_factory=list)


class AnalyzeRequest(_CamelModel):
    image_url: str = Field(..., min_length=1)
    page_url: str = Field(..., min_length=1)
    occurrence: int = Field(..., ge=0)
    site_key: str = Field(..., min_length=1)


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------


class IndexBatchResponse(BaseModel):
    success: bool = True
    indexed: int
    embeddings: int
    chunks: int


class DeleteResponse(BaseModel):
    success: bool = True
    deleted: int


class CountResponse(_CamelModel):
    site_key: str
    count: int


class SitesResponse(BaseModel):
    sites: list[SiteSummary]
    count: int


class HealthResponse(BaseModel):
    """Liveness plus which backing services are configured."""

    status: str
    timestamp: int
    bindings: dict[str, bool]


class QuestionCategory(BaseModel):
    id: str
    name: str
    questions: list[str]


class SuggestedQuestionsResponse(BaseModel):
    categories: list[QuestionCategory]


class ErrorResponse(BaseModel):
    """Standard error response body."""

    error: str
    details: list[str] | None = None
    detail: str | None = None
