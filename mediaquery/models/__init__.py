"""Pydantic models shared across mediaquery layers."""

from mediaquery.models.analysis import AltTextAnalysis, Heading, PageContext
from mediaquery.models.media import (
    EmbeddingRecord,
    FilterCounts,
    IngestionSummary,
    MediaRecord,
    SiteSummary,
    VectorMatch,
    vector_id,
)
from mediaquery.models.query import (
    ChatTurn,
    CountResult,
    FilterCountsResult,
    HelpResult,
    NoMatchResult,
    ResolvedResult,
    RowListResult,
    ToolCall,
)

__all__ = [
    "AltTextAnalysis",
    "ChatTurn",
    "CountResult",
    "EmbeddingRecord",
    "FilterCounts",
    "FilterCountsResult",
    "Heading",
    "HelpResult",
    "IngestionSummary",
    "MediaRecord",
    "NoMatchResult",
    "PageContext",
    "ResolvedResult",
    "RowListResult",
    "SiteSummary",
    "ToolCall",
    "VectorMatch",
    "vector_id",
]
