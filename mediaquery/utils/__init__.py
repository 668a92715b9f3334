"""Utility modules for mediaquery.

- **errors** -- Exception hierarchy rooted at MediaQueryError; each error
  knows the HTTP status the API layer answers with.
- **concurrency** -- Semaphore-bounded ``throttled_gather`` used to fan out
  embedding requests within an ingestion chunk.
- **logging** -- structlog setup with a dual-renderer pattern: coloured
  console output in development, structured JSON in production.
"""

from mediaquery.utils.concurrency import throttled_gather
from mediaquery.utils.errors import (
    AuthError,
    ConfigurationError,
    EmbeddingError,
    IngestionChunkError,
    LLMError,
    MediaQueryError,
    NotFoundError,
    PageFetchError,
    RateLimitError,
    StoreError,
    UpstreamError,
    ValidationError,
    VectorStoreError,
)
from mediaquery.utils.logging import configure_logging, get_logger

__all__ = [
    "AuthError",
    "ConfigurationError",
    "EmbeddingError",
    "IngestionChunkError",
    "LLMError",
    "MediaQueryError",
    "NotFoundError",
    "PageFetchError",
    "RateLimitError",
    "StoreError",
    "UpstreamError",
    "ValidationError",
    "VectorStoreError",
    "configure_logging",
    "get_logger",
    "throttled_gather",
]
