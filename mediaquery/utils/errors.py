"""Custom exception hierarchy for mediaquery.

All application exceptions inherit from :class:`MediaQueryError`, which
carries an optional ``provider_name`` so error handlers can identify which
backing service (e.g. "openai", "chromadb", "sqlite") caused the failure,
plus the HTTP ``status_code`` the API layer should answer with.

    MediaQueryError  (base -- 500)
    +-- ValidationError          (400, malformed or missing fields)
    +-- AuthError                (401 missing key / 403 wrong key)
    +-- RateLimitError           (429, carries limit and retry hint)
    +-- NotFoundError            (404, unknown image / occurrence)
    +-- UpstreamError            (502, inference or fetch failure)
    |   +-- LLMError
    |   +-- EmbeddingError
    |   +-- VectorStoreError
    |   +-- PageFetchError
    +-- StoreError               (500, relational store failure)
    |   +-- IngestionChunkError  (500, one ingestion chunk failed)
    +-- ConfigurationError       (500, startup / missing config)

``to_payload()`` returns the JSON body the error middleware sends, so
subclasses with extra context (field paths, retry hints, sample records)
only need to override that one method.
"""

from __future__ import annotations

from typing import Any


class MediaQueryError(Exception):
    """Base exception for all mediaquery errors.

    Every subclass carries a human-readable ``message`` and an optional
    ``provider_name`` identifying which external service triggered the
    error.  The ``__str__`` method prefixes the provider name in brackets
    for structured log output, e.g. ``[openai] Rate limit exceeded``.
    """

    default_status = 500

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        provider_name: str | None = None,
        status_code: int | None = None,
    ) -> None:
        self._message = message
        self._provider_name = provider_name
        self._status_code = status_code or self.default_status
        super().__init__(self._message)

    @property
    def message(self) -> str:
        return self._message

    @property
    def provider_name(self) -> str | None:
        return self._provider_name

    @property
    def status_code(self) -> int:
        return self._status_code

    def to_payload(self) -> dict[str, Any]:
        """Return the JSON body describing this error to API clients."""
        return {"error": self._message}

    def __str__(self) -> str:
        if self._provider_name:
            return f"[{self._provider_name}] {self._message}"
        return self._message


# ---------------------------------------------------------------------------
# Request errors
# ---------------------------------------------------------------------------

class ValidationError(MediaQueryError):
    """Raised when a request is missing required fields or has bad values.

    ``details`` lists offending field paths (``batch[3].hash``) so batch
    callers can fix every problem in one round trip.
    """

    default_status = 400

    def __init__(
        self,
        message: str = "Invalid request",
        details: list[str] | None = None,
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)
        self._details = list(details or [])

    @property
    def details(self) -> list[str]:
        return list(self._details)

    def to_payload(self) -> dict[str, Any]:
        payload = super().to_payload()
        if self._details:
            payload["details"] = self.details
        return payload


class AuthError(MediaQueryError):
    """Raised when the API key is missing (401) or does not match (403)."""

    default_status = 401

    def __init__(
        self,
        message: str = "API key required",
        status_code: int = 401,
    ) -> None:
        super().__init__(message=message, status_code=status_code)


class RateLimitError(MediaQueryError):
    """Raised when a client exceeds its request budget for the window."""

    default_status = 429

    def __init__(
        self,
        message: str = "Rate limit exceeded. Please try again later.",
        limit: int = 0,
        retry_after: int = 3600,
    ) -> None:
        super().__init__(message=message)
        self._limit = limit
        self._retry_after = retry_after

    @property
    def limit(self) -> int:
        return self._limit

    @property
    def retry_after(self) -> int:
        return self._retry_after

    def to_payload(self) -> dict[str, Any]:
        payload = super().to_payload()
        payload["limit"] = self._limit
        payload["retryAfter"] = self._retry_after
        return payload


class NotFoundError(MediaQueryError):
    """Raised when a requested image, occurrence or resource does not exist."""

    default_status = 404

    def __init__(self, message: str = "Not found", provider_name: str | None = None) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# Upstream (inference, vector index, HTML fetch) errors
# ---------------------------------------------------------------------------

class UpstreamError(MediaQueryError):
    """Raised when an external collaborator fails or is unreachable."""

    default_status = 502

    def __init__(
        self,
        message: str = "Upstream service failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class LLMError(UpstreamError):
    """Raised when a chat completion or tool-call request fails."""

    def __init__(
        self,
        message: str = "LLM request failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class EmbeddingError(UpstreamError):
    """Raised when the embedding model rejects or fails a request."""

    def __init__(
        self,
        message: str = "Embedding request failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class VectorStoreError(UpstreamError):
    """Raised when the vector index cannot be read or written."""

    def __init__(
        self,
        message: str = "Vector store operation failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class PageFetchError(UpstreamError):
    """Raised when a page's HTML cannot be fetched for deep analysis."""

    def __init__(
        self,
        message: str = "Failed to fetch page HTML",
        provider_name: str | None = None,
        status: int | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)
        self._status = status

    @property
    def status(self) -> int | None:
        return self._status

    def to_payload(self) -> dict[str, Any]:
        payload = super().to_payload()
        if self._status is not None:
            payload["status"] = self._status
        return payload


# ---------------------------------------------------------------------------
# Storage and configuration errors
# ---------------------------------------------------------------------------

class StoreError(MediaQueryError):
    """Raised when the relational media store fails a read or write."""

    def __init__(
        self,
        message: str = "Media store operation failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class IngestionChunkError(StoreError):
    """Raised when one ingestion chunk cannot be written.

    Chunks written before the failing one stay committed; the payload
    reports the failing chunk's size and first record so the caller can
    locate the bad data.
    """

    def __init__(
        self,
        message: str = "Database batch insert failed",
        details: str = "",
        chunk_size: int = 0,
        sample_item: dict[str, Any] | None = None,
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)
        self._details = details
        self._chunk_size = chunk_size
        self._sample_item = sample_item

    @property
    def chunk_size(self) -> int:
        return self._chunk_size

    @property
    def sample_item(self) -> dict[str, Any] | None:
        return self._sample_item

    def to_payload(self) -> dict[str, Any]:
        payload = super().to_payload()
        payload["details"] = self._details
        payload["chunkSize"] = self._chunk_size
        payload["sampleItem"] = self._sample_item
        return payload


class ConfigurationError(MediaQueryError):
    """Raised for missing or invalid configuration at startup."""

    def __init__(
        self,
        message: str = "Invalid configuration",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)
