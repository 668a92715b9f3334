"""API middleware: CORS, request logging, error handling and the admission gate.

Starlette middleware is a stack (last added, first executed).  ``create_app``
adds them so a request flows:

    Client -> CORS -> RequestLogging -> ErrorHandling -> AdmissionGate -> route

RequestLogging therefore records the final status even when ErrorHandling
or the gate replaced the response.
"""

from __future__ import annotations

import hmac
import time

import structlog
from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from mediaquery.api.routes import AVAILABLE_ENDPOINTS
from mediaquery.api.schemas import ErrorResponse
from mediaquery.utils.errors import AuthError, MediaQueryError, RateLimitError
from mediaquery.utils.logging import get_logger

_logger: structlog.BoundLogger = get_logger(__name__)

# Reachable without an API key and without counting toward the rate limit.
EXEMPT_PATHS = frozenset(
    {"/health", "/suggested-questions", "/media/sites", "/docs", "/openapi.json", "/redoc"}
)

API_KEY_HEADER = "X-API-Key"


# ---------------------------------------------------------------------------
# CORS
# ---------------------------------------------------------------------------


def configure_cors(app: FastAPI, *, allowed_origins: list[str] | None = None) -> None:
    """Add permissive CORS; the panel runs inside arbitrary customer origins."""
    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins or ["*"],
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", API_KEY_HEADER],
    )


# ---------------------------------------------------------------------------
# Request Logging
# ---------------------------------------------------------------------------


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log every HTTP request with method, path, status code, and duration."""

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        start = time.perf_counter()
        response: Response | None = None

        try:
            response = await call_next(request)
            return response
        finally:
            _logger.info(
                "http_request",
                method=request.method,
                path=str(request.url.path),
                status=response.status_code if response else 500,
                duration_ms=round((time.perf_counter() - start) * 1000, 2),
            )


# ---------------------------------------------------------------------------
# Error Handling
# ---------------------------------------------------------------------------


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """Turn ``MediaQueryError`` into its JSON payload and status code.

    Anything else becomes a 500 with the exception text in ``detail``; this
    is an operator-facing service, so diagnostics are returned rather than
    hidden.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        try:
            return await call_next(request)
        except MediaQueryError as exc:
            _logger.error(
                "application_error",
                error_type=type(exc).__name__,
                message=exc.message,
                provider=exc.provider_name,
                status=exc.status_code,
                path=str(request.url.path),
            )
            return JSONResponse(status_code=exc.status_code, content=exc.to_payload())
        except Exception as exc:
            _logger.exception("unhandled_error", path=str(request.url.path))
            body = ErrorResponse(error="Internal server error", detail=str(exc))
            return JSONResponse(status_code=500, content=body.model_dump(exclude_none=True))


def _validation_path(loc: tuple) -> str:
    parts = [p for p in loc if p not in ("body", "query", "path")]
    path = ""
    for part in parts:
        if isinstance(part, int):
            path += f"[{part}]"
        else:
            path += f".{part}" if path else str(part)
    return path or "body"


async def _request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    details = [_validation_path(tuple(err.get("loc", ()))) for err in exc.errors()][:10]
    _logger.info("request_validation_failed", path=str(request.url.path), details=details)
    return JSONResponse(
        status_code=400,
        content={"error": "Invalid request", "details": details},
    )


async def _http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    if exc.status_code == 404:
        return JSONResponse(
            status_code=404,
            content={"error": "Not found", "availableEndpoints": AVAILABLE_ENDPOINTS},
        )
    return JSONResponse(status_code=exc.status_code, content={"error": str(exc.detail)})


def configure_error_handlers(app: FastAPI) -> None:
    """400 for malformed bodies/queries, 404 with the endpoint list for unknown routes."""
    app.add_exception_handler(RequestValidationError, _request_validation_handler)
    app.add_exception_handler(StarletteHTTPException, _http_exception_handler)


# ---------------------------------------------------------------------------
# Admission Gate
# ---------------------------------------------------------------------------


def client_identity(request: Request, client_ip_header: str = "CF-Connecting-IP") -> str:
    """Proxy-supplied client IP, then X-Forwarded-For, then the socket peer."""
    forwarded_ip = request.headers.get(client_ip_header)
    if forwarded_ip:
        return forwarded_ip.strip()
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        first = forwarded_for.split(",")[0].strip()
        if first:
            return first
    if request.client and request.client.host:
        return request.client.host
    return "unknown"


class AdmissionGateMiddleware(BaseHTTPMiddleware):
    """API-key check followed by per-client rate limiting.

    Settings are injected from ``create_app``; the :class:`RateLimiter` is
    read from ``app.state.rate_limiter`` at request time because the cache
    it counts in is built during startup.  Health, capability listing,
    site enumeration, API docs and CORS preflights bypass both checks.
    """

    def __init__(
        self,
        app: object,
        api_key: str = "",
        require_api_key: bool = True,
        enable_rate_limiting: bool = True,
        client_ip_header: str = "CF-Connecting-IP",
    ) -> None:
        super().__init__(app)
        self._api_key = api_key
        self._require_api_key = require_api_key
        self._enable_rate_limiting = enable_rate_limiting
        self._client_ip_header = client_ip_header

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.method == "OPTIONS" or request.url.path in EXEMPT_PATHS:
            return await call_next(request)

        try:
            if self._require_api_key:
                self._check_api_key(request)
            if self._enable_rate_limiting:
                await self._check_rate_limit(request)
        except (AuthError, RateLimitError) as exc:
            headers = {"Retry-After": str(exc.retry_after)} if isinstance(exc, RateLimitError) else None
            return JSONResponse(status_code=exc.status_code, content=exc.to_payload(), headers=headers)

        return await call_next(request)

    def _check_api_key(self, request: Request) -> None:
        provided = request.headers.get(API_KEY_HEADER)
        if not provided:
            raise AuthError("API key required. Please provide X-API-Key header.", status_code=401)
        # A gate that requires a key but has none configured rejects everything.
        if not self._api_key or not hmac.compare_digest(
            provided.encode("utf-8"), self._api_key.encode("utf-8")
        ):
            _logger.warning("api_key_rejected", path=str(request.url.path))
            raise AuthError("Invalid API key.", status_code=403)

    async def _check_rate_limit(self, request: Request) -> None:
        limiter = getattr(request.app.state, "rate_limiter", None)
        if limiter is None:
            return
        await limiter.check(client_identity(request, self._client_ip_header))
