"""Request tracing middleware and structured exception handlers.

Every request gets a unique ID (from X-Request-ID header or generated),
which is bound to structlog contextvars so all log lines within a
request are correlated. Prometheus counters and histograms are recorded.
Exception handlers translate VerdictError families into structured
ErrorResponse JSON; the API never leaks stack traces.
"""

import time
import uuid

import structlog
from fastapi import FastAPI
from fastapi.responses import JSONResponse
from prometheus_client import Counter, Histogram
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from verdict.core.exceptions import (
    AlreadyReviewedError,
    AuthenticationRequiredError,
    DuplicateVoteError,
    InvalidInputError,
    ModeratorRequiredError,
    NotFoundError,
    NotRevealedError,
    RateLimitError,
    StateConflictError,
    VerdictError,
    VotingClosedError,
)

logger: structlog.stdlib.BoundLogger = structlog.get_logger()

REQUEST_COUNT = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status_code"],
)
REQUEST_LATENCY = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency in seconds",
    ["method", "endpoint"],
)

_CONFLICT_CODES: dict[type[StateConflictError], str] = {
    DuplicateVoteError: "duplicate_vote",
    VotingClosedError: "voting_closed",
    NotRevealedError: "not_revealed",
    AlreadyReviewedError: "already_reviewed",
}


class RequestTracingMiddleware(BaseHTTPMiddleware):
    """Assign a request ID, bind structured log context, and record metrics."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = request.headers.get("X-Request-ID", str(uuid.uuid4()))

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(request_id=request_id)

        start = time.perf_counter()
        logger.info(
            "request_started",
            method=request.method,
            path=str(request.url.path),
        )

        try:
            response = await call_next(request)
        except Exception:
            duration = time.perf_counter() - start
            logger.exception(
                "request_failed",
                method=request.method,
                path=str(request.url.path),
                duration_seconds=round(duration, 4),
            )
            response = JSONResponse(
                status_code=500,
                content={
                    "error": "internal_server_error",
                    "message": "An unexpected error occurred.",
                    "details": {},
                    "request_id": request_id,
                },
            )

        duration = time.perf_counter() - start

        REQUEST_COUNT.labels(
            method=request.method,
            endpoint=request.url.path,
            status_code=response.status_code,
        ).inc()
        REQUEST_LATENCY.labels(
            method=request.method,
            endpoint=request.url.path,
        ).observe(duration)

        response.headers["X-Request-ID"] = request_id

        logger.info(
            "request_completed",
            method=request.method,
            path=str(request.url.path),
            status_code=response.status_code,
            duration_seconds=round(duration, 4),
        )
        return response


# ---------------------------------------------------------------------------
# Exception → JSON response handlers
# ---------------------------------------------------------------------------


def _request_id() -> str | None:
    """Pull the current request ID from structlog context, if bound."""
    ctx: dict[str, str] = structlog.contextvars.get_contextvars()
    return ctx.get("request_id")


def _error_response(
    status_code: int,
    error: str,
    exc: VerdictError,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "error": error,
            "message": exc.message,
            "details": exc.details,
            "request_id": _request_id(),
        },
        headers=headers,
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Attach structured error handlers to the app."""

    @app.exception_handler(InvalidInputError)
    async def _invalid_input(request: Request, exc: InvalidInputError) -> JSONResponse:
        return _error_response(400, "invalid_input", exc)

    @app.exception_handler(AuthenticationRequiredError)
    async def _unauthenticated(request: Request, exc: AuthenticationRequiredError) -> JSONResponse:
        return _error_response(401, "authentication_required", exc)

    @app.exception_handler(ModeratorRequiredError)
    async def _not_moderator(request: Request, exc: ModeratorRequiredError) -> JSONResponse:
        return _error_response(403, "moderator_required", exc)

    @app.exception_handler(StateConflictError)
    async def _conflict(request: Request, exc: StateConflictError) -> JSONResponse:
        logger.info("state_conflict", error_type=type(exc).__name__, message=exc.message)
        return _error_response(409, _CONFLICT_CODES.get(type(exc), "state_conflict"), exc)

    @app.exception_handler(NotFoundError)
    async def _not_found(request: Request, exc: NotFoundError) -> JSONResponse:
        return _error_response(404, "not_found", exc)

    @app.exception_handler(RateLimitError)
    async def _rate_limit(request: Request, exc: RateLimitError) -> JSONResponse:
        headers: dict[str, str] = {}
        if exc.retry_after is not None:
            headers["Retry-After"] = str(int(exc.retry_after))
        return _error_response(429, "rate_limit_exceeded", exc, headers=headers)

    @app.exception_handler(VerdictError)
    async def _verdict(request: Request, exc: VerdictError) -> JSONResponse:
        logger.error(
            "verdict_error",
            error_type=type(exc).__name__,
            message=exc.message,
            details=exc.details,
        )
        return JSONResponse(
            status_code=500,
            content={
                "error": "internal_server_error",
                "message": "An internal error occurred.",
                "details": {},
                "request_id": _request_id(),
            },
        )

    @app.exception_handler(Exception)
    async def _unhandled(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("unhandled_error", error_type=type(exc).__name__)
        return JSONResponse(
            status_code=500,
            content={
                "error": "internal_server_error",
                "message": "An unexpected error occurred.",
                "details": {},
                "request_id": _request_id(),
            },
        )
