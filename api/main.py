from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Callable

from fastapi import FastAPI, Request, Response, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api.observability import (
    configure_logging,
    monotonic_ms,
    new_request_id,
    request_log_fields,
    reset_request_id,
    set_request_id,
)
from api.rate_limit import RateLimitStore
from api.routes import router
from coaching.config import get_settings
from coaching.errors import (
    CheckInLockedError,
    CheckInTransitionError,
    CoachingError,
    EnrollmentTransitionError,
    ScheduleAssignmentError,
    WorkoutOwnershipError,
)
from coaching.logging_config import log_context

logger = logging.getLogger(__name__)

_ERROR_STATUS: dict[type[CoachingError], tuple[int, str]] = {
    CheckInLockedError: (status.HTTP_409_CONFLICT, "CHECKIN_LOCKED"),
    CheckInTransitionError: (status.HTTP_409_CONFLICT, "INVALID_CHECKIN_TRANSITION"),
    EnrollmentTransitionError: (status.HTTP_409_CONFLICT, "INVALID_ENROLLMENT_TRANSITION"),
    ScheduleAssignmentError: (status.HTTP_422_UNPROCESSABLE_ENTITY, "INVALID_SCHEDULE_DATE"),
    WorkoutOwnershipError: (status.HTTP_409_CONFLICT, "WORKOUT_NOT_OWNED"),
}


async def coaching_error_handler(request: Request, exc: CoachingError) -> JSONResponse:
    status_code, code = _ERROR_STATUS.get(type(exc), (status.HTTP_409_CONFLICT, "COACHING_RULE"))
    logger.info("coaching_rule_rejected", extra=log_context(code=code, path=request.url.path))
    return JSONResponse(status_code=status_code, content={"detail": {"code": code, "message": str(exc)}})


def create_app(rate_limiter: RateLimitStore | None = None) -> FastAPI:
    settings = get_settings()
    configure_logging(settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("api_startup", extra=log_context(app_env=settings.app_env))
        try:
            yield
        finally:
            app.state.rate_limiter.reset()

    app = FastAPI(title=settings.api_title, version="1.0.0", lifespan=lifespan)
    if rate_limiter is None:
        rate_limiter = RateLimitStore(
            settings.rate_limit_max_requests,
            settings.rate_limit_window_seconds,
            enabled=settings.rate_limit_enabled,
        )
    app.state.rate_limiter = rate_limiter
    app.add_exception_handler(CoachingError, coaching_error_handler)
    app.include_router(router)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def request_context_and_logging(request: Request, call_next: Callable) -> Response:
        header_name = settings.request_id_header_name or "X-Request-ID"
        request_id = (request.headers.get(header_name) or "").strip() or new_request_id()
        token = set_request_id(request_id)
        started_ms = monotonic_ms()
        client_ip = getattr(request.client, "host", None)
        try:
            response = await call_next(request)
        except Exception:
            logger.exception(
                "http_request_error",
                extra=request_log_fields(
                    method=request.method,
                    path=request.url.path,
                    status_code=500,
                    duration_ms=monotonic_ms() - started_ms,
                    client_ip=client_ip,
                ),
            )
            raise
        else:
            response.headers[header_name] = request_id
            logger.info(
                "http_request",
                extra=request_log_fields(
                    method=request.method,
                    path=request.url.path,
                    status_code=response.status_code,
                    duration_ms=monotonic_ms() - started_ms,
                    client_ip=client_ip,
                ),
            )
            return response
        finally:
            reset_request_id(token)

    return app


app = create_app()
