from __future__ import annotations

from collections.abc import Generator
from datetime import date, datetime

from fastapi import HTTPException, Request, status
from sqlalchemy.orm import Session

from api.rate_limit import RateLimitStore
from coaching.db import session_scope


def get_db() -> Generator[Session, None, None]:
    with session_scope() as session:
        yield session


def get_now() -> datetime:
    return datetime.now()


def get_today() -> date:
    return date.today()


def rate_limited(key: str):
    """Dependency factory enforcing the app's :class:`RateLimitStore` for ``key``."""

    def _enforce(request: Request) -> None:
        store: RateLimitStore = request.app.state.rate_limiter
        ip = request.client.host if request.client else "unknown"
        if not store.hit(f"{key}:{ip}"):
            raise HTTPException(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                detail={"code": "RATE_LIMITED", "message": "Rate limit exceeded"},
                headers={"Retry-After": str(int(store.window_seconds))},
            )

    return _enforce
