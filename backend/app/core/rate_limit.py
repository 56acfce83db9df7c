# app/core/rate_limit.py
"""
Per-client-IP request limits.

Every route gets ``RATE_LIMIT_DEFAULT`` through ``SlowAPIMiddleware``; routes
decorated with ``limiter.limit(...)`` (login/register, image generation) get
their own, tighter window instead. Exceeding a limit is reported through the
regular error envelope as 429 ``RATE_LIMITED``.
"""
import logging

from fastapi import Request
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from app.config import settings
from app.core.errors import AppError, ErrorKind

logger = logging.getLogger("uvicorn.error")

limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[settings.rate_limit_default],
    storage_uri=settings.rate_limit_storage_uri,
    enabled=settings.rate_limit_enabled,
)

AUTH_LIMIT = settings.rate_limit_auth
AI_LIMIT = settings.rate_limit_ai


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    # Must stay synchronous: SlowAPIMiddleware may call it without awaiting
    logger.warning("[rate-limit] %s %s from %s exceeded %s",
                   request.method, request.url.path, get_remote_address(request), exc.detail)
    error = AppError(ErrorKind.RATE_LIMITED, details={"limit": str(exc.detail)})
    return JSONResponse(status_code=error.status_code, content=jsonable_encoder(error.to_dict()))
