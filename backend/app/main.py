# app/main.py
import datetime as dt
import logging

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

# Configuration and DB
from app.config import settings
from app.core.db import init_db, close_db
from app.core.errors import AppError, ErrorKind
from app.core.rate_limit import limiter, rate_limit_exceeded_handler

from app.api.v1.routers import auth, user, subscription, payment, admin, ai

from app.core.bootstrap import ensure_default_admin
logger = logging.getLogger("uvicorn.error")

app = FastAPI(title=settings.APP_NAME)

# Per-IP rate limits (must be registered before CORSMiddleware)
app.state.limiter = limiter
app.add_middleware(SlowAPIMiddleware)
app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)

# CORS (with Cookie)
app.add_middleware(
    CORSMiddleware,
    allow_origins=sorted({*settings.CORS_ORIGINS, settings.app_url.rstrip("/")}),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    if exc.status_code >= 500:
        logger.error("[error] %s %s -> %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=exc.status_code, content=jsonable_encoder(exc.to_dict()))

@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    # Rejected before any handler (and so any store write) runs
    error = AppError(ErrorKind.VALIDATION_ERROR, details=exc.errors())
    return JSONResponse(status_code=error.status_code, content=jsonable_encoder(error.to_dict()))

@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("[error] unhandled exception on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"success": False, "error": {"code": "INTERNAL_ERROR", "message": "Internal server error"}},
    )

@app.on_event("startup")
async def on_startup():
    await init_db()
    # Ensure there's a default admin account on first run
    await ensure_default_admin()
    logger.info("[startup] %s env=%s paypal=%s", settings.APP_NAME, settings.env, settings.paypal_mode)

@app.on_event("shutdown")
async def on_shutdown():
    await close_db()

# REST
app.include_router(auth.router, prefix="/api/v1")
app.include_router(user.router, prefix="/api/v1")
app.include_router(subscription.router, prefix="/api/v1")
app.include_router(payment.router, prefix="/api/v1")
app.include_router(admin.router, prefix="/api/v1")
app.include_router(ai.router, prefix="/api/v1")

@app.get("/api/health")
@limiter.exempt
def health():
    return {"status": "ok", "timestamp": dt.datetime.now(dt.timezone.utc).isoformat()}
