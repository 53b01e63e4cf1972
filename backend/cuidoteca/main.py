import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from cuidoteca.config import settings
from cuidoteca.core.errors import DomainError, domain_error_handler
from cuidoteca.core.rate_limit import limiter
from cuidoteca.database import engine, get_db
from cuidoteca.routers import (
    admin,
    auth,
    children,
    connections,
    cuidador_enrollments,
    cuidotecas,
    documents,
    enrollments,
    events,
    institutions,
    messages,
    notifications,
    posts,
    uploads,
    users,
)

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
    logger.info("%s started (api prefix %s)", settings.APP_NAME, settings.API_V1_PREFIX)
    yield
    await engine.dispose()
    logger.info("%s shutting down", settings.APP_NAME)


app = FastAPI(
    title=settings.APP_NAME,
    version="0.1.0",
    lifespan=lifespan,
    docs_url="/docs" if settings.DEBUG else None,
    redoc_url="/redoc" if settings.DEBUG else None,
    openapi_url="/openapi.json" if settings.DEBUG else None,
)

# Uploads are capped at 10 MB; leave room for the multipart envelope.
MAX_BODY_SIZE = 12 * 1024 * 1024


# -- Middleware ---------------------------------------------------------------
@app.middleware("http")
async def reject_oversized_body(request: Request, call_next):
    declared = request.headers.get("content-length", "")
    if declared.isdigit() and int(declared) > MAX_BODY_SIZE:
        return JSONResponse(status_code=413, content={"detail": "Requisição muito grande"})
    return await call_next(request)


@app.middleware("http")
async def log_failed_requests(request: Request, call_next):
    try:
        response = await call_next(request)
    except Exception:
        logger.exception("%s %s failed", request.method, request.url.path)
        raise
    if response.status_code >= 500:
        logger.error("%s %s -> %d", request.method, request.url.path, response.status_code)
    return response


app.add_middleware(GZipMiddleware, minimum_size=1000)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type"],
)

# -- Errors and rate limiting -------------------------------------------------
app.add_exception_handler(DomainError, domain_error_handler)
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


@app.get("/health", tags=["health"])
async def health_check(db: AsyncSession = Depends(get_db)):
    """Report ``ok`` when the database answers, ``degraded`` otherwise."""
    try:
        await db.execute(select(1))
        db_state = "ok"
    except Exception:
        logger.exception("Health check: database unreachable")
        db_state = "error"
    return {
        "status": "ok" if db_state == "ok" else "degraded",
        "app": settings.APP_NAME,
        "db": db_state,
    }


# -- Routers ------------------------------------------------------------------
for module in (
    auth,
    users,
    children,
    institutions,
    connections,
    cuidotecas,
    enrollments,
    cuidador_enrollments,
    notifications,
    posts,
    events,
    messages,
    documents,
    uploads,
    admin,
):
    app.include_router(module.router, prefix=settings.API_V1_PREFIX)
