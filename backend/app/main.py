"""
Nexachain API application.

Investors browse plans, submit deposits and withdrawal requests and track
their investments and referrals; admins approve money movements, adjust
balances and manage accounts.
"""

import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from backend.app.core.config import settings
from backend.app.core.logging_config import setup_logging
from backend.app.core.observability import ObservabilityMiddleware
from backend.app.core.redis_client import close_redis, ping_redis
from backend.app.api.v1.router import router as api_v1_router
from backend.app.db.session import engine, Base
from backend.app.core.exceptions import (
    AppException,
    app_exception_handler,
    http_exception_handler,
    validation_exception_handler,
    generic_exception_handler
)

# Register every table on Base.metadata
from backend.app.models import (  # noqa: F401
    active_investment,
    audit_log,
    deposit,
    investment_plan,
    profile,
    referral,
    transaction_entry,
    withdrawal,
)

setup_logging(level=settings.log_level, json_output=settings.log_json)
logger = logging.getLogger("nexachain.app")


@asynccontextmanager
async def lifespan(app: FastAPI):
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    if not await ping_redis():
        # Authenticated routes answer 503 until Redis is reachable
        logger.warning("Redis unreachable at startup", extra={"redis_url": settings.redis_url.split("@")[-1]})
    logger.info("Application started", extra={"version": settings.api_version})

    yield

    await close_redis()
    await engine.dispose()


app = FastAPI(
    title=settings.app_name,
    version=settings.api_version,
    debug=settings.debug,
    description="Investment plans, deposits, withdrawals and referrals with admin approval workflows",
    lifespan=lifespan,
)

app.add_middleware(ObservabilityMiddleware)

app.add_exception_handler(AppException, app_exception_handler)
app.add_exception_handler(HTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(Exception, generic_exception_handler)

app.include_router(api_v1_router, prefix=settings.api_prefix)


@app.get("/health", tags=["Health"])
async def health_check():
    """Liveness plus the state of the revocation store."""
    redis_ok = await ping_redis()
    return {
        "status": "healthy" if redis_ok else "degraded",
        "app_name": settings.app_name,
        "version": settings.api_version,
        "redis": "ok" if redis_ok else "unavailable",
    }


@app.get("/", tags=["Root"])
async def root():
    return {
        "message": "Welcome to Nexachain Backend API",
        "docs": "/docs",
        "health": "/health",
    }
