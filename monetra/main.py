"""Monetra — FastAPI Application Entry Point.

Revenue dashboards, AdSense account management and admin statistics for
deployed AI service apps.
"""

import os
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from monetra.config import settings
from monetra.database import check_connection, init_db
from monetra.scheduler.jobs import start_scheduler, stop_scheduler
from monetra.api.pipeline import error_envelope
from monetra.api.revenue_routes import router as revenue_router
from monetra.api.adsense_routes import router as adsense_router
from monetra.api.admin_routes import router as admin_router
from monetra.core.errors import AppError
from monetra.core.logging import get_logger
from monetra.core.synthetic import SyntheticSource

logger = get_logger("main")


IS_SERVERLESS = bool(
    os.environ.get("VERCEL") or os.environ.get("AWS_LAMBDA_FUNCTION_NAME")
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown lifecycle."""
    logger.info("Monetra starting up...")
    logger.info(f"Environment: {'SERVERLESS' if IS_SERVERLESS else 'LOCAL'}")
    if check_connection():
        try:
            init_db()
        except Exception as e:
            logger.error(f"Table creation failed: {e}")
    else:
        logger.error("Database unreachable; project-scoped endpoints will fail")

    app.state.http_client = httpx.AsyncClient(timeout=settings.adsense_timeout)
    app.state.synthetic = SyntheticSource(settings.synthetic_seed)

    if not IS_SERVERLESS:
        start_scheduler()
    yield
    if not IS_SERVERLESS:
        stop_scheduler()
    await app.state.http_client.aclose()
    logger.info("Monetra shut down")


app = FastAPI(
    title="Monetra",
    description="Revenue dashboards, AdSense integration and platform statistics for AI service apps.",
    version="1.0.0",
    lifespan=lifespan,
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Routers
app.include_router(revenue_router)
app.include_router(adsense_router)
app.include_router(admin_router)


# ── Error envelope for failures raised outside the request pipeline ──


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    return error_envelope(exc.message, exc.code, exc.status_code)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    message = errors[0].get("msg", "Invalid request") if errors else "Invalid request"
    logger.warning(
        f"Request validation failed: {message}", extra={"endpoint": request.url.path}
    )
    return error_envelope(message, "VALIDATION_FAILED", 400)


@app.get("/health", tags=["System"])
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "service": "monetra",
        "version": "1.0.0",
    }
