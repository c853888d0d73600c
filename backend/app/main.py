"""FastAPI application, the main entrypoint for CitySense."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text

from backend.app.api.admin import router as admin_router
from backend.app.api.comments import router as comments_router
from backend.app.api.issues import router as issues_router
from backend.app.api.users import router as users_router
from backend.app.api.ws import router as ws_router
from backend.app.config import settings
from backend.app.db import engine, init_db
from backend.app.services.ws_manager import ws_manager

logger = logging.getLogger(__name__)

# Configure logging for our app modules so INFO/DEBUG logs are visible.
# Uvicorn's log_level="info" only affects its own logger, not ours.
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(levelname)s:%(name)s: %(message)s",
)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    await init_db()
    if not settings.cloudinary_cloud_name:
        logger.warning("CITYSENSE_CLOUDINARY_CLOUD_NAME is not set; photo uploads will fail")
    yield
    # Shutdown
    await ws_manager.close_all()
    await engine.dispose()


app = FastAPI(
    title="CitySense",
    description="Community issue reporting",
    version="0.1.0",
    lifespan=lifespan,
)

# allow_origins=["*"] + allow_credentials=True is rejected by browsers,
# so we always use an explicit origin list.
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# --- Global exception handler ---


@app.exception_handler(Exception)
async def _unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch unhandled exceptions and return a clean JSON 500 instead of a stack trace."""
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error"},
    )


# Include routers
app.include_router(users_router, prefix="/api")
app.include_router(issues_router, prefix="/api")
app.include_router(comments_router, prefix="/api")
app.include_router(admin_router, prefix="/api")
app.include_router(ws_router)  # /ws endpoint (no /api prefix)


# --- Health check ---


@app.get("/api/health")
async def health() -> dict[str, str | int]:
    """Health check with DB connectivity verification."""
    db_ok = "ok"
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except Exception:
        db_ok = "error"
        logger.exception("Health check: database connectivity failed")

    return {
        "status": "ok" if db_ok == "ok" else "degraded",
        "database": db_ok,
        "ws_clients": ws_manager.active_count,
    }
