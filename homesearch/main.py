"""
FastAPI main application for Home Search.
"""

import logging
import os
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

# Repo-level .env first, then a working-directory .env overrides it
from dotenv import load_dotenv
load_dotenv(Path(__file__).resolve().parent.parent / ".env")
load_dotenv(override=True)

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from homesearch import __version__
from homesearch.config import ApiSettings, get_api_settings, load_api_config
from homesearch.db import Database
from homesearch.dependencies import get_database
from homesearch.routers import search
from homesearch.services.repliers import RepliersClient

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events"""
    settings: ApiSettings = app.state.settings

    # Startup
    logger.info("Starting Home Search API...")
    app.state.provider = RepliersClient(settings.repliers)
    app.state.db = Database(settings.database)
    await app.state.db.connect()
    logger.info("Database initialized")

    yield

    # Shutdown
    logger.info("Shutting down Home Search API...")
    await app.state.provider.close()
    await app.state.db.close()


async def validation_error_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=400,
        content={"error": "VALIDATION_ERROR", "details": jsonable_encoder(exc.errors())}
    )


def create_app(settings: Optional[ApiSettings] = None) -> FastAPI:
    """Build the application; the store and provider are attached on startup."""
    settings = settings or get_api_settings(load_api_config())

    app = FastAPI(
        title="Home Search API",
        description="Real-estate listing search with recent-search caching",
        version=__version__,
        lifespan=lifespan
    )
    app.state.settings = settings

    # Empty allow-list admits every origin
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins(),
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Cache"],
    )

    app.add_exception_handler(RequestValidationError, validation_error_handler)

    @app.get("/health")
    async def health_check():
        """Health check endpoint"""
        return {"ok": True}

    @app.get("/health/db")
    async def database_health(request: Request):
        """Read-only round trip to PostgreSQL and Redis"""
        try:
            await get_database(request).ping()
            return {"ok": True}
        except Exception as e:
            logger.error(f"Store health check failed: {e}")
            return JSONResponse(
                status_code=500,
                content={"ok": False, "error": "STORE_UNAVAILABLE", "message": str(e)}
            )

    app.include_router(search.router, tags=["search"])

    return app


if __name__ == "__main__":
    import uvicorn

    port = int(os.getenv("PORT", "4000"))

    uvicorn.run(
        "homesearch.main:create_app",
        factory=True,
        host="0.0.0.0",
        port=port,
        log_level="info"
    )
