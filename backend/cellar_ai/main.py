"""Main FastAPI application entry point."""

import logging
import sys
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from cellar_ai.config import config
from cellar_ai.db.session import close_db, init_db
from cellar_ai.routes import analytics, auth, cellar, cellartracker, chat, tools
from cellar_ai.services.summary_cache import SummaryCache

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)

logging.getLogger("cellar_ai").setLevel(logging.INFO)
logging.getLogger("langchain").setLevel(logging.WARNING)
logging.getLogger("httpx").setLevel(logging.WARNING)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    """Application lifespan handler."""
    logger.info("Starting My Cellar AI...")
    init_db()

    yield

    logger.info("Shutting down My Cellar AI...")
    await close_db()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app_config = config.yaml_config.get("app", {})

    app = FastAPI(
        title=app_config.get("name", "My Cellar AI"),
        version=app_config.get("version", "1.0.0"),
        description="Sommelier assistant and analytics over CellarTracker wine inventories",
        lifespan=lifespan,
    )

    cache_config = config.get_summary_cache_config()
    app.state.summary_cache = SummaryCache(
        max_entries=cache_config.get("max_entries", 256),
        ttl_seconds=cache_config.get("ttl_seconds", 3600),
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["http://localhost:3000", "http://localhost:5173", "*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(auth.router, prefix="/api")
    app.include_router(cellartracker.router, prefix="/api")
    app.include_router(analytics.router, prefix="/api")
    app.include_router(cellar.router, prefix="/api")
    app.include_router(tools.router, prefix="/api")
    app.include_router(chat.router, prefix="/api")

    @app.get("/")
    async def root():
        """Root endpoint."""
        return {
            "name": app_config.get("name", "My Cellar AI"),
            "version": app_config.get("version", "1.0.0"),
            "docs": "/docs",
        }

    @app.get("/health")
    async def health():
        """Simple health check."""
        return {"status": "healthy"}

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "cellar_ai.main:app",
        host=config.settings.host,
        port=config.settings.port,
        reload=config.settings.debug,
    )
