"""FastAPI application factory and entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from leadtrace import __version__
from leadtrace.config import get_settings
from leadtrace.db.engine import dispose_engine, get_engine, init_db
from leadtrace.routers import dashboard, health, ingest, links, sites, stream, visitors
from leadtrace.services.ingestion import IngestionPipeline
from leadtrace.services.persistence import StateRepository
from leadtrace.services.state import TrackerState

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Load persisted state on startup; flush it on shutdown."""
    settings = get_settings()
    logging.basicConfig(
        level=logging.DEBUG if settings.environment == "development" else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logger.info("Starting leadtrace v%s in %s mode", __version__, settings.environment)

    state: TrackerState = app.state.tracker
    if state.repository is not None:
        try:
            await init_db(get_engine())
        except Exception:
            logger.exception("Could not prepare the state database; continuing in memory")
        await state.load()

    yield

    await state.close()
    await dispose_engine()
    logger.info("leadtrace shut down")


def create_app(state: TrackerState | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    ``state`` defaults to a fresh tracker backed by the configured database.
    """
    settings = get_settings()

    docs_url = "/docs" if settings.environment == "development" else None
    redoc_url = "/redoc" if settings.environment == "development" else None
    openapi_url = "/openapi.json" if settings.environment == "development" else None

    app = FastAPI(
        title="leadtrace",
        description="Visitor identification and engagement analytics",
        version=__version__,
        lifespan=lifespan,
        docs_url=docs_url,
        redoc_url=redoc_url,
        openapi_url=openapi_url,
    )

    if state is None:
        state = TrackerState(settings, repository=StateRepository(get_engine()))
    app.state.tracker = state
    app.state.pipeline = IngestionPipeline(state)

    # The collector runs on arbitrary third-party origins and omits credentials
    origins = [o.strip() for o in settings.cors_origins.split(",")]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def add_security_headers(request: Request, call_next):
        response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers.setdefault("Cache-Control", "no-store")
        return response

    app.include_router(health.router)
    app.include_router(ingest.router)
    app.include_router(sites.router)
    app.include_router(visitors.router)
    app.include_router(dashboard.router)
    app.include_router(links.router)
    app.include_router(links.redirect_router)
    app.include_router(stream.router)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "leadtrace.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=(settings.environment == "development"),
    )
