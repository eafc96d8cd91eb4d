"""
ReelForge Backend API
FastAPI application for multi-format video production

This is the main entry point that wires together all routes and services.
"""

import uuid
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from .adapters.base import ProductionAdapters
from .adapters.unconfigured import unconfigured_adapters
from .config import (
    API_TITLE,
    API_DESCRIPTION,
    API_VERSION,
    CORS_ORIGINS,
    LOG_LEVEL,
    LOG_FILE,
    USE_JSON_LOGS,
    SESSION_TTL_DAYS,
)
from .core import setup_logging, get_logger, set_request_id, clear_context
from .routes import formats_router, productions_router, sessions_router
from .services.infrastructure.orchestration import ParallelExecutionEngine, ProductionManager
from .services.infrastructure.storage import FileBasedSessionRepository, SessionStore, StorySessionStore
from .services.pipelines import build_default_router
from .services.use_cases import ProductionUseCase, SessionUseCase

setup_logging(
    level=LOG_LEVEL,
    log_file=Path(LOG_FILE) if LOG_FILE else None,
    use_json=USE_JSON_LOGS,
)

logger = get_logger(__name__, service="api")


@asynccontextmanager
async def lifespan(app: FastAPI):
    removed = app.state.session_use_case.cleanup(SESSION_TTL_DAYS)
    logger.info("Startup cleanup complete", extra={"sessions_removed": removed, "ttl_days": SESSION_TTL_DAYS})
    try:
        yield
    finally:
        flushed = app.state.session_store.flush_all() + app.state.story_store.flush_all()
        logger.info("Shutdown flush complete", extra={"sessions_flushed": flushed})


def create_app(adapters: Optional[ProductionAdapters] = None, data_dir: Optional[Path] = None) -> FastAPI:
    """Build the API with its own stores, engine, router and production registry."""
    app = FastAPI(
        title=API_TITLE,
        description=API_DESCRIPTION,
        version=API_VERSION,
        lifespan=lifespan,
    )

    adapters = adapters or unconfigured_adapters()
    repository = FileBasedSessionRepository(data_dir)
    session_store = SessionStore(repository)
    story_store = StorySessionStore(repository)
    engine = ParallelExecutionEngine()
    format_router = build_default_router(adapters, session_store, story_store, engine=engine)
    manager = ProductionManager()

    app.state.session_store = session_store
    app.state.story_store = story_store
    app.state.engine = engine
    app.state.format_router = format_router
    app.state.production_manager = manager
    app.state.production_use_case = ProductionUseCase(format_router, manager)
    app.state.session_use_case = SessionUseCase(session_store, story_store)

    @app.middleware("http")
    async def add_request_correlation(request: Request, call_next):
        """Add correlation ID and log the request/response pair."""
        request_id = request.headers.get("X-Request-ID", str(uuid.uuid4()))
        set_request_id(request_id)
        path = request.url.path

        logger.info(f"{request.method} {path}", extra={"method": request.method, "path": path})
        try:
            response = await call_next(request)
            response.headers["X-Request-ID"] = request_id
            logger.info(f"Response: {response.status_code}", extra={
                "status_code": response.status_code,
                "method": request.method,
                "path": path,
            })
            return response
        finally:
            clear_context()

    # CORS middleware for frontend
    app.add_middleware(
        CORSMiddleware,
        allow_origins=CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(formats_router)
    app.include_router(productions_router)
    app.include_router(sessions_router)

    @app.get("/")
    async def root():
        return {"message": "ReelForge API", "version": API_VERSION}

    @app.get("/health")
    async def health():
        return {
            "status": "healthy",
            "formats": format_router.get_registered_pipelines(),
            "active_productions": sum(1 for p in manager.list_all() if not p.status.is_terminal()),
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "reelforge.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        reload_excludes=["session_data/*", "uploads/*", "*.pyc", "__pycache__/*"],
    )
