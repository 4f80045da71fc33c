from __future__ import annotations

from fastapi import FastAPI

from challan_engine.api import api_router
from challan_engine.core.config import settings
from challan_engine.core.database import init_db
from challan_engine.core.logging import setup_logging


def create_app() -> FastAPI:
    """
    Application factory for the FastAPI app.

    - Configures title, version, debug mode from Settings.
    - Initializes logging.
    - Includes the versioned API router under /api/v1.
    """
    setup_logging()

    app = FastAPI(
        title=settings.PROJECT_NAME,
        debug=settings.DEBUG,
        version=settings.PROJECT_VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )

    # Mount API v1 under /api/v1
    app.include_router(api_router, prefix=settings.API_V1_STR)

    @app.get("/health", tags=["Health"])
    def health() -> dict:
        return {"status": "ok", "service": settings.PROJECT_NAME}

    # Create the schema outside production (use migrations there)
    @app.on_event("startup")
    def on_startup() -> None:
        if not settings.is_production:
            init_db()

    return app


app = create_app()
