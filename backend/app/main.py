"""FastAPI application factory."""

import logging
from typing import Any

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from backend.app.api.ai import AIContainer, get_ai_container
from backend.app.api.ai import router as ai_router
from backend.app.api.health import get_health
from backend.app.config import get_settings
from backend.app.logging_config import configure_logging

logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Returns:
        Configured FastAPI application
    """
    settings = get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title="SmartNZ Travel Planner AI API",
        description="Bilingual travel planning - LLM orchestration backend",
        version="0.1.0",
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.ui_origin],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Health check endpoint
    @app.get("/healthz")
    async def healthz(
        container: AIContainer = Depends(get_ai_container),
    ) -> Any:
        """Health check endpoint."""
        result = await get_health(container)
        status_code = 200 if result.status == "ok" else 503
        return JSONResponse(status_code=status_code, content=result.model_dump())

    # Include routers
    app.include_router(ai_router)

    logger.info("Application configured")
    return app


# Create app instance for uvicorn
app = create_app()
