"""Main FastAPI application for the SkillHub tool registry."""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from . import __version__
from .config import Settings, get_settings
from .dependencies import SkillHubServices
from .errors import register_exception_handlers

logger = logging.getLogger(__name__)


def configure_logging(settings: Settings):
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def create_app(
    settings: Optional[Settings] = None,
    services: Optional[SkillHubServices] = None
) -> FastAPI:
    """Create and configure the FastAPI application.

    Tests pass a pre-built ``services`` container; otherwise the lifespan
    connects to the configured database and Redis.
    """
    settings = settings or get_settings()
    configure_logging(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        logger.info(f"Starting SkillHub ({settings.environment}, debug={settings.debug})")
        owned = services is None
        app.state.services = services or await SkillHubServices.create(settings)
        logger.info(f"Registered integrations: {', '.join(app.state.services.registry.get_types())}")

        yield

        logger.info("Shutting down SkillHub")
        if owned:
            await app.state.services.close()

    app = FastAPI(
        title="SkillHub Tool Registry",
        description="Capability registry and tool dispatch for agent workflows",
        version=__version__,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan
    )
    if services is not None:
        app.state.services = services

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    @app.get("/health")
    async def health_check(request: Request):
        """Health check endpoint."""
        status = "healthy"
        db_status = "not configured"

        db = request.app.state.services.db_service
        if db is not None:
            try:
                await db.execute("SELECT 1")
                db_status = "connected"
            except Exception as e:
                logger.warning(f"Health check database probe failed: {e}")
                db_status = "error"
                status = "degraded"

        return JSONResponse(
            content={
                "status": status,
                "environment": settings.environment,
                "version": __version__,
                "services": {"database": db_status},
            }
        )

    from .api.router import api_router, files_router
    app.include_router(api_router)
    app.include_router(files_router)

    return app


def run():
    """Run the development server."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "skillhub.main:create_app",
        factory=True,
        host="0.0.0.0",
        port=8000,
        reload=settings.debug,
        log_level="debug" if settings.debug else "info"
    )


if __name__ == "__main__":
    run()
