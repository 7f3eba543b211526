"""Main API router for the SkillHub tool registry."""

from fastapi import APIRouter, Depends

from .. import __version__
from ..dependencies import get_registry
from ..integrations.registry import IntegrationRegistry
from .integrations import files_router, router as integrations_router

# Create main API router
api_router = APIRouter(prefix="/api/v1")

api_router.include_router(integrations_router)


# API version info endpoint
@api_router.get("/info")
async def api_info(registry: IntegrationRegistry = Depends(get_registry)):
    """Get API version and registry statistics."""
    return {
        "name": "SkillHub Tool Registry API",
        "version": __version__,
        "integrations": registry.get_stats(),
    }


__all__ = ["api_router", "files_router"]
