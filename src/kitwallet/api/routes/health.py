"""Health check endpoints."""

from fastapi import APIRouter

from kitwallet import __version__
from kitwallet.config import get_kit_config, get_settings

router = APIRouter()


@router.get("/health")
async def health_check():
    """Basic health check endpoint."""
    return {"status": "healthy", "service": "kitwallet"}


@router.get("/health/detailed")
async def detailed_health():
    """Detailed health check with configuration info."""
    settings = get_settings()
    return {
        "status": "healthy",
        "service": "kitwallet",
        "version": __version__,
        "coins": sorted(get_kit_config().coins),
        "config": settings.get_safe_dict(),
    }
