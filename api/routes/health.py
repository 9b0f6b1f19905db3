"""Health check endpoints."""

from fastapi import APIRouter

from model_selector import __version__

router = APIRouter()


@router.get("/health")
async def health_check():
    """Basic health check."""
    return {"status": "healthy", "service": "model-selector"}


@router.get("/")
async def root():
    """API root."""
    return {
        "name": "Model Selector API",
        "version": __version__,
        "docs": "/docs",
    }
