"""
Health Check Router
Simple health check endpoint
"""
from datetime import datetime

from fastapi import APIRouter

from app.core.config import settings

router = APIRouter()


@router.get("/health")
async def health_check():
    """
    Health check endpoint.
    Returns API status and which expense store backs it.
    """
    return {
        "status": "healthy",
        "service": settings.PROJECT_NAME,
        "store": settings.STORE_BACKEND,
        "timestamp": datetime.utcnow().isoformat(),
    }
