from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from diarquia.core.config import AppConfig
from diarquia.routes.responses import get_config

API_VERSION = "1.0.0"

router = APIRouter()


@router.get("/")
async def root() -> JSONResponse:
    """Service banner with the list of public endpoints."""
    return JSONResponse(
        status_code=200,
        content={
            "success": True,
            "message": "La Diarquía - Booking API",
            "version": API_VERSION,
            "endpoints": {
                "health": "GET /health",
                "bookings": "POST /api/bookings",
            },
        },
    )


@router.get("/health")
async def health_check(config: AppConfig = Depends(get_config)) -> JSONResponse:
    response = {
        "success": True,
        "status": "ok",
        "message": "Server running",
        "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
        "environment": config.environment,
    }
    return JSONResponse(status_code=200, content=response)
