from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Response
from loguru import logger
from sqlalchemy import text
from sqlalchemy.orm import Session

from mediconnect.api.deps import get_object_store
from mediconnect.config import settings
from mediconnect.core.database import get_db
from mediconnect.core.storage import ObjectStore
from mediconnect.models.schemas import HealthResponse
from mediconnect.utils.prometheus_metrics import get_metrics, get_metrics_content_type

router = APIRouter()

VERSION = "1.0.0"

@router.get("/health", response_model=HealthResponse)
async def health_check(db: Session = Depends(get_db), store: ObjectStore = Depends(get_object_store)):
    """Health check endpoint"""

    services = {"storage": store.provider}

    # Check database
    try:
        db.execute(text("SELECT 1"))
        services["database"] = "healthy"
    except Exception as e:
        logger.error(f"Database health check failed: {e}")
        services["database"] = "error"

    overall_status = "healthy" if services["database"] != "error" else "degraded"

    return HealthResponse(
        status=overall_status,
        timestamp=datetime.now(timezone.utc),
        version=VERSION,
        services=services
    )

@router.get("/metrics")
async def prometheus_metrics():
    """Prometheus metrics endpoint"""
    if not settings.prometheus_enabled:
        return {"message": "Metrics disabled"}

    metrics_data = get_metrics()
    return Response(
        content=metrics_data,
        media_type=get_metrics_content_type()
    )
