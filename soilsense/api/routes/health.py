"""
Liveness and readiness endpoints
"""

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session
from sqlalchemy import func, text
from sqlalchemy.exc import SQLAlchemyError
from soilsense import __version__
from soilsense.database.connection import get_database
from soilsense.models.device import Device, TelemetrySample
import structlog

logger = structlog.get_logger(__name__)
router = APIRouter()

SERVICE_NAME = "SoilSense Telemetry API"


def _service_info(request: Request) -> dict:
    settings = request.app.state.settings
    return {
        "service": SERVICE_NAME,
        "version": __version__,
        "database_backend": request.app.state.engine.dialect.name,
        "max_samples_per_device": settings.max_samples_per_device or None,
    }


@router.get("/health")
def health_check(request: Request):
    """Process is up; no database round trip"""
    return dict(status="healthy", **_service_info(request))


@router.get("/health/detailed")
def detailed_health_check(request: Request, db: Session = Depends(get_database)):
    """Readiness: database reachable, plus device and sample totals"""
    info = _service_info(request)
    try:
        db.execute(text("SELECT 1"))
        info["devices"] = db.query(func.count(Device.id)).scalar()
        info["samples"] = db.query(func.count(TelemetrySample.id)).scalar()
        db_status = "connected"
    except SQLAlchemyError as e:
        logger.error("Database health check failed", backend=info["database_backend"], error=str(e))
        db_status = "disconnected"

    return dict(status="healthy" if db_status == "connected" else "unhealthy", database=db_status, **info)
