# API Router for Health Checks
from fastapi import APIRouter
import logging

from case_records_service.infrastructure.database.connection import get_database
from case_records_service.app.config import settings

logger = logging.getLogger(__name__)
router = APIRouter()

@router.get("/health", tags=["Monitoring"])
def health_check():
    mongodb_status = "connected"
    try:
        get_database().command('ping')
    except Exception as e:
        logger.error(f"MongoDB health check ping failed: {e}")
        mongodb_status = "disconnected"
    return {"status": "ok", "components": {"mongodb": mongodb_status}, "service_name": settings.SERVICE_NAME_API}
