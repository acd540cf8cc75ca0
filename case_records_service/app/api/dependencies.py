# FastAPI dependency providers for the records API
import logging
from typing import Optional

from fastapi import Depends, Header, HTTPException

from case_records_service.app.config import settings
from case_records_service.infrastructure.database.connection import get_records_collection
from case_records_service.infrastructure.database.fallback_coordinator import PersistenceFallbackCoordinator
from case_records_service.infrastructure.database.record_backends import AbstractRecordBackend, MongoRecordBackend

logger = logging.getLogger(__name__)


def get_record_backend() -> AbstractRecordBackend:
    return MongoRecordBackend(get_records_collection())


def verify_bearer_token(authorization: Optional[str] = Header(default=None)) -> None:
    """Rejects requests whose bearer token does not match REMOTE_API_TOKEN (when one is configured)."""
    if not settings.REMOTE_API_TOKEN:
        return
    if authorization != f"Bearer {settings.REMOTE_API_TOKEN}":
        logger.warning("Rejected records API request with missing or invalid bearer token.")
        raise HTTPException(status_code=401, detail="Invalid or missing bearer token")


def get_coordinator(
    backend: AbstractRecordBackend = Depends(get_record_backend),
    x_tenant_namespace: Optional[str] = Header(default=None),
) -> PersistenceFallbackCoordinator:
    # The server is the remote end, so its coordinator only has the local store.
    return PersistenceFallbackCoordinator(local=backend, namespace=x_tenant_namespace)
