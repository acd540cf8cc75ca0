# Builds the stores and their persistence from settings
import logging
from typing import Optional

import httpx
from pydantic import BaseModel, ConfigDict

from case_records_service.app.config import settings
from case_records_service.app.service.case_store import CaseStore
from case_records_service.app.service.document_store import DocumentStore
from case_records_service.app.service.exceptions import ConfigurationError
from case_records_service.app.service.session_store import SessionStore
from case_records_service.infrastructure.database.connection import get_records_collection
from case_records_service.infrastructure.database.fallback_coordinator import PersistenceFallbackCoordinator
from case_records_service.infrastructure.database.record_backends import AbstractRecordBackend, MongoRecordBackend
from case_records_service.infrastructure.remote_records_client import RemoteRecordsClient

logger = logging.getLogger(__name__)


class CaseRecordStores(BaseModel):
    """The three stores of one tenant, sharing a single fallback coordinator."""
    model_config = ConfigDict(arbitrary_types_allowed=True)

    coordinator: PersistenceFallbackCoordinator
    cases: CaseStore
    documents: DocumentStore
    sessions: SessionStore


def build_record_backend() -> AbstractRecordBackend:
    return MongoRecordBackend(get_records_collection())


def build_remote_client(http_client: httpx.AsyncClient) -> Optional[RemoteRecordsClient]:
    if not settings.REMOTE_API_ENABLED:
        logger.info("Remote records API disabled (REMOTE_API_ENABLED=false). Using the local record store only.")
        return None
    if not settings.REMOTE_API_URL:
        raise ConfigurationError("REMOTE_API_ENABLED is set but REMOTE_API_URL is not configured.")
    if not settings.REMOTE_API_TOKEN:
        logger.warning("REMOTE_API_TOKEN not set. Remote requests will be sent without a bearer credential.")
    return RemoteRecordsClient(
        http_client=http_client,
        base_url=settings.REMOTE_API_URL,
        token=settings.REMOTE_API_TOKEN,
        timeout=settings.REMOTE_API_TIMEOUT_SECONDS,
    )


def build_stores(
    namespace: Optional[str] = None,
    backend: Optional[AbstractRecordBackend] = None,
    remote: Optional[RemoteRecordsClient] = None,
) -> CaseRecordStores:
    """
    Wires the stores for one tenant. `namespace` partitions the local record
    store between tenants; `backend` defaults to the MongoDB record store.
    """
    coordinator = PersistenceFallbackCoordinator(
        local=backend if backend is not None else build_record_backend(),
        remote=remote,
        namespace=namespace,
    )
    documents = DocumentStore(coordinator)
    sessions = SessionStore(coordinator, default_context_messages=settings.DEFAULT_CONTEXT_MESSAGES)
    cases = CaseStore(coordinator, document_store=documents, session_store=sessions)
    return CaseRecordStores(coordinator=coordinator, cases=cases, documents=documents, sessions=sessions)
