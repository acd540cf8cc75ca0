# Remote-then-local persistence for every record collection
import logging
from typing import Any, Callable, Optional

from opentelemetry.trace.status import Status, StatusCode

from case_records_service.app.observability import tracer, remote_requests_counter, remote_fallbacks_counter
from case_records_service.app.service.exceptions import RemoteUnavailableError, SerializationError
from case_records_service.infrastructure.database.record_backends import AbstractRecordBackend
from case_records_service.infrastructure.database.record_keys import RecordKey, namespaced_storage_key
from case_records_service.infrastructure.remote_records_client import RemoteRecordsClient

logger = logging.getLogger(__name__)


class PersistenceFallbackCoordinator:
    """
    Sits between the stores and storage. Each call tries the remote records
    API first and degrades to the local record store when the remote fails.

    - read: the remote result wins when the remote answers with readable
      records; otherwise the local copy.
    - write/delete: the remote is attempted, then the local store is always
      written, so the local store mirrors every write even during outages.

    Remote failures are logged and counted here and never reach callers.
    There is no conflict resolution: if the remote and local copies diverge,
    the next successful write overwrites both. Local revisions are sent along
    with remote writes so a stricter remote can detect lost updates.
    """

    def __init__(
        self,
        local: AbstractRecordBackend,
        remote: Optional[RemoteRecordsClient] = None,
        namespace: Optional[str] = None,
        remote_enabled: bool = True,
    ):
        self.local = local
        self.remote = remote
        self.namespace = namespace or None
        self.remote_enabled = remote_enabled

    @property
    def remote_active(self) -> bool:
        return self.remote is not None and self.remote_enabled

    def local_key(self, key: RecordKey) -> str:
        return namespaced_storage_key(key, self.namespace)

    def _note_fallback(self, operation: str, key: RecordKey, error: RemoteUnavailableError) -> None:
        logger.warning(
            f"Remote {operation} failed for '{key.storage_key}', using local record store: {error}",
            extra={"record_key": key.storage_key, "remote_status": error.status_code},
        )
        remote_requests_counter.add(1, {"operation": operation, "outcome": "failure"})
        remote_fallbacks_counter.add(1, {"operation": operation})

    async def read(self, key: RecordKey, validate: Optional[Callable[[list], Any]] = None) -> Optional[list]:
        """
        `validate` is applied to a remote payload before it is accepted. A
        payload it rejects with SerializationError counts as a remote failure,
        so an unreadable remote copy never hides the local one.
        """
        if self.remote_active:
            with tracer.start_as_current_span("case_records.remote.read") as span:
                span.set_attribute("case_records.record_key", key.storage_key)
                try:
                    records = await self.remote.fetch_records(key, namespace=self.namespace)
                    if validate is not None:
                        try:
                            validate(records)
                        except SerializationError as e:
                            raise RemoteUnavailableError("GET", key.remote_path, f"unreadable records: {e.reason}") from e
                    remote_requests_counter.add(1, {"operation": "read", "outcome": "success"})
                    return records
                except RemoteUnavailableError as e:
                    span.record_exception(e)
                    span.set_status(Status(StatusCode.ERROR, str(e)))
                    self._note_fallback("read", key, e)
        return self.local.get(self.local_key(key))

    async def write(self, key: RecordKey, records: list) -> None:
        local_key = self.local_key(key)
        if self.remote_active:
            next_revision = self.local.revision(local_key) + 1
            with tracer.start_as_current_span("case_records.remote.write") as span:
                span.set_attribute("case_records.record_key", key.storage_key)
                span.set_attribute("case_records.record_count", len(records))
                try:
                    await self.remote.put_records(key, records, namespace=self.namespace, revision=next_revision)
                    remote_requests_counter.add(1, {"operation": "write", "outcome": "success"})
                except RemoteUnavailableError as e:
                    span.record_exception(e)
                    span.set_status(Status(StatusCode.ERROR, str(e)))
                    self._note_fallback("write", key, e)
        revision = self.local.set(local_key, records)
        logger.debug(f"Wrote {len(records)} records to local key '{local_key}' (revision {revision}).")

    async def delete(self, key: RecordKey) -> None:
        local_key = self.local_key(key)
        if self.remote_active:
            with tracer.start_as_current_span("case_records.remote.delete") as span:
                span.set_attribute("case_records.record_key", key.storage_key)
                try:
                    await self.remote.delete_records(key, namespace=self.namespace)
                    remote_requests_counter.add(1, {"operation": "delete", "outcome": "success"})
                except RemoteUnavailableError as e:
                    span.record_exception(e)
                    span.set_status(Status(StatusCode.ERROR, str(e)))
                    self._note_fallback("delete", key, e)
        self.local.delete(local_key)

    def revision(self, key: RecordKey) -> int:
        return self.local.revision(self.local_key(key))
