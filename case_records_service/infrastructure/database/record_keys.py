# Record key space shared by the local record store and the remote records API
from typing import Optional
from urllib.parse import quote

from pydantic import BaseModel, ConfigDict

CASES_STORAGE_KEY = "cases"
DOCUMENTS_STORAGE_KEY = "savedDocuments"


class RecordKey(BaseModel):
    """
    Names one stored collection. `storage_key` is the key in the local record
    store (before tenant namespacing); `remote_path` is the matching resource
    on the remote records API.
    """
    model_config = ConfigDict(frozen=True)

    storage_key: str
    remote_path: str

    def __str__(self) -> str:
        return self.storage_key


def _segment(value: str) -> str:
    return quote(value, safe="")


def _storage_segment(value: str) -> str:
    # "_" separates the parts of a storage key, so it must not appear inside one.
    return value.replace("%", "%25").replace("_", "%5F")


CASES_KEY = RecordKey(storage_key=CASES_STORAGE_KEY, remote_path="/cases")
DOCUMENTS_KEY = RecordKey(storage_key=DOCUMENTS_STORAGE_KEY, remote_path="/documents")


def case_messages_key(case_id: str) -> RecordKey:
    """Default (session-less) message stream of a case."""
    return RecordKey(
        storage_key=f"chat_{_storage_segment(case_id)}",
        remote_path=f"/cases/{_segment(case_id)}/messages",
    )


def session_messages_key(case_id: str, session_id: str) -> RecordKey:
    return RecordKey(
        storage_key=f"chat_{_storage_segment(case_id)}_{_storage_segment(session_id)}",
        remote_path=f"/cases/{_segment(case_id)}/sessions/{_segment(session_id)}/messages",
    )


def session_index_key(case_id: str) -> RecordKey:
    return RecordKey(
        storage_key=f"chat_sessions_{_storage_segment(case_id)}",
        remote_path=f"/cases/{_segment(case_id)}/sessions",
    )


def namespaced_storage_key(key: RecordKey, namespace: Optional[str] = None) -> str:
    # Tenants share one physical store; each tenant's keys carry its prefix.
    if not namespace:
        return key.storage_key
    return f"user_{namespace}_{key.storage_key}"
