from typing import Optional

from pydantic import Field

from .record_base import RecordModel
from case_records_service.app.service.identifiers import new_document_id, now_ms

DEFAULT_DOCUMENT_TITLE = "Untitled Document"
DEFAULT_DOCUMENT_CATEGORY = "general"


class DocumentDB(RecordModel):
    id: str = Field(default_factory=new_document_id)
    title: str = DEFAULT_DOCUMENT_TITLE
    content: str = ""
    last_modified: int = Field(default_factory=now_ms) # Epoch milliseconds
    case_id: Optional[str] = None # Normalized case reference, None when unassigned
    category: str = DEFAULT_DOCUMENT_CATEGORY

    # Pointer into an external document source (e.g., a DMS); set together.
    external_system: Optional[str] = None
    external_id: Optional[str] = None
