from enum import Enum
from typing import Optional

from pydantic import Field

from .record_base import RecordModel
from case_records_service.app.service.identifiers import new_case_id, now_ms


class CaseStatus(str, Enum):
    ACTIVE = "active"
    PENDING = "pending"
    CLOSED = "closed"


class CasePriority(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class CaseDB(RecordModel):
    id: str = Field(default_factory=new_case_id) # Always stored normalized
    name: str
    created_at: int = Field(default_factory=now_ms) # Epoch milliseconds
    status: CaseStatus = CaseStatus.ACTIVE
    priority: CasePriority = CasePriority.MEDIUM
    deadline: Optional[int] = None # Epoch milliseconds
    notes: Optional[str] = None
    client_name: Optional[str] = None


class CaseDetailsUpdate(RecordModel):
    """
    Partial update for a case. Only fields the caller actually set are merged
    (tracked by model_fields_set), so passing deadline=None clears the deadline
    while leaving deadline out keeps it.
    """
    name: Optional[str] = None
    status: Optional[CaseStatus] = None
    priority: Optional[CasePriority] = None
    deadline: Optional[int] = None
    notes: Optional[str] = None
    client_name: Optional[str] = None
