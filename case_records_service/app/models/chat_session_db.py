from enum import Enum
from typing import Optional

from .record_base import RecordModel


class SessionState(str, Enum):
    # A session moves from ABSENT to ACTIVE on its first appended message and
    # back to ABSENT only when deleted or when the case history is cleared.
    ABSENT = "absent"
    ACTIVE = "active"


class ChatSessionDB(RecordModel): # Entry of the per-case session index
    id: str
    timestamp: int # Most recent activity, epoch milliseconds
    name: Optional[str] = None
