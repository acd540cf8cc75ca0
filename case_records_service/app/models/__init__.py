from .record_base import RecordModel
from .case_db import CaseDB, CaseDetailsUpdate, CasePriority, CaseStatus
from .document_db import DocumentDB, DEFAULT_DOCUMENT_CATEGORY, DEFAULT_DOCUMENT_TITLE
from .chat_message_db import ChatMessageDB, FileAttachment, MessageSender
from .chat_session_db import ChatSessionDB, SessionState

__all__ = [
    "RecordModel",
    "CaseDB",
    "CaseDetailsUpdate",
    "CasePriority",
    "CaseStatus",
    "DocumentDB",
    "DEFAULT_DOCUMENT_CATEGORY",
    "DEFAULT_DOCUMENT_TITLE",
    "ChatMessageDB",
    "FileAttachment",
    "MessageSender",
    "ChatSessionDB",
    "SessionState",
]
