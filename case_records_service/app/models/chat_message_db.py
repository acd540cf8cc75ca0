from enum import Enum
from typing import Any, List, Optional

from pydantic import Field, field_validator, model_validator

from .record_base import RecordModel
from case_records_service.app.service.identifiers import new_message_id


class MessageSender(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"


class FileAttachment(RecordModel):
    name: str
    mime_type: str = "application/octet-stream"
    size: int = 0


class ChatMessageDB(RecordModel):
    id: str = Field(default_factory=new_message_id)
    sender: MessageSender
    content: str
    timestamp: Optional[int] = None # Epoch milliseconds; filled in on append when missing
    files: List[FileAttachment] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def _upgrade_legacy_shape(cls, data: Any) -> Any:
        # Older chat records carry isUser/fileInfo instead of sender/files.
        if not isinstance(data, dict):
            return data
        data = dict(data)
        if "sender" not in data and "isUser" in data:
            data["sender"] = MessageSender.USER if data.pop("isUser") else MessageSender.ASSISTANT
        if not data.get("files") and data.get("fileInfo"):
            data["files"] = [
                {"name": f.get("name", ""), "mimeType": f.get("type") or f.get("mimeType") or "application/octet-stream", "size": f.get("size", 0)}
                for f in data.pop("fileInfo") if isinstance(f, dict)
            ]
        return data

    @field_validator("sender", mode="before")
    @classmethod
    def _legacy_ai_sender(cls, value: Any) -> Any:
        if value == "ai":
            return MessageSender.ASSISTANT
        return value

    @field_validator("files", mode="before")
    @classmethod
    def _none_files(cls, value: Any) -> Any:
        return [] if value is None else value

    @property
    def is_user(self) -> bool:
        return self.sender == MessageSender.USER
