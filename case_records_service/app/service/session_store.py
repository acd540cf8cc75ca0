# Session Store: per-case chat streams and the most-recent-first session index
import logging
from typing import Iterable, List, Optional

from case_records_service.app.models import (
    ChatMessageDB, ChatSessionDB, FileAttachment, MessageSender, SessionState,
)
from case_records_service.app.service.context_window import MAX_CONTEXT_MESSAGES, build_context
from case_records_service.app.service.conversation_search import DEFAULT_MIN_SCORE, rank_by_relevance
from case_records_service.app.service.exceptions import CaseValidationError
from case_records_service.app.service.identifiers import CaseID, normalize_case_id, now_ms
from case_records_service.app.service.interfaces.text_generator import AbstractTextGenerator
from case_records_service.app.service.record_collections import load_collection, save_collection
from case_records_service.infrastructure.database.fallback_coordinator import PersistenceFallbackCoordinator
from case_records_service.infrastructure.database.record_keys import (
    RecordKey, case_messages_key, session_index_key, session_messages_key,
)

logger = logging.getLogger(__name__)


def welcome_message(case_name: str) -> ChatMessageDB:
    return ChatMessageDB(
        sender=MessageSender.ASSISTANT,
        content=(
            f'Welcome to case "{case_name}". I have access to all documents associated '
            "with this case. How can I assist you today?"
        ),
        timestamp=now_ms(),
    )


def sort_session_index(entries: Iterable[ChatSessionDB]) -> List[ChatSessionDB]:
    """Newest first, one entry per session id (the most recent one wins, a name from any duplicate is kept)."""
    by_id = {}
    for entry in entries:
        current = by_id.get(entry.id)
        if current is None:
            by_id[entry.id] = entry
        elif entry.timestamp > current.timestamp:
            by_id[entry.id] = entry.model_copy(update={"name": entry.name or current.name})
        elif current.name is None and entry.name:
            by_id[entry.id] = current.model_copy(update={"name": entry.name})
    return sorted(by_id.values(), key=lambda e: e.timestamp, reverse=True)


class SessionStore:
    """
    Chat history per case. A case has one default message stream (used when
    no session id is given) and any number of session streams; the two kinds
    are independent. Sessions are listed in an index kept sorted by most
    recent activity.

    A session is ABSENT until its first message is appended, which is the
    only transition that creates one. Reads never create anything.
    """

    def __init__(
        self,
        coordinator: PersistenceFallbackCoordinator,
        default_context_messages: int = MAX_CONTEXT_MESSAGES,
    ):
        self.coordinator = coordinator
        self.default_context_messages = default_context_messages

    @staticmethod
    def _stream_key(case_id: str, session_id: Optional[str]) -> RecordKey:
        if session_id:
            return session_messages_key(case_id, session_id)
        return case_messages_key(case_id)

    async def _load_messages(self, key: RecordKey) -> List[ChatMessageDB]:
        return await load_collection(self.coordinator, key, ChatMessageDB)

    async def _load_index(self, case_id: str) -> List[ChatSessionDB]:
        return await load_collection(self.coordinator, session_index_key(case_id), ChatSessionDB)

    async def _save_index(self, case_id: str, entries: Iterable[ChatSessionDB]) -> List[ChatSessionDB]:
        index = sort_session_index(entries)
        await save_collection(self.coordinator, session_index_key(case_id), index)
        return index

    async def append_message(
        self, case_id: str, session_id: Optional[str], message: ChatMessageDB
    ) -> List[ChatMessageDB]:
        """
        Appends `message` to the session stream (or to the default stream when
        `session_id` is empty) and returns the stream in append order.

        A message without timestamp is stamped with the current time. The
        session's index timestamp becomes the newest timestamp seen so far.
        """
        case_ref = CaseID(case_id)
        if message.timestamp is None:
            message = message.model_copy(update={"timestamp": now_ms()})

        key = self._stream_key(case_ref, session_id)
        messages = await self._load_messages(key)
        if messages and messages[-1].timestamp is not None and message.timestamp < messages[-1].timestamp:
            logger.debug(
                f"Message {message.id} for '{key.storage_key}' is older than the previous message; keeping append order."
            )
        messages.append(message)
        await save_collection(self.coordinator, key, messages)

        if session_id:
            index = await self._load_index(case_ref)
            entry = next((e for e in index if e.id == session_id), None)
            if entry is None:
                index.append(ChatSessionDB(id=session_id, timestamp=message.timestamp))
                logger.info(f"Chat session {session_id} created for case {case_ref}.")
            else:
                entry.timestamp = max(entry.timestamp, message.timestamp)
            await self._save_index(case_ref, index)

        return messages

    async def get_messages(self, case_id: str, session_id: Optional[str] = None) -> List[ChatMessageDB]:
        case_ref = normalize_case_id(case_id)
        if not case_ref:
            return []
        return await self._load_messages(self._stream_key(case_ref, session_id))

    async def list_sessions(self, case_id: str) -> List[ChatSessionDB]:
        case_ref = normalize_case_id(case_id)
        if not case_ref:
            return []
        # Re-sorting on read also repairs indexes written by older clients.
        return sort_session_index(await self._load_index(case_ref))

    async def session_state(self, case_id: str, session_id: str) -> SessionState:
        sessions = await self.list_sessions(case_id)
        if any(s.id == session_id for s in sessions):
            return SessionState.ACTIVE
        return SessionState.ABSENT

    async def rename_session(self, case_id: str, session_id: str, name: str) -> Optional[ChatSessionDB]:
        if not name or not name.strip():
            raise CaseValidationError("name", "session name must not be empty")
        case_ref = normalize_case_id(case_id)
        index = await self._load_index(case_ref) if case_ref else []
        entry = next((e for e in index if e.id == session_id), None)
        if entry is None:
            return None
        entry.name = name.strip()
        await self._save_index(case_ref, index)
        return entry

    async def delete_session(self, case_id: str, session_id: str) -> bool:
        case_ref = normalize_case_id(case_id)
        if not case_ref or not session_id:
            return False
        index = await self._load_index(case_ref)
        remaining = [e for e in index if e.id != session_id]
        if len(remaining) == len(index):
            return False
        await self.coordinator.delete(session_messages_key(case_ref, session_id))
        await self._save_index(case_ref, remaining)
        logger.info(f"Chat session {session_id} deleted for case {case_ref}.")
        return True

    async def clear_history(self, case_id: str) -> None:
        """Removes the default stream, every indexed session stream and the index of a case."""
        case_ref = normalize_case_id(case_id)
        if not case_ref:
            return
        index = await self._load_index(case_ref)
        await self.coordinator.delete(case_messages_key(case_ref))
        for entry in index:
            await self.coordinator.delete(session_messages_key(case_ref, entry.id))
        await self.coordinator.delete(session_index_key(case_ref))
        logger.info(f"Cleared chat history for case {case_ref} ({len(index)} session(s)).")

    # --- Conversation helpers ---

    async def start_case_chat(
        self, case_id: str, case_name: str, session_id: Optional[str] = None
    ) -> List[ChatMessageDB]:
        """Seeds an empty stream with the welcome message; existing history is returned untouched."""
        messages = await self.get_messages(case_id, session_id)
        if messages:
            return messages
        return await self.append_message(case_id, session_id, welcome_message(case_name))

    async def build_context_for(
        self, case_id: str, session_id: Optional[str] = None, max_messages: Optional[int] = None
    ) -> str:
        messages = await self.get_messages(case_id, session_id)
        return build_context(messages, self.default_context_messages if max_messages is None else max_messages)

    async def exchange(
        self,
        case_id: str,
        session_id: Optional[str],
        prompt: str,
        generator: AbstractTextGenerator,
        files: Optional[List[FileAttachment]] = None,
        max_messages: Optional[int] = None,
    ) -> ChatMessageDB:
        """
        Records the user's prompt, hands the bounded history (prompt included)
        to `generator`, and records the reply. Generator errors propagate; the
        user message is already stored by then.
        """
        user_message = ChatMessageDB(sender=MessageSender.USER, content=prompt, files=files or [])
        history = await self.append_message(case_id, session_id, user_message)
        context = build_context(history, self.default_context_messages if max_messages is None else max_messages)

        reply_text = await generator.generate(prompt, context)

        reply = ChatMessageDB(sender=MessageSender.ASSISTANT, content=reply_text)
        history = await self.append_message(case_id, session_id, reply)
        return history[-1]

    async def search_sessions(
        self, case_id: str, query: str, min_score: float = DEFAULT_MIN_SCORE
    ) -> List[ChatSessionDB]:
        """Sessions of a case whose messages share enough key topics with `query`, most relevant first."""
        sessions = await self.list_sessions(case_id)
        candidates = [(s.id, await self.get_messages(case_id, s.id)) for s in sessions]
        ranked = rank_by_relevance(query, candidates, min_score=min_score)
        by_id = {s.id: s for s in sessions}
        return [by_id[session_id] for session_id, _ in ranked]
