# API Router for case chat messages and the session index
import logging
from typing import List

from fastapi import APIRouter, Body, Depends, Response

from case_records_service.app.api.dependencies import get_coordinator, verify_bearer_token
from case_records_service.app.api.v1.endpoints.records import read_collection, replace_collection
from case_records_service.app.models import ChatMessageDB, ChatSessionDB
from case_records_service.app.service.identifiers import CaseID
from case_records_service.app.service.session_store import SessionStore
from case_records_service.infrastructure.database.fallback_coordinator import PersistenceFallbackCoordinator
from case_records_service.infrastructure.database.record_keys import (
    case_messages_key, session_index_key, session_messages_key,
)

logger = logging.getLogger(__name__)
router = APIRouter(dependencies=[Depends(verify_bearer_token)], tags=["Chat"])


# --- Default (session-less) stream ---

@router.get("/cases/{case_id}/messages")
async def get_case_messages(case_id: str, coordinator: PersistenceFallbackCoordinator = Depends(get_coordinator)):
    return await read_collection(coordinator, case_messages_key(CaseID(case_id)), ChatMessageDB)


@router.put("/cases/{case_id}/messages")
async def put_case_messages(
    case_id: str,
    response: Response,
    messages: List[ChatMessageDB] = Body(...),
    coordinator: PersistenceFallbackCoordinator = Depends(get_coordinator),
):
    return await replace_collection(coordinator, case_messages_key(CaseID(case_id)), messages, response)


@router.post("/cases/{case_id}/messages", status_code=201)
async def post_case_message(
    case_id: str,
    message: ChatMessageDB = Body(...),
    coordinator: PersistenceFallbackCoordinator = Depends(get_coordinator),
):
    messages = await SessionStore(coordinator).append_message(case_id, None, message)
    return [m.to_record() for m in messages]


@router.delete("/cases/{case_id}/messages", status_code=204)
async def delete_case_messages(case_id: str, coordinator: PersistenceFallbackCoordinator = Depends(get_coordinator)):
    await coordinator.delete(case_messages_key(CaseID(case_id)))
    return Response(status_code=204)


# --- Session streams ---

@router.get("/cases/{case_id}/sessions/{session_id}/messages")
async def get_session_messages(
    case_id: str, session_id: str, coordinator: PersistenceFallbackCoordinator = Depends(get_coordinator)
):
    return await read_collection(coordinator, session_messages_key(CaseID(case_id), session_id), ChatMessageDB)


@router.put("/cases/{case_id}/sessions/{session_id}/messages")
async def put_session_messages(
    case_id: str,
    session_id: str,
    response: Response,
    messages: List[ChatMessageDB] = Body(...),
    coordinator: PersistenceFallbackCoordinator = Depends(get_coordinator),
):
    return await replace_collection(coordinator, session_messages_key(CaseID(case_id), session_id), messages, response)


@router.post("/cases/{case_id}/sessions/{session_id}/messages", status_code=201)
async def post_session_message(
    case_id: str,
    session_id: str,
    message: ChatMessageDB = Body(...),
    coordinator: PersistenceFallbackCoordinator = Depends(get_coordinator),
):
    # Appending through the session store keeps the session index in step.
    messages = await SessionStore(coordinator).append_message(case_id, session_id, message)
    return [m.to_record() for m in messages]


@router.delete("/cases/{case_id}/sessions/{session_id}/messages", status_code=204)
async def delete_session_messages(
    case_id: str, session_id: str, coordinator: PersistenceFallbackCoordinator = Depends(get_coordinator)
):
    await coordinator.delete(session_messages_key(CaseID(case_id), session_id))
    return Response(status_code=204)


# --- Session index ---

@router.get("/cases/{case_id}/sessions")
async def get_sessions(case_id: str, coordinator: PersistenceFallbackCoordinator = Depends(get_coordinator)):
    return await read_collection(coordinator, session_index_key(CaseID(case_id)), ChatSessionDB)


@router.put("/cases/{case_id}/sessions")
async def put_sessions(
    case_id: str,
    response: Response,
    sessions: List[ChatSessionDB] = Body(...),
    coordinator: PersistenceFallbackCoordinator = Depends(get_coordinator),
):
    return await replace_collection(coordinator, session_index_key(CaseID(case_id)), sessions, response)


@router.delete("/cases/{case_id}/sessions", status_code=204)
async def delete_sessions(case_id: str, coordinator: PersistenceFallbackCoordinator = Depends(get_coordinator)):
    await coordinator.delete(session_index_key(CaseID(case_id)))
    return Response(status_code=204)
