# API Router for whole-collection case and document records
import logging
from typing import List, Type

from fastapi import APIRouter, Body, Depends, HTTPException, Response

from case_records_service.app.api.dependencies import get_coordinator, verify_bearer_token
from case_records_service.app.models import CaseDB, DocumentDB, RecordModel
from case_records_service.app.service.exceptions import SerializationError
from case_records_service.app.service.record_collections import parse_records
from case_records_service.infrastructure.database.fallback_coordinator import PersistenceFallbackCoordinator
from case_records_service.infrastructure.database.record_keys import CASES_KEY, DOCUMENTS_KEY, RecordKey
from case_records_service.infrastructure.remote_records_client import REVISION_HEADER

logger = logging.getLogger(__name__)
router = APIRouter(dependencies=[Depends(verify_bearer_token)])


async def read_collection(coordinator: PersistenceFallbackCoordinator, key: RecordKey, model: Type[RecordModel]) -> list:
    try:
        items = parse_records(key.storage_key, await coordinator.read(key), model)
    except SerializationError as e:
        logger.error(f"Stored collection '{key.storage_key}' is corrupt: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Stored records for '{key.storage_key}' are unreadable")
    return [item.to_record() for item in items]


async def replace_collection(
    coordinator: PersistenceFallbackCoordinator, key: RecordKey, items: List[RecordModel], response: Response
) -> list:
    records = [item.to_record() for item in items]
    await coordinator.write(key, records)
    response.headers[REVISION_HEADER] = str(coordinator.revision(key))
    logger.info(f"Replaced '{key.storage_key}' with {len(records)} records.")
    return records


@router.get("/cases", tags=["Cases"])
async def get_cases(coordinator: PersistenceFallbackCoordinator = Depends(get_coordinator)):
    return await read_collection(coordinator, CASES_KEY, CaseDB)


@router.put("/cases", tags=["Cases"])
async def put_cases(
    response: Response,
    cases: List[CaseDB] = Body(...),
    coordinator: PersistenceFallbackCoordinator = Depends(get_coordinator),
):
    return await replace_collection(coordinator, CASES_KEY, cases, response)


@router.get("/documents", tags=["Documents"])
async def get_documents(coordinator: PersistenceFallbackCoordinator = Depends(get_coordinator)):
    return await read_collection(coordinator, DOCUMENTS_KEY, DocumentDB)


@router.put("/documents", tags=["Documents"])
async def put_documents(
    response: Response,
    documents: List[DocumentDB] = Body(...),
    coordinator: PersistenceFallbackCoordinator = Depends(get_coordinator),
):
    return await replace_collection(coordinator, DOCUMENTS_KEY, documents, response)
