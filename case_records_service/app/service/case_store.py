# Case Store: CRUD for cases and the cascade into documents and chat history on delete
import logging
from typing import List, Optional

from case_records_service.app.models import CaseDB, CaseDetailsUpdate, CasePriority, CaseStatus
from case_records_service.app.service.document_store import DocumentStore
from case_records_service.app.service.exceptions import CaseValidationError
from case_records_service.app.service.identifiers import normalize_case_id
from case_records_service.app.service.record_collections import load_collection, save_collection
from case_records_service.app.service.session_store import SessionStore
from case_records_service.infrastructure.database.fallback_coordinator import PersistenceFallbackCoordinator
from case_records_service.infrastructure.database.record_keys import CASES_KEY

logger = logging.getLogger(__name__)


class CaseStore:
    """
    Cases are persisted as one collection; every successful mutation writes
    the whole collection back through the fallback coordinator.

    Deleting a case never deletes its documents: they are only dissociated.
    When a SessionStore is given, the case's chat history is cleared as well.
    """

    def __init__(
        self,
        coordinator: PersistenceFallbackCoordinator,
        document_store: Optional[DocumentStore] = None,
        session_store: Optional[SessionStore] = None,
    ):
        self.coordinator = coordinator
        self.document_store = document_store
        self.session_store = session_store

    async def _load(self) -> List[CaseDB]:
        return await load_collection(self.coordinator, CASES_KEY, CaseDB)

    async def _save(self, cases: List[CaseDB]) -> None:
        await save_collection(self.coordinator, CASES_KEY, cases)

    async def create(self, name: str) -> CaseDB:
        if not name or not name.strip():
            raise CaseValidationError("name", "case name must not be empty")
        cases = await self._load()
        new_case = CaseDB(name=name.strip())
        cases.append(new_case)
        await self._save(cases)
        logger.info(f"Created case ID: {new_case.id} ('{new_case.name}')")
        return new_case

    async def get(self, case_id: str) -> Optional[CaseDB]:
        normalized = normalize_case_id(case_id)
        if not normalized:
            return None
        cases = await self._load()
        return next((c for c in cases if normalize_case_id(c.id) == normalized), None)

    async def list_cases(self) -> List[CaseDB]:
        return await self._load()

    async def update_details(self, case_id: str, update: CaseDetailsUpdate) -> Optional[CaseDB]:
        """
        Merges the fields set on `update` into the stored case. Fields not set
        are left alone; deadline, notes and client_name can be cleared by
        setting them to None explicitly.
        """
        changes = {field: getattr(update, field) for field in update.model_fields_set}
        if "name" in changes:
            if not changes["name"] or not changes["name"].strip():
                raise CaseValidationError("name", "case name must not be empty")
            changes["name"] = changes["name"].strip()
        for required in ("status", "priority"):
            if required in changes and changes[required] is None:
                del changes[required]

        normalized = normalize_case_id(case_id)
        if not normalized:
            return None
        cases = await self._load()
        index = next((i for i, c in enumerate(cases) if normalize_case_id(c.id) == normalized), None)
        if index is None:
            logger.warning(f"Case ID: {normalized} not found for update.")
            return None
        if not changes:
            logger.info(f"No update operations specified for case ID: {normalized}")
            return cases[index]

        cases[index] = cases[index].model_copy(update=changes)
        await self._save(cases)
        logger.info(f"Updated case ID: {normalized} fields: {sorted(changes)}")
        return cases[index]

    async def set_status(self, case_id: str, status: CaseStatus) -> Optional[CaseDB]:
        return await self.update_details(case_id, CaseDetailsUpdate(status=status))

    async def set_priority(self, case_id: str, priority: CasePriority) -> Optional[CaseDB]:
        return await self.update_details(case_id, CaseDetailsUpdate(priority=priority))

    async def set_deadline(self, case_id: str, deadline: Optional[int]) -> Optional[CaseDB]:
        return await self.update_details(case_id, CaseDetailsUpdate(deadline=deadline))

    async def set_notes(self, case_id: str, notes: Optional[str]) -> Optional[CaseDB]:
        return await self.update_details(case_id, CaseDetailsUpdate(notes=notes))

    async def set_client_name(self, case_id: str, client_name: Optional[str]) -> Optional[CaseDB]:
        return await self.update_details(case_id, CaseDetailsUpdate(client_name=client_name))

    async def delete(self, case_id: str) -> bool:
        normalized = normalize_case_id(case_id)
        if not normalized:
            return False
        cases = await self._load()
        remaining = [c for c in cases if normalize_case_id(c.id) != normalized]
        if len(remaining) == len(cases):
            logger.warning(f"Case ID: {normalized} not found for delete.")
            return False
        await self._save(remaining)
        logger.info(f"Deleted case ID: {normalized}")

        if self.document_store is not None:
            await self.document_store.dissociate_case(normalized)
        if self.session_store is not None:
            await self.session_store.clear_history(normalized)
        return True
