# Document Store: saved documents, their case association and external references
import logging
from typing import Any, List, Optional

from case_records_service.app.models import DocumentDB, DEFAULT_DOCUMENT_CATEGORY, DEFAULT_DOCUMENT_TITLE
from case_records_service.app.service.identifiers import normalize_case_id, now_ms
from case_records_service.app.service.interfaces.document_source import AbstractExternalDocumentSource
from case_records_service.app.service.record_collections import load_collection, save_collection
from case_records_service.infrastructure.database.fallback_coordinator import PersistenceFallbackCoordinator
from case_records_service.infrastructure.database.record_keys import DOCUMENTS_KEY

logger = logging.getLogger(__name__)


class _Unset:
    """Marks a save() argument the caller did not pass, as opposed to an explicit None."""

    def __repr__(self) -> str:
        return "UNSET"


UNSET: Any = _Unset()


def _case_ref(case_id: Optional[str]) -> Optional[str]:
    # Empty references clear the association
    if not case_id:
        return None
    return normalize_case_id(case_id)


class DocumentStore:
    def __init__(self, coordinator: PersistenceFallbackCoordinator):
        self.coordinator = coordinator

    async def _load(self) -> List[DocumentDB]:
        return await load_collection(self.coordinator, DOCUMENTS_KEY, DocumentDB)

    async def _save(self, documents: List[DocumentDB]) -> None:
        await save_collection(self.coordinator, DOCUMENTS_KEY, documents)

    async def save(
        self,
        title: str,
        content: str,
        document_id: Optional[str] = None,
        case_id: Optional[str] = UNSET,
        category: Optional[str] = UNSET,
    ) -> DocumentDB:
        """
        Creates or updates a document.

        A missing or unknown `document_id` creates a document (an unknown id is
        kept as the new document's id). On update, `case_id` and `category`
        keep their stored values unless passed; passing None (or "") for
        `case_id` clears the association and None for `category` resets it to
        the default. The external reference is never touched here.
        """
        title = title.strip() if title and title.strip() else DEFAULT_DOCUMENT_TITLE
        documents = await self._load()
        index = next((i for i, doc in enumerate(documents) if document_id and doc.id == document_id), None)

        if index is None:
            new_doc = DocumentDB(
                title=title,
                content=content,
                case_id=None if case_id is UNSET else _case_ref(case_id),
                category=DEFAULT_DOCUMENT_CATEGORY if category is UNSET or not category else category,
                **({"id": document_id} if document_id else {}),
            )
            documents.append(new_doc)
            await self._save(documents)
            logger.info(f"Created document ID: {new_doc.id} (case: {new_doc.case_id}, category: {new_doc.category})")
            return new_doc

        existing = documents[index]
        changes = {"title": title, "content": content, "last_modified": now_ms()}
        if case_id is not UNSET:
            changes["case_id"] = _case_ref(case_id)
        if category is not UNSET:
            changes["category"] = category or DEFAULT_DOCUMENT_CATEGORY
        updated = existing.model_copy(update=changes)
        documents[index] = updated
        await self._save(documents)
        logger.info(f"Updated document ID: {updated.id} (case: {updated.case_id}, category: {updated.category})")
        return updated

    async def get(self, document_id: str) -> Optional[DocumentDB]:
        documents = await self._load()
        return next((doc for doc in documents if doc.id == document_id), None)

    async def list_documents(self) -> List[DocumentDB]:
        return await self._load()

    async def list_by_case(self, case_id: str) -> List[DocumentDB]:
        normalized = normalize_case_id(case_id)
        if not normalized:
            return []
        documents = await self._load()
        # Stored ids are normalized on write; normalizing again covers legacy records.
        return [doc for doc in documents if doc.case_id and normalize_case_id(doc.case_id) == normalized]

    async def list_by_category(self, category: str) -> List[DocumentDB]:
        documents = await self._load()
        return [doc for doc in documents if doc.category == category]

    async def _update_one(self, document_id: str, **changes) -> Optional[DocumentDB]:
        documents = await self._load()
        index = next((i for i, doc in enumerate(documents) if doc.id == document_id), None)
        if index is None:
            logger.warning(f"Document ID: {document_id} not found for update.")
            return None
        documents[index] = documents[index].model_copy(update=changes)
        await self._save(documents)
        return documents[index]

    async def set_case_association(self, document_id: str, case_id: Optional[str] = None) -> Optional[DocumentDB]:
        updated = await self._update_one(document_id, case_id=_case_ref(case_id))
        if updated:
            logger.info(f"Document ID: {document_id} associated with case: {updated.case_id}")
        return updated

    async def set_external_reference(self, document_id: str, system: str, external_id: str) -> Optional[DocumentDB]:
        """Records where the document lives in an external source. Nothing is fetched or checked remotely."""
        updated = await self._update_one(document_id, external_system=system, external_id=external_id)
        if updated:
            logger.info(f"Document ID: {document_id} linked to {system} document {external_id}")
        return updated

    async def dissociate_case(self, case_id: str) -> int:
        """Clears the case reference on every document of `case_id`; the documents themselves stay."""
        normalized = normalize_case_id(case_id)
        if not normalized:
            return 0
        documents = await self._load()
        count = 0
        for i, doc in enumerate(documents):
            if doc.case_id and normalize_case_id(doc.case_id) == normalized:
                documents[i] = doc.model_copy(update={"case_id": None})
                count += 1
        if count:
            await self._save(documents)
            logger.info(f"Dissociated {count} document(s) from deleted case {normalized}.")
        return count

    async def delete(self, document_id: str) -> bool:
        documents = await self._load()
        remaining = [doc for doc in documents if doc.id != document_id]
        if len(remaining) == len(documents):
            return False
        await self._save(remaining)
        logger.info(f"Deleted document ID: {document_id}")
        return True

    # --- External document source ---

    async def import_external(
        self,
        source: AbstractExternalDocumentSource,
        external_id: str,
        case_id: Optional[str] = None,
    ) -> Optional[DocumentDB]:
        """
        Fetches a document from `source` and saves a local copy that keeps the
        external reference. Importing the same external document again
        refreshes the existing local copy instead of adding a duplicate.
        """
        fetched = await source.fetch(external_id)
        if fetched is None:
            logger.warning(f"Could not fetch {source.system_name} document {external_id}; nothing imported.")
            return None

        documents = await self._load()
        existing = next(
            (doc for doc in documents
             if doc.external_system == source.system_name and doc.external_id == external_id),
            None,
        )
        saved = await self.save(
            title=fetched.title,
            content=fetched.content,
            document_id=existing.id if existing else None,
            case_id=case_id if case_id is not None else UNSET,
            category=fetched.category,
        )
        return await self.set_external_reference(saved.id, source.system_name, external_id)

    async def export_external(
        self, source: AbstractExternalDocumentSource, document_id: str
    ) -> Optional[DocumentDB]:
        """
        Pushes a local document to `source` and records the returned reference.
        A document already linked to the same source is updated there in place.
        """
        document = await self.get(document_id)
        if document is None:
            return None
        linked_id = document.external_id if document.external_system == source.system_name else None
        external_id = await source.save(document.title, document.content, document.category, external_id=linked_id)
        if not external_id:
            logger.warning(f"Export of document {document_id} to {source.system_name} failed.")
            return None
        return await self.set_external_reference(document_id, source.system_name, external_id)
