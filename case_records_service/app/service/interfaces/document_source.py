from abc import ABC, abstractmethod
from typing import List, Optional

from case_records_service.app.models import DocumentDB, DEFAULT_DOCUMENT_CATEGORY


class AbstractExternalDocumentSource(ABC):
    """
    A remote document management system that documents can be imported from
    and exported to. Results come back as DocumentDB values carrying the
    source's external_system / external_id pair.
    """

    system_name: str = "external"

    @abstractmethod
    async def search(self, query: str) -> List[DocumentDB]:
        """
        Searches the source. Content is left empty in search results.

        Returns:
            Matching documents, or an empty list when the source is unavailable.
        """
        pass

    @abstractmethod
    async def fetch(self, external_id: str) -> Optional[DocumentDB]:
        """Fetches one document including its content; None when it cannot be fetched."""
        pass

    @abstractmethod
    async def save(
        self,
        title: str,
        content: str,
        category: str = DEFAULT_DOCUMENT_CATEGORY,
        external_id: Optional[str] = None,
    ) -> Optional[str]:
        """
        Creates a document on the source, or updates `external_id` when given.

        Returns:
            The source's id for the document, or None when the save failed.
        """
        pass
