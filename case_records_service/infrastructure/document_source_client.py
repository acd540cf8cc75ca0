# Client for an external document management system (search, fetch, save)
import datetime
import logging
from typing import Any, Dict, List, Optional

import httpx

from case_records_service.app.config import settings
from case_records_service.app.models import DocumentDB, DEFAULT_DOCUMENT_CATEGORY, DEFAULT_DOCUMENT_TITLE
from case_records_service.app.service.identifiers import now_ms
from case_records_service.app.service.interfaces.document_source import AbstractExternalDocumentSource

logger = logging.getLogger(__name__)


def _modified_ms(value: Optional[str]) -> int:
    if not value:
        return now_ms()
    try:
        parsed = datetime.datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        logger.debug(f"Unparseable modifiedDate '{value}', using current time.")
        return now_ms()
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=datetime.timezone.utc)
    return int(parsed.timestamp() * 1000)


class HttpDocumentSourceClient(AbstractExternalDocumentSource):
    """
    Talks to a DMS over REST:
    GET /documents/search?q=..., GET /documents/{id}, POST /documents, PUT /documents/{id}.
    Failures are logged and reported as [] / None, never raised.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        base_url: str,
        token: Optional[str] = None,
        system_name: str = "dms",
        timeout: float = 5.0,
    ):
        self.http_client = http_client
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.system_name = system_name
        self.timeout = timeout

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def _to_document(self, raw: Dict[str, Any], content: str = "") -> DocumentDB:
        external_id = str(raw["id"])
        return DocumentDB(
            id=f"{self.system_name}-{external_id}",
            title=raw.get("name") or DEFAULT_DOCUMENT_TITLE,
            content=content,
            last_modified=_modified_ms(raw.get("modifiedDate")),
            category=raw.get("docClass") or DEFAULT_DOCUMENT_CATEGORY,
            external_system=self.system_name,
            external_id=external_id,
        )

    async def search(self, query: str) -> List[DocumentDB]:
        url = f"{self.base_url}/documents/search"
        try:
            response = await self.http_client.get(url, params={"q": query}, headers=self._headers(), timeout=self.timeout)
            response.raise_for_status()
            results = response.json().get("documents", [])
            return [self._to_document(raw) for raw in results if isinstance(raw, dict) and "id" in raw]
        except httpx.HTTPStatusError as e:
            logger.error(f"HTTP error searching {self.system_name}: {e.response.status_code}", exc_info=True)
            return []
        except httpx.RequestError as e:
            logger.error(f"Request error searching {self.system_name}: {e}", exc_info=True)
            return []
        except (ValueError, AttributeError) as e:
            logger.error(f"Unexpected search response from {self.system_name}: {e}", exc_info=True)
            return []

    async def fetch(self, external_id: str) -> Optional[DocumentDB]:
        url = f"{self.base_url}/documents/{external_id}"
        try:
            response = await self.http_client.get(url, headers=self._headers(), timeout=self.timeout)
            response.raise_for_status()
            raw = response.json()
            content = raw.get("content") or ""
            # Large documents are not inlined; their content sits behind contentUrl.
            if not content and raw.get("contentUrl"):
                content_response = await self.http_client.get(
                    raw["contentUrl"], headers=self._headers(), timeout=self.timeout
                )
                if content_response.is_success:
                    content = content_response.text
            return self._to_document({"id": external_id, **raw}, content=content)
        except httpx.HTTPStatusError as e:
            logger.error(f"HTTP error fetching {self.system_name} document {external_id}: {e.response.status_code}", exc_info=True)
            return None
        except httpx.RequestError as e:
            logger.error(f"Request error fetching {self.system_name} document {external_id}: {e}", exc_info=True)
            return None
        except (ValueError, AttributeError) as e:
            logger.error(f"Unexpected document response from {self.system_name}: {e}", exc_info=True)
            return None

    async def save(
        self,
        title: str,
        content: str,
        category: str = DEFAULT_DOCUMENT_CATEGORY,
        external_id: Optional[str] = None,
    ) -> Optional[str]:
        url = f"{self.base_url}/documents/{external_id}" if external_id else f"{self.base_url}/documents"
        method = "PUT" if external_id else "POST"
        payload = {"name": title, "content": content, "docClass": category}
        try:
            response = await self.http_client.request(
                method, url, json=payload, headers=self._headers(), timeout=self.timeout
            )
            response.raise_for_status()
            saved_id = response.json().get("id") or external_id
            logger.info(f"Document '{title}' saved to {self.system_name} as {saved_id}.")
            return str(saved_id) if saved_id else None
        except httpx.HTTPStatusError as e:
            logger.error(f"HTTP error saving to {self.system_name}: {e.response.status_code}", exc_info=True)
            return None
        except httpx.RequestError as e:
            logger.error(f"Request error saving to {self.system_name}: {e}", exc_info=True)
            return None
        except (ValueError, AttributeError) as e:
            logger.error(f"Unexpected save response from {self.system_name}: {e}", exc_info=True)
            return None


def build_document_source_client(http_client: httpx.AsyncClient) -> Optional[HttpDocumentSourceClient]:
    if not settings.DOCUMENT_SOURCE_URL:
        logger.warning("DOCUMENT_SOURCE_URL not set. External document source disabled.")
        return None
    return HttpDocumentSourceClient(
        http_client=http_client,
        base_url=settings.DOCUMENT_SOURCE_URL,
        token=settings.DOCUMENT_SOURCE_TOKEN,
        timeout=settings.DOCUMENT_SOURCE_TIMEOUT_SECONDS,
    )
