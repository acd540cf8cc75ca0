# Client for the remote records API (REST, JSON arrays per record key)
import logging
from typing import Optional, Dict

import httpx

from case_records_service.app.service.exceptions import RemoteUnavailableError
from case_records_service.infrastructure.database.record_keys import RecordKey

logger = logging.getLogger(__name__)

REVISION_HEADER = "X-Record-Revision"
NAMESPACE_HEADER = "X-Tenant-Namespace"


class RemoteRecordsClient:
    """
    Reads and writes whole record collections on the remote API:
    GET returns the JSON array for a key, PUT replaces it, DELETE removes it.

    Every failure (timeout, transport error, non-success status, body that is
    not a JSON array) is raised as RemoteUnavailableError; the fallback
    coordinator is the only caller and turns it into a local fallback.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        base_url: str,
        token: Optional[str] = None,
        timeout: float = 5.0,
    ):
        self.http_client = http_client
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.timeout = timeout

    def _url(self, key: RecordKey) -> str:
        return f"{self.base_url}{key.remote_path}"

    def _headers(self, namespace: Optional[str] = None, revision: Optional[int] = None) -> Dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        if namespace:
            headers[NAMESPACE_HEADER] = namespace
        if revision is not None:
            headers[REVISION_HEADER] = str(revision)
        return headers

    async def _send(self, operation: str, key: RecordKey, **kwargs) -> httpx.Response:
        try:
            response = await self.http_client.request(operation, self._url(key), timeout=self.timeout, **kwargs)
            response.raise_for_status()
            return response
        except httpx.TimeoutException as e:
            raise RemoteUnavailableError(operation, key.remote_path, f"timed out after {self.timeout}s") from e
        except httpx.HTTPStatusError as e:
            raise RemoteUnavailableError(
                operation, key.remote_path, f"status {e.response.status_code}", status_code=e.response.status_code
            ) from e
        except httpx.RequestError as e:
            raise RemoteUnavailableError(operation, key.remote_path, f"request error: {e}") from e

    async def fetch_records(self, key: RecordKey, namespace: Optional[str] = None) -> list:
        response = await self._send("GET", key, headers=self._headers(namespace))
        try:
            records = response.json()
        except ValueError as e:
            raise RemoteUnavailableError("GET", key.remote_path, "response body is not JSON") from e
        if not isinstance(records, list):
            raise RemoteUnavailableError("GET", key.remote_path, "response body is not a JSON array")
        logger.debug(f"Fetched {len(records)} records from remote {key.remote_path}.")
        return records

    async def put_records(
        self,
        key: RecordKey,
        records: list,
        namespace: Optional[str] = None,
        revision: Optional[int] = None,
    ) -> None:
        await self._send("PUT", key, json=records, headers=self._headers(namespace, revision))
        logger.debug(f"Stored {len(records)} records on remote {key.remote_path}.")

    async def delete_records(self, key: RecordKey, namespace: Optional[str] = None) -> None:
        await self._send("DELETE", key, headers=self._headers(namespace))
        logger.debug(f"Deleted remote records at {key.remote_path}.")
