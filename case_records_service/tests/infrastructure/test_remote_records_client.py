import json

import httpx
import pytest

from case_records_service.app.service.exceptions import RemoteUnavailableError
from case_records_service.infrastructure.database.record_keys import CASES_KEY, session_messages_key
from case_records_service.infrastructure.remote_records_client import (
    NAMESPACE_HEADER, REVISION_HEADER, RemoteRecordsClient,
)

BASE_URL = "http://remote.test/api/"


def _client(handler, token="secret-token", timeout=5.0):
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return RemoteRecordsClient(http_client=http_client, base_url=BASE_URL, token=token, timeout=timeout)


@pytest.mark.asyncio
async def test_fetch_records_success():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["request"] = request
        return httpx.Response(200, json=[{"id": "case-1"}])

    records = await _client(handler).fetch_records(CASES_KEY, namespace="alice")

    assert records == [{"id": "case-1"}]
    request = seen["request"]
    assert request.method == "GET"
    assert str(request.url) == "http://remote.test/api/cases"
    assert request.headers["Authorization"] == "Bearer secret-token"
    assert request.headers[NAMESPACE_HEADER] == "alice"


@pytest.mark.asyncio
async def test_fetch_without_token_or_namespace_sends_no_such_headers():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["headers"] = request.headers
        return httpx.Response(200, json=[])

    await _client(handler, token=None).fetch_records(CASES_KEY)

    assert "Authorization" not in seen["headers"]
    assert NAMESPACE_HEADER not in seen["headers"]


@pytest.mark.asyncio
async def test_put_records_sends_array_and_revision():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["request"] = request
        return httpx.Response(200, json=[])

    key = session_messages_key("case-1", "s1")
    await _client(handler).put_records(key, [{"id": "m1"}], namespace="alice", revision=4)

    request = seen["request"]
    assert request.method == "PUT"
    assert request.url.path == "/api/cases/case-1/sessions/s1/messages"
    assert json.loads(request.content) == [{"id": "m1"}]
    assert request.headers[REVISION_HEADER] == "4"


@pytest.mark.asyncio
async def test_delete_records():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["method"] = request.method
        return httpx.Response(204)

    await _client(handler).delete_records(CASES_KEY)
    assert seen["method"] == "DELETE"


@pytest.mark.asyncio
@pytest.mark.parametrize("status_code", [401, 404, 500, 503])
async def test_non_success_status_raises_remote_unavailable(status_code):
    client = _client(lambda request: httpx.Response(status_code, json={"detail": "nope"}))
    with pytest.raises(RemoteUnavailableError) as exc_info:
        await client.fetch_records(CASES_KEY)
    assert exc_info.value.status_code == status_code
    assert exc_info.value.path == "/cases"


@pytest.mark.asyncio
async def test_timeout_raises_remote_unavailable():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("too slow", request=request)

    with pytest.raises(RemoteUnavailableError) as exc_info:
        await _client(handler, timeout=0.5).put_records(CASES_KEY, [])
    assert "timed out" in exc_info.value.reason
    assert exc_info.value.status_code is None


@pytest.mark.asyncio
async def test_transport_error_raises_remote_unavailable():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(RemoteUnavailableError) as exc_info:
        await _client(handler).delete_records(CASES_KEY)
    assert exc_info.value.operation == "DELETE"


@pytest.mark.asyncio
async def test_non_json_body_raises_remote_unavailable():
    client = _client(lambda request: httpx.Response(200, text="<html>maintenance</html>"))
    with pytest.raises(RemoteUnavailableError):
        await client.fetch_records(CASES_KEY)


@pytest.mark.asyncio
async def test_non_array_body_raises_remote_unavailable():
    client = _client(lambda request: httpx.Response(200, json={"items": []}))
    with pytest.raises(RemoteUnavailableError) as exc_info:
        await client.fetch_records(CASES_KEY)
    assert "JSON array" in exc_info.value.reason
