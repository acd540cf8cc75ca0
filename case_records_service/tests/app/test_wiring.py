import httpx
import mongomock
import pytest
from unittest.mock import patch

from case_records_service.app import wiring
from case_records_service.app.config import settings
from case_records_service.app.service.exceptions import ConfigurationError
from case_records_service.infrastructure.database.record_backends import InMemoryRecordBackend, MongoRecordBackend
from case_records_service.infrastructure.remote_records_client import RemoteRecordsClient


@pytest.fixture(autouse=True)
def manage_remote_settings():
    original = (settings.REMOTE_API_ENABLED, settings.REMOTE_API_URL, settings.REMOTE_API_TOKEN)
    yield
    settings.REMOTE_API_ENABLED, settings.REMOTE_API_URL, settings.REMOTE_API_TOKEN = original


@pytest.mark.asyncio
async def test_build_remote_client_disabled_by_default():
    settings.REMOTE_API_ENABLED = False
    async with httpx.AsyncClient() as http_client:
        assert wiring.build_remote_client(http_client) is None


@pytest.mark.asyncio
async def test_build_remote_client_requires_url():
    settings.REMOTE_API_ENABLED = True
    settings.REMOTE_API_URL = None
    async with httpx.AsyncClient() as http_client:
        with pytest.raises(ConfigurationError):
            wiring.build_remote_client(http_client)


@pytest.mark.asyncio
async def test_build_remote_client_from_settings():
    settings.REMOTE_API_ENABLED = True
    settings.REMOTE_API_URL = "https://records.example.com/api/v1/"
    settings.REMOTE_API_TOKEN = "tok"
    async with httpx.AsyncClient() as http_client:
        client = wiring.build_remote_client(http_client)
    assert isinstance(client, RemoteRecordsClient)
    assert client.base_url == "https://records.example.com/api/v1"
    assert client.token == "tok"
    assert client.timeout == settings.REMOTE_API_TIMEOUT_SECONDS


@patch('case_records_service.app.wiring.get_records_collection')
def test_build_record_backend_uses_mongo(mock_get_records_collection):
    mock_get_records_collection.return_value = mongomock.MongoClient()["db"]["records"]
    assert isinstance(wiring.build_record_backend(), MongoRecordBackend)


@pytest.mark.asyncio
async def test_build_stores_shares_one_coordinator():
    backend = InMemoryRecordBackend()
    stores = wiring.build_stores(namespace="alice", backend=backend)

    assert stores.cases.coordinator is stores.coordinator
    assert stores.documents.coordinator is stores.coordinator
    assert stores.sessions.coordinator is stores.coordinator
    assert stores.sessions.default_context_messages == settings.DEFAULT_CONTEXT_MESSAGES
    assert stores.coordinator.remote_active is False

    case = await stores.cases.create("Acme")
    doc = await stores.documents.save("Brief", "text", case_id=case.id)
    await stores.cases.delete(case.id)

    assert (await stores.documents.get(doc.id)).case_id is None
    assert backend.keys(prefix="user_alice_") == ["user_alice_cases", "user_alice_savedDocuments"]
