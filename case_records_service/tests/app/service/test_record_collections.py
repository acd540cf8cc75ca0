import pytest
from unittest.mock import AsyncMock

from case_records_service.app.models import CaseDB, DocumentDB
from case_records_service.app.service.exceptions import SerializationError
from case_records_service.app.service.case_store import CaseStore
from case_records_service.app.service.record_collections import load_collection, parse_records, save_collection
from case_records_service.infrastructure.database.fallback_coordinator import PersistenceFallbackCoordinator
from case_records_service.infrastructure.database.record_backends import InMemoryRecordBackend
from case_records_service.infrastructure.remote_records_client import RemoteRecordsClient
from case_records_service.infrastructure.database.record_keys import CASES_KEY, DOCUMENTS_KEY


@pytest.fixture
def backend():
    return InMemoryRecordBackend()


@pytest.fixture
def coordinator(backend):
    return PersistenceFallbackCoordinator(local=backend)


def test_parse_records_none_is_empty():
    assert parse_records("cases", None, CaseDB) == []


def test_parse_records_rejects_non_list():
    with pytest.raises(SerializationError) as exc_info:
        parse_records("cases", {"id": "case-1"}, CaseDB)
    assert exc_info.value.key == "cases"


def test_parse_records_rejects_invalid_entries():
    with pytest.raises(SerializationError):
        parse_records("cases", [{"id": "case-1"}], CaseDB) # name missing


@pytest.mark.asyncio
async def test_save_then_load_collection(coordinator):
    docs = [DocumentDB(id="doc-1", title="Brief", content="text", last_modified=1)]
    await save_collection(coordinator, DOCUMENTS_KEY, docs)
    assert await load_collection(coordinator, DOCUMENTS_KEY, DocumentDB) == docs


@pytest.mark.asyncio
async def test_load_collection_treats_invalid_json_as_empty(coordinator, backend):
    backend._data["cases"] = "{not json"
    assert await load_collection(coordinator, CASES_KEY, CaseDB) == []


@pytest.mark.asyncio
async def test_load_collection_treats_wrong_shape_as_empty(coordinator, backend):
    backend.set("cases", [{"unexpected": True}])
    assert await load_collection(coordinator, CASES_KEY, CaseDB) == []


@pytest.mark.asyncio
async def test_write_after_corrupt_collection_replaces_it(coordinator, backend):
    backend._data["cases"] = "42"
    await save_collection(coordinator, CASES_KEY, [CaseDB(id="case-1", name="Fresh", created_at=1)])
    cases = await load_collection(coordinator, CASES_KEY, CaseDB)
    assert [c.name for c in cases] == ["Fresh"]


@pytest.mark.asyncio
async def test_unreadable_remote_copy_falls_back_to_local(backend):
    backend.set("cases", [CaseDB(id="case-1", name="Existing v. Case", created_at=1).to_record()])
    remote = AsyncMock(spec=RemoteRecordsClient)
    remote.fetch_records.return_value = [{"bogus": 1}]
    coordinator = PersistenceFallbackCoordinator(local=backend, remote=remote)

    cases = await load_collection(coordinator, CASES_KEY, CaseDB)

    assert [c.name for c in cases] == ["Existing v. Case"]


@pytest.mark.asyncio
async def test_mutation_after_unreadable_remote_copy_keeps_local_records(backend):
    backend.set("cases", [CaseDB(id="case-1", name="Existing v. Case", created_at=1).to_record()])
    remote = AsyncMock(spec=RemoteRecordsClient)
    remote.fetch_records.return_value = [{"bogus": 1}]
    coordinator = PersistenceFallbackCoordinator(local=backend, remote=remote)

    await CaseStore(coordinator).create("New v. Case")

    assert [r["name"] for r in backend.get("cases")] == ["Existing v. Case", "New v. Case"]
    written = remote.put_records.await_args.args[1]
    assert [r["name"] for r in written] == ["Existing v. Case", "New v. Case"]
