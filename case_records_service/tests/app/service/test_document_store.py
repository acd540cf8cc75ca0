import pytest
from unittest.mock import AsyncMock

from case_records_service.app.models import DocumentDB, DEFAULT_DOCUMENT_CATEGORY, DEFAULT_DOCUMENT_TITLE
from case_records_service.app.service.document_store import DocumentStore
from case_records_service.app.service.identifiers import normalize_case_id
from case_records_service.app.service.interfaces.document_source import AbstractExternalDocumentSource
from case_records_service.infrastructure.database.fallback_coordinator import PersistenceFallbackCoordinator
from case_records_service.infrastructure.database.record_backends import InMemoryRecordBackend


@pytest.fixture
def documents():
    return DocumentStore(PersistenceFallbackCoordinator(local=InMemoryRecordBackend()))


@pytest.fixture
def mock_source():
    source = AsyncMock(spec=AbstractExternalDocumentSource)
    source.system_name = "dms"
    return source


@pytest.mark.asyncio
async def test_save_creates_with_defaults(documents):
    doc = await documents.save("  ", "body")
    assert doc.id.startswith("doc-")
    assert doc.title == DEFAULT_DOCUMENT_TITLE
    assert doc.category == DEFAULT_DOCUMENT_CATEGORY
    assert doc.case_id is None
    assert await documents.get(doc.id) == doc


@pytest.mark.asyncio
async def test_save_with_unknown_id_creates_with_that_id(documents):
    doc = await documents.save("Brief", "body", document_id="doc-imported")
    assert doc.id == "doc-imported"
    assert len(await documents.list_documents()) == 1


@pytest.mark.asyncio
async def test_save_normalizes_case_reference(documents):
    doc = await documents.save("Brief", "body", case_id="c1")
    assert doc.case_id == normalize_case_id("c1") == "case-c1"


@pytest.mark.asyncio
async def test_partial_update_preserves_case_and_category(documents):
    doc = await documents.save("Brief", "body", case_id="c1", category="pleadings")

    updated = await documents.save(title="New Title", content="x", document_id=doc.id)

    assert updated.case_id == normalize_case_id("c1")
    assert updated.category == "pleadings"
    assert updated.title == "New Title"
    assert updated.content == "x"
    assert len(await documents.list_documents()) == 1


@pytest.mark.asyncio
async def test_update_with_explicit_values(documents):
    doc = await documents.save("Brief", "body", case_id="c1", category="pleadings")

    cleared = await documents.save("Brief", "body", document_id=doc.id, case_id=None, category=None)
    assert cleared.case_id is None
    assert cleared.category == DEFAULT_DOCUMENT_CATEGORY

    moved = await documents.save("Brief", "body", document_id=doc.id, case_id="case-c2")
    assert moved.case_id == "case-c2"
    assert (await documents.save("Brief", "body", document_id=doc.id, case_id="")).case_id is None


@pytest.mark.asyncio
async def test_update_preserves_external_reference(documents):
    doc = await documents.save("Brief", "body")
    await documents.set_external_reference(doc.id, "dms", "ext-1")

    updated = await documents.save("Brief v2", "new body", document_id=doc.id, case_id="c3")

    assert (updated.external_system, updated.external_id) == ("dms", "ext-1")


@pytest.mark.asyncio
async def test_list_by_case_uses_normalized_comparison(documents):
    a = await documents.save("A", "", case_id="case-7")
    b = await documents.save("B", "", case_id="7")
    await documents.save("C", "", case_id="8")
    await documents.save("D", "")

    assert {d.id for d in await documents.list_by_case("7")} == {a.id, b.id}
    assert {d.id for d in await documents.list_by_case("Case-7")} == {a.id, b.id}
    assert await documents.list_by_case("") == []


@pytest.mark.asyncio
async def test_list_by_category(documents):
    await documents.save("A", "", category="contracts")
    await documents.save("B", "")
    assert [d.title for d in await documents.list_by_category("contracts")] == ["A"]
    assert [d.title for d in await documents.list_by_category("general")] == ["B"]


@pytest.mark.asyncio
async def test_set_case_association(documents):
    doc = await documents.save("A", "")
    assert (await documents.set_case_association(doc.id, "12")).case_id == "case-12"
    assert (await documents.set_case_association(doc.id)).case_id is None
    assert await documents.set_case_association("doc-missing", "12") is None


@pytest.mark.asyncio
async def test_set_external_reference_missing_document(documents):
    assert await documents.set_external_reference("doc-missing", "dms", "1") is None


@pytest.mark.asyncio
async def test_dissociate_case_counts_and_keeps_documents(documents):
    await documents.save("A", "", case_id="c1")
    await documents.save("B", "", case_id="case-c1")
    await documents.save("C", "", case_id="c2")

    assert await documents.dissociate_case("c1") == 2
    assert await documents.list_by_case("c1") == []
    assert len(await documents.list_documents()) == 3
    assert await documents.dissociate_case("c1") == 0


@pytest.mark.asyncio
async def test_delete(documents):
    doc = await documents.save("A", "")
    assert await documents.delete(doc.id) is True
    assert await documents.get(doc.id) is None
    assert await documents.delete(doc.id) is False


@pytest.mark.asyncio
async def test_import_external_saves_copy_with_reference(documents, mock_source):
    mock_source.fetch.return_value = DocumentDB(
        id="dms-42", title="Lease", content="terms", category="contracts", external_system="dms", external_id="42",
    )

    imported = await documents.import_external(mock_source, "42", case_id="c9")

    mock_source.fetch.assert_awaited_once_with("42")
    assert imported.title == "Lease"
    assert imported.content == "terms"
    assert imported.category == "contracts"
    assert imported.case_id == "case-c9"
    assert (imported.external_system, imported.external_id) == ("dms", "42")


@pytest.mark.asyncio
async def test_import_external_twice_refreshes_existing_copy(documents, mock_source):
    mock_source.fetch.return_value = DocumentDB(title="Lease", content="v1", external_system="dms", external_id="42")
    first = await documents.import_external(mock_source, "42", case_id="c9")
    mock_source.fetch.return_value = DocumentDB(title="Lease", content="v2", external_system="dms", external_id="42")

    second = await documents.import_external(mock_source, "42")

    assert second.id == first.id
    assert second.content == "v2"
    assert second.case_id == "case-c9"
    assert len(await documents.list_documents()) == 1


@pytest.mark.asyncio
async def test_import_external_fetch_failure(documents, mock_source):
    mock_source.fetch.return_value = None
    assert await documents.import_external(mock_source, "42") is None
    assert await documents.list_documents() == []


@pytest.mark.asyncio
async def test_export_external_creates_then_updates(documents, mock_source):
    doc = await documents.save("Memo", "body", category="notes")
    mock_source.save.return_value = "ext-7"

    exported = await documents.export_external(mock_source, doc.id)

    mock_source.save.assert_awaited_once_with("Memo", "body", "notes", external_id=None)
    assert (exported.external_system, exported.external_id) == ("dms", "ext-7")

    await documents.export_external(mock_source, doc.id)
    assert mock_source.save.await_args.kwargs["external_id"] == "ext-7"


@pytest.mark.asyncio
async def test_export_external_failure_leaves_document_unlinked(documents, mock_source):
    doc = await documents.save("Memo", "body")
    mock_source.save.return_value = None
    assert await documents.export_external(mock_source, doc.id) is None
    assert (await documents.get(doc.id)).external_id is None
    assert await documents.export_external(mock_source, "doc-missing") is None
