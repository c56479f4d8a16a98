"""
Saved searches and uploaded documents against an in-memory database.
"""
import pytest
from conftest import make_result

from insights_engine.database.document_service import DocumentService, DocumentTooLargeError
from insights_engine.database.saved_search_service import SavedSearchService
from insights_engine.services.categorizer import PATENT_IP


def test_save_list_get_delete(db):
    results = [make_result("Patents", "p1", "Tank", insight_category=PATENT_IP)]
    saved = SavedSearchService.save_search(db, "u1", "hydrogen storage", results,
                                           sources={"patents": True}, max_results=20, synthesis="text")
    SavedSearchService.save_search(db, "u1", "solar glass", [])
    SavedSearchService.save_search(db, "u2", "hydrogen storage", [])

    listed = SavedSearchService.list_searches(db, "u1")
    assert [s["query"] for s in listed] == ["solar glass", "hydrogen storage"]
    assert listed[1]["result_count"] == 1
    assert "results" not in listed[1]

    assert [s["query"] for s in SavedSearchService.list_searches(db, "u1", filter_query="HYDRO")] == [
        "hydrogen storage"
    ]

    full = SavedSearchService.get_search(db, "u1", saved["id"])
    assert full["sources"] == {"patents": True}
    assert full["synthesis"] == "text"
    assert full["results"][0]["insight_category"] == PATENT_IP

    restored = SavedSearchService.get_results(db, "u1", saved["id"])
    assert restored[0].title == "Tank"

    assert SavedSearchService.get_search(db, "u2", saved["id"]) is None
    assert SavedSearchService.delete_search(db, "u2", saved["id"]) is False
    assert SavedSearchService.delete_search(db, "u1", saved["id"]) is True
    assert SavedSearchService.get_search(db, "u1", saved["id"]) is None


def test_document_upload_read_delete(db, tmp_path):
    service = DocumentService(storage_dir=str(tmp_path))
    doc = service.upload(db, "user-1", "../notes.txt", b"Key finding: 42", "text/plain")

    assert doc["filename"] == "../notes.txt"
    assert doc["file_size"] == 15
    stored = list((tmp_path / "user-1").iterdir())
    assert len(stored) == 1 and stored[0].name.endswith("-notes.txt")

    rows = service.get_documents(db, "user-1", [doc["id"]])
    assert service.read_text(rows[0]) == "Key finding: 42"
    assert service.get_documents(db, "someone-else", [doc["id"]]) == []

    assert [d["id"] for d in service.list_documents(db, "user-1")] == [doc["id"]]
    assert service.delete(db, "user-1", doc["id"]) is True
    assert not stored[0].exists()
    assert service.delete(db, "user-1", doc["id"]) is False


def test_binary_documents_have_no_text(db, tmp_path):
    service = DocumentService(storage_dir=str(tmp_path))
    doc = service.upload(db, "u", "paper.pdf", b"%PDF-1.4", "application/pdf")
    row = service.get_documents(db, "u", [doc["id"]])[0]
    assert service.read_text(row) is None


def test_upload_size_limit(db, tmp_path):
    service = DocumentService(storage_dir=str(tmp_path), max_bytes=10)
    with pytest.raises(DocumentTooLargeError):
        service.upload(db, "u", "big.txt", b"x" * 11)
    assert service.list_documents(db, "u") == []
