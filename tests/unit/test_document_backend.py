import json
import threading
import time
from concurrent.futures import ThreadPoolExecutor

import pytest

from cstore_lib.storage import DocumentStorageBackend
from cstore_lib.storage.errors import BackendUnavailableError, MalformedDataError


@pytest.fixture
def doc(tmp_path):
    b = DocumentStorageBackend(tmp_path / "data.json")
    b.open()
    yield b
    b.close()


def _read(b):
    return json.loads(b.file_path.read_text(encoding="utf-8"))


def test_open_creates_missing_file_and_parents(tmp_path):
    path = tmp_path / "nested" / "dir" / "data.json"
    with DocumentStorageBackend(path) as b:
        assert path.exists()
        assert b.list_namespaces() == []


def test_open_keeps_existing_file(tmp_path):
    path = tmp_path / "data.json"
    path.write_text('{"test": {"k": "data"}}', encoding="utf-8")
    with DocumentStorageBackend(path) as b:
        assert b.get("test", "k") == "data"


def test_document_layout(doc):
    doc.set("users", "john", {"name": "John Doe"})
    doc.set("users", "jane", {"name": "Jane Smith"})
    doc.set("products", "laptop", {"name": "Gaming Laptop"})

    data = _read(doc)
    assert data == {
        "users": {"john": {"name": "John Doe"}, "jane": {"name": "Jane Smith"}},
        "products": {"laptop": {"name": "Gaming Laptop"}},
    }
    assert list(data) == ["users", "products"]


def test_delete_prunes_namespace_from_document(doc):
    doc.set("users", "john", 1)
    doc.set("products", "laptop", 2)

    doc.delete("products", "laptop")

    data = _read(doc)
    assert "products" not in data
    assert data["users"] == {"john": 1}


def test_partial_delete_keeps_structure(doc):
    doc.set("users", "john", 1)
    doc.set("users", "jane", 2)
    doc.set("products", "laptop", 3)

    doc.delete("users", "john")

    data = _read(doc)
    assert list(data) == ["users", "products"]
    assert list(data["users"]) == ["jane"]


def test_empty_file_is_empty_dataset(doc):
    doc.file_path.write_text("", encoding="utf-8")
    assert doc.get("users", "john") is None
    assert doc.get("users") == {}
    assert doc.list_namespaces() == []


def test_corrupt_document_raises_malformed(doc):
    doc.file_path.write_text("{ invalid json }", encoding="utf-8")
    with pytest.raises(MalformedDataError):
        doc.get("users", "john")
    with pytest.raises(MalformedDataError):
        doc.set("users", "john", 1)
    # The failed set must not have replaced the corrupt file.
    assert doc.file_path.read_text(encoding="utf-8") == "{ invalid json }"


@pytest.mark.parametrize("content", ["[1, 2]", '"text"', '{"users": [1]}', '{"users": "x"}'])
def test_wrong_document_shape_raises_malformed(doc, content):
    doc.file_path.write_text(content, encoding="utf-8")
    with pytest.raises(MalformedDataError):
        doc.list_namespaces()


def test_empty_namespace_objects_are_not_listed(doc):
    doc.file_path.write_text('{"ghost": {}, "users": {"a": 1}}', encoding="utf-8")
    assert doc.list_namespaces() == ["users"]
    assert doc.count_keys("ghost") == 0


def test_no_temporary_file_left_behind(doc):
    doc.set("users", "john", 1)
    leftovers = [p.name for p in doc.file_path.parent.iterdir() if p.name.endswith(".tmp")]
    assert leftovers == []


def test_failed_write_removes_temporary_file(doc, monkeypatch):
    from cstore_lib.storage import document_backend

    doc.set("users", "john", 1)

    def broken_fsync(fd):
        raise OSError("disk full")

    monkeypatch.setattr(document_backend.os, "fsync", broken_fsync)
    with pytest.raises(BackendUnavailableError):
        doc.set("users", "jane", 2)

    leftovers = [p.name for p in doc.file_path.parent.iterdir() if p.name.endswith(".tmp")]
    assert leftovers == []
    assert _read(doc) == {"users": {"john": 1}}


def test_unreadable_medium_raises_unavailable(tmp_path):
    b = DocumentStorageBackend(tmp_path / "data.json")
    b.open()
    b.file_path.unlink()
    b.file_path.mkdir()
    with pytest.raises(BackendUnavailableError):
        b.get("users", "john")
    b.close()


def test_open_failure_raises_unavailable(tmp_path):
    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory", encoding="utf-8")
    b = DocumentStorageBackend(blocker / "data.json")
    with pytest.raises(BackendUnavailableError):
        b.open()
    assert b.is_open is False


def test_read_modify_write_cycles_are_serialized(doc, monkeypatch):
    """Slow stores widen the race window; no write may be lost."""
    original_store = doc._store
    in_store = threading.Event()
    overlaps = []

    def slow_store(data):
        if in_store.is_set():
            overlaps.append(True)
        in_store.set()
        try:
            time.sleep(0.005)
            original_store(data)
        finally:
            in_store.clear()

    monkeypatch.setattr(doc, "_store", slow_store)

    n = 30
    with ThreadPoolExecutor(max_workers=n) as pool:
        list(pool.map(lambda i: doc.set("users", f"user_{i}", i), range(n)))

    assert overlaps == []
    assert doc.get("users") == {f"user_{i}": i for i in range(n)}
    assert _read(doc)["users"] == {f"user_{i}": i for i in range(n)}
