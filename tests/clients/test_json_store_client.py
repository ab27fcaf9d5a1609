"""Tests for clients/json_store_client.py - JSON collection and document store."""

import json
import threading

import pytest

from clients.json_store_client import JsonStoreClient, MemoryStoreClient, StorageError


@pytest.fixture(params=["memory", "file"])
def store(request, tmp_path):
    """Both store implementations; every test in this module runs on each."""
    if request.param == "memory":
        return MemoryStoreClient()
    return JsonStoreClient(tmp_path / "data")


class TestCollections:
    """Tests for collection reads and writes."""

    def test_missing_collection_reads_empty(self, store):
        assert store.exists("licenses") is False
        assert store.read_collection("licenses") == []

    def test_written_empty_collection_exists(self, store):
        store.write_collection("licenses", [])
        assert store.exists("licenses") is True
        assert store.read_collection("licenses") == []

    def test_write_then_read(self, store):
        rows = [{"id": "a", "name": "Ærøskøbing"}, {"id": "b"}]
        store.write_collection("users", rows)
        assert store.read_collection("users") == rows

    def test_non_array_raises(self, store):
        store.write_document("users", {"not": "a list"})
        with pytest.raises(StorageError, match="expected a JSON array"):
            store.read_collection("users")

    def test_unserializable_raises(self, store):
        with pytest.raises(StorageError):
            store.write_collection("users", [{"bad": object()}])

    def test_create_collection_only_once(self, store):
        assert store.create_collection("users", [{"id": "a"}]) is True
        assert store.create_collection("users", [{"id": "b"}]) is False
        assert store.read_collection("users") == [{"id": "a"}]

    def test_create_collection_keeps_existing_empty_file(self, store):
        store.write_collection("users", [])
        assert store.create_collection("users", [{"id": "a"}]) is False
        assert store.read_collection("users") == []


class TestMutateCollection:
    """Tests for mutate_collection()."""

    def test_changes_written_on_exit(self, store):
        with store.mutate_collection("licenses") as rows:
            rows.append({"id": "1"})
        with store.mutate_collection("licenses") as rows:
            rows.append({"id": "2"})
        assert [r["id"] for r in store.read_collection("licenses")] == ["1", "2"]

    def test_nothing_written_when_block_raises(self, store):
        store.write_collection("licenses", [{"id": "1"}])
        with pytest.raises(RuntimeError):
            with store.mutate_collection("licenses") as rows:
                rows.clear()
                raise RuntimeError("abort")
        assert store.read_collection("licenses") == [{"id": "1"}]

    def test_concurrent_appends_are_not_lost(self, store):
        """Each read-modify-write holds the collection lock."""

        def append_many(worker: int):
            for i in range(20):
                with store.mutate_collection("events") as rows:
                    rows.append({"worker": worker, "i": i})

        threads = [threading.Thread(target=append_many, args=(w,)) for w in range(5)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(store.read_collection("events")) == 100


class TestDocuments:
    """Tests for single-object documents."""

    def test_missing_document_is_none(self, store):
        assert store.read_document("user-license") is None

    def test_write_overwrites(self, store):
        store.write_document("user-license", {"licenseKey": "MM-a"})
        store.write_document("user-license", {"licenseKey": "MM-b"})
        assert store.read_document("user-license") == {"licenseKey": "MM-b"}

    def test_array_is_not_a_document(self, store):
        store.write_collection("user-license", [])
        with pytest.raises(StorageError, match="expected a JSON object"):
            store.read_document("user-license")

    def test_delete(self, store):
        store.write_document("user-license", {"licenseKey": "MM-a"})
        assert store.delete("user-license") is True
        assert store.delete("user-license") is False
        assert store.read_document("user-license") is None


class TestJsonStoreClient:
    """File-specific behavior."""

    def test_creates_data_dir(self, tmp_path):
        JsonStoreClient(tmp_path / "nested" / "data")
        assert (tmp_path / "nested" / "data").is_dir()

    def test_one_file_per_name(self, file_store):
        file_store.write_collection("licenses", [{"id": "1"}])
        path = file_store.data_dir / "licenses.json"
        assert file_store.path_for("licenses") == path
        assert json.loads(path.read_text(encoding="utf-8")) == [{"id": "1"}]

    def test_no_temp_files_left_behind(self, file_store):
        file_store.write_collection("licenses", [{"id": "1"}])
        file_store.write_collection("licenses", [{"id": "2"}])
        assert sorted(p.name for p in file_store.data_dir.iterdir()) == ["licenses.json"]

    def test_corrupt_file_raises(self, file_store):
        file_store.path_for("users").write_text("{not json", encoding="utf-8")
        with pytest.raises(StorageError, match="users"):
            file_store.read_collection("users")


class TestMemoryStoreClient:
    """Memory-specific behavior."""

    def test_initial_data(self):
        store = MemoryStoreClient({"licenses": [{"id": "1"}]})
        assert store.read_collection("licenses") == [{"id": "1"}]

    def test_reads_are_copies(self):
        store = MemoryStoreClient({"licenses": [{"id": "1"}]})
        store.read_collection("licenses").append({"id": "2"})
        assert store.read_collection("licenses") == [{"id": "1"}]
