"""
Tests for the JSON file record store.
"""

import asyncio
import json

import pytest

from areaslots.adapters.json_store import JsonFileStore
from areaslots.domain.exceptions import RecordNotFoundError, StorageError


class TestJsonFileStore:
    """Tests for JsonFileStore."""

    def test_missing_file_reads_empty(self, tmp_path):
        store = JsonFileStore(tmp_path / "data.json")

        assert asyncio.run(store.list_records("owner-1", "locations")) == []

    def test_add_creates_file(self, tmp_path):
        data_file = tmp_path / "nested" / "data.json"
        store = JsonFileStore(data_file)

        asyncio.run(store.add_record("owner-1", "locations", {"id": "l1", "name": "Studio"}))

        saved = json.loads(data_file.read_text(encoding="utf-8"))
        assert saved == {"owners": {"owner-1": {"locations": [{"id": "l1", "name": "Studio"}]}}}

    def test_owners_are_isolated(self, tmp_path):
        store = JsonFileStore(tmp_path / "data.json")

        asyncio.run(store.add_record("owner-1", "areas", {"id": "Downtown", "name": "Downtown"}))

        assert asyncio.run(store.list_records("owner-2", "areas")) == []
        assert len(asyncio.run(store.list_records("owner-1", "areas"))) == 1

    def test_add_with_same_id_overwrites(self, tmp_path):
        store = JsonFileStore(tmp_path / "data.json")

        asyncio.run(store.add_record("o", "areas", {"id": "Downtown", "travel_buffer_minutes": 10}))
        asyncio.run(store.add_record("o", "areas", {"id": "Downtown", "travel_buffer_minutes": 20}))

        records = asyncio.run(store.list_records("o", "areas"))
        assert records == [{"id": "Downtown", "travel_buffer_minutes": 20}]

    def test_update_and_delete(self, tmp_path):
        store = JsonFileStore(tmp_path / "data.json")
        asyncio.run(store.add_record("o", "locations", {"id": "l1", "name": "Studio"}))

        asyncio.run(store.update_record("o", "locations", "l1", {"id": "l1", "name": "Studio B"}))
        assert asyncio.run(store.list_records("o", "locations"))[0]["name"] == "Studio B"

        asyncio.run(store.delete_record("o", "locations", "l1"))
        assert asyncio.run(store.list_records("o", "locations")) == []

    def test_update_missing_record(self, tmp_path):
        store = JsonFileStore(tmp_path / "data.json")

        with pytest.raises(RecordNotFoundError):
            asyncio.run(store.update_record("o", "locations", "l9", {"id": "l9"}))

    def test_delete_missing_record_is_noop(self, tmp_path):
        store = JsonFileStore(tmp_path / "data.json")

        asyncio.run(store.delete_record("o", "locations", "l9"))

        assert not (tmp_path / "data.json").exists()

    def test_corrupt_file_raises_storage_error(self, tmp_path):
        data_file = tmp_path / "data.json"
        data_file.write_text("{not json", encoding="utf-8")
        store = JsonFileStore(data_file)

        with pytest.raises(StorageError, match="Failed to read"):
            asyncio.run(store.list_records("o", "locations"))

    def test_wrong_root_shape_raises_storage_error(self, tmp_path):
        data_file = tmp_path / "data.json"
        data_file.write_text("[1, 2, 3]", encoding="utf-8")
        store = JsonFileStore(data_file)

        with pytest.raises(StorageError, match="owners"):
            asyncio.run(store.list_records("o", "locations"))

    def test_non_mapping_owner_raises_storage_error(self, tmp_path):
        data_file = tmp_path / "data.json"
        data_file.write_text(json.dumps({"owners": {"o": ["locations"]}}), encoding="utf-8")
        store = JsonFileStore(data_file)

        with pytest.raises(StorageError, match="must be a mapping"):
            asyncio.run(store.list_records("o", "locations"))

        with pytest.raises(StorageError, match="must be a mapping"):
            asyncio.run(store.add_record("o", "locations", {"id": "l1"}))

    def test_non_list_collection_raises_storage_error(self, tmp_path):
        data_file = tmp_path / "data.json"
        data_file.write_text(json.dumps({"owners": {"o": {"locations": {"id": "l1"}}}}), encoding="utf-8")
        store = JsonFileStore(data_file)

        with pytest.raises(StorageError, match="must be a list"):
            asyncio.run(store.list_records("o", "locations"))

    def test_non_mapping_record(self, tmp_path):
        """Reads pass stray entries on for skipping; writes refuse to touch them."""
        data_file = tmp_path / "data.json"
        data_file.write_text(
            json.dumps({"owners": {"o": {"locations": [{"id": "l1"}, "junk"]}}}),
            encoding="utf-8",
        )
        store = JsonFileStore(data_file)

        assert asyncio.run(store.list_records("o", "locations")) == [{"id": "l1"}, "junk"]

        with pytest.raises(StorageError, match="not records"):
            asyncio.run(store.delete_record("o", "locations", "l1"))
