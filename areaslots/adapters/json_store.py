"""
Record store backed by a local JSON file.
"""

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, List

from ..domain.exceptions import RecordNotFoundError, StorageError

logger = logging.getLogger(__name__)


class JsonFileStore:
    """
    Keeps every owner's records in one JSON document.

    File layout:
    {
        "owners": {
            "<owner_id>": {
                "locations": [{"id": "...", ...}],
                "areas": [...],
                "availability_rules": [...],
                "booked_slots": [...]
            }
        }
    }

    A missing file reads as empty and is created on the first write.
    """

    def __init__(self, data_file: Path):
        self.data_file = Path(data_file)

    async def list_records(self, owner_id: str, collection: str) -> List[Dict[str, Any]]:
        data = self._load()
        return list(self._collection(data, owner_id, collection))

    async def add_record(self, owner_id: str, collection: str, record: Dict[str, Any]) -> None:
        data = self._load()
        records = self._collection(data, owner_id, collection, create=True)

        # Same id overwrites, matching set-document semantics
        records[:] = [r for r in records if r.get("id") != record["id"]]
        records.append(dict(record))

        self._save(data)

    async def update_record(
        self,
        owner_id: str,
        collection: str,
        record_id: str,
        record: Dict[str, Any],
    ) -> None:
        data = self._load()
        records = self._collection(data, owner_id, collection, create=True)

        for index, existing in enumerate(records):
            if existing.get("id") == record_id:
                records[index] = {**dict(record), "id": record_id}
                self._save(data)
                return

        raise RecordNotFoundError(f"No {collection} record with id '{record_id}'")

    async def delete_record(self, owner_id: str, collection: str, record_id: str) -> None:
        data = self._load()
        records = self._collection(data, owner_id, collection, create=True)

        remaining = [r for r in records if r.get("id") != record_id]
        if len(remaining) == len(records):
            logger.debug("Nothing to delete for %s/%s/%s", owner_id, collection, record_id)
            return

        records[:] = remaining
        self._save(data)

    def _collection(
        self,
        data: Dict[str, Any],
        owner_id: str,
        collection: str,
        create: bool = False,
    ) -> List[Dict[str, Any]]:
        """
        Return the record list of one owner's collection.

        Reads hand non-mapping entries through so record loading can skip
        them; writes refuse to rewrite a collection holding such entries.

        Raises:
            StorageError: If the owner entry is not a mapping, the collection
                is not a list, or a write finds non-mapping entries
        """
        owners = data.setdefault("owners", {})

        owner = owners.setdefault(owner_id, {}) if create else owners.get(owner_id, {})
        if not isinstance(owner, dict):
            raise StorageError(f"Owner '{owner_id}' in {self.data_file} must be a mapping")

        records = owner.setdefault(collection, []) if create else owner.get(collection, [])
        if not isinstance(records, list):
            raise StorageError(
                f"Collection '{collection}' of owner '{owner_id}' in {self.data_file} "
                "must be a list"
            )
        if create and not all(isinstance(r, dict) for r in records):
            raise StorageError(
                f"Collection '{collection}' of owner '{owner_id}' in {self.data_file} "
                "holds entries that are not records"
            )

        return records

    def _load(self) -> Dict[str, Any]:
        """Load the data file, treating a missing file as empty."""
        if not self.data_file.exists():
            return {"owners": {}}

        try:
            with open(self.data_file, "r", encoding="utf-8") as f:
                data = json.load(f) or {}
        except (OSError, json.JSONDecodeError) as e:
            raise StorageError(f"Failed to read data file {self.data_file}: {e}") from e

        if not isinstance(data, dict) or not isinstance(data.get("owners", {}), dict):
            raise StorageError(f"Data file {self.data_file} must contain an 'owners' mapping")

        return data

    def _save(self, data: Dict[str, Any]) -> None:
        """Write the data file atomically."""
        tmp_file = self.data_file.with_suffix(self.data_file.suffix + ".tmp")

        try:
            self.data_file.parent.mkdir(parents=True, exist_ok=True)
            with open(tmp_file, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, ensure_ascii=False)
            os.replace(tmp_file, self.data_file)
        except OSError as e:
            raise StorageError(f"Failed to write data file {self.data_file}: {e}") from e
