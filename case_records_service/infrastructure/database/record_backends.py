# Local durable record store: one serialized array of records per key
import datetime
import json
import logging
import re
from abc import ABC, abstractmethod
from typing import Dict, List, Optional

from pymongo import ASCENDING
from pymongo.collection import Collection

from case_records_service.app.service.exceptions import SerializationError

logger = logging.getLogger(__name__)


class AbstractRecordBackend(ABC):
    """
    Key/value store of record arrays. Every write bumps a per-key revision
    counter; deleting a key bumps it too, so revisions never go backwards.
    """

    @abstractmethod
    def get(self, key: str) -> Optional[list]:
        """
        Returns the stored array for `key`, or None when nothing is stored.

        Raises:
            SerializationError: the stored payload is not a JSON array.
        """
        pass

    @abstractmethod
    def set(self, key: str, records: list) -> int:
        """Replaces the array under `key` and returns the new revision."""
        pass

    @abstractmethod
    def delete(self, key: str) -> None:
        pass

    @abstractmethod
    def revision(self, key: str) -> int:
        """Number of writes and deletes applied to `key` so far (0 for unknown keys)."""
        pass

    @abstractmethod
    def keys(self, prefix: str = "") -> List[str]:
        """Keys that currently hold records, optionally limited to a prefix."""
        pass


class InMemoryRecordBackend(AbstractRecordBackend):
    """Keeps JSON text per key, like browser local storage. Used in tests and for throwaway sessions."""

    def __init__(self):
        self._data: Dict[str, str] = {}
        self._revisions: Dict[str, int] = {}

    def get(self, key: str) -> Optional[list]:
        raw = self._data.get(key)
        if raw is None:
            return None
        try:
            records = json.loads(raw)
        except json.JSONDecodeError as e:
            raise SerializationError(key, f"invalid JSON: {e}") from e
        if not isinstance(records, list):
            raise SerializationError(key, f"expected a JSON array, found {type(records).__name__}")
        return records

    def set(self, key: str, records: list) -> int:
        self._data[key] = json.dumps(records)
        self._revisions[key] = self._revisions.get(key, 0) + 1
        return self._revisions[key]

    def delete(self, key: str) -> None:
        if self._data.pop(key, None) is not None:
            self._revisions[key] = self._revisions.get(key, 0) + 1

    def revision(self, key: str) -> int:
        return self._revisions.get(key, 0)

    def keys(self, prefix: str = "") -> List[str]:
        return sorted(k for k in self._data if k.startswith(prefix))


class MongoRecordBackend(AbstractRecordBackend):
    """
    Stores each key as one MongoDB document:
    {"key": ..., "records": [...], "revision": n, "updated_at": ...}.
    A deleted key keeps its document with records=None so its revision survives.
    """

    def __init__(self, collection: Collection):
        self.collection = collection
        self.collection.create_index([("key", ASCENDING)], unique=True)

    def get(self, key: str) -> Optional[list]:
        doc = self.collection.find_one({"key": key})
        if not doc or doc.get("records") is None:
            return None
        records = doc["records"]
        if not isinstance(records, list):
            raise SerializationError(key, f"expected an array, found {type(records).__name__}")
        return records

    def set(self, key: str, records: list) -> int:
        self.collection.update_one(
            {"key": key},
            {
                "$set": {"records": records, "updated_at": datetime.datetime.now(datetime.timezone.utc)},
                "$inc": {"revision": 1},
            },
            upsert=True,
        )
        new_revision = self.revision(key)
        logger.debug(f"Stored {len(records)} records under key '{key}' (revision {new_revision}).")
        return new_revision

    def delete(self, key: str) -> None:
        result = self.collection.update_one(
            {"key": key, "records": {"$ne": None}},
            {
                "$set": {"records": None, "updated_at": datetime.datetime.now(datetime.timezone.utc)},
                "$inc": {"revision": 1},
            },
        )
        if result.matched_count:
            logger.debug(f"Deleted records under key '{key}'.")

    def revision(self, key: str) -> int:
        doc = self.collection.find_one({"key": key}, {"revision": 1})
        return int(doc.get("revision", 0)) if doc else 0

    def keys(self, prefix: str = "") -> List[str]:
        query = {"records": {"$ne": None}}
        if prefix:
            query["key"] = {"$regex": f"^{re.escape(prefix)}"}
        return sorted(doc["key"] for doc in self.collection.find(query, {"key": 1}))
