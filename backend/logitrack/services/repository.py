"""Record-level helpers on top of the collection store."""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional
from uuid import uuid4

from logitrack.services.storage import CollectionStore, get_collection_store


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def new_id(prefix: str) -> str:
    return f"{prefix}-{uuid4().hex[:12]}"


class CollectionRepository:
    """Id-keyed CRUD over one collection.

    The store is resolved on every call so tests and config reloads
    always hit the current backend.
    """

    def __init__(self, collection: str, id_prefix: str) -> None:
        self.collection = collection
        self.id_prefix = id_prefix

    @property
    def store(self) -> CollectionStore:
        return get_collection_store()

    def all(self) -> List[Dict[str, Any]]:
        return self.store.get(self.collection)

    def save_all(self, rows: List[Dict[str, Any]]) -> None:
        self.store.set(self.collection, rows)

    def find(self, record_id: str) -> Optional[Dict[str, Any]]:
        for row in self.all():
            if row.get("id") == record_id:
                return row
        return None

    def get(self, record_id: str) -> Dict[str, Any]:
        row = self.find(record_id)
        if row is None:
            raise KeyError(record_id)
        return row

    def filter(self, predicate: Callable[[Dict[str, Any]], bool]) -> List[Dict[str, Any]]:
        return [row for row in self.all() if predicate(row)]

    def append(self, record: Dict[str, Any]) -> Dict[str, Any]:
        if not record.get("id"):
            record["id"] = new_id(self.id_prefix)
        self.store.append(self.collection, record)
        return record

    def prepend(self, record: Dict[str, Any]) -> Dict[str, Any]:
        if not record.get("id"):
            record["id"] = new_id(self.id_prefix)
        self.store.append(self.collection, record, at_start=True)
        return record

    def replace(self, record: Dict[str, Any]) -> Dict[str, Any]:
        rows = self.all()
        for index, row in enumerate(rows):
            if row.get("id") == record.get("id"):
                rows[index] = record
                self.save_all(rows)
                return record
        raise KeyError(record.get("id"))

    def delete(self, record_id: str) -> Dict[str, Any]:
        rows = self.all()
        for index, row in enumerate(rows):
            if row.get("id") == record_id:
                removed = rows.pop(index)
                self.save_all(rows)
                return removed
        raise KeyError(record_id)
