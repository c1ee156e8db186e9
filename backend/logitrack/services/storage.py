"""Collection store backends: a local JSON document or a SQLite database.

Every service talks to storage through ``get(collection) -> list`` and
``set(collection, list)``, plus ``append`` for logs that only ever grow.
``append`` inserts one record under the store lock, so overlapping writers
never drop each other's rows. The backend is picked by ``STORAGE_BACKEND``.
"""
from __future__ import annotations

import copy
import json
import sqlite3
from datetime import datetime, timezone
from functools import lru_cache
from pathlib import Path
from threading import Lock, RLock
from typing import Any, Dict, List

from logitrack.core.config import get_settings
from logitrack.core.logging import logger


CLIENTS = "clients"
MESSENGERS = "messengers"
VEHICLES = "vehicles"
ROUTES = "routes"
ROUTE_HISTORY = "routeHistory"
CLIENT_ROUTE_STATS = "clientRouteStats"
GAMIFICATION_RULES = "gamificationRules"
POINT_LEDGER = "pointLedger"
MESSENGER_EVALUATIONS = "messengerEvaluations"
FUEL_TICKETS = "fuelTickets"
MEDIA = "media"
CORPORATE_DOCUMENTS = "corporateDocuments"
AUDIT_LOGS = "auditLogs"


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class CollectionStore:
    """Opaque key/value collection API shared by both backends."""

    backend = "abstract"

    _lock_registry: dict[str, RLock] = {}
    _lock_registry_guard = Lock()

    @classmethod
    def _get_shared_lock(cls, key: str) -> RLock:
        with cls._lock_registry_guard:
            lock = cls._lock_registry.get(key)
            if lock is None:
                lock = RLock()
                cls._lock_registry[key] = lock
            return lock

    def get(self, collection: str) -> List[Dict[str, Any]]:
        raise NotImplementedError

    def set(self, collection: str, data: List[Dict[str, Any]]) -> None:
        raise NotImplementedError

    def append(self, collection: str, record: Dict[str, Any], *, at_start: bool = False) -> None:
        raise NotImplementedError

    def collections(self) -> Dict[str, List[Dict[str, Any]]]:
        raise NotImplementedError

    @staticmethod
    def _validate(collection: str, data: Any) -> None:
        if not collection or not str(collection).strip():
            raise ValueError("Missing collection")
        if not isinstance(data, list):
            raise ValueError(f"Collection '{collection}' must be stored as a list")


class JsonCollectionStore(CollectionStore):
    """All collections in a single JSON document, rewritten atomically on every set."""

    backend = "json"

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._lock = self._get_shared_lock(str(self._path.resolve()))

    def _read(self) -> Dict[str, Any]:
        if not self._path.exists():
            return {}
        try:
            with self._path.open("r", encoding="utf-8") as handle:
                payload = json.load(handle)
        except Exception as exc:
            logger.warning(
                "Failed to read JSON database; treating as empty",
                path=str(self._path),
                error=str(exc),
            )
            return {}
        if not isinstance(payload, dict):
            logger.warning("JSON database root is not an object; treating as empty", path=str(self._path))
            return {}
        return payload

    def _write(self, payload: Dict[str, Any]) -> None:
        tmp_path = self._path.with_suffix(".tmp")
        with tmp_path.open("w", encoding="utf-8") as handle:
            json.dump(payload, handle, indent=2, ensure_ascii=False)
        tmp_path.replace(self._path)

    def get(self, collection: str) -> List[Dict[str, Any]]:
        with self._lock:
            rows = self._read().get(collection) or []
        return copy.deepcopy(rows) if isinstance(rows, list) else []

    def set(self, collection: str, data: List[Dict[str, Any]]) -> None:
        self._validate(collection, data)
        with self._lock:
            payload = self._read()
            payload[collection] = data
            self._write(payload)

    def append(self, collection: str, record: Dict[str, Any], *, at_start: bool = False) -> None:
        self._validate(collection, [record])
        with self._lock:
            payload = self._read()
            rows = payload.get(collection)
            if not isinstance(rows, list):
                rows = []
            if at_start:
                rows.insert(0, record)
            else:
                rows.append(record)
            payload[collection] = rows
            self._write(payload)

    def collections(self) -> Dict[str, List[Dict[str, Any]]]:
        with self._lock:
            return copy.deepcopy(self._read())


class SqliteCollectionStore(CollectionStore):
    """Relational backend: one row per record, ordered by position within its collection."""

    backend = "sqlite"

    def __init__(self, path: str | Path) -> None:
        self._db_path = Path(path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._lock = self._get_shared_lock(str(self._db_path.resolve()))
        self._conn = sqlite3.connect(
            str(self._db_path),
            check_same_thread=False,
            timeout=30.0,
        )
        self._conn.row_factory = sqlite3.Row
        self._conn.execute("PRAGMA journal_mode = WAL")
        self._conn.execute("PRAGMA synchronous = NORMAL")
        self._conn.execute("PRAGMA busy_timeout = 30000")
        self._initialize_schema()

    def _initialize_schema(self) -> None:
        with self._lock:
            self._conn.executescript(
                """
                CREATE TABLE IF NOT EXISTS records (
                    collection TEXT NOT NULL,
                    position INTEGER NOT NULL,
                    record_id TEXT,
                    data_json TEXT NOT NULL,
                    updated_at TEXT NOT NULL,
                    PRIMARY KEY (collection, position)
                );

                CREATE INDEX IF NOT EXISTS idx_records_collection_id ON records (collection, record_id);
                """
            )
            self._conn.commit()

    def get(self, collection: str) -> List[Dict[str, Any]]:
        with self._lock:
            rows = self._conn.execute(
                "SELECT data_json FROM records WHERE collection = ? ORDER BY position ASC",
                (collection,),
            ).fetchall()
        return [json.loads(row["data_json"]) for row in rows]

    def set(self, collection: str, data: List[Dict[str, Any]]) -> None:
        self._validate(collection, data)
        now = _utc_now_iso()
        with self._lock:
            with self._conn:
                self._conn.execute("DELETE FROM records WHERE collection = ?", (collection,))
                self._conn.executemany(
                    """
                    INSERT INTO records (collection, position, record_id, data_json, updated_at)
                    VALUES (?, ?, ?, ?, ?)
                    """,
                    [self._row(collection, position, item, now) for position, item in enumerate(data)],
                )

    def append(self, collection: str, record: Dict[str, Any], *, at_start: bool = False) -> None:
        """Insert one row before the first or after the last position of the collection."""
        self._validate(collection, [record])
        edge = "MIN(position) - 1" if at_start else "MAX(position) + 1"
        with self._lock:
            with self._conn:
                position = self._conn.execute(
                    f"SELECT COALESCE({edge}, 0) AS position FROM records WHERE collection = ?",
                    (collection,),
                ).fetchone()["position"]
                self._conn.execute(
                    """
                    INSERT INTO records (collection, position, record_id, data_json, updated_at)
                    VALUES (?, ?, ?, ?, ?)
                    """,
                    self._row(collection, position, record, _utc_now_iso()),
                )

    @staticmethod
    def _row(collection: str, position: int, item: Any, now: str) -> tuple:
        record_id = str(item.get("id")) if isinstance(item, dict) and item.get("id") is not None else None
        return (collection, position, record_id, json.dumps(item, ensure_ascii=False), now)

    def collections(self) -> Dict[str, List[Dict[str, Any]]]:
        with self._lock:
            rows = self._conn.execute(
                "SELECT collection, data_json FROM records ORDER BY collection ASC, position ASC"
            ).fetchall()
        result: Dict[str, List[Dict[str, Any]]] = {}
        for row in rows:
            result.setdefault(row["collection"], []).append(json.loads(row["data_json"]))
        return result

    def close(self) -> None:
        with self._lock:
            self._conn.close()


@lru_cache()
def get_collection_store() -> CollectionStore:
    """Return the configured backend (cached per process)."""
    settings = get_settings()
    backend = settings.normalized_storage_backend()
    if backend == "sqlite":
        store: CollectionStore = SqliteCollectionStore(settings.sqlite_db_path)
        logger.info("Collection store ready", backend=backend, path=settings.sqlite_db_path)
    else:
        store = JsonCollectionStore(settings.json_db_path)
        logger.info("Collection store ready", backend=backend, path=settings.json_db_path)
    return store
