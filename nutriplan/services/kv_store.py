# nutriplan/services/kv_store.py
"""
Key-value persistence used by every store.

Values are JSON documents. Two backends:
- InMemoryKeyValueStore: a dict, used when DATABASE_URL is unset and in tests.
- SqlKeyValueStore: one row per key in the `kv_entries` table via SQLAlchemy.

`apply(sets, deletes)` writes a batch atomically: either every key in the
batch changes or none does.
"""
from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import select

from nutriplan.config.database import DatabaseManager
from nutriplan.models.database import KVEntry

logger = logging.getLogger(__name__)


class StorageError(RuntimeError):
    """Raised when a read or write against the backing store fails."""


def _dumps(key: str, value: Any) -> str:
    try:
        return json.dumps(value, sort_keys=True)
    except (TypeError, ValueError) as exc:
        raise StorageError(f"value for {key!r} is not JSON serializable: {exc}") from exc


class KeyValueStore(ABC):

    @abstractmethod
    def get(self, key: str) -> Optional[Any]:
        ...

    @abstractmethod
    def keys(self, prefix: str = "") -> List[str]:
        ...

    @abstractmethod
    def apply(
        self,
        sets: Optional[Dict[str, Any]] = None,
        deletes: Optional[Iterable[str]] = None,
    ) -> None:
        ...

    def set(self, key: str, value: Any) -> None:
        self.apply(sets={key: value})

    def delete(self, key: str) -> bool:
        existed = self.get(key) is not None
        if existed:
            self.apply(deletes=[key])
        return existed

    def health_check(self) -> bool:
        return True

    def diagnostics(self) -> Dict[str, Any]:
        return {"backend": type(self).__name__}

    def close(self) -> None:
        return None


class InMemoryKeyValueStore(KeyValueStore):

    def __init__(self) -> None:
        # stored serialized so callers never share mutable state with the store
        self._data: Dict[str, str] = {}

    def get(self, key: str) -> Optional[Any]:
        raw = self._data.get(key)
        return json.loads(raw) if raw is not None else None

    def keys(self, prefix: str = "") -> List[str]:
        return sorted(k for k in self._data if k.startswith(prefix))

    def apply(
        self,
        sets: Optional[Dict[str, Any]] = None,
        deletes: Optional[Iterable[str]] = None,
    ) -> None:
        # serialize everything before touching _data
        encoded = {k: _dumps(k, v) for k, v in (sets or {}).items()}
        for key in deletes or ():
            self._data.pop(key, None)
        self._data.update(encoded)

    def diagnostics(self) -> Dict[str, Any]:
        return {"backend": "memory", "keys": len(self._data)}


class SqlKeyValueStore(KeyValueStore):

    def __init__(self, db: DatabaseManager) -> None:
        self.db = db

    def get(self, key: str) -> Optional[Any]:
        try:
            with self.db.session() as session:
                row = session.get(KVEntry, key)
                raw = row.value if row is not None else None
        except Exception as exc:
            logger.exception("kv get failed key=%s: %s", key, exc)
            raise StorageError(f"read failed for {key!r}") from exc
        return json.loads(raw) if raw is not None else None

    def keys(self, prefix: str = "") -> List[str]:
        stmt = select(KVEntry.key).order_by(KVEntry.key)
        if prefix:
            stmt = stmt.where(KVEntry.key.startswith(prefix, autoescape=True))
        try:
            with self.db.session() as session:
                return list(session.scalars(stmt))
        except Exception as exc:
            logger.exception("kv keys failed prefix=%s: %s", prefix, exc)
            raise StorageError(f"key scan failed for {prefix!r}") from exc

    def apply(
        self,
        sets: Optional[Dict[str, Any]] = None,
        deletes: Optional[Iterable[str]] = None,
    ) -> None:
        encoded = {k: _dumps(k, v) for k, v in (sets or {}).items()}
        delete_keys = [k for k in (deletes or ()) if k not in encoded]
        try:
            with self.db.session() as session:
                for key in delete_keys:
                    row = session.get(KVEntry, key)
                    if row is not None:
                        session.delete(row)
                for key, value in encoded.items():
                    session.merge(KVEntry(key=key, value=value))
        except Exception as exc:
            logger.exception(
                "kv batch write rolled back (sets=%d deletes=%d): %s",
                len(encoded),
                len(delete_keys),
                exc,
            )
            raise StorageError("batch write failed") from exc

    def health_check(self) -> bool:
        return self.db.health_check()

    def diagnostics(self) -> Dict[str, Any]:
        diag = {"backend": "sql"}
        diag.update(self.db.diagnostics())
        return diag

    def close(self) -> None:
        self.db.dispose()


def create_kv_store(database_url: Optional[str]) -> KeyValueStore:
    if not database_url:
        logger.info("Using in-memory key-value store")
        return InMemoryKeyValueStore()
    return SqlKeyValueStore(DatabaseManager(database_url))
