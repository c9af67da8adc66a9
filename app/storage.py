"""Durable key-value storage with JSON serialization and failure containment."""

from __future__ import annotations

import json
import logging
from typing import Any, Protocol

from sqlalchemy.exc import SQLAlchemyError

from .database import Database
from .db_models import StorageRecord

logger = logging.getLogger(__name__)


class StorageError(RuntimeError):
    """Raised by a storage medium when a record cannot be read or written."""


class StorageQuotaExceeded(StorageError):
    """Raised when a write would exceed the medium's capacity."""


class StorageMedium(Protocol):
    """String key-value medium; implementations raise on failure."""

    def get_item(self, key: str) -> str | None: ...

    def set_item(self, key: str, value: str) -> None: ...

    def remove_item(self, key: str) -> None: ...


class MemoryMedium:
    """Process-local medium with an optional byte quota."""

    def __init__(self, quota_bytes: int | None = None) -> None:
        self._items: dict[str, str] = {}
        self._quota_bytes = quota_bytes

    def get_item(self, key: str) -> str | None:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        if self._quota_bytes is not None:
            used = sum(
                len(k.encode("utf-8")) + len(v.encode("utf-8"))
                for k, v in self._items.items()
                if k != key
            )
            needed = len(key.encode("utf-8")) + len(value.encode("utf-8"))
            if used + needed > self._quota_bytes:
                raise StorageQuotaExceeded(
                    f"Writing {key!r} needs {needed} bytes, "
                    f"{self._quota_bytes - used} available"
                )
        self._items[key] = value

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)


class DatabaseMedium:
    """Medium persisting records in the ``storage_records`` table."""

    def __init__(self, database: Database) -> None:
        self._database = database

    def get_item(self, key: str) -> str | None:
        try:
            with self._database.session() as session:
                record = session.get(StorageRecord, key)
                return record.value if record is not None else None
        except SQLAlchemyError as exc:
            raise StorageError(f"Failed to read {key!r}") from exc

    def set_item(self, key: str, value: str) -> None:
        try:
            with self._database.session() as session:
                record = session.get(StorageRecord, key)
                if record is None:
                    session.add(StorageRecord(key=key, value=value))
                else:
                    record.value = value
        except SQLAlchemyError as exc:
            raise StorageError(f"Failed to write {key!r}") from exc

    def remove_item(self, key: str) -> None:
        try:
            with self._database.session() as session:
                record = session.get(StorageRecord, key)
                if record is not None:
                    session.delete(record)
        except SQLAlchemyError as exc:
            raise StorageError(f"Failed to remove {key!r}") from exc


class PersistentStore:
    """JSON get/set over a :class:`StorageMedium` that never raises.

    Reads of absent or unreadable records return ``None``; failed writes
    return ``False``. There are no retries.
    """

    def __init__(self, medium: StorageMedium) -> None:
        self._medium = medium

    def read(self, key: str) -> Any | None:
        try:
            raw = self._medium.get_item(key)
        except StorageError:
            logger.exception("Storage read failed for %s", key)
            return None
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except (TypeError, ValueError):
            logger.warning("Discarding unreadable storage record %s", key)
            return None

    def write(self, key: str, value: Any) -> bool:
        try:
            raw = json.dumps(value, ensure_ascii=False, separators=(",", ":"))
        except (TypeError, ValueError):
            logger.exception("Could not serialise value for %s", key)
            return False
        try:
            self._medium.set_item(key, raw)
        except StorageError:
            logger.exception("Storage write failed for %s", key)
            return False
        return True

    def remove(self, key: str) -> bool:
        try:
            self._medium.remove_item(key)
        except StorageError:
            logger.exception("Storage remove failed for %s", key)
            return False
        return True
