"""Key-value store backed by the ``kv_entries`` table.

Values are JSON documents. Each write bumps the entry's version; a writer can
pass the version it read to make the write conditional.
"""
import json
import logging
from dataclasses import dataclass
from datetime import timedelta
from typing import Any, Optional

from sqlalchemy import delete as sql_delete, update as sql_update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from tools_hub.errors import Conflict, StoreUnavailable
from tools_hub.models.kv import KeyValueEntry
from tools_hub.timeutil import as_utc, utcnow

logger = logging.getLogger(__name__)


@dataclass
class VersionedValue:
    """A decoded value and the version it was read at (0 when absent)."""
    value: Any
    version: int


class KeyValueStore:
    """JSON documents keyed by string, stored in the application database."""

    def __init__(self, db: Session):
        self.db = db

    def _entry(self, key: str) -> Optional[KeyValueEntry]:
        try:
            entry = self.db.get(KeyValueEntry, key)
        except SQLAlchemyError as e:
            logger.error(f"Key-value read failed for {key}: {e}")
            raise StoreUnavailable("Database unavailable") from e

        if entry is None:
            return None

        if entry.expires_at is not None and as_utc(entry.expires_at) <= utcnow():
            self.db.delete(entry)
            self.db.commit()
            return None

        return entry

    def get_versioned(self, key: str) -> VersionedValue:
        """Read a value with its version; missing keys read as ``None`` at version 0."""
        entry = self._entry(key)
        if entry is None:
            return VersionedValue(value=None, version=0)
        return VersionedValue(value=json.loads(entry.value), version=entry.version)

    def get(self, key: str, default: Any = None) -> Any:
        value = self.get_versioned(key).value
        return default if value is None else value

    def set(
        self,
        key: str,
        value: Any,
        ttl_seconds: Optional[int] = None,
        expected_version: Optional[int] = None,
    ) -> int:
        """
        Write a value, replacing any previous one.

        Args:
            key: Entry key
            value: JSON-serialisable value
            ttl_seconds: Optional lifetime after which the entry reads as absent
            expected_version: If given, only write when the stored version still
                matches (0 means "must not exist yet")

        Returns:
            The new version number

        Raises:
            Conflict: If ``expected_version`` no longer matches
            StoreUnavailable: If the database write fails
        """
        payload = json.dumps(value)
        expires_at = utcnow() + timedelta(seconds=ttl_seconds) if ttl_seconds else None

        try:
            if expected_version is None:
                return self._upsert(key, payload, expires_at)
            return self._compare_and_set(key, payload, expires_at, expected_version)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Key-value write failed for {key}: {e}")
            raise StoreUnavailable("Failed to save changes") from e

    def _upsert(self, key: str, payload: str, expires_at) -> int:
        entry = self.db.get(KeyValueEntry, key)
        if entry is None:
            entry = KeyValueEntry(key=key, value=payload, version=1, expires_at=expires_at)
            self.db.add(entry)
        else:
            entry.value = payload
            entry.version = (entry.version or 0) + 1
            entry.expires_at = expires_at
        self.db.commit()
        return entry.version

    def _compare_and_set(self, key: str, payload: str, expires_at, expected_version: int) -> int:
        if expected_version == 0:
            if self.db.get(KeyValueEntry, key) is not None:
                raise Conflict()
            self.db.add(KeyValueEntry(key=key, value=payload, version=1, expires_at=expires_at))
            try:
                self.db.commit()
            except IntegrityError as e:
                self.db.rollback()
                raise Conflict() from e
            return 1

        result = self.db.execute(
            sql_update(KeyValueEntry)
            .where(KeyValueEntry.key == key, KeyValueEntry.version == expected_version)
            .values(value=payload, version=expected_version + 1, expires_at=expires_at, updated_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            self.db.rollback()
            raise Conflict()
        self.db.commit()
        # Drop any cached copy so later reads in this session see the new row
        self.db.expire_all()
        return expected_version + 1

    def delete(self, key: str) -> None:
        try:
            self.db.execute(sql_delete(KeyValueEntry).where(KeyValueEntry.key == key))
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Key-value delete failed for {key}: {e}")
            raise StoreUnavailable("Failed to save changes") from e
