"""
Record store: key-addressed world state plus an append-only version log per key.

Two backends share the IRecordStore interface. SQLiteRecordStore is the
durable default; SimpleInMemoryRecordStore backs tests and throwaway runs.
Every put serializes canonically, appends exactly one Version and moves the
current value forward. Versions are never rewritten or removed.

put() optionally takes the version the caller read. If the key has moved on
since then the write is refused with VersionConflict, which is how
read-check-write operations stay atomic without holding a lock across them.
"""

import sqlite3
import threading
import uuid
from abc import ABC, abstractmethod
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Dict, Iterator, Optional, Tuple

from .db import get_db, init_db, health_check as db_health_check
from .errors import InvalidArgument, StoreUnavailable, VersionConflict
from .schema import Record, Version
from .serialization import compute_version_hash, decode_record, encode_record
from ..util.logging import logger


def _check_key(key: str, record: Record) -> None:
    if not key or not key.strip():
        raise InvalidArgument("Record ID must not be empty", key)
    if record.id != key:
        raise InvalidArgument(f"Record ID {record.id} does not match key {key}", key)


def _check_expected(key: str, expected_version: Optional[int], current_version: int) -> None:
    if expected_version is not None and expected_version != current_version:
        raise VersionConflict(
            f"Record {key} is at version {current_version}, expected {expected_version}",
            key,
            expected=expected_version,
            actual=current_version,
        )


def _build_version(key: str, previous_version: int, previous_hash: str, value: str) -> Version:
    """Next snapshot in the chain for key."""
    version = previous_version + 1
    timestamp = datetime.now(timezone.utc).isoformat()
    return Version(
        key=key,
        version=version,
        tx_id=uuid.uuid4().hex,
        timestamp=timestamp,
        value=value,
        previous_hash=previous_hash,
        value_hash=compute_version_hash(key, version, timestamp, previous_hash, value),
    )


class VersionLog:
    """Lazy, restartable view over one key's versions, oldest first.

    Each iteration opens its own scoped cursor through open_history(), so the
    log can be walked any number of times.
    """

    def __init__(self, store: "IRecordStore", key: str):
        self._store = store
        self._key = key

    @property
    def key(self) -> str:
        return self._key

    def __iter__(self) -> Iterator[Version]:
        with self._store.open_history(self._key) as versions:
            yield from versions


class IRecordStore(ABC):
    """Abstract interface for the versioned key-value store."""

    provider = "abstract"

    @abstractmethod
    def read(self, key: str) -> Tuple[Optional[Record], int]:
        """Latest record for key with its version; (None, 0) if never written."""
        pass

    @abstractmethod
    def put(self, key: str, record: Record, expected_version: Optional[int] = None) -> Version:
        """Serialize record and append a new version for key."""
        pass

    @abstractmethod
    def open_history(self, key: str):
        """Context manager yielding an iterator over key's versions."""
        pass

    @abstractmethod
    def count(self) -> int:
        """Number of keys holding a current value."""
        pass

    @abstractmethod
    def health_check(self) -> bool:
        pass

    def exists(self, key: str) -> bool:
        return self.current_version(key) > 0

    def get(self, key: str) -> Optional[Record]:
        return self.read(key)[0]

    def current_version(self, key: str) -> int:
        return self.read(key)[1]

    def history(self, key: str) -> VersionLog:
        return VersionLog(self, key)


class SimpleInMemoryRecordStore(IRecordStore):
    """In-memory implementation of IRecordStore with per-key write locks."""

    provider = "memory"

    def __init__(self):
        # key -> (serialized value, version); replaced as a unit on every put
        self._state: Dict[str, Tuple[str, int]] = {}
        self._log: Dict[str, Tuple[Version, ...]] = {}
        self._guard = threading.Lock()
        self._key_locks: Dict[str, threading.Lock] = {}

    def _lock_for(self, key: str) -> threading.Lock:
        with self._guard:
            return self._key_locks.setdefault(key, threading.Lock())

    def current_version(self, key: str) -> int:
        with self._lock_for(key):
            return self._state.get(key, ("", 0))[1]

    def read(self, key: str) -> Tuple[Optional[Record], int]:
        with self._lock_for(key):
            value, version = self._state.get(key, ("", 0))
        return decode_record(value), version

    def put(self, key: str, record: Record, expected_version: Optional[int] = None) -> Version:
        _check_key(key, record)
        value = encode_record(record)

        with self._lock_for(key):
            log = self._log.get(key, ())
            _check_expected(key, expected_version, len(log))
            if log:
                version = _build_version(key, log[-1].version, log[-1].value_hash, value)
            else:
                version = _build_version(key, 0, "", value)

            self._state[key] = (value, version.version)
            # Replace the tuple instead of mutating it; open iterators keep their snapshot
            self._log[key] = log + (version,)

        logger.log_store_write(key, version.version, self.provider)
        return version

    @contextmanager
    def open_history(self, key: str):
        with self._lock_for(key):
            snapshot = self._log.get(key, ())
        yield iter(snapshot)

    def count(self) -> int:
        return len(self._state)

    def health_check(self) -> bool:
        return True


class SQLiteRecordStore(IRecordStore):
    """SQLite-backed implementation of IRecordStore.

    Writers take a RESERVED lock with BEGIN IMMEDIATE, so puts on the same key
    are serialized across connections and processes. UNIQUE(key, version)
    rejects any duplicate position outright.
    """

    provider = "sqlite"

    def __init__(self, db_path: str = None):
        from .config import DB_PATH
        self.db_path = db_path or DB_PATH
        try:
            init_db(self.db_path)
        except sqlite3.Error as e:
            logger.error(f"Failed to initialize record store at '{self.db_path}': {e}")
            raise StoreUnavailable(f"Record store unavailable: {e}") from e

    def read(self, key: str) -> Tuple[Optional[Record], int]:
        try:
            with get_db(self.db_path) as conn:
                row = conn.execute(
                    "SELECT value, version FROM world_state WHERE key = ?",
                    (key,)
                ).fetchone()
        except sqlite3.Error as e:
            logger.error(f"Failed to read key '{key}': {e}")
            raise StoreUnavailable(f"Record store unavailable while reading {key}: {e}", key) from e

        if not row:
            return None, 0
        value, version = row
        return decode_record(value), version

    def current_version(self, key: str) -> int:
        # Position only; the stored value is not decoded
        try:
            with get_db(self.db_path) as conn:
                row = conn.execute(
                    "SELECT version FROM world_state WHERE key = ?",
                    (key,)
                ).fetchone()
        except sqlite3.Error as e:
            logger.error(f"Failed to read version of key '{key}': {e}")
            raise StoreUnavailable(f"Record store unavailable while reading {key}: {e}", key) from e
        return row[0] if row else 0

    def put(self, key: str, record: Record, expected_version: Optional[int] = None) -> Version:
        _check_key(key, record)
        value = encode_record(record)

        try:
            with get_db(self.db_path) as conn:
                conn.execute("BEGIN IMMEDIATE")
                try:
                    row = conn.execute(
                        "SELECT version, value_hash FROM history WHERE key = ? ORDER BY version DESC LIMIT 1",
                        (key,)
                    ).fetchone()
                    previous_version, previous_hash = row if row else (0, "")
                    _check_expected(key, expected_version, previous_version)
                    version = _build_version(key, previous_version, previous_hash, value)

                    conn.execute(
                        "INSERT INTO history (key, version, tx_id, ts, value, previous_hash, value_hash) "
                        "VALUES (?, ?, ?, ?, ?, ?, ?)",
                        (key, version.version, version.tx_id, version.timestamp, value,
                         version.previous_hash, version.value_hash)
                    )
                    conn.execute(
                        "INSERT OR REPLACE INTO world_state (key, value, version, updated_at) VALUES (?, ?, ?, ?)",
                        (key, value, version.version, version.timestamp)
                    )
                    conn.execute("COMMIT")
                except Exception:
                    conn.execute("ROLLBACK")
                    raise
        except sqlite3.Error as e:
            logger.error(f"Database error during put for key '{key}': {e}")
            raise StoreUnavailable(f"Record store unavailable while writing {key}: {e}", key) from e

        logger.log_store_write(key, version.version, self.provider)
        return version

    @staticmethod
    def _iter_versions(cursor: sqlite3.Cursor, key: str) -> Iterator[Version]:
        try:
            for row in cursor:
                row_key, version, tx_id, ts, value, previous_hash, value_hash = row
                yield Version(
                    key=row_key,
                    version=version,
                    tx_id=tx_id,
                    timestamp=ts,
                    value=value,
                    previous_hash=previous_hash,
                    value_hash=value_hash,
                )
        except sqlite3.Error as e:
            raise StoreUnavailable(f"Record store unavailable while reading history of {key}: {e}", key) from e

    @contextmanager
    def open_history(self, key: str):
        try:
            with get_db(self.db_path) as conn:
                cursor = conn.execute(
                    "SELECT key, version, tx_id, ts, value, previous_hash, value_hash "
                    "FROM history WHERE key = ? ORDER BY version ASC",
                    (key,)
                )
                try:
                    yield self._iter_versions(cursor, key)
                finally:
                    cursor.close()
        except sqlite3.Error as e:
            logger.error(f"Failed to open history for key '{key}': {e}")
            raise StoreUnavailable(f"Record store unavailable while reading history of {key}: {e}", key) from e

    def count(self) -> int:
        try:
            with get_db(self.db_path) as conn:
                return conn.execute("SELECT COUNT(*) FROM world_state").fetchone()[0]
        except sqlite3.Error as e:
            logger.error(f"Failed to count records: {e}")
            raise StoreUnavailable(f"Record store unavailable: {e}") from e

    def health_check(self) -> bool:
        return db_health_check(self.db_path)
