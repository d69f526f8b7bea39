"""
SQLite salt store.

Durable record id -> salts table. One row per record, salts stored as a
JSON array of hex strings in leaf order. Connections are opened per call and
always closed, so the store can be shared across threads.
"""

from __future__ import annotations

import json
import logging
import sqlite3
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional, Sequence

from core.schemas.errors import DuplicateRecordException, StoreUnavailableException


logger = logging.getLogger(__name__)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS record_salts (
  record_id   TEXT PRIMARY KEY,
  salts_json  TEXT NOT NULL,
  created_ts  REAL NOT NULL
);
"""

DEFAULT_BUSY_TIMEOUT_S = 5.0


@contextmanager
def connect(path: str, timeout: Optional[float] = None) -> Iterator[sqlite3.Connection]:
    """
    Open a connection for one call. Commits on success, rolls back on error
    and closes on every exit path.
    """
    conn = sqlite3.connect(path, timeout=timeout or DEFAULT_BUSY_TIMEOUT_S)
    try:
        conn.execute("PRAGMA journal_mode=WAL")
        conn.execute("PRAGMA synchronous=FULL")
        yield conn
        conn.commit()
    except BaseException:
        conn.rollback()
        raise
    finally:
        conn.close()


class SqliteSaltStore:
    """
    Usage:
        store = SqliteSaltStore("./data/salts.db")
        store.put_salts(1, [salt1, salt2, salt3, salt4])
    """

    def __init__(self, path: str | Path) -> None:
        self.path = str(path)
        Path(self.path).parent.mkdir(parents=True, exist_ok=True)
        try:
            with connect(self.path) as conn:
                conn.executescript(_SCHEMA)
        except sqlite3.Error as e:
            raise StoreUnavailableException(
                f"Cannot initialize salt store at {self.path}: {e}"
            ) from e

    def put_salts(
        self,
        record_id: int,
        salts: Sequence[bytes],
        *,
        timeout: Optional[float] = None,
    ) -> None:
        encoded = json.dumps([bytes(s).hex() for s in salts])
        try:
            with connect(self.path, timeout) as conn:
                # Record ids are uint256; stored as decimal text.
                conn.execute(
                    "INSERT INTO record_salts(record_id, salts_json, created_ts) "
                    "VALUES(?,?,?)",
                    (str(record_id), encoded, time.time()),
                )
        except sqlite3.IntegrityError as e:
            raise DuplicateRecordException(record_id, details={"store": "salts"}) from e
        except sqlite3.Error as e:
            raise StoreUnavailableException(
                f"Failed to persist salts for record {record_id}: {e}",
                details={"record_id": record_id},
            ) from e
        logger.debug(f"Persisted {len(salts)} salts for record {record_id}")

    def get_salts(self, record_id: int, *, timeout: Optional[float] = None) -> Optional[list[bytes]]:
        try:
            with connect(self.path, timeout) as conn:
                row = conn.execute(
                    "SELECT salts_json FROM record_salts WHERE record_id=?",
                    (str(record_id),),
                ).fetchone()
        except sqlite3.Error as e:
            raise StoreUnavailableException(
                f"Failed to read salts for record {record_id}: {e}",
                details={"record_id": record_id},
            ) from e
        if row is None:
            return None
        return [bytes.fromhex(s) for s in json.loads(row[0])]

    def record_ids(self) -> list[int]:
        """All record ids with stored salts."""
        try:
            with connect(self.path) as conn:
                rows = conn.execute("SELECT record_id FROM record_salts").fetchall()
        except sqlite3.Error as e:
            raise StoreUnavailableException(f"Failed to list salt records: {e}") from e
        return sorted(int(r[0]) for r in rows)
