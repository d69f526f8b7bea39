"""
Local development collaborators.

LocalContentStore keeps payloads as content-addressed files; SqliteLedger is
an append-only sqlite table standing in for the on-chain contract. Together
with SqliteSaltStore they give a fully offline `local` backend.
"""

from __future__ import annotations

import logging
import os
import sqlite3
import time
from pathlib import Path
from typing import Optional

from core.crypto.hashing import sha256
from core.schemas.errors import (
    ContentNotFoundException,
    ContentUnavailableException,
    DuplicateRecordException,
    LedgerUnavailableException,
)
from core.schemas.records import LedgerEntry
from core.stores.sqlite_salts import connect


logger = logging.getLogger(__name__)

CONTENT_REF_PREFIX = "sha256:"


class LocalContentStore:
    """
    Files under `root_dir`, named by the SHA-256 of their payload.

    Refs look like `sha256:<hex>`. Writes go through a temp file and an
    atomic rename, so a reader never sees a partial payload.
    """

    def __init__(self, root_dir: str | Path) -> None:
        self.root_dir = Path(root_dir)
        self.root_dir.mkdir(parents=True, exist_ok=True)

    def _path_for(self, content_ref: str) -> Path:
        if not content_ref.startswith(CONTENT_REF_PREFIX):
            raise ContentNotFoundException(content_ref)
        digest = content_ref[len(CONTENT_REF_PREFIX):]
        if len(digest) != 64 or any(c not in "0123456789abcdef" for c in digest):
            raise ContentNotFoundException(content_ref)
        return self.root_dir / digest[:2] / digest

    def put(self, payload: bytes, *, timeout: Optional[float] = None) -> str:
        ref = CONTENT_REF_PREFIX + sha256(payload).hex()
        path = self._path_for(ref)
        if path.exists():
            return ref
        tmp = path.with_suffix(f".tmp{os.getpid()}")
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            tmp.write_bytes(payload)
            os.replace(tmp, path)
        except OSError as e:
            raise ContentUnavailableException(f"Failed to write {ref}: {e}") from e
        return ref

    def get(self, content_ref: str, *, timeout: Optional[float] = None) -> bytes:
        path = self._path_for(content_ref)
        try:
            return path.read_bytes()
        except FileNotFoundError:
            raise ContentNotFoundException(content_ref) from None
        except OSError as e:
            raise ContentUnavailableException(f"Failed to read {content_ref}: {e}") from e


_LEDGER_SCHEMA = """
CREATE TABLE IF NOT EXISTS ledger_entries (
  record_id    TEXT PRIMARY KEY,
  root         BLOB NOT NULL,
  content_ref  TEXT NOT NULL,
  anchored_ts  REAL NOT NULL
);

CREATE TRIGGER IF NOT EXISTS trg_ledger_no_update
BEFORE UPDATE ON ledger_entries
BEGIN
  SELECT RAISE(ABORT, 'ledger entries are immutable');
END;

CREATE TRIGGER IF NOT EXISTS trg_ledger_no_delete
BEFORE DELETE ON ledger_entries
BEGIN
  SELECT RAISE(ABORT, 'ledger entries are immutable');
END;
"""


class SqliteLedger:
    """Append-only ledger table. Duplicate ids are rejected by the primary key."""

    def __init__(self, path: str | Path) -> None:
        self.path = str(path)
        Path(self.path).parent.mkdir(parents=True, exist_ok=True)
        try:
            with connect(self.path) as conn:
                conn.executescript(_LEDGER_SCHEMA)
        except sqlite3.Error as e:
            raise LedgerUnavailableException(
                f"Cannot initialize ledger at {self.path}: {e}"
            ) from e

    def register(
        self,
        record_id: int,
        root: bytes,
        content_ref: str,
        *,
        timeout: Optional[float] = None,
    ) -> None:
        try:
            with connect(self.path, timeout) as conn:
                conn.execute(
                    "INSERT INTO ledger_entries(record_id, root, content_ref, anchored_ts) "
                    "VALUES(?,?,?,?)",
                    (str(record_id), bytes(root), content_ref, time.time()),
                )
        except sqlite3.IntegrityError as e:
            raise DuplicateRecordException(record_id) from e
        except sqlite3.Error as e:
            raise LedgerUnavailableException(
                f"Failed to register record {record_id}: {e}",
                details={"record_id": record_id},
            ) from e
        logger.debug(f"Anchored record {record_id} at {content_ref}")

    def lookup(self, record_id: int, *, timeout: Optional[float] = None) -> Optional[LedgerEntry]:
        try:
            with connect(self.path, timeout) as conn:
                row = conn.execute(
                    "SELECT root, content_ref FROM ledger_entries WHERE record_id=?",
                    (str(record_id),),
                ).fetchone()
        except sqlite3.Error as e:
            raise LedgerUnavailableException(
                f"Failed to look up record {record_id}: {e}",
                details={"record_id": record_id},
            ) from e
        if row is None:
            return None
        return LedgerEntry(root=bytes(row[0]), content_ref=row[1])

    def record_ids(self) -> list[int]:
        try:
            with connect(self.path) as conn:
                rows = conn.execute("SELECT record_id FROM ledger_entries").fetchall()
        except sqlite3.Error as e:
            raise LedgerUnavailableException(f"Failed to list ledger entries: {e}") from e
        return sorted(int(r[0]) for r in rows)
