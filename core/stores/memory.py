"""
In-process collaborators.

Used by the `memory` backend and throughout the tests. Each store guards its
dict with a lock so concurrent commits and verifies behave like they would
against a real backend (in particular, the ledger rejects the second of two
concurrent registrations of the same id).
"""

from __future__ import annotations

import threading
from typing import Optional, Sequence

from core.crypto.hashing import sha256
from core.schemas.errors import ContentNotFoundException, DuplicateRecordException
from core.schemas.records import LedgerEntry


class MemoryContentStore:
    """Content-addressed dict. Refs are `mem:<sha256 hex>`."""

    def __init__(self) -> None:
        self._blobs: dict[str, bytes] = {}
        self._lock = threading.Lock()

    def put(self, payload: bytes, *, timeout: Optional[float] = None) -> str:
        ref = f"mem:{sha256(payload).hex()}"
        with self._lock:
            self._blobs[ref] = bytes(payload)
        return ref

    def get(self, content_ref: str, *, timeout: Optional[float] = None) -> bytes:
        with self._lock:
            try:
                return self._blobs[content_ref]
            except KeyError:
                raise ContentNotFoundException(content_ref) from None

    def replace(self, content_ref: str, payload: bytes) -> None:
        """Overwrite a stored blob. Simulates an untrusted store for tests."""
        with self._lock:
            self._blobs[content_ref] = bytes(payload)

    def __len__(self) -> int:
        return len(self._blobs)


class MemoryLedger:
    """Append-only dict of record id -> LedgerEntry."""

    def __init__(self) -> None:
        self._entries: dict[int, LedgerEntry] = {}
        self._lock = threading.Lock()

    def register(
        self,
        record_id: int,
        root: bytes,
        content_ref: str,
        *,
        timeout: Optional[float] = None,
    ) -> None:
        entry = LedgerEntry(root=bytes(root), content_ref=content_ref)
        with self._lock:
            if record_id in self._entries:
                raise DuplicateRecordException(record_id)
            self._entries[record_id] = entry

    def lookup(self, record_id: int, *, timeout: Optional[float] = None) -> Optional[LedgerEntry]:
        with self._lock:
            return self._entries.get(record_id)

    def record_ids(self) -> list[int]:
        with self._lock:
            return sorted(self._entries)


class MemorySaltStore:
    """Dict of record id -> salts in leaf order."""

    def __init__(self) -> None:
        self._salts: dict[int, list[bytes]] = {}
        self._lock = threading.Lock()

    def put_salts(
        self,
        record_id: int,
        salts: Sequence[bytes],
        *,
        timeout: Optional[float] = None,
    ) -> None:
        with self._lock:
            if record_id in self._salts:
                raise DuplicateRecordException(record_id, details={"store": "salts"})
            self._salts[record_id] = [bytes(s) for s in salts]

    def get_salts(self, record_id: int, *, timeout: Optional[float] = None) -> Optional[list[bytes]]:
        with self._lock:
            salts = self._salts.get(record_id)
            return list(salts) if salts is not None else None

    def delete_salts(self, record_id: int) -> None:
        with self._lock:
            self._salts.pop(record_id, None)
