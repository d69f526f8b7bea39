"""
Collaborator Interfaces

Capability protocols consumed by the commitment and verification engines.
Each is owned by a different external system; the engines depend only on
these methods.

All blocking calls accept a keyword `timeout` (seconds, None = adapter
default) derived from the caller's deadline.
"""

from __future__ import annotations

from typing import Optional, Protocol, Sequence, runtime_checkable

from core.schemas.records import LedgerEntry


@runtime_checkable
class ContentStore(Protocol):
    """Content-addressable blob store."""

    def put(self, payload: bytes, *, timeout: Optional[float] = None) -> str:
        """
        Store a payload and return its content reference.

        Raises:
            ContentUnavailableException
        """
        ...

    def get(self, content_ref: str, *, timeout: Optional[float] = None) -> bytes:
        """
        Fetch a payload by content reference.

        Raises:
            ContentUnavailableException, ContentNotFoundException
        """
        ...


@runtime_checkable
class Ledger(Protocol):
    """Append-only record id -> (root, content ref) oracle."""

    def register(
        self,
        record_id: int,
        root: bytes,
        content_ref: str,
        *,
        timeout: Optional[float] = None,
    ) -> None:
        """
        Anchor a root. Never overwrites.

        Raises:
            DuplicateRecordException, LedgerUnavailableException
        """
        ...

    def lookup(self, record_id: int, *, timeout: Optional[float] = None) -> Optional[LedgerEntry]:
        """
        Return the anchored entry, or None if the id was never registered.

        Raises:
            LedgerUnavailableException
        """
        ...


@runtime_checkable
class SaltStore(Protocol):
    """Durable record id -> salts mapping."""

    def put_salts(
        self,
        record_id: int,
        salts: Sequence[bytes],
        *,
        timeout: Optional[float] = None,
    ) -> None:
        """
        Salts are written once per record and never replaced.

        Raises:
            DuplicateRecordException: salts already stored for record_id
            StoreUnavailableException
        """
        ...

    def get_salts(self, record_id: int, *, timeout: Optional[float] = None) -> Optional[list[bytes]]:
        """
        Return the salts in leaf order, or None if none are stored.

        Raises:
            StoreUnavailableException
        """
        ...


@runtime_checkable
class RootCache(Protocol):
    """Read-through accelerator for ledger lookups. Entries expire, never change."""

    def get(self, record_id: int) -> Optional[LedgerEntry]:
        ...

    def put(self, record_id: int, entry: LedgerEntry, ttl_s: float) -> None:
        ...
