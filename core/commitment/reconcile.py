"""
Reconciliation sweep.

Finds records left unverifiable by a commit that anchored a root but failed
to persist its salts. Repair itself is an operator task.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Optional

from core.crypto.hashing import to_hex
from core.stores.base import Ledger, SaltStore


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UnverifiableRecord:
    record_id: int
    root: str
    content_ref: str


def find_unverifiable(
    record_ids: Iterable[int],
    ledger: Ledger,
    salt_store: SaltStore,
    *,
    timeout: Optional[float] = None,
) -> list[UnverifiableRecord]:
    """
    Return the records among `record_ids` that are anchored on the ledger
    but have no salts. Ids the ledger does not know are skipped.

    Collaborator errors propagate; a sweep that cannot see the ledger must
    not report a clean result.
    """
    unverifiable: list[UnverifiableRecord] = []
    checked = 0
    for record_id in record_ids:
        entry = ledger.lookup(record_id, timeout=timeout)
        if entry is None:
            continue
        checked += 1
        if not salt_store.get_salts(record_id, timeout=timeout):
            logger.error(f"Reconcile: record {record_id} is anchored but has no salts")
            unverifiable.append(UnverifiableRecord(
                record_id=record_id,
                root=to_hex(entry.root),
                content_ref=entry.content_ref,
            ))
    logger.info(f"Reconcile: checked {checked} anchored records, {len(unverifiable)} unverifiable")
    return unverifiable
