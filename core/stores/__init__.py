"""
Collaborators for the commitment engines.

Protocols live in base; backends are imported from their own modules
(memory, cache, local, sqlite_salts, ipfs, web3_ledger) and wired by
core.stores.factory.
"""

from .base import ContentStore, Ledger, RootCache, SaltStore
from .cache import TTLRootCache
from .memory import MemoryContentStore, MemoryLedger, MemorySaltStore

__all__ = [
    "ContentStore",
    "Ledger",
    "RootCache",
    "SaltStore",
    "TTLRootCache",
    "MemoryContentStore",
    "MemoryLedger",
    "MemorySaltStore",
]
