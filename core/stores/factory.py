"""
Collaborator wiring.

Builds the content store, ledger, salt store and root cache for a backend,
and the engines on top of them:

- memory: everything in-process (tests, demos)
- local:  files + sqlite, fully offline
- live:   Pinata IPFS + web3 contract, salts in sqlite
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional

from core.commitment.engine import CommitmentEngine
from core.commitment.retry import RetryPolicy
from core.commitment.verification import VerificationEngine
from core.config.runtime import RuntimeConfig
from core.http import HttpClient
from core.stores.base import ContentStore, Ledger, RootCache, SaltStore
from core.stores.cache import TTLRootCache


logger = logging.getLogger(__name__)


@dataclass
class Collaborators:
    """The four collaborators plus any resources that must be closed."""
    content_store: ContentStore
    ledger: Ledger
    salt_store: SaltStore
    cache: Optional[RootCache] = None
    _http: Optional[HttpClient] = field(default=None, repr=False)

    def close(self) -> None:
        if self._http is not None:
            self._http.close()
            self._http = None


def build_collaborators(config: RuntimeConfig) -> Collaborators:
    """
    Create collaborators for `config.backend`.

    Raises:
        ValueError: If the live backend is missing credentials
    """
    cache = None
    if config.cache.enabled:
        cache = TTLRootCache(max_entries=config.cache.max_entries)

    if config.backend == "memory":
        from core.stores.memory import MemoryContentStore, MemoryLedger, MemorySaltStore

        logger.info("Using in-memory collaborators")
        return Collaborators(
            content_store=MemoryContentStore(),
            ledger=MemoryLedger(),
            salt_store=MemorySaltStore(),
            cache=cache,
        )

    from core.stores.sqlite_salts import SqliteSaltStore

    salt_store = SqliteSaltStore(config.salts.db_path)

    if config.backend == "local":
        from core.stores.local import LocalContentStore, SqliteLedger

        logger.info(
            f"Using local collaborators (content={config.content.data_dir}, "
            f"ledger={config.ledger.db_path}, salts={config.salts.db_path})"
        )
        return Collaborators(
            content_store=LocalContentStore(config.content.data_dir),
            ledger=SqliteLedger(config.ledger.db_path),
            salt_store=salt_store,
            cache=cache,
        )

    from core.stores.ipfs import PinataContentStore
    from core.stores.web3_ledger import Web3Ledger

    if not config.content.api_key or not config.content.api_secret:
        raise ValueError("live backend requires PINATA_API_KEY and PINATA_API_SECRET")
    if not config.ledger.contract_address or not config.ledger.private_key:
        raise ValueError("live backend requires CONTRACT_ADDRESS and PRIVATE_KEY")

    http = HttpClient(
        timeout=config.http.timeout,
        default_headers={"User-Agent": config.http.user_agent},
        proxy=config.http.proxy,
    )
    logger.info(f"Using live collaborators (rpc={config.ledger.rpc_url})")
    return Collaborators(
        content_store=PinataContentStore(
            config.content.api_key,
            config.content.api_secret,
            http=http,
            api_url=config.content.api_url,
            gateway_url=config.content.gateway_url,
        ),
        ledger=Web3Ledger(
            config.ledger.rpc_url,
            config.ledger.contract_address,
            config.ledger.private_key,
            chain_id=config.ledger.chain_id,
            gas_limit=config.ledger.gas_limit,
            tx_timeout_s=config.ledger.tx_timeout_s,
        ),
        salt_store=salt_store,
        cache=cache,
        _http=http,
    )


def build_engines(
    config: RuntimeConfig,
    collaborators: Collaborators,
) -> tuple[CommitmentEngine, VerificationEngine]:
    """Create both engines with retry budgets taken from `config`."""
    content_policy = RetryPolicy(
        attempts=config.content.max_attempts,
        retry_delay=config.content.retry_delay,
        call_timeout=config.content.timeout_s,
    )
    salt_policy = RetryPolicy(
        attempts=config.salts.max_attempts,
        retry_delay=config.salts.retry_delay,
        call_timeout=config.salts.timeout_s,
    )
    committer = CommitmentEngine(
        collaborators.content_store,
        collaborators.ledger,
        collaborators.salt_store,
        content_policy=content_policy,
        ledger_policy=RetryPolicy(
            attempts=config.ledger.register_attempts,
            retry_delay=0.0,
            call_timeout=config.ledger.tx_timeout_s,
        ),
        salt_policy=salt_policy,
    )
    verifier = VerificationEngine(
        collaborators.content_store,
        collaborators.ledger,
        collaborators.salt_store,
        collaborators.cache,
        cache_ttl_s=config.cache.ttl_s,
        content_policy=content_policy,
        ledger_policy=RetryPolicy(
            attempts=config.ledger.lookup_attempts,
            retry_delay=0.5,
            call_timeout=config.http.timeout,
        ),
        salt_policy=salt_policy,
    )
    return committer, verifier
