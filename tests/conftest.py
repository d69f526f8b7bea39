"""
Pytest configuration and shared fixtures.

This conftest.py:
1. Adds project root to sys.path for imports
2. Provides commonly-used fixtures via pytest's autodiscovery
"""

import sys
from pathlib import Path

import pytest

# =============================================================================
# Path Setup - Must happen before any local imports
# =============================================================================

_PROJECT_ROOT = Path(__file__).resolve().parent.parent
_TESTS_ROOT = Path(__file__).resolve().parent

for _path in [str(_PROJECT_ROOT), str(_TESTS_ROOT)]:
    if _path not in sys.path:
        sys.path.insert(0, _path)

from fixtures import (  # noqa: E402
    FAST_POLICY,
    SINGLE_POLICY,
    CallLog,
    FlakyContentStore,
    FlakyLedger,
    FlakySaltStore,
    RecordingCache,
    make_product_fields,
)

from core.commitment import CommitmentEngine, VerificationEngine  # noqa: E402


# =============================================================================
# Pytest Fixtures (autodiscovered by pytest)
# =============================================================================

@pytest.fixture
def product_fields():
    """The reference product: (1, Widget, 2024-01-01, B7)."""
    return make_product_fields()


@pytest.fixture
def call_log():
    return CallLog()


@pytest.fixture
def content_store(call_log):
    return FlakyContentStore(call_log)


@pytest.fixture
def ledger(call_log):
    return FlakyLedger(call_log)


@pytest.fixture
def salt_store(call_log):
    return FlakySaltStore(call_log)


@pytest.fixture
def root_cache():
    return RecordingCache()


@pytest.fixture
def committer(content_store, ledger, salt_store):
    return CommitmentEngine(
        content_store,
        ledger,
        salt_store,
        content_policy=FAST_POLICY,
        ledger_policy=SINGLE_POLICY,
        salt_policy=FAST_POLICY,
    )


@pytest.fixture
def verifier(content_store, ledger, salt_store, root_cache):
    return VerificationEngine(
        content_store,
        ledger,
        salt_store,
        root_cache,
        cache_ttl_s=60.0,
        content_policy=FAST_POLICY,
        ledger_policy=FAST_POLICY,
        salt_policy=FAST_POLICY,
    )
