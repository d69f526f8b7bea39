"""
Test fixtures package.

- common.py: product field and salt factories
- fakes.py: failure-injecting collaborators, recording cache, manual clock

Usage:
    from fixtures import make_product_fields, FlakyContentStore
"""

from .common import (
    FAST_POLICY,
    SINGLE_POLICY,
    make_counting_salt_source,
    make_product_fields,
)

from .fakes import (
    CallLog,
    FlakyContentStore,
    FlakyLedger,
    FlakySaltStore,
    ManualClock,
    RecordingCache,
)

__all__ = [
    # Common
    "FAST_POLICY",
    "SINGLE_POLICY",
    "make_counting_salt_source",
    "make_product_fields",
    # Fakes
    "CallLog",
    "FlakyContentStore",
    "FlakyLedger",
    "FlakySaltStore",
    "ManualClock",
    "RecordingCache",
]
