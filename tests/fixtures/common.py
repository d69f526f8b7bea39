"""
Common test fixtures - base factories shared by all tests.
"""

from __future__ import annotations

import itertools
from typing import Any, Callable

from core.commitment.retry import RetryPolicy
from core.schemas.records import SALT_LENGTH


# Retry policies that never sleep
FAST_POLICY = RetryPolicy(attempts=3, retry_delay=0.0)
SINGLE_POLICY = RetryPolicy(attempts=1, retry_delay=0.0)


def make_product_fields(
    product_id: int = 1,
    product_name: str = "Widget",
    product_mdate: str = "2024-01-01",
    product_batch: str = "B7",
) -> dict[str, Any]:
    """Create the four product fields."""
    return {
        "product_id": product_id,
        "product_name": product_name,
        "product_mdate": product_mdate,
        "product_batch": product_batch,
    }


def make_counting_salt_source(start: int = 1) -> Callable[[int], bytes]:
    """Deterministic salts: 0x01 * 16, 0x02 * 16, ..."""
    counter = itertools.count(start)

    def source(length: int) -> bytes:
        assert length == SALT_LENGTH
        return bytes([next(counter) % 256]) * length

    return source
