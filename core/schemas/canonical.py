"""
Schemas & Canonicalization
File: canonical.py

Purpose: Deterministic serialization for field values (leaf input) and
content payloads.

CRITICAL: All outputs from this module MUST be identical at commit time and
verify time, across processes and machines. Changing any rule here breaks
every commitment made before the change.
"""

import json
import math
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any, Union

from pydantic import BaseModel

from .errors import CanonicalizationException

# Canonical JSON separators - no whitespace
CANONICAL_JSON_SEPARATORS: tuple[str, str] = (",", ":")

# Normalized field value: what goes into the payload and the leaf
FieldScalar = Union[int, str]


def ensure_utc(dt: datetime) -> datetime:
    """
    Ensure a datetime is timezone-aware and in UTC.

    Rules:
        - If naive (no tzinfo): treat as UTC
        - If aware: convert to UTC
    """
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def format_datetime_canonical(dt: datetime) -> str:
    """
    Format a datetime as ISO-8601 with Z suffix for UTC.

    Returns:
        e.g. "2024-01-01T09:30:00Z" (microseconds only when non-zero)
    """
    utc_dt = ensure_utc(dt)
    if utc_dt.microsecond == 0:
        return utc_dt.strftime("%Y-%m-%dT%H:%M:%SZ")
    return utc_dt.strftime("%Y-%m-%dT%H:%M:%S.%fZ")


def _validate_float(value: float, path: str = "") -> None:
    """
    Validate that a float is finite (not NaN or Infinity).

    Raises:
        CanonicalizationException: If the float is NaN or Infinity.
    """
    if not math.isfinite(value):
        raise CanonicalizationException(
            message=f"Non-finite float value encountered: {value}",
            details={"path": path, "value": str(value)},
        )


def normalize_field_value(value: Any, path: str = "") -> FieldScalar:
    """
    Reduce a field value to the int/str form that is hashed and stored.

    Numeric identifiers keep their integer form, so a caller passing 1 and
    a payload decoded from JSON holding 1 produce the same leaf input.

    Rules:
        - bool, None and containers are rejected
        - int stays int
        - float is rejected: 1.0 and "1.0" would hash differently
        - datetime -> ISO-8601 UTC with Z, date -> YYYY-MM-DD
        - Enum -> its value (normalized recursively)
        - str stays str (no Unicode normalization)

    Raises:
        CanonicalizationException: If the value has no canonical form.
    """
    if value is None:
        raise CanonicalizationException(
            message="Field value must not be None",
            details={"path": path},
        )

    if isinstance(value, bool):
        # Must check bool before int since bool is subclass of int
        raise CanonicalizationException(
            message="Boolean field values are ambiguous and not supported",
            details={"path": path, "value": str(value)},
        )

    if isinstance(value, int):
        return int(value)

    if isinstance(value, float):
        raise CanonicalizationException(
            message="Float field values are not supported; pass an int or a string",
            details={"path": path, "value": repr(value)},
        )

    if isinstance(value, str):
        return value

    if isinstance(value, datetime):
        return format_datetime_canonical(value)

    if isinstance(value, date):
        return value.isoformat()

    if isinstance(value, Enum):
        return normalize_field_value(value.value, path)

    raise CanonicalizationException(
        message=f"Cannot canonicalize field value of type {type(value).__name__}",
        details={"path": path, "type": type(value).__name__},
    )


def serialize_field_value(value: Any, path: str = "") -> bytes:
    """
    Serialize a field value to the exact bytes mixed into its leaf.

    Integers serialize to their decimal ASCII form, which is byte-identical
    to the numeric string form: serialize_field_value(1) == b"1" ==
    serialize_field_value("1"). Raw bytes pass through unchanged.

    Raises:
        CanonicalizationException: If the value has no canonical form.
    """
    if isinstance(value, (bytes, bytearray)):
        return bytes(value)
    normalized = normalize_field_value(value, path)
    if isinstance(normalized, int):
        return str(normalized).encode("ascii")
    return normalized.encode("utf-8")


def canonicalize_value(value: Any, path: str = "") -> Any:
    """
    Recursively canonicalize a value for deterministic JSON serialization.

    Raises:
        CanonicalizationException: If the value cannot be canonicalized
            (e.g., contains NaN/Infinity floats).
    """
    if value is None:
        return None

    if isinstance(value, bool):
        return value

    if isinstance(value, int):
        return value

    if isinstance(value, float):
        _validate_float(value, path)
        return value

    if isinstance(value, str):
        return value

    if isinstance(value, datetime):
        return format_datetime_canonical(value)

    if isinstance(value, date):
        return value.isoformat()

    if isinstance(value, Enum):
        return value.value

    if isinstance(value, BaseModel):
        dumped = value.model_dump(mode="json", by_alias=True, exclude_none=True)
        return canonicalize_value(dumped, path)

    if isinstance(value, dict):
        return {
            k: canonicalize_value(v, f"{path}.{k}" if path else k)
            for k, v in value.items()
            if v is not None
        }

    if isinstance(value, (list, tuple)):
        return [
            canonicalize_value(item, f"{path}[{i}]")
            for i, item in enumerate(value)
        ]

    if isinstance(value, bytes):
        return value.hex()

    raise CanonicalizationException(
        message=f"Cannot canonicalize value of type {type(value).__name__}",
        details={"path": path, "type": type(value).__name__},
    )


def dumps_canonical(obj: Any) -> str:
    """
    Serialize an object to a canonical JSON string.

    Returns:
        A canonical JSON string with:
            - Sorted keys
            - No extra whitespace
            - None fields excluded
            - Datetimes as ISO-8601 with Z suffix
            - No NaN/Infinity floats

    Example:
        >>> dumps_canonical({"b": 2, "a": 1})
        '{"a":1,"b":2}'
    """
    try:
        canonicalized = canonicalize_value(obj)
        return json.dumps(
            canonicalized,
            sort_keys=True,
            separators=CANONICAL_JSON_SEPARATORS,
            ensure_ascii=False,
        )
    except CanonicalizationException:
        raise
    except (TypeError, ValueError) as e:
        raise CanonicalizationException(
            message=f"Failed to serialize to canonical JSON: {e}",
            details={"type": type(obj).__name__, "error": str(e)},
        ) from e


def loads_canonical(data: str | bytes) -> Any:
    """
    Parse a canonical JSON document.

    Note: This does NOT restore datetime objects; they remain strings.
    """
    if isinstance(data, bytes):
        data = data.decode("utf-8")
    return json.loads(data)
