"""
Content payload encoding.

The payload stored in the content store is canonical JSON:

    {"fields":{"product_batch":"B7","product_id":1,...},"schema_version":"v1"}

Key order in the JSON is sorted and carries no meaning; leaf order always
comes from the FieldSchema.
"""

from __future__ import annotations

from typing import Any, Mapping

from core.schemas.canonical import (
    FieldScalar,
    dumps_canonical,
    loads_canonical,
    normalize_field_value,
)
from core.schemas.errors import SchemaValidationException
from core.schemas.records import FieldSchema
from core.schemas.versioning import is_compatible_schema_version


class PayloadFormatError(ValueError):
    """A fetched payload cannot be read as a record under the schema."""


def normalize_fields(schema: FieldSchema, fields: Mapping[str, Any]) -> dict[str, FieldScalar]:
    """
    Check `fields` against the schema and normalize every value.

    Returns a dict in schema order.

    Raises:
        SchemaValidationException: On missing or unexpected field names
        CanonicalizationException: On a value with no canonical form
    """
    missing = [name for name in schema.names if name not in fields]
    if missing:
        raise SchemaValidationException(
            f"Missing fields: {', '.join(missing)}",
            field_path=missing[0],
            details={"missing": missing},
        )
    unexpected = sorted(set(fields) - set(schema.names))
    if unexpected:
        raise SchemaValidationException(
            f"Unexpected fields: {', '.join(unexpected)}",
            field_path=unexpected[0],
            details={"unexpected": unexpected},
        )
    return {name: normalize_field_value(fields[name], name) for name in schema.names}


def encode_payload(schema: FieldSchema, normalized: Mapping[str, FieldScalar]) -> bytes:
    """Encode normalized fields as the canonical content payload."""
    return dumps_canonical(
        {"fields": dict(normalized), "schema_version": schema.version}
    ).encode("utf-8")


def decode_payload(schema: FieldSchema, payload: bytes) -> list[Any]:
    """
    Decode a fetched payload into field values in schema order.

    Values are returned as decoded; callers serialize them the same way as
    at commit time.

    Raises:
        PayloadFormatError: If the payload is not valid JSON, has an
            unsupported schema version, or lacks a declared field
    """
    try:
        document = loads_canonical(payload)
    except (UnicodeDecodeError, ValueError, RecursionError) as e:
        # ValueError covers JSONDecodeError and oversized integer literals
        raise PayloadFormatError(f"Payload is not valid JSON: {e}") from e

    if not isinstance(document, dict):
        raise PayloadFormatError("Payload is not a JSON object")

    version = document.get("schema_version")
    if not isinstance(version, str) or not is_compatible_schema_version(version):
        raise PayloadFormatError(f"Unsupported payload schema version: {version!r}")
    if version != schema.version:
        raise PayloadFormatError(
            f"Payload schema version {version!r} does not match {schema.version!r}"
        )

    fields = document.get("fields")
    if not isinstance(fields, dict):
        raise PayloadFormatError("Payload has no 'fields' object")

    missing = [name for name in schema.names if name not in fields]
    if missing:
        raise PayloadFormatError(f"Payload is missing fields: {', '.join(missing)}")

    return [fields[name] for name in schema.names]
