"""
Payload schema versions.

Every content payload carries a `schema_version` tag next to its fields.
A verifier only recomputes roots for payloads whose tag it knows; field
layout for a version is fixed once records have been anchored under it.

No imports from other schema modules here (records.py depends on this).
"""

from typing import Literal

# Tag written by encode_payload for new commitments
SCHEMA_VERSION: str = "v1"

SchemaVersion = Literal["v1"]

# Tags decode_payload will accept
SUPPORTED_SCHEMA_VERSIONS: frozenset[str] = frozenset({"v1"})


def is_compatible_schema_version(version: str) -> bool:
    return version in SUPPORTED_SCHEMA_VERSIONS
