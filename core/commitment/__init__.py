"""
Salted commitment and verification engines.

Usage:
    from core.commitment import CommitmentEngine, VerificationEngine

    committer = CommitmentEngine(content_store, ledger, salt_store)
    record = committer.commit(1, fields)

    verifier = VerificationEngine(content_store, ledger, salt_store, cache)
    report = verifier.verify(1)
"""
from .leaf import SaltedLeaf, SaltedLeafBuilder, compute_leaf
from .payload import PayloadFormatError, decode_payload, encode_payload, normalize_fields
from .retry import Deadline, RetryPolicy, call_with_retry
from .engine import CommitmentEngine, validate_record_id
from .verification import VerificationEngine
from .reconcile import UnverifiableRecord, find_unverifiable


__all__ = [
    "SaltedLeaf",
    "SaltedLeafBuilder",
    "compute_leaf",
    "PayloadFormatError",
    "decode_payload",
    "encode_payload",
    "normalize_fields",
    "Deadline",
    "RetryPolicy",
    "call_with_retry",
    "CommitmentEngine",
    "validate_record_id",
    "VerificationEngine",
    "UnverifiableRecord",
    "find_unverifiable",
]
