"""
Web3 ledger.

Anchors roots in the product registry contract on an EVM chain (Polygon
Amoy by default). The contract exposes:

    addData(uint256 p_id, string p_merkleRoot, string p_cid)
    data(uint256) returns (uint256 product_id, string merkleRoot, string cid)

and reverts addData with "Product ID already exists" for a known id. Roots
are stored as lowercase hex without a 0x prefix. Unknown ids read back as
the zero struct (empty merkleRoot).

Environment Configuration:
    export RPC_URL="https://rpc-amoy.polygon.technology/"
    export CONTRACT_ADDRESS="0xabcd..."
    export PRIVATE_KEY="0x1234..."
"""

from __future__ import annotations

import logging
from typing import Any, Optional

import requests
from eth_account import Account
from web3 import Web3
from web3.exceptions import ContractLogicError, TimeExhausted, Web3Exception

from core.schemas.errors import (
    DuplicateRecordException,
    LedgerOutcomeUnknownException,
    LedgerUnavailableException,
)
from core.schemas.records import DIGEST_LENGTH, LedgerEntry


logger = logging.getLogger(__name__)

DEFAULT_RPC_URL = "https://rpc-amoy.polygon.technology/"
DUPLICATE_REVERT_REASON = "Product ID already exists"

PRODUCT_REGISTRY_ABI = [
    {
        "anonymous": False,
        "inputs": [
            {"indexed": True, "internalType": "uint256", "name": "p_id", "type": "uint256"},
            {"indexed": False, "internalType": "string", "name": "p_merkleRoot", "type": "string"},
            {"indexed": False, "internalType": "string", "name": "p_cid", "type": "string"},
        ],
        "name": "ProductAdded",
        "type": "event",
    },
    {
        "inputs": [
            {"internalType": "uint256", "name": "p_id", "type": "uint256"},
            {"internalType": "string", "name": "p_merkleRoot", "type": "string"},
            {"internalType": "string", "name": "p_cid", "type": "string"},
        ],
        "name": "addData",
        "outputs": [],
        "stateMutability": "nonpayable",
        "type": "function",
    },
    {
        "inputs": [{"internalType": "uint256", "name": "", "type": "uint256"}],
        "name": "data",
        "outputs": [
            {"internalType": "uint256", "name": "product_id", "type": "uint256"},
            {"internalType": "string", "name": "merkleRoot", "type": "string"},
            {"internalType": "string", "name": "cid", "type": "string"},
        ],
        "stateMutability": "view",
        "type": "function",
    },
]

# Errors raised by web3 for RPC and transport failures
_TRANSPORT_ERRORS = (Web3Exception, requests.RequestException, ValueError)


def encode_root(root: bytes) -> str:
    return root.hex()


def decode_root(value: str) -> bytes:
    """Parse a stored root, with or without 0x prefix."""
    text = value[2:] if value.startswith(("0x", "0X")) else value
    root = bytes.fromhex(text)
    if len(root) != DIGEST_LENGTH:
        raise ValueError(f"Stored root has {len(root)} bytes, expected {DIGEST_LENGTH}")
    return root


class Web3Ledger:
    """
    Usage:
        ledger = Web3Ledger(rpc_url, contract_address, private_key)
        ledger.register(1, root, cid)
        entry = ledger.lookup(1)
    """

    def __init__(
        self,
        rpc_url: str,
        contract_address: str,
        private_key: str,
        *,
        chain_id: Optional[int] = None,
        gas_limit: Optional[int] = None,
        tx_timeout_s: float = 120.0,
        request_timeout_s: float = 30.0,
        w3: Optional[Web3] = None,
    ) -> None:
        if not contract_address:
            raise ValueError("CONTRACT_ADDRESS not configured")
        if not private_key:
            raise ValueError("PRIVATE_KEY not configured")

        self.w3 = w3 or Web3(
            Web3.HTTPProvider(rpc_url, request_kwargs={"timeout": request_timeout_s})
        )
        self.account = Account.from_key(private_key)
        self.contract = self.w3.eth.contract(
            address=Web3.to_checksum_address(contract_address),
            abi=PRODUCT_REGISTRY_ABI,
        )
        self.chain_id = chain_id
        self.gas_limit = gas_limit
        self.tx_timeout_s = tx_timeout_s
        logger.info(f"Web3Ledger using contract {contract_address} via {rpc_url}")

    def lookup(self, record_id: int, *, timeout: Optional[float] = None) -> Optional[LedgerEntry]:
        try:
            _, merkle_root, cid = self.contract.functions.data(record_id).call()
        except _TRANSPORT_ERRORS as e:
            raise LedgerUnavailableException(
                f"Contract read failed for record {record_id}: {e}",
                details={"record_id": record_id},
            ) from e

        if not merkle_root:
            return None
        try:
            root = decode_root(merkle_root)
        except ValueError as e:
            raise LedgerUnavailableException(
                f"Contract holds a malformed root for record {record_id}: {e}",
                details={"record_id": record_id, "stored_root": merkle_root},
            ) from e
        return LedgerEntry(root=root, content_ref=cid)

    def register(
        self,
        record_id: int,
        root: bytes,
        content_ref: str,
        *,
        timeout: Optional[float] = None,
    ) -> None:
        if self.lookup(record_id, timeout=timeout) is not None:
            raise DuplicateRecordException(record_id)

        function_call = self.contract.functions.addData(record_id, encode_root(root), content_ref)
        try:
            tx_hash = self._send(function_call)
        except ContractLogicError as e:
            if DUPLICATE_REVERT_REASON in str(e):
                raise DuplicateRecordException(record_id) from e
            raise LedgerUnavailableException(
                f"addData reverted for record {record_id}: {e}",
                details={"record_id": record_id},
            ) from e
        except _TRANSPORT_ERRORS as e:
            raise LedgerUnavailableException(
                f"addData failed for record {record_id}: {e}",
                details={"record_id": record_id},
            ) from e
        logger.info(f"Submitted addData for record {record_id}: {tx_hash.hex()}")

        # Broadcast already happened: from here a failure leaves the outcome open.
        try:
            receipt = self.w3.eth.wait_for_transaction_receipt(
                tx_hash,
                timeout=timeout or self.tx_timeout_s,
            )
        except TimeExhausted as e:
            raise LedgerOutcomeUnknownException(
                f"Transaction for record {record_id} not mined in time",
                details={"record_id": record_id, "tx_hash": tx_hash.hex()},
            ) from e
        except _TRANSPORT_ERRORS as e:
            raise LedgerOutcomeUnknownException(
                f"Lost contact waiting for record {record_id} transaction: {e}",
                details={"record_id": record_id, "tx_hash": tx_hash.hex()},
            ) from e

        if receipt["status"] != 1:
            # A reverted mined tx: re-read to tell a lost race from other failures.
            if self.lookup(record_id, timeout=timeout) is not None:
                raise DuplicateRecordException(record_id)
            raise LedgerUnavailableException(
                f"addData transaction reverted for record {record_id}",
                details={"record_id": record_id, "tx_hash": tx_hash.hex()},
            )
        logger.info(f"Record {record_id} anchored in block {receipt['blockNumber']}")

    def _send(self, function_call: Any) -> bytes:
        address = self.account.address
        tx_params: dict[str, Any] = {
            "from": address,
            "nonce": self.w3.eth.get_transaction_count(address),
            "gasPrice": self.w3.eth.gas_price,
        }
        if self.chain_id is not None:
            tx_params["chainId"] = self.chain_id
        if self.gas_limit is not None:
            tx_params["gas"] = self.gas_limit
        # build_transaction estimates gas when none is given, which surfaces
        # contract reverts before anything is broadcast.
        transaction = function_call.build_transaction(tx_params)
        signed = self.account.sign_transaction(transaction)
        return self.w3.eth.send_raw_transaction(signed.raw_transaction)
