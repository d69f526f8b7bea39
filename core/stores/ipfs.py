"""
Pinata IPFS content store.

Pins payloads through the Pinata pinning API and fetches them back through
an IPFS gateway. Content refs are bare CIDs.

Payloads are JSON documents. Pinata re-serializes what it pins, so the bytes
fetched from the gateway may differ from the bytes put in whitespace or key
order; readers must parse the JSON rather than compare bytes.
"""

from __future__ import annotations

import json
import logging
from typing import Optional

from core.http import HttpClient, HttpError
from core.schemas.errors import ContentNotFoundException, ContentUnavailableException


logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://api.pinata.cloud"
DEFAULT_GATEWAY_URL = "https://gateway.pinata.cloud/ipfs"


class PinataContentStore:
    """
    Usage:
        with HttpClient(timeout=30.0) as http:
            store = PinataContentStore(api_key, api_secret, http=http)
            cid = store.put(payload)
    """

    def __init__(
        self,
        api_key: str,
        api_secret: str,
        *,
        http: Optional[HttpClient] = None,
        api_url: str = DEFAULT_API_URL,
        gateway_url: str = DEFAULT_GATEWAY_URL,
        pin_name_prefix: str = "prodseal",
    ) -> None:
        if not api_key or not api_secret:
            raise ValueError("Pinata API key and secret are required")
        self.api_key = api_key
        self.api_secret = api_secret
        self.http = http or HttpClient()
        self.api_url = api_url.rstrip("/")
        self.gateway_url = gateway_url.rstrip("/")
        self.pin_name_prefix = pin_name_prefix

    def _auth_headers(self) -> dict[str, str]:
        return {
            "pinata_api_key": self.api_key,
            "pinata_secret_api_key": self.api_secret,
        }

    def put(self, payload: bytes, *, timeout: Optional[float] = None) -> str:
        try:
            document = json.loads(payload)
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise ValueError(f"Pinata content store only accepts JSON payloads: {e}") from e

        body = {
            "pinataContent": document,
            "pinataMetadata": {"name": self.pin_name_prefix},
        }
        try:
            response = self.http.post(
                f"{self.api_url}/pinning/pinJSONToIPFS",
                headers=self._auth_headers(),
                json=body,
                timeout=timeout,
            )
            response.raise_for_status()
            cid = response.json()["IpfsHash"]
        except HttpError as e:
            raise ContentUnavailableException(
                f"Pinata upload failed: {e}",
                details={"status_code": e.status_code},
                retryable=e.retryable,
            ) from e
        except (KeyError, ValueError) as e:
            raise ContentUnavailableException(f"Unexpected Pinata response: {e}") from e

        logger.debug(f"Pinned payload as {cid}")
        return cid

    def get(self, content_ref: str, *, timeout: Optional[float] = None) -> bytes:
        try:
            response = self.http.get(f"{self.gateway_url}/{content_ref}", timeout=timeout)
        except HttpError as e:
            raise ContentUnavailableException(f"Gateway fetch failed: {e}") from e

        if response.status_code == 404:
            raise ContentNotFoundException(content_ref)
        try:
            response.raise_for_status()
        except HttpError as e:
            raise ContentUnavailableException(
                f"Gateway fetch failed: {e}",
                details={"status_code": e.status_code, "content_ref": content_ref},
                retryable=e.retryable,
            ) from e
        return response.content
