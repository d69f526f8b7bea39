"""
Pinata Content Store and HTTP Client Unit Tests
Tests for core/stores/ipfs.py and core/http/client.py
"""
import json
from unittest.mock import MagicMock

import pytest
import requests

from core.http import HttpClient, HttpError, HttpResponse
from core.schemas.errors import ContentNotFoundException, ContentUnavailableException
from core.stores.ipfs import PinataContentStore


PAYLOAD = b'{"fields":{"product_batch":"B7"},"schema_version":"v1"}'


@pytest.fixture
def http():
    return MagicMock(spec=HttpClient)


@pytest.fixture
def store(http):
    return PinataContentStore("key", "secret", http=http)


class TestPut:
    def test_pins_json(self, store, http):
        http.post.return_value = HttpResponse(200, b'{"IpfsHash":"QmCid"}')

        assert store.put(PAYLOAD, timeout=5.0) == "QmCid"

        url = http.post.call_args.args[0]
        kwargs = http.post.call_args.kwargs
        assert url == "https://api.pinata.cloud/pinning/pinJSONToIPFS"
        assert kwargs["json"]["pinataContent"] == json.loads(PAYLOAD)
        assert kwargs["headers"] == {"pinata_api_key": "key", "pinata_secret_api_key": "secret"}
        assert kwargs["timeout"] == 5.0

    def test_rejects_non_json(self, store):
        with pytest.raises(ValueError, match="JSON"):
            store.put(b"\x00\x01")

    def test_http_error(self, store, http):
        http.post.return_value = HttpResponse(401, b"unauthorized")
        with pytest.raises(ContentUnavailableException) as exc_info:
            store.put(PAYLOAD)
        assert exc_info.value.details["status_code"] == 401
        assert not exc_info.value.retryable

    def test_server_error_retryable(self, store, http):
        http.post.return_value = HttpResponse(503, b"busy")
        with pytest.raises(ContentUnavailableException) as exc_info:
            store.put(PAYLOAD)
        assert exc_info.value.retryable

    def test_transport_error(self, store, http):
        http.post.side_effect = HttpError("connection reset")
        with pytest.raises(ContentUnavailableException):
            store.put(PAYLOAD)

    def test_unexpected_response(self, store, http):
        http.post.return_value = HttpResponse(200, b'{"nope":1}')
        with pytest.raises(ContentUnavailableException, match="Unexpected"):
            store.put(PAYLOAD)

    def test_requires_credentials(self, http):
        with pytest.raises(ValueError):
            PinataContentStore("", "secret", http=http)


class TestGet:
    def test_fetch(self, store, http):
        http.get.return_value = HttpResponse(200, PAYLOAD)
        assert store.get("QmCid") == PAYLOAD
        assert http.get.call_args.args[0] == "https://gateway.pinata.cloud/ipfs/QmCid"

    def test_not_found(self, store, http):
        http.get.return_value = HttpResponse(404, b"")
        with pytest.raises(ContentNotFoundException):
            store.get("QmCid")

    def test_gateway_error(self, store, http):
        http.get.return_value = HttpResponse(502, b"bad gateway")
        with pytest.raises(ContentUnavailableException) as exc_info:
            store.get("QmCid")
        assert exc_info.value.retryable

    def test_forbidden_not_retryable(self, store, http):
        http.get.return_value = HttpResponse(403, b"forbidden")
        with pytest.raises(ContentUnavailableException) as exc_info:
            store.get("QmCid")
        assert not exc_info.value.retryable

    def test_transport_error(self, store, http):
        http.get.side_effect = HttpError("timeout")
        with pytest.raises(ContentUnavailableException):
            store.get("QmCid")


class TestHttpClient:
    def test_transport_failure_becomes_http_error(self):
        client = HttpClient(timeout=1.0)
        client._session = MagicMock()
        client._session.request.side_effect = requests.ConnectionError("refused")

        with pytest.raises(HttpError) as exc_info:
            client.get("https://example.invalid")
        assert exc_info.value.status_code is None
        assert exc_info.value.retryable

    def test_default_timeout(self):
        client = HttpClient(timeout=3.0)
        client._session = MagicMock()
        response = client._session.request.return_value
        response.status_code = 200
        response.content = b"{}"
        response.headers = {}
        response.url = "https://example.invalid"
        response.elapsed.total_seconds.return_value = 0.01

        result = client.get("https://example.invalid")

        assert result.ok
        assert result.json() == {}
        assert client._session.request.call_args.kwargs["timeout"] == 3.0

    def test_raise_for_status(self):
        response = HttpResponse(503, b"", url="https://example.invalid")
        with pytest.raises(HttpError) as exc_info:
            response.raise_for_status()
        assert exc_info.value.status_code == 503
        assert exc_info.value.retryable

    def test_client_error_not_retryable(self):
        assert not HttpError("bad", status_code=400).retryable
