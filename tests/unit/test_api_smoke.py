"""
API Smoke Tests

Tests for the FastAPI endpoints:
1. GET /health returns ok
2. POST /add commits a product
3. POST /verify answers Authentic Product / Tampered Product
4. Engine errors map onto HTTP status codes by category
"""

import pytest
from fastapi.testclient import TestClient

from api.app import app
from api.deps import build_service, get_service
from core.config.runtime import RuntimeConfig


PRODUCT = {
    "product_id": 1,
    "product_name": "Widget",
    "product_mdate": "2024-01-01",
    "product_batch": "B7",
}


@pytest.fixture
def service():
    service = build_service(RuntimeConfig(backend="memory"))
    app.dependency_overrides[get_service] = lambda: service
    yield service
    app.dependency_overrides.clear()
    service.close()


@pytest.fixture
def client(service):
    return TestClient(app)


def _tamper(service, product_id: int, **changes) -> None:
    """Rewrite the stored payload of a committed product."""
    from core.commitment import encode_payload, normalize_fields
    from core.schemas.records import PRODUCT_SCHEMA

    entry = service.collaborators.ledger.lookup(product_id)
    fields = {**PRODUCT, "product_id": product_id, **changes}
    service.collaborators.content_store.replace(
        entry.content_ref,
        encode_payload(PRODUCT_SCHEMA, normalize_fields(PRODUCT_SCHEMA, fields)),
    )


class TestHealthEndpoint:
    """Tests for GET /health."""

    def test_health_returns_ok(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["ok"] is True
        assert data["service"] == "prodseal-api"

    def test_root_returns_health(self, client):
        response = client.get("/")
        assert response.status_code == 200
        assert response.json()["ok"] is True


class TestAddEndpoint:
    """Tests for POST /add."""

    def test_add_product(self, client, service):
        response = client.post("/add", json=PRODUCT)

        assert response.status_code == 200
        data = response.json()
        assert data["ok"] is True
        assert data["message"] == "Data added"
        assert data["product_id"] == 1
        assert data["root"].startswith("0x")
        assert len(data["leaves"]) == 4
        assert "salts" not in data
        assert service.collaborators.salt_store.get_salts(1) is not None

    def test_duplicate_is_conflict(self, client):
        client.post("/add", json=PRODUCT)
        response = client.post("/add", json={**PRODUCT, "product_batch": "B8"})

        assert response.status_code == 409
        error = response.json()["error"]
        assert error["code"] == "DUPLICATE_RECORD"
        assert error["retryable"] is False

    def test_missing_field_rejected(self, client):
        body = dict(PRODUCT)
        del body["product_batch"]
        assert client.post("/add", json=body).status_code == 422

    def test_unknown_field_rejected(self, client):
        assert client.post("/add", json={**PRODUCT, "color": "red"}).status_code == 422

    def test_negative_id_rejected(self, client):
        assert client.post("/add", json={**PRODUCT, "product_id": -1}).status_code == 422


class TestVerifyEndpoint:
    """Tests for POST /verify."""

    def test_authentic(self, client):
        client.post("/add", json=PRODUCT)
        response = client.post("/verify", json={"product_id": 1})

        assert response.status_code == 200
        data = response.json()
        assert data["ok"] is True
        assert data["outcome"] == "authentic"
        assert data["message"] == "Authentic Product"
        assert data["anchored_root"] == data["recomputed_root"]
        assert data["checks"] == []

    def test_tampered(self, client, service):
        client.post("/add", json=PRODUCT)
        _tamper(service, 1, product_batch="B8")

        response = client.post("/verify", json={"product_id": 1, "include_checks": True})

        assert response.status_code == 200
        data = response.json()
        assert data["ok"] is True
        assert data["outcome"] == "tampered"
        assert data["message"] == "Tampered Product"
        assert data["anchored_root"] != data["recomputed_root"]
        failed = [c["check_id"] for c in data["checks"] if not c["ok"]]
        assert failed == ["root_match"]

    def test_not_found(self, client):
        response = client.post("/verify", json={"product_id": 99})

        assert response.status_code == 404
        data = response.json()
        assert data["ok"] is False
        assert data["error"]["code"] == "RECORD_NOT_FOUND"

    def test_salts_missing_is_fatal(self, client, service):
        client.post("/add", json=PRODUCT)
        service.collaborators.salt_store.delete_salts(1)

        response = client.post("/verify", json={"product_id": 1})

        assert response.status_code == 500
        error = response.json()["error"]
        assert error["code"] == "SALT_MISSING"
        assert error["fatal"] is True

    def test_content_unavailable(self, client, service):
        client.post("/add", json=PRODUCT)
        entry = service.collaborators.ledger.lookup(1)
        service.collaborators.ledger.register(2, entry.root, "mem:gone")
        service.collaborators.salt_store.put_salts(2, service.collaborators.salt_store.get_salts(1))

        response = client.post("/verify", json={"product_id": 2})

        assert response.status_code == 503
        error = response.json()["error"]
        assert error["code"] == "CONTENT_FETCH_FAILURE"
        assert error["retryable"] is True
