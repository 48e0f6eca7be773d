"""
Unit tests for the secrets proxy HTTP service.
"""

import json
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from shared.config import get_config
from shared.errors import BackendNotFound
from service_secrets.app.caching.secrets_cache import SecretsCache
from service_secrets.app.main import SecretsProxyService, create_app
from service_secrets.app.models import BatchFetchResult, SecretRecord

AMZ_JSON = "application/x-amz-json-1.1"


def target(operation):
    return {"X-Amz-Target": f"secretsmanager.{operation}", "Content-Type": AMZ_JSON}


class TestSecretsProxyService:
    """Test cases for SecretsProxyService."""

    @pytest.fixture
    def record(self):
        return SecretRecord(
            name="db",
            arn="arn:aws:secretsmanager:us-east-1:123456789012:secret:db-AbCdEf",
            version_id="v1",
            secret_string="hunter2",
            version_stages=("AWSCURRENT",),
        )

    @pytest.fixture
    def backend(self, record):
        """Mock Secrets Manager backend."""
        backend = MagicMock()
        backend.single_fetch = AsyncMock(return_value=record)
        backend.batch_fetch = AsyncMock(return_value=BatchFetchResult(secret_values=[record]))
        backend.invoke = AsyncMock(return_value={"secret_list": []})
        return backend

    @pytest.fixture
    def cache(self):
        return SecretsCache()

    @pytest.fixture
    def service(self, backend, cache):
        """Create SecretsProxyService with a mocked backend."""
        config = get_config("secrets_proxy", json_logs=False)
        return SecretsProxyService(config=config, backend=backend, cache=cache)

    @pytest.fixture
    def client(self, service):
        """Create test client."""
        return TestClient(service.app)

    def test_health_endpoint(self, client):
        """Test health endpoint."""
        response = client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["service"] == "secrets_proxy"
        assert data["status"] == "ok"
        assert data["dependencies"]["cache"]["entries"] == 0

    def test_metrics_endpoint(self, client):
        client.get("/health")

        response = client.get("/metrics")

        assert response.status_code == 200
        assert "http_requests_total" in response.text

    def test_get_secret_value(self, client, backend):
        """Test a cached GetSecretValue round trip."""
        first = client.post("/", content='{"SecretId": "db"}', headers=target("GetSecretValue"))
        second = client.post("/", content='{"SecretId": "db"}', headers=target("GetSecretValue"))

        assert first.status_code == 200
        assert first.headers["content-type"] == AMZ_JSON
        assert first.json()["SecretString"] == "hunter2"
        assert second.json() == first.json()
        backend.single_fetch.assert_awaited_once_with("db", "AWSCURRENT")

    def test_request_id_header(self, client):
        response = client.post(
            "/",
            content='{"SecretId": "db"}',
            headers={**target("GetSecretValue"), "X-Amzn-RequestId": "req-123"},
        )

        assert response.headers["x-amzn-requestid"] == "req-123"

    def test_batch_get_secret_value(self, client, backend):
        response = client.post(
            "/", content='{"SecretIdList": ["db"]}', headers=target("BatchGetSecretValue")
        )

        assert response.status_code == 200
        body = response.json()
        assert [value["Name"] for value in body["SecretValues"]] == ["db"]
        assert body["Errors"] == []
        backend.batch_fetch.assert_awaited_once_with(["db"])

    def test_pass_through(self, client, backend):
        response = client.post("/", content="{}", headers=target("ListSecrets"))

        assert response.status_code == 200
        assert response.json() == {"SecretList": []}
        backend.invoke.assert_awaited_once_with("ListSecrets", {})

    def test_missing_target(self, client, backend):
        """Requests without X-Amz-Target are rejected before dispatch."""
        response = client.post("/", content='{"SecretId": "db"}')

        assert response.status_code == 400
        assert response.json() == {
            "__type": "MissingAuthenticationTokenException",
            "Message": "Missing X-Amz-Target header",
        }
        backend.single_fetch.assert_not_awaited()

    def test_invalid_json(self, client):
        response = client.post("/", content="{oops", headers=target("GetSecretValue"))

        assert response.status_code == 400
        body = json.loads(response.text)
        assert body["__type"] == "InvalidRequestException"
        assert body["Message"].startswith("Invalid JSON")

    def test_backend_error(self, client, backend):
        backend.single_fetch.side_effect = BackendNotFound(
            "Secrets Manager can't find the specified secret.",
            code="ResourceNotFoundException",
        )

        response = client.post("/", content='{"SecretId": "nope"}', headers=target("GetSecretValue"))

        assert response.status_code == 404
        assert response.json()["__type"] == "ResourceNotFoundException"

    def test_cache_stats_and_clear(self, client, backend):
        client.post("/", content='{"SecretId": "db"}', headers=target("GetSecretValue"))

        assert client.get("/cache/stats").json() == {"entries": 2}
        assert client.delete("/cache").json() == {"cleared": 2}
        assert client.get("/cache/stats").json() == {"entries": 0}

        client.post("/", content='{"SecretId": "db"}', headers=target("GetSecretValue"))
        assert backend.single_fetch.await_count == 2


def test_create_app(monkeypatch):
    """The default app builds without touching AWS."""
    monkeypatch.setenv("AWS_REGION", "eu-west-1")

    client = TestClient(create_app())

    assert client.get("/health").status_code == 200
