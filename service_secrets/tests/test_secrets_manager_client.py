"""
Unit tests for the boto3-backed Secrets Manager client.
"""

import time
from datetime import datetime, timezone
from unittest.mock import MagicMock, patch

import pytest
from botocore.exceptions import ClientError, EndpointConnectionError, ParamValidationError

from shared.errors import (
    BackendConflict,
    BackendInternalError,
    BackendInvalidParameter,
    BackendNotFound,
    BackendRateLimited,
    BackendUnclassified,
    MalformedRequest,
    UnsupportedOperation,
)
from shared.metrics import MetricsCollector
from service_secrets.app.adapters.secrets_manager_client import SecretsManagerClient

ARN = "arn:aws:secretsmanager:us-east-1:123456789012:secret:db-AbCdEf"


def client_error(code, message="boom", operation="GetSecretValue"):
    return ClientError({"Error": {"Code": code, "Message": message}}, operation)


class TestSecretsManagerClient:
    """Test cases for SecretsManagerClient."""

    @pytest.fixture
    def boto_client(self):
        """Mock boto3 secretsmanager client."""
        return MagicMock()

    @pytest.fixture
    def metrics(self):
        return MetricsCollector("secrets_proxy")

    @pytest.fixture
    def client(self, boto_client, metrics):
        """Create SecretsManagerClient around the mock."""
        return SecretsManagerClient("us-east-1", client=boto_client, metrics=metrics)

    def test_lazy_client_uses_single_attempt(self):
        """The boto3 client is built on first use with retries disabled."""
        with patch("boto3.session.Session") as session_cls:
            adapter = SecretsManagerClient(
                "eu-west-1", endpoint_url="http://localhost:4566", timeout_seconds=3.0
            )
            session_cls.assert_not_called()

            built = adapter.client

        session_cls.return_value.client.assert_called_once()
        args, kwargs = session_cls.return_value.client.call_args
        assert args == ("secretsmanager",)
        assert kwargs["region_name"] == "eu-west-1"
        assert kwargs["endpoint_url"] == "http://localhost:4566"
        assert kwargs["config"].retries == {"total_max_attempts": 1, "mode": "standard"}
        assert built is session_cls.return_value.client.return_value

    @pytest.mark.asyncio
    async def test_batch_fetch(self, client, boto_client, metrics):
        """Test successful batch fetch."""
        boto_client.batch_get_secret_value.return_value = {
            "SecretValues": [{
                "ARN": ARN,
                "Name": "db",
                "VersionId": "v1",
                "SecretString": "hunter2",
                "VersionStages": ["AWSCURRENT"],
                "CreatedDate": datetime(2024, 1, 1, tzinfo=timezone.utc),
            }],
            "Errors": [{
                "SecretId": "gone",
                "ErrorCode": "ResourceNotFoundException",
                "Message": "Secrets Manager can't find the specified secret.",
            }],
            "ResponseMetadata": {"HTTPStatusCode": 200},
        }

        result = await client.batch_fetch(["db", "gone"])

        boto_client.batch_get_secret_value.assert_called_once_with(SecretIdList=["db", "gone"])
        record = result.secret_values[0]
        assert record.arn == ARN
        assert record.secret_string == "hunter2"
        assert record.version_stages == ("AWSCURRENT",)
        assert result.errors[0].secret_id == "gone"
        assert result.errors[0].error_code == "ResourceNotFoundException"
        assert metrics.registry.get_sample_value(
            "backend_calls_total", {"operation": "BatchGetSecretValue", "outcome": "ok"}
        ) == 1.0

    @pytest.mark.asyncio
    async def test_single_fetch_sends_only_given_selectors(self, client, boto_client):
        boto_client.get_secret_value.return_value = {"Name": "db", "SecretString": "x"}

        await client.single_fetch("db", "AWSPREVIOUS")
        await client.single_fetch("db", None, "v-123")

        assert boto_client.get_secret_value.call_args_list[0].kwargs == {
            "SecretId": "db", "VersionStage": "AWSPREVIOUS",
        }
        assert boto_client.get_secret_value.call_args_list[1].kwargs == {
            "SecretId": "db", "VersionId": "v-123",
        }

    @pytest.mark.asyncio
    async def test_response_metadata_stripped(self, client, boto_client):
        boto_client.get_secret_value.return_value = {
            "Name": "db",
            "SecretString": "x",
            "ResponseMetadata": {"RequestId": "r"},
        }

        record = await client.single_fetch("db", "AWSCURRENT")

        assert record.name == "db"
        assert "response_metadata" not in record.model_dump()

    @pytest.mark.parametrize("code,error_class,status", [
        ("ResourceNotFoundException", BackendNotFound, 404),
        ("InvalidParameterException", BackendInvalidParameter, 400),
        ("ResourceExistsException", BackendConflict, 409),
        ("ThrottlingException", BackendRateLimited, 429),
        ("InternalServiceError", BackendInternalError, 500),
        ("DecryptionFailure", BackendUnclassified, 400),
    ])
    @pytest.mark.asyncio
    async def test_client_errors_classified(self, client, boto_client, code, error_class, status):
        boto_client.get_secret_value.side_effect = client_error(code)

        with pytest.raises(error_class) as exc_info:
            await client.single_fetch("db", "AWSCURRENT")

        assert exc_info.value.status_code == status
        assert exc_info.value.code == code

    @pytest.mark.asyncio
    async def test_client_error_not_retried(self, client, boto_client):
        boto_client.get_secret_value.side_effect = client_error("InternalServiceError")

        with pytest.raises(BackendInternalError):
            await client.single_fetch("db", "AWSCURRENT")

        assert boto_client.get_secret_value.call_count == 1

    @pytest.mark.asyncio
    async def test_timeout_is_internal_error(self, boto_client, metrics):
        """A call exceeding the deadline is abandoned and reported as 500."""
        boto_client.get_secret_value.side_effect = lambda **kwargs: time.sleep(0.5)
        client = SecretsManagerClient(
            "us-east-1", client=boto_client, timeout_seconds=0.05, metrics=metrics
        )

        with pytest.raises(BackendInternalError) as exc_info:
            await client.single_fetch("db", "AWSCURRENT")

        assert "timed out" in exc_info.value.message
        assert metrics.registry.get_sample_value(
            "backend_calls_total", {"operation": "GetSecretValue", "outcome": "timeout"}
        ) == 1.0

    @pytest.mark.asyncio
    async def test_connection_failure_is_internal_error(self, client, boto_client):
        boto_client.get_secret_value.side_effect = EndpointConnectionError(
            endpoint_url="https://secretsmanager.us-east-1.amazonaws.com"
        )

        with pytest.raises(BackendInternalError):
            await client.single_fetch("db", "AWSCURRENT")

    @pytest.mark.asyncio
    async def test_param_validation_is_local(self, client, boto_client):
        boto_client.create_secret.side_effect = ParamValidationError(report="Missing required parameter Name")

        with pytest.raises(MalformedRequest) as exc_info:
            await client.invoke("CreateSecret", {})

        assert exc_info.value.is_local

    @pytest.mark.asyncio
    async def test_invoke_converts_keys_both_ways(self, client, boto_client):
        boto_client.describe_secret.return_value = {
            "ARN": ARN,
            "Name": "db",
            "RotationLambdaARN": "arn:aws:lambda:us-east-1:123456789012:function:rotate",
            "VersionIdsToStages": {"a1b2c3": ["AWSCURRENT"]},
            "ResponseMetadata": {"HTTPStatusCode": 200},
        }

        response = await client.invoke("DescribeSecret", {"secret_id": "db"})

        boto_client.describe_secret.assert_called_once_with(SecretId="db")
        assert response == {
            "arn": ARN,
            "name": "db",
            "rotation_lambda_arn": "arn:aws:lambda:us-east-1:123456789012:function:rotate",
            "version_ids_to_stages": {"a1b2c3": ["AWSCURRENT"]},
        }

    @pytest.mark.asyncio
    async def test_invoke_decodes_binary_payload(self, client, boto_client):
        boto_client.put_secret_value.return_value = {"Name": "blob"}

        await client.invoke("PutSecretValue", {"secret_id": "blob", "secret_binary": "AAFiaW4="})

        assert boto_client.put_secret_value.call_args.kwargs["SecretBinary"] == b"\x00\x01bin"

    @pytest.mark.asyncio
    async def test_invoke_rejects_bad_base64(self, client, boto_client):
        with pytest.raises(MalformedRequest):
            await client.invoke("PutSecretValue", {"secret_id": "blob", "secret_binary": "***"})

        boto_client.put_secret_value.assert_not_called()

    @pytest.mark.asyncio
    async def test_operation_missing_from_sdk(self, metrics):
        boto_client = MagicMock(spec=["get_secret_value"])
        client = SecretsManagerClient("us-east-1", client=boto_client, metrics=metrics)

        with pytest.raises(UnsupportedOperation):
            await client.invoke("FrobnicateSecret", {})
