"""
AWS Secrets Manager client for the caching proxy.
"""

import asyncio
import base64
import binascii
import time
from typing import Any, Dict, Optional, Sequence, TYPE_CHECKING

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError, ParamValidationError

from shared.logging import get_logger
from shared.errors import (
    BackendInternalError,
    MalformedRequest,
    UnsupportedOperation,
    classify_backend_error,
)
from ..models import BatchError, BatchFetchResult, SecretRecord
from ..wire.casing import deep_pascalize_keys, deep_underscore_keys, underscore

if TYPE_CHECKING:  # pragma: no cover - imported for typing only
    from shared.metrics import MetricsCollector


class SecretsManagerClient:
    """Async facade over a boto3 ``secretsmanager`` client.

    boto3 is blocking, so each call runs in a worker thread and is bounded by
    ``timeout_seconds``. The SDK is configured for a single attempt per call;
    retries are left to whoever sits in front of the proxy.
    """

    def __init__(
        self,
        region_name: str,
        *,
        endpoint_url: Optional[str] = None,
        timeout_seconds: float = 10.0,
        metrics: Optional["MetricsCollector"] = None,
        client: Any = None,
    ):
        self.region_name = region_name
        self.endpoint_url = endpoint_url
        self.timeout_seconds = timeout_seconds
        self.metrics = metrics
        self.logger = get_logger("secrets_proxy.backend")
        self._client = client

    @property
    def client(self):
        """Lazy-initialize the boto3 client."""
        if self._client is None:
            session = boto3.session.Session()
            self._client = session.client(
                "secretsmanager",
                region_name=self.region_name,
                endpoint_url=self.endpoint_url,
                config=Config(
                    retries={"total_max_attempts": 1, "mode": "standard"},
                    connect_timeout=self.timeout_seconds,
                    read_timeout=self.timeout_seconds,
                ),
            )
        return self._client

    async def batch_fetch(self, secret_ids: Sequence[str]) -> BatchFetchResult:
        """Fetch one chunk of secrets with BatchGetSecretValue."""
        response = await self._call("BatchGetSecretValue", SecretIdList=list(secret_ids))
        return BatchFetchResult(
            secret_values=[self._to_record(value) for value in response.get("SecretValues", [])],
            errors=[
                BatchError(
                    secret_id=error.get("SecretId", ""),
                    error_code=error.get("ErrorCode", "UnknownError"),
                    message=error.get("Message"),
                )
                for error in response.get("Errors", [])
            ],
        )

    async def single_fetch(
        self,
        secret_id: str,
        version_stage: Optional[str],
        version_id: Optional[str] = None,
    ) -> SecretRecord:
        """Fetch one secret with GetSecretValue."""
        params: Dict[str, Any] = {"SecretId": secret_id}
        if version_stage:
            params["VersionStage"] = version_stage
        if version_id:
            params["VersionId"] = version_id
        response = await self._call("GetSecretValue", **params)
        return self._to_record(response)

    async def invoke(self, operation: str, params: Dict[str, Any]) -> Dict[str, Any]:
        """Call any Secrets Manager operation with snake_case parameters."""
        kwargs = deep_pascalize_keys(params)
        binary = kwargs.get("SecretBinary")
        if isinstance(binary, str):
            # The JSON wire carries blobs base64-encoded; boto3 wants raw bytes.
            try:
                kwargs["SecretBinary"] = base64.b64decode(binary, validate=True)
            except (binascii.Error, ValueError) as exc:
                raise MalformedRequest(f"SecretBinary is not valid base64: {exc}") from exc
        response = await self._call(operation, **kwargs)
        return deep_underscore_keys(response)

    async def _call(self, operation: str, **params) -> Dict[str, Any]:
        """Run one SDK call in a worker thread and classify its failure."""
        method_name = underscore(operation)
        client = self.client
        method = getattr(client, method_name, None)
        if method is None:
            raise UnsupportedOperation(f"Operation {operation} is not supported by the backend client")

        start = time.perf_counter()
        outcome = "error"
        try:
            response = await asyncio.wait_for(
                asyncio.to_thread(method, **params),
                timeout=self.timeout_seconds,
            )
            outcome = "ok"
        except asyncio.TimeoutError:
            outcome = "timeout"
            self.logger.error(
                "Secrets Manager call timed out",
                operation=operation,
                timeout_seconds=self.timeout_seconds,
            )
            raise BackendInternalError(
                f"{operation} timed out after {self.timeout_seconds}s",
                details={"operation": operation},
            )
        except ClientError as exc:
            error = exc.response.get("Error", {})
            code = error.get("Code", "UnknownError")
            message = error.get("Message", str(exc))
            classified = classify_backend_error(code, message, details={"operation": operation})
            outcome = classified.category
            self.logger.warning(
                "Secrets Manager returned an error",
                operation=operation,
                code=code,
                category=classified.category,
            )
            raise classified from exc
        except ParamValidationError as exc:
            outcome = "invalid_params"
            raise MalformedRequest(str(exc), details={"operation": operation}) from exc
        except BotoCoreError as exc:
            outcome = "transport_error"
            self.logger.error("Secrets Manager unreachable", operation=operation, error=str(exc))
            raise BackendInternalError(str(exc), details={"operation": operation}) from exc
        finally:
            self._record_call(operation, outcome, time.perf_counter() - start)

        response = dict(response)
        response.pop("ResponseMetadata", None)
        return response

    def _to_record(self, payload: Dict[str, Any]) -> SecretRecord:
        payload = dict(payload)
        payload.pop("ResponseMetadata", None)
        return SecretRecord.model_validate(deep_underscore_keys(payload))

    def _record_call(self, operation: str, outcome: str, duration: float) -> None:
        if not self.metrics:
            return
        self.metrics.record_backend_call(operation, outcome, duration)

