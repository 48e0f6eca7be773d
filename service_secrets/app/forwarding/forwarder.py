"""
Caching forwarder for the Secrets Manager JSON API.

GetSecretValue and BatchGetSecretValue are answered from the secret cache
where possible. Batch misses are split into backend-sized chunks that are
fetched concurrently, merged, and written back to the cache. Other supported
operations are forwarded to Secrets Manager unchanged.

Batch responses list cached records first, then fetched records chunk by
chunk; order inside each group follows the request.
"""

import base64
import json
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Union, TYPE_CHECKING

from shared.config import MAX_BATCH_SIZE
from shared.errors import AMZ_JSON_CONTENT_TYPE, MalformedRequest, SecretsProxyError, UnsupportedOperation
from shared.logging import get_logger
from ..adapters.backend import SecretsBackend
from ..caching.secrets_cache import SecretsCache
from ..models import DEFAULT_VERSION_STAGE, MergedResult, OperationResult, SecretRecord
from ..wire.casing import deep_pascalize_keys, deep_underscore_keys
from .batching import fan_out, plan_batches
from .merging import as_proxy_error, fetched_records, merge_batch_results

if TYPE_CHECKING:  # pragma: no cover - imported for typing only
    from shared.metrics import MetricsCollector

BATCH_GET_SECRET_VALUE = "BatchGetSecretValue"
GET_SECRET_VALUE = "GetSecretValue"

PASS_THROUGH_OPERATIONS = frozenset({
    "CancelRotateSecret",
    "CreateSecret",
    "DeleteResourcePolicy",
    "DeleteSecret",
    "DescribeSecret",
    "GetRandomPassword",
    "GetResourcePolicy",
    "ListSecretVersionIds",
    "ListSecrets",
    "PutResourcePolicy",
    "PutSecretValue",
    "RemoveRegionsFromReplication",
    "ReplicateSecretToRegions",
    "RestoreSecret",
    "RotateSecret",
    "StopReplicationToReplica",
    "TagResource",
    "UntagResource",
    "UpdateSecret",
    "UpdateSecretVersionStage",
    "ValidateResourcePolicy",
})

# Batch parameters the cache cannot answer; such requests go straight through.
UNCACHEABLE_BATCH_PARAMETERS = ("filters", "max_results", "next_token")


@dataclass(frozen=True)
class ForwardResponse:
    """Wire-level response: status code, JSON body and headers."""

    status: int
    body: str
    headers: Dict[str, str] = field(default_factory=lambda: {"Content-Type": AMZ_JSON_CONTENT_TYPE})


def extract_operation(target: str) -> str:
    """``secretsmanager.GetSecretValue`` -> ``GetSecretValue``."""
    return target.rsplit(".", 1)[-1]


def _json_default(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.timestamp()
    if isinstance(value, (bytes, bytearray)):
        return base64.b64encode(value).decode("ascii")
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


class SecretsManagerForwarder:
    """Dispatches Secrets Manager operations through the secret cache."""

    def __init__(
        self,
        backend: SecretsBackend,
        cache: SecretsCache,
        *,
        max_batch_size: int = MAX_BATCH_SIZE,
        metrics: Optional["MetricsCollector"] = None,
    ):
        if not 1 <= max_batch_size <= MAX_BATCH_SIZE:
            raise ValueError(f"max_batch_size must be between 1 and {MAX_BATCH_SIZE}")
        self.backend = backend
        self.cache = cache
        self.max_batch_size = max_batch_size
        self.metrics = metrics
        self.logger = get_logger("secrets_proxy.forwarder")

    async def forward(self, target: str, body: Union[str, bytes, None]) -> ForwardResponse:
        """Handle one wire request: decode, execute, render."""
        operation = extract_operation(target)

        try:
            parameters = json.loads(body) if body and body.strip() else {}
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            return self._render_error(MalformedRequest(f"Invalid JSON: {exc}"))

        result = await self.execute(operation, deep_underscore_keys(parameters))
        if not result.ok:
            return self._render_error(result.error)

        payload = result.value
        if isinstance(payload, (MergedResult, SecretRecord)):
            payload = payload.model_dump(exclude_none=True)

        return ForwardResponse(
            status=200,
            body=json.dumps(deep_pascalize_keys(payload), default=_json_default),
        )

    async def execute(self, operation: str, parameters: Any) -> OperationResult:
        """Run one operation with snake_case parameters.

        Never raises for request or backend problems: the returned result
        carries either the value or the classified error.
        """
        try:
            if not isinstance(parameters, dict):
                raise MalformedRequest("Request body must be a JSON object")

            if operation == BATCH_GET_SECRET_VALUE:
                value = await self._batch_get_secret_value(parameters)
            elif operation == GET_SECRET_VALUE:
                value = await self._get_secret_value(parameters)
            elif operation in PASS_THROUGH_OPERATIONS:
                value = await self._pass_through(operation, parameters)
            else:
                raise UnsupportedOperation(f"Unsupported operation: {operation}")
        except SecretsProxyError as exc:
            self.logger.info(
                "Operation failed",
                operation=operation,
                category=exc.category,
                code=exc.code,
                local=exc.is_local,
            )
            if self.metrics:
                self.metrics.record_error(exc.category)
            return OperationResult(operation, error=exc)

        return OperationResult(operation, value=value)

    async def _batch_get_secret_value(self, params: Dict[str, Any]) -> Any:
        if any(params.get(name) is not None for name in UNCACHEABLE_BATCH_PARAMETERS):
            self.logger.debug("Batch lookup with filters or paging, forwarding uncached")
            return await self._pass_through(BATCH_GET_SECRET_VALUE, params)

        secret_ids = self._secret_id_list(params)
        if not secret_ids:
            return MergedResult()

        lookup = self.cache.lookup_many(secret_ids)
        missing_ids = [secret_id for secret_id, _ in lookup.missing]
        self._record_lookup(BATCH_GET_SECRET_VALUE, len(lookup.cached), len(missing_ids))

        if not missing_ids:
            self.logger.debug("Batch lookup served from cache", requested=len(secret_ids))
            return MergedResult(secret_values=lookup.cached)

        chunks = plan_batches(missing_ids, self.max_batch_size)
        self.logger.info(
            "Fetching uncached secrets",
            requested=len(secret_ids),
            cached=len(lookup.cached),
            missing=len(missing_ids),
            chunks=len(chunks),
        )
        if self.metrics:
            self.metrics.observe_batch_chunks(len(chunks))

        outcomes = await fan_out(chunks, self.backend.batch_fetch)
        failures = []
        for chunk, outcome in zip(chunks, outcomes):
            if isinstance(outcome, BaseException):
                error = as_proxy_error(outcome)
                failures.append(error)
                self.logger.warning(
                    "Batch chunk failed",
                    chunk_size=len(chunk),
                    category=error.category,
                    code=error.code,
                )

        if not lookup.cached and len(failures) == len(outcomes):
            # Nothing partial to report; the request as a whole failed.
            raise failures[0]

        merged = merge_batch_results(lookup.cached, chunks, outcomes)
        self._store(fetched_records(outcomes))
        return merged

    async def _get_secret_value(self, params: Dict[str, Any]) -> SecretRecord:
        secret_id = params.get("secret_id")
        if not isinstance(secret_id, str) or not secret_id:
            raise MalformedRequest("SecretId is required")
        version_stage = self._optional_string(params, "version_stage", "VersionStage")
        version_id = self._optional_string(params, "version_id", "VersionId")

        if version_id:
            # Pinned versions bypass the stage-keyed cache in both directions.
            return await self.backend.single_fetch(secret_id, version_stage, version_id)

        stage = version_stage or DEFAULT_VERSION_STAGE
        cached = self.cache.lookup(secret_id, stage)
        self._record_lookup(GET_SECRET_VALUE, int(cached is not None), int(cached is None))
        if cached is not None:
            return cached

        record = await self.backend.single_fetch(secret_id, stage)
        self._store([record.with_stage(stage)])
        return record

    async def _pass_through(self, operation: str, params: Dict[str, Any]) -> Dict[str, Any]:
        return await self.backend.invoke(operation, params)

    @staticmethod
    def _render_error(error: SecretsProxyError) -> ForwardResponse:
        return ForwardResponse(
            status=error.status_code,
            body=json.dumps(error.to_response().to_wire()),
        )

    def _store(self, records: List[SecretRecord]) -> None:
        if not records:
            return
        written = self.cache.store_many(records)
        self.logger.debug("Cached fetched secrets", records=len(records), entries=written)
        if self.metrics:
            self.metrics.set_cache_entries(self.cache.size())

    def _record_lookup(self, operation: str, hits: int, misses: int) -> None:
        if self.metrics:
            self.metrics.record_cache_lookup(operation, hits, misses)

    @staticmethod
    def _secret_id_list(params: Dict[str, Any]) -> List[str]:
        """Requested identifiers, duplicates dropped, first occurrence kept."""
        secret_ids = params.get("secret_id_list") or []
        if not isinstance(secret_ids, list) or not all(isinstance(item, str) and item for item in secret_ids):
            raise MalformedRequest("SecretIdList must be a list of non-empty strings")
        return list(dict.fromkeys(secret_ids))

    @staticmethod
    def _optional_string(params: Dict[str, Any], name: str, wire_name: str) -> Optional[str]:
        value = params.get(name)
        if value is not None and not isinstance(value, str):
            raise MalformedRequest(f"{wire_name} must be a string")
        return value
