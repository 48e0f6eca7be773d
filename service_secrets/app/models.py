"""
Data model shared by the cache, the forwarder and the backend adapter.

Attribute names are the snake_case forms of the Secrets Manager wire fields,
so ``SecretRecord.model_dump()`` pascalizes straight back to the wire shape.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from shared.errors import SecretsProxyError

# Version stage assumed whenever a lookup or a record does not name one.
DEFAULT_VERSION_STAGE = "AWSCURRENT"


class SecretRecord(BaseModel):
    """One secret value as returned by GetSecretValue / BatchGetSecretValue.

    Immutable: a refreshed value replaces the cached record, it never mutates it.
    Unknown backend attributes are kept as extra fields.
    """

    model_config = ConfigDict(frozen=True, extra="allow")

    arn: Optional[str] = None
    name: Optional[str] = None
    version_id: Optional[str] = None
    secret_string: Optional[str] = None
    secret_binary: Optional[bytes] = None
    version_stages: Tuple[str, ...] = ()
    created_date: Optional[datetime] = None

    @property
    def primary_id(self) -> Optional[str]:
        """Identifier the record is cached under first (name, else ARN)."""
        return self.name or self.arn

    @property
    def secondary_id(self) -> Optional[str]:
        """ARN, when it is a distinct second lookup key."""
        if self.arn and self.arn != self.primary_id:
            return self.arn
        return None

    @property
    def stages(self) -> Tuple[str, ...]:
        """Stages to cache under; the default stage when the record names none."""
        return self.version_stages or (DEFAULT_VERSION_STAGE,)

    def with_stage(self, stage: str) -> "SecretRecord":
        """Copy of this record that also carries ``stage``."""
        if stage in self.version_stages:
            return self
        return self.model_copy(update={"version_stages": self.version_stages + (stage,)})


class BatchError(BaseModel):
    """Per-identifier failure inside a batch lookup."""

    model_config = ConfigDict(frozen=True)

    secret_id: str
    error_code: str
    message: Optional[str] = None


class BatchFetchResult(BaseModel):
    """Outcome of one BatchGetSecretValue call (one chunk)."""

    secret_values: List[SecretRecord] = Field(default_factory=list)
    errors: List[BatchError] = Field(default_factory=list)


class MergedResult(BaseModel):
    """Combined batch lookup response: cached records, fetched records, errors."""

    secret_values: List[SecretRecord] = Field(default_factory=list)
    errors: List[BatchError] = Field(default_factory=list)


@dataclass(frozen=True, repr=False)
class OperationResult:
    """What ``SecretsManagerForwarder.execute`` hands back.

    Exactly one of ``value`` and ``error`` is meaningful. ``value`` is a
    ``MergedResult`` (batch lookup), a ``SecretRecord`` (single lookup) or the
    backend's response mapping (pass-through).
    """

    operation: str
    value: Any = None
    error: Optional[SecretsProxyError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def status_code(self) -> int:
        return 200 if self.error is None else self.error.status_code

    def __repr__(self) -> str:
        state = "ok" if self.ok else self.error.category
        return f"OperationResult({self.operation!r}, {state})"
