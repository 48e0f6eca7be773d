"""
What the forwarder needs from a Secrets Manager backend.
"""

from typing import Any, Dict, Optional, Protocol, Sequence

from ..models import BatchFetchResult, SecretRecord


class SecretsBackend(Protocol):
    """Remote secrets service, as seen by the forwarder.

    Parameters and responses use snake_case keys. Every method raises a
    ``shared.errors.BackendError`` subclass when the backend reports an error.
    """

    async def batch_fetch(self, secret_ids: Sequence[str]) -> BatchFetchResult:
        """BatchGetSecretValue for at most one chunk of identifiers."""
        ...

    async def single_fetch(
        self,
        secret_id: str,
        version_stage: Optional[str],
        version_id: Optional[str] = None,
    ) -> SecretRecord:
        """GetSecretValue for one identifier at one stage or pinned version."""
        ...

    async def invoke(self, operation: str, params: Dict[str, Any]) -> Dict[str, Any]:
        """Any other operation, e.g. ``invoke("DescribeSecret", {"secret_id": ...})``."""
        ...
