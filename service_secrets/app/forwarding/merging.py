"""
Combining per-chunk batch results into one response.
"""

from typing import List, Sequence

from shared.errors import BackendInternalError, SecretsProxyError
from ..models import BatchError, BatchFetchResult, MergedResult, SecretRecord
from .batching import ChunkOutcome


def as_proxy_error(exc: BaseException) -> SecretsProxyError:
    """Classified form of whatever a chunk raised."""
    if isinstance(exc, SecretsProxyError):
        return exc
    return BackendInternalError(f"Backend call failed: {exc}", details={"exception": type(exc).__name__})


def chunk_failure_errors(chunk: Sequence[str], exc: BaseException) -> List[BatchError]:
    """One error entry per identifier of a chunk whose call failed outright."""
    error = as_proxy_error(exc)
    return [
        BatchError(secret_id=secret_id, error_code=error.code, message=error.message)
        for secret_id in chunk
    ]


def fetched_records(outcomes: Sequence[ChunkOutcome]) -> List[SecretRecord]:
    """Records returned by the chunks that succeeded, in chunk order."""
    records: List[SecretRecord] = []
    for outcome in outcomes:
        if isinstance(outcome, BatchFetchResult):
            records.extend(outcome.secret_values)
    return records


def merge_batch_results(
    cached: Sequence[SecretRecord],
    chunks: Sequence[Sequence[str]],
    outcomes: Sequence[ChunkOutcome],
) -> MergedResult:
    """Cached records first, then each chunk's records and errors in chunk order.

    ``outcomes[i]`` belongs to ``chunks[i]``. Failed chunks keep their evidence
    as per-identifier errors instead of failing the whole merge.
    """
    if len(chunks) != len(outcomes):
        raise ValueError("every chunk needs exactly one outcome")

    values: List[SecretRecord] = list(cached)
    errors: List[BatchError] = []

    for chunk, outcome in zip(chunks, outcomes):
        if isinstance(outcome, BaseException):
            errors.extend(chunk_failure_errors(chunk, outcome))
            continue
        values.extend(outcome.secret_values)
        errors.extend(outcome.errors)

    return MergedResult(secret_values=values, errors=errors)
