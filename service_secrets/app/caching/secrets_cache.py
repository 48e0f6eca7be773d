"""
In-memory secret cache keyed by (secret identifier, version stage).

Writes are serialised with a lock; reads are lock-free dictionary lookups.
A read racing a write may see the state from just before the write, which
costs at most one extra backend call and never returns a wrong value.
Entries never expire; the whole cache is dropped with ``reset()``.
"""

import threading
from typing import Dict, Iterable, List, NamedTuple, Optional, Sequence, Tuple, Union

from shared.logging import get_logger
from ..models import DEFAULT_VERSION_STAGE, SecretRecord

CacheKey = Tuple[str, str]
LookupKey = Union[str, Tuple[str, Optional[str]]]


class CacheLookup(NamedTuple):
    """Split of a lookup into hits and misses, input order kept in each."""

    cached: List[SecretRecord]
    missing: List[CacheKey]


def normalize_key(key: LookupKey) -> CacheKey:
    """Turn ``"id"`` or ``("id", None)`` into ``("id", DEFAULT_VERSION_STAGE)``."""
    if isinstance(key, str):
        return key, DEFAULT_VERSION_STAGE
    identifier, stage = key
    return identifier, stage or DEFAULT_VERSION_STAGE


class SecretsCache:
    """Concurrent (identifier, stage) -> SecretRecord mapping with bulk access."""

    def __init__(self):
        self._entries: Dict[CacheKey, SecretRecord] = {}
        self._write_lock = threading.Lock()
        self.logger = get_logger("secrets_proxy.cache")

    def lookup_many(self, keys: Iterable[LookupKey]) -> CacheLookup:
        """Look up several keys at once; every key lands in exactly one list."""
        cached: List[SecretRecord] = []
        missing: List[CacheKey] = []

        for key in keys:
            cache_key = normalize_key(key)
            record = self._entries.get(cache_key)
            if record is None:
                missing.append(cache_key)
            else:
                cached.append(record)

        return CacheLookup(cached, missing)

    def lookup(self, identifier: str, stage: Optional[str] = None) -> Optional[SecretRecord]:
        """Single-key convenience wrapper around ``lookup_many``."""
        result = self.lookup_many([(identifier, stage)])
        return result.cached[0] if result.cached else None

    def store_many(self, records: Sequence[SecretRecord]) -> int:
        """Cache each record under every stage it carries, by name and by ARN.

        Records with neither a name nor an ARN cannot be keyed and are skipped.
        Returns the number of entries written.
        """
        updates: Dict[CacheKey, SecretRecord] = {}
        skipped = 0

        for record in records:
            primary = record.primary_id
            if not primary:
                skipped += 1
                continue

            identifiers = [primary]
            if record.secondary_id:
                identifiers.append(record.secondary_id)

            for stage in record.stages:
                for identifier in identifiers:
                    updates[(identifier, stage)] = record

        if updates:
            with self._write_lock:
                self._entries.update(updates)

        if skipped:
            self.logger.debug("Skipped uncacheable secrets without identifier", count=skipped)

        return len(updates)

    def reset(self) -> int:
        """Drop every entry; returns how many there were."""
        with self._write_lock:
            dropped = len(self._entries)
            self._entries = {}
        self.logger.info("Secret cache reset", dropped=dropped)
        return dropped

    def size(self) -> int:
        return len(self._entries)

    def __len__(self) -> int:
        return self.size()
