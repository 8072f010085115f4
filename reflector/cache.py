# reflector/cache.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Dict, Optional

from reflector.metadata import TypeMetadata, build_type_metadata
from reflector.protocols import TypeFacility
from reflector.runtime import NATIVE_FACILITY
from reflector.types import TypeDescriptor


@dataclass
class CacheStats:
    """Counters describing cache population. Only updated under the build lock."""

    builds: int = 0
    entries: int = 0


class _BuildLock:
    """
    Internal context manager serializing the check-then-build-then-insert
    path of the cache. Readers never take it.
    """

    def __init__(self, lock: threading.Lock) -> None:
        self._lock = lock

    def __enter__(self) -> None:
        self._lock.acquire()

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self._lock.release()


class MetadataCache:
    """
    Map from type descriptor to its TypeMetadata, populated lazily.

    Each distinct descriptor is built at most once. A lookup of an entry
    that already exists is a plain dict read; a miss takes the build lock,
    checks again and only then builds and publishes the finished entry, so
    no caller ever observes partially built metadata. Entries are never
    evicted.
    """

    def __init__(self, facility: TypeFacility = NATIVE_FACILITY) -> None:
        self._facility = facility
        self._entries: Dict[TypeDescriptor, TypeMetadata] = {}
        self._lock = threading.Lock()
        self._stats = CacheStats()

    @property
    def facility(self) -> TypeFacility:
        return self._facility

    @property
    def stats(self) -> CacheStats:
        return self._stats

    def get_or_build(self, descriptor: TypeDescriptor) -> TypeMetadata:
        """
        Return the metadata of a descriptor, building it on first use.

        :param descriptor: A type descriptor, or None for nil values.
        """
        metadata = self._entries.get(descriptor)
        if metadata is not None:
            return metadata

        with _BuildLock(self._lock):
            metadata = self._entries.get(descriptor)
            if metadata is None:
                metadata = build_type_metadata(descriptor, self._facility)
                self._entries[descriptor] = metadata
                self._stats.builds += 1
                self._stats.entries = len(self._entries)
            return metadata

    def clear(self) -> None:
        """Drop every entry. Meant for tests; live wrappers keep their metadata."""
        with _BuildLock(self._lock):
            self._entries.clear()
            self._stats = CacheStats()

    def __contains__(self, descriptor: TypeDescriptor) -> bool:
        return descriptor in self._entries

    def __len__(self) -> int:
        return len(self._entries)


_registry: Optional[MetadataCache] = None
_registry_lock = threading.Lock()


def get_cache() -> MetadataCache:
    """Return the process-wide MetadataCache, creating it on first use."""
    global _registry
    if _registry is None:
        with _BuildLock(_registry_lock):
            if _registry is None:
                _registry = MetadataCache()
    return _registry
