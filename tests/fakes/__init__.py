"""Shared test doubles: re-exported memory backends."""

from __future__ import annotations

from recordbridge.backends.memory_backend import (
    MemoryBulkJobService,
    MemoryCacheBackend,
    MemorySchemaService,
    RecordingSleep,
)

__all__ = ["MemoryBulkJobService", "MemoryCacheBackend", "MemorySchemaService", "RecordingSleep"]
