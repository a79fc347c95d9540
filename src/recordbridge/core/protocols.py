"""Protocol interfaces for recordbridge collaborators.

The core never talks to the network, a cache, or the wall clock directly;
everything remote goes through these Protocols so backends can be swapped for
the in-memory fakes in tests.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from recordbridge.models.bulk import BulkJob, JobResults
from recordbridge.models.schema import FieldSuggestion, SObjectSummary, TargetField


# ---------------------------------------------------------------------------
# Schema describe
# ---------------------------------------------------------------------------

@runtime_checkable
class ISchemaService(Protocol):
    """Remote object/field catalog. Failures raise SchemaError."""

    async def list_objects(self) -> list[SObjectSummary]: ...

    async def list_fields(self, object_name: str) -> list[TargetField]: ...

    async def create_field(self, object_name: str, suggestion: FieldSuggestion) -> None: ...


# ---------------------------------------------------------------------------
# Bulk ingest
# ---------------------------------------------------------------------------

@runtime_checkable
class IBulkJobService(Protocol):
    """Asynchronous bulk-ingest capability. Failures raise TransportError."""

    async def submit_job(self, object_name: str, operation: str = "insert") -> str: ...

    async def upload_payload(self, job_id: str, csv_text: str) -> None: ...

    async def close_job(self, job_id: str) -> None: ...

    async def poll_job(self, job_id: str) -> BulkJob: ...

    async def fetch_results(self, job_id: str) -> JobResults: ...


# ---------------------------------------------------------------------------
# Cache
# ---------------------------------------------------------------------------

@runtime_checkable
class ICacheBackend(Protocol):
    """Redis-compatible cache interface."""

    def get(self, key: str) -> str | None: ...

    def setex(self, key: str, ttl: int, value: str) -> None: ...

    def delete(self, key: str) -> None: ...
