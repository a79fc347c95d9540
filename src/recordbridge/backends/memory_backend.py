"""Dict-backed in-memory backends used as unit test fakes."""

from __future__ import annotations

from recordbridge.core.exceptions import SchemaError, TransportError
from recordbridge.models.bulk import BulkJob, JobResults
from recordbridge.models.schema import FieldSuggestion, SObjectSummary, TargetField


class MemorySchemaService:
    """Dict-backed ISchemaService for unit tests."""

    def __init__(self) -> None:
        self._objects: dict[str, SObjectSummary] = {}
        self._fields: dict[str, list[TargetField]] = {}
        self._failing_fields: dict[str, str] = {}
        self.created: list[tuple[str, FieldSuggestion]] = []
        self.describe_calls = 0

    def add_object(self, name: str, fields: list[TargetField], label: str = "") -> None:
        self._objects[name] = SObjectSummary(name=name, label=label or name)
        self._fields[name] = list(fields)

    def fail_creation(self, developer_name: str, message: str = "duplicate developer name") -> None:
        """Make create_field fail for one developer name."""
        self._failing_fields[developer_name] = message

    async def list_objects(self) -> list[SObjectSummary]:
        return sorted(self._objects.values(), key=lambda o: o.label)

    async def list_fields(self, object_name: str) -> list[TargetField]:
        self.describe_calls += 1
        if object_name not in self._fields:
            raise SchemaError(f"Failed to fetch object metadata: unknown object {object_name!r}")
        return list(self._fields[object_name])

    async def create_field(self, object_name: str, suggestion: FieldSuggestion) -> None:
        if object_name not in self._fields:
            raise SchemaError(f"Failed to create custom field: unknown object {object_name!r}")
        if suggestion.developer_name in self._failing_fields:
            raise SchemaError(
                f"Failed to create custom field: {self._failing_fields[suggestion.developer_name]}"
            )
        self.created.append((object_name, suggestion))
        self._fields[object_name].append(
            TargetField(
                name=suggestion.developer_name,
                label=suggestion.label,
                type=suggestion.type,
                length=suggestion.length,
                picklist_values=suggestion.picklist_values,
            )
        )


class MemoryBulkJobService:
    """Scripted IBulkJobService for unit tests.

    ``poll_job`` replays ``states`` in order and repeats the last one once the
    script runs out.
    """

    def __init__(
        self,
        states: list[str] | None = None,
        processed: int = 0,
        failed: int = 0,
        successful_results: str = "",
        failed_results: str = "",
    ) -> None:
        self._states = list(states or ["JobComplete"])
        self._processed = processed
        self._failed = failed
        self._results = JobResults(successful=successful_results, failed=failed_results)
        self._failures: dict[str, str] = {}
        self._counter = 0
        self.calls: list[str] = []
        self.payloads: dict[str, str] = {}
        self.jobs: dict[str, tuple[str, str]] = {}

    def fail_on(self, step: str, message: str = "503 Service Unavailable") -> None:
        """Make one step (submit/upload/close/poll/results) raise TransportError."""
        self._failures[step] = message

    def _call(self, step: str) -> None:
        self.calls.append(step)
        if step in self._failures:
            raise TransportError(step, self._failures[step])

    async def submit_job(self, object_name: str, operation: str = "insert") -> str:
        self._call("submit")
        self._counter += 1
        job_id = f"750MEM{self._counter:09d}"
        self.jobs[job_id] = (object_name, operation)
        return job_id

    async def upload_payload(self, job_id: str, csv_text: str) -> None:
        self._call("upload")
        self.payloads[job_id] = csv_text

    async def close_job(self, job_id: str) -> None:
        self._call("close")

    async def poll_job(self, job_id: str) -> BulkJob:
        self._call("poll")
        state = self._states.pop(0) if len(self._states) > 1 else self._states[0]
        object_name, operation = self.jobs.get(job_id, ("", ""))
        return BulkJob(
            id=job_id,
            state=state,
            object=object_name,
            operation=operation,
            number_records_processed=self._processed,
            number_records_failed=self._failed,
        )

    async def fetch_results(self, job_id: str) -> JobResults:
        self._call("results")
        return self._results


class MemoryCacheBackend:
    """Dict-backed ICacheBackend for unit tests."""

    def __init__(self) -> None:
        self._store: dict[str, str] = {}

    def get(self, key: str) -> str | None:
        return self._store.get(key)

    def setex(self, key: str, ttl: int, value: str) -> None:
        self._store[key] = value

    def delete(self, key: str) -> None:
        self._store.pop(key, None)


class RecordingSleep:
    """Awaitable stand-in for asyncio.sleep that only records requested delays."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)
