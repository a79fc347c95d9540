"""recordbridge exception hierarchy."""

from __future__ import annotations


class RecordBridgeError(Exception):
    """Base exception for all recordbridge errors."""


class ParseError(RecordBridgeError):
    """CSV text is empty or malformed."""


class SchemaError(RecordBridgeError):
    """Remote object/field describe or field creation failed."""


class MappingError(RecordBridgeError):
    """Column mapping violates schema constraints.

    Recoverable: the caller adjusts the mapping and validates again.
    """

    def __init__(
        self,
        message: str,
        missing_required: list[str] | None = None,
        duplicates: list[str] | None = None,
    ) -> None:
        self.missing_required = missing_required or []
        self.duplicates = duplicates or []
        super().__init__(message)


class StateError(RecordBridgeError):
    """Operation invoked before its prerequisite state exists."""


class TransportError(RecordBridgeError):
    """A remote call failed."""

    def __init__(self, step: str, message: str) -> None:
        self.step = step
        super().__init__(f"{step} failed: {message}")


class JobTimeoutError(RecordBridgeError, TimeoutError):
    """Bulk job did not leave the in-progress states within the poll bound."""

    def __init__(self, job_id: str, attempts: int) -> None:
        self.job_id = job_id
        self.attempts = attempts
        super().__init__(f"Bulk job {job_id} still in progress after {attempts} polls")


class JobFailedError(RecordBridgeError):
    """The remote system reported the bulk job as failed or aborted."""

    def __init__(self, job_id: str, state: str, message: str = "") -> None:
        self.job_id = job_id
        self.state = state
        detail = f": {message}" if message else ""
        super().__init__(f"Bulk job {job_id} ended in state {state}{detail}")


class CacheError(RecordBridgeError):
    """Redis cache operation failed."""
