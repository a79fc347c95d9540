"""Bulk ingest job, lifecycle phase, and outcome models."""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, Field

# Remote spellings meaning "not finished yet". The remote reports both
# InProgress and JobInProgress for the same condition.
IN_PROGRESS_STATES = frozenset({"Open", "UploadComplete", "InProgress", "JobInProgress"})
FAILED_STATES = frozenset({"Failed", "Aborted"})


class JobPhase(StrEnum):
    CREATED = "Created"
    UPLOADING = "Uploading"
    CLOSED = "Closed"
    POLLING = "Polling"
    COMPLETED = "Completed"
    COMPLETED_WITH_FAILURES = "CompletedWithFailures"
    FAILED = "Failed"
    TIMED_OUT = "TimedOut"


TERMINAL_PHASES = frozenset({
    JobPhase.COMPLETED,
    JobPhase.COMPLETED_WITH_FAILURES,
    JobPhase.FAILED,
    JobPhase.TIMED_OUT,
})


class BulkJob(BaseModel):
    """Remote job status snapshot."""

    id: str
    state: str
    object: str = ""
    operation: str = ""
    number_records_processed: int = 0
    number_records_failed: int = 0
    error_message: str = ""

    @property
    def in_progress(self) -> bool:
        return self.state in IN_PROGRESS_STATES

    @property
    def failed(self) -> bool:
        return self.state in FAILED_STATES


class JobResults(BaseModel):
    """Raw result payloads; either may be empty when unavailable."""

    successful: str = ""
    failed: str = ""


class PhaseTransition(BaseModel):
    phase: JobPhase
    at: datetime
    detail: str = ""


class BulkJobOutcome(BaseModel):
    """Terminal report of a completed bulk job."""

    job_id: str
    phase: JobPhase
    state: str
    records_processed: int = 0
    records_failed: int = 0
    successful_results: str = ""
    failed_results: str = ""
    poll_attempts: int = 0
    transitions: list[PhaseTransition] = Field(default_factory=list)

    @property
    def success_count(self) -> int:
        return self.records_processed - self.records_failed
