"""Tests for the bulk ingest state machine using scripted fakes."""

from __future__ import annotations

import asyncio

import pytest

from recordbridge.bulk.orchestrator import BulkIngestOrchestrator
from recordbridge.core.config import BulkJobConfig
from recordbridge.core.exceptions import JobFailedError, JobTimeoutError, StateError, TransportError
from recordbridge.models.bulk import JobPhase
from tests.fakes import MemoryBulkJobService, RecordingSleep

PAYLOAD = "LastName\nLovelace"


def make(bulk: MemoryBulkJobService, **config) -> tuple[BulkIngestOrchestrator, RecordingSleep]:
    sleep = RecordingSleep()
    orchestrator = BulkIngestOrchestrator(bulk=bulk, config=BulkJobConfig(**config), sleep=sleep)
    return orchestrator, sleep


class TestHappyPath:
    def test_completed_with_failures(self):
        bulk = MemoryBulkJobService(
            states=["InProgress", "InProgress", "JobComplete"],
            processed=100,
            failed=5,
            successful_results="sf__Id,sf__Created\n",
            failed_results="sf__Id,sf__Error\n",
        )
        orchestrator, sleep = make(bulk)

        outcome = asyncio.run(orchestrator.run("Contact", PAYLOAD))

        assert outcome.phase == JobPhase.COMPLETED_WITH_FAILURES
        assert outcome.success_count == 95
        assert outcome.records_processed == 100
        assert outcome.records_failed == 5
        assert outcome.failed_results == "sf__Id,sf__Error\n"
        assert outcome.poll_attempts == 3
        assert sleep.delays == [2.0, 2.0, 2.0]
        assert bulk.calls == ["submit", "upload", "close", "poll", "poll", "poll", "results"]
        assert bulk.payloads[outcome.job_id] == PAYLOAD

    def test_completed_without_failures(self):
        bulk = MemoryBulkJobService(states=["JobInProgress", "JobComplete"], processed=3)
        orchestrator, _ = make(bulk)

        outcome = asyncio.run(orchestrator.run("Contact", PAYLOAD))

        assert outcome.phase == JobPhase.COMPLETED
        assert outcome.success_count == 3
        assert [t.phase for t in outcome.transitions] == [
            JobPhase.CREATED,
            JobPhase.UPLOADING,
            JobPhase.CLOSED,
            JobPhase.POLLING,
            JobPhase.COMPLETED,
        ]

    def test_default_operation_from_config(self):
        bulk = MemoryBulkJobService()
        orchestrator, _ = make(bulk, default_operation="upsert")
        outcome = asyncio.run(orchestrator.run("Contact", PAYLOAD))
        assert bulk.jobs[outcome.job_id] == ("Contact", "upsert")


class TestTimeout:
    def test_never_leaving_in_progress_times_out(self):
        bulk = MemoryBulkJobService(states=["InProgress"])
        orchestrator, sleep = make(bulk)

        with pytest.raises(JobTimeoutError) as excinfo:
            asyncio.run(orchestrator.run("Contact", PAYLOAD))

        assert excinfo.value.attempts == 30
        assert isinstance(excinfo.value, TimeoutError)
        assert len(sleep.delays) == 30
        assert orchestrator.phase == JobPhase.TIMED_OUT
        assert "results" not in bulk.calls

    def test_completion_on_last_allowed_poll(self):
        bulk = MemoryBulkJobService(states=["InProgress"] * 2 + ["JobComplete"])
        orchestrator, _ = make(bulk, max_poll_attempts=3)
        outcome = asyncio.run(orchestrator.run("Contact", PAYLOAD))
        assert outcome.phase == JobPhase.COMPLETED


class TestFailures:
    @pytest.mark.parametrize("step", ["submit", "upload", "close", "poll", "results"])
    def test_transport_error_aborts_with_step(self, step):
        bulk = MemoryBulkJobService(states=["JobComplete"])
        bulk.fail_on(step)
        orchestrator, _ = make(bulk)

        with pytest.raises(TransportError) as excinfo:
            asyncio.run(orchestrator.run("Contact", PAYLOAD))

        assert excinfo.value.step == step
        assert orchestrator.phase == JobPhase.FAILED
        assert bulk.calls[-1] == step
        assert bulk.calls.count(step) == 1

    def test_remote_failed_state(self):
        bulk = MemoryBulkJobService(states=["InProgress", "Failed"])
        orchestrator, _ = make(bulk)

        with pytest.raises(JobFailedError) as excinfo:
            asyncio.run(orchestrator.run("Contact", PAYLOAD))

        assert excinfo.value.state == "Failed"
        assert orchestrator.phase == JobPhase.FAILED

    def test_rejects_run_while_active(self):
        orchestrator, _ = make(MemoryBulkJobService())
        orchestrator.phase = JobPhase.POLLING
        orchestrator.job_id = "750x"
        with pytest.raises(StateError):
            asyncio.run(orchestrator.run("Contact", PAYLOAD))

    def test_can_run_again_after_terminal_phase(self):
        bulk = MemoryBulkJobService()
        orchestrator, _ = make(bulk)
        first = asyncio.run(orchestrator.run("Contact", PAYLOAD))
        second = asyncio.run(orchestrator.run("Contact", PAYLOAD))
        assert first.job_id != second.job_id


class BrokenUploadBulkService(MemoryBulkJobService):
    async def upload_payload(self, job_id: str, csv_text: str) -> None:
        self.calls.append("upload")
        raise RuntimeError("unexpected status body")


class CancellingSleep(RecordingSleep):
    async def __call__(self, delay: float) -> None:
        await super().__call__(delay)
        raise asyncio.CancelledError()


class TestUnexpectedErrors:
    def test_non_transport_error_ends_failed_and_allows_rerun(self):
        bulk = BrokenUploadBulkService()
        orchestrator, _ = make(bulk)

        with pytest.raises(RuntimeError):
            asyncio.run(orchestrator.run("Contact", PAYLOAD))

        assert orchestrator.phase == JobPhase.FAILED
        assert not orchestrator.active
        assert orchestrator.transitions[-1].detail == "unexpected status body"

        with pytest.raises(RuntimeError):
            asyncio.run(orchestrator.run("Contact", PAYLOAD))
        assert bulk.calls == ["submit", "upload", "submit", "upload"]

    def test_cancelled_poll_ends_failed(self):
        bulk = MemoryBulkJobService(states=["InProgress"])
        orchestrator = BulkIngestOrchestrator(bulk=bulk, sleep=CancellingSleep())

        with pytest.raises(asyncio.CancelledError):
            asyncio.run(orchestrator.run("Contact", PAYLOAD))

        assert orchestrator.phase == JobPhase.FAILED
        assert orchestrator.transitions[-1].detail == "CancelledError"
        assert "poll" not in bulk.calls

    def test_submit_error_after_completed_run_ends_failed(self):
        bulk = MemoryBulkJobService()
        orchestrator, _ = make(bulk)
        asyncio.run(orchestrator.run("Contact", PAYLOAD))

        bulk.fail_on("submit")
        with pytest.raises(TransportError):
            asyncio.run(orchestrator.run("Contact", PAYLOAD))
        assert orchestrator.phase == JobPhase.FAILED
        assert orchestrator.job_id is None
