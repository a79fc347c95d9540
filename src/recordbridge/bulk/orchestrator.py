"""BulkIngestOrchestrator — drives one bulk job from submission to results.

State machine (batch):
    Created -> Uploading -> Closed -> Polling -> Completed | CompletedWithFailures
    any step may end in Failed; Polling may end in TimedOut.

Submit/upload/close failures are reported immediately, never retried. Polling
uses a fixed interval and attempt bound rather than backoff. The sleep and
clock are injected so tests can run the loop without waiting.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import Callable

from recordbridge.core.config import BulkJobConfig
from recordbridge.core.exceptions import JobFailedError, JobTimeoutError, StateError
from recordbridge.core.protocols import IBulkJobService
from recordbridge.core.types import SleepFn
from recordbridge.models.bulk import (
    TERMINAL_PHASES,
    BulkJob,
    BulkJobOutcome,
    JobPhase,
    PhaseTransition,
)

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class BulkIngestOrchestrator:
    """Runs submit -> upload -> close -> poll -> results for a single job at a time."""

    def __init__(
        self,
        *,
        bulk: IBulkJobService,
        config: BulkJobConfig | None = None,
        sleep: SleepFn = asyncio.sleep,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._bulk = bulk
        self._config = config or BulkJobConfig()
        self._sleep = sleep
        self._clock = clock
        self.phase: JobPhase | None = None
        self.job_id: str | None = None
        self.transitions: list[PhaseTransition] = []

    @property
    def active(self) -> bool:
        return self.phase is not None and self.phase not in TERMINAL_PHASES

    def _enter(self, phase: JobPhase, detail: str = "") -> None:
        self.phase = phase
        self.transitions.append(PhaseTransition(phase=phase, at=self._clock(), detail=detail))
        logger.info("bulk job %s -> %s%s", self.job_id or "-", phase, f" ({detail})" if detail else "")

    def _fail(self, exc: BaseException) -> None:
        self._enter(JobPhase.FAILED, str(exc) or type(exc).__name__)

    async def run(
        self, object_name: str, csv_text: str, operation: str | None = None
    ) -> BulkJobOutcome:
        """Execute the full lifecycle and return the terminal outcome.

        Any exception, cancellation included, leaves the orchestrator in a
        terminal phase so a later ``run`` is accepted.

        Raises:
            TransportError: submit, upload, close, poll or results call failed.
            JobTimeoutError: job still in progress after ``max_poll_attempts`` polls.
            JobFailedError: remote reported the job Failed or Aborted.
        """
        if self.active:
            raise StateError(f"bulk job {self.job_id} is still {self.phase}")

        operation = operation or self._config.default_operation
        self.phase = None
        self.job_id = None
        self.transitions = []

        try:
            return await self._lifecycle(object_name, csv_text, operation)
        except BaseException as exc:
            if self.phase is None or self.active:
                self._fail(exc)
            raise

    async def _lifecycle(self, object_name: str, csv_text: str, operation: str) -> BulkJobOutcome:
        self.job_id = await self._bulk.submit_job(object_name, operation)
        self._enter(JobPhase.CREATED, f"{operation} {object_name}")

        # an upload failure leaves the job open remotely; nothing here aborts it
        self._enter(JobPhase.UPLOADING)
        await self._bulk.upload_payload(self.job_id, csv_text)

        await self._bulk.close_job(self.job_id)
        self._enter(JobPhase.CLOSED)

        status, polls = await self._poll_until_done(self.job_id)

        if status.failed:
            exc = JobFailedError(self.job_id, status.state, status.error_message)
            self._fail(exc)
            raise exc

        results = await self._bulk.fetch_results(self.job_id)

        phase = (
            JobPhase.COMPLETED_WITH_FAILURES
            if status.number_records_failed > 0
            else JobPhase.COMPLETED
        )
        self._enter(
            phase,
            f"processed={status.number_records_processed} failed={status.number_records_failed}",
        )
        return BulkJobOutcome(
            job_id=self.job_id,
            phase=phase,
            state=status.state,
            records_processed=status.number_records_processed,
            records_failed=status.number_records_failed,
            successful_results=results.successful,
            failed_results=results.failed,
            poll_attempts=polls,
            transitions=list(self.transitions),
        )

    async def _poll_until_done(self, job_id: str) -> tuple[BulkJob, int]:
        self._enter(JobPhase.POLLING)
        in_progress_polls = 0
        polls = 0
        while True:
            await self._sleep(self._config.poll_interval)
            status = await self._bulk.poll_job(job_id)
            polls += 1
            if not status.in_progress:
                return status, polls

            in_progress_polls += 1
            logger.debug("bulk job %s still %s (poll %d)", job_id, status.state, polls)
            if in_progress_polls >= self._config.max_poll_attempts:
                exc = JobTimeoutError(job_id, in_progress_polls)
                self._enter(JobPhase.TIMED_OUT, str(exc))
                raise exc
