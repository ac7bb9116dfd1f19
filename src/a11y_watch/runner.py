"""Runs one job end to end: execute checks, deliver the report, archive."""

from __future__ import annotations

import logging

from a11y_watch.checks import CheckExecutor
from a11y_watch.models import Job, JobRunResult, RunStage, now_string
from a11y_watch.reporting import ReportSink
from a11y_watch.sources.base import JobSource

logger = logging.getLogger(__name__)


class JobRunner:
    """Drives a job through its stages without letting failures escape.

    A failing stage ends the job; later stages do not run. Archiving happens
    only after the report was delivered. The watch loop decides what to do
    with a job whose run failed.
    """

    def __init__(
        self,
        *,
        executor: CheckExecutor,
        reporter: ReportSink,
        with_items: bool = False,
    ) -> None:
        self.executor = executor
        self.reporter = reporter
        self.with_items = with_items

    def run(self, job: Job, *, source: JobSource) -> JobRunResult:
        logger.info("Job %s started (%s)", job.id, now_string())

        try:
            report = self.executor.execute(job, with_items=self.with_items)
        except Exception as error:  # noqa: BLE001
            return self._failed(job, RunStage.EXECUTE, error)
        logger.info("Job %s finished (%s)", job.id, now_string())

        try:
            self.reporter.deliver(report)
        except Exception as error:  # noqa: BLE001
            return self._failed(job, RunStage.REPORT, error)

        try:
            source.archive(job)
        except Exception as error:  # noqa: BLE001
            return self._failed(job, RunStage.ARCHIVE, error)

        return JobRunResult(job_id=job.id, ok=True)

    def _failed(self, job: Job, stage: RunStage, error: Exception) -> JobRunResult:
        logger.error(
            "ERROR: job %s failed at %s stage (%s)",
            job.id,
            stage.value,
            error,
        )
        return JobRunResult(
            job_id=job.id,
            ok=False,
            failed_stage=stage,
            error=str(error) or type(error).__name__,
        )
