"""Domain models for audit jobs, poll outcomes, and watch accounting."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from pathlib import Path
from typing import Any

from a11y_watch.errors import JobParseError


def utc_now() -> datetime:
    return datetime.now(tz=UTC)


def now_string() -> str:
    """Timestamp used in log lines and report metadata, second precision."""

    return utc_now().strftime("%Y-%m-%dT%H:%M:%S")


@dataclass(slots=True, frozen=True)
class JobSources:
    """Where a job came from and where its report goes."""

    send_report_to: str
    extra: dict[str, Any] = field(default_factory=dict)


@dataclass(slots=True)
class Job:
    """One unit of requested audit work."""

    id: str
    sources: JobSources
    payload: dict[str, Any]
    origin: Path | None = None

    @classmethod
    def from_payload(cls, payload: object, *, origin: Path | None = None) -> Job:
        """Validate a decoded job document.

        A job needs a non-empty ``id`` and a ``sources`` object carrying a
        non-empty ``sendReportTo``. Everything else is kept verbatim for the
        check executor.
        """

        location = str(origin) if origin is not None else None
        if not isinstance(payload, dict):
            raise JobParseError("Job payload must be a JSON object", location=location)
        job_id = payload.get("id")
        if not job_id or not isinstance(job_id, str):
            raise JobParseError("Job has no id", location=location)
        sources = payload.get("sources")
        if not isinstance(sources, dict):
            raise JobParseError(f"Job {job_id} has no sources", location=location)
        send_report_to = sources.get("sendReportTo")
        if not send_report_to or not isinstance(send_report_to, str):
            raise JobParseError(
                f"Job {job_id} has no report destination",
                code="missing_report_destination",
                location=location,
            )
        extra = {key: value for key, value in sources.items() if key != "sendReportTo"}
        return cls(
            id=job_id,
            sources=JobSources(send_report_to=send_report_to, extra=extra),
            payload=payload,
            origin=origin,
        )

    @classmethod
    def from_json(cls, text: str, *, origin: Path | None = None) -> Job:
        try:
            payload = json.loads(text)
        except json.JSONDecodeError as error:
            raise JobParseError(
                f"Job is not valid JSON ({error.msg})",
                location=str(origin) if origin is not None else None,
            ) from error
        return cls.from_payload(payload, origin=origin)


@dataclass(slots=True)
class Report:
    """Structured result of running a job's checks."""

    job_id: str
    destination: str
    payload: dict[str, Any]

    def to_json(self) -> str:
        return json.dumps(self.payload, ensure_ascii=False, indent=2)


@dataclass(slots=True, frozen=True)
class NoJob:
    """Source had nothing to do."""

    source: str
    message: str | None = None


@dataclass(slots=True, frozen=True)
class JobFound:
    """Source handed over a job."""

    source: str
    job: Job


@dataclass(slots=True, frozen=True)
class InvalidResponse:
    """Source answered with something that is neither a message nor a job."""

    source: str
    reason: str
    status_code: int | None = None
    body_preview: str = ""
    transport_failure: bool = False


PollOutcome = NoJob | JobFound | InvalidResponse


class RunStage(str, Enum):
    """Job runner stages in execution order."""

    EXECUTE = "execute"
    REPORT = "report"
    ARCHIVE = "archive"


@dataclass(slots=True)
class JobRunResult:
    """Outcome of driving one job through the runner."""

    job_id: str
    ok: bool
    failed_stage: RunStage | None = None
    error: str | None = None


@dataclass(slots=True)
class WatchSummary:
    """Aggregate watch counters for CLI reporting."""

    polls: int = 0
    jobs_found: int = 0
    jobs_succeeded: int = 0
    jobs_failed: int = 0
    idle_polls: int = 0
    invalid_responses: int = 0
    idle_backoffs: int = 0

    def record_run(self, result: JobRunResult) -> None:
        self.jobs_found += 1
        if result.ok:
            self.jobs_succeeded += 1
        else:
            self.jobs_failed += 1
