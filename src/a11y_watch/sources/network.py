"""Job-server source: polls one endpoint of the rotation per call."""

from __future__ import annotations

import json
import logging

from a11y_watch.errors import JobParseError
from a11y_watch.http.client import JobServerClient, ServerResponse
from a11y_watch.models import InvalidResponse, Job, JobFound, NoJob, PollOutcome, now_string
from a11y_watch.rotation import ServerRotation

logger = logging.getLogger(__name__)

BODY_PREVIEW_CHARS = 1000


def classify_response(endpoint: str, body: str, *, status_code: int | None = None) -> PollOutcome:
    """Map a job-server response body onto a poll outcome.

    ``{"message": ...}`` means the server has nothing for us. A job needs an
    ``id`` and ``sources.sendReportTo``. Anything else is invalid.
    """

    try:
        payload = json.loads(body)
    except json.JSONDecodeError as error:
        return InvalidResponse(
            source=endpoint,
            reason=f"unparseable response ({error.msg})",
            status_code=status_code,
            body_preview=body[:BODY_PREVIEW_CHARS],
        )
    if not isinstance(payload, dict):
        return InvalidResponse(
            source=endpoint,
            reason="response is not a JSON object",
            status_code=status_code,
            body_preview=body[:BODY_PREVIEW_CHARS],
        )

    message = payload.get("message")
    if message:
        return NoJob(source=endpoint, message=str(message))
    if not payload.get("id") or not payload.get("sources"):
        return InvalidResponse(
            source=endpoint,
            reason="invalid response",
            status_code=status_code,
            body_preview=body[:BODY_PREVIEW_CHARS],
        )
    try:
        job = Job.from_payload(payload)
    except JobParseError as error:
        reason = (
            "job with no report destination"
            if error.code == "missing_report_destination"
            else error.message
        )
        return InvalidResponse(
            source=endpoint,
            reason=reason,
            status_code=status_code,
            body_preview=body[:BODY_PREVIEW_CHARS],
        )
    return JobFound(source=endpoint, job=job)


class NetworkJobSource:
    """Requests jobs from remote servers on behalf of one agent."""

    name = "network"

    def __init__(self, client: JobServerClient) -> None:
        self.client = client

    def poll_next(self, rotation: ServerRotation) -> PollOutcome:
        """Poll the endpoint under the rotation cursor and advance the cursor."""

        endpoint = rotation.advance()
        log_start = f"Requested job from server {endpoint} and got"
        response = self.client.request_job(endpoint)
        outcome = self._classify(response)

        if isinstance(outcome, JobFound):
            logger.info(
                "%s job %s for %s (%s)",
                log_start,
                outcome.job.id,
                outcome.job.sources.send_report_to,
                now_string(),
            )
            return outcome

        rotation.record_no_job()
        if isinstance(outcome, NoJob):
            logger.info("%s %s", log_start, outcome.message)
            return outcome

        if outcome.transport_failure:
            logger.warning("%s error message %s", log_start, outcome.reason)
            return outcome

        logger.warning(
            "%s %s: status %s, response %s",
            log_start,
            outcome.reason,
            outcome.status_code,
            outcome.body_preview,
        )
        self._report_invalid(outcome)
        return outcome

    def archive(self, job: Job) -> None:
        """Nothing to acknowledge: a server hands each job out only once."""

    def _classify(self, response: ServerResponse) -> PollOutcome:
        if response.transport_failed:
            return InvalidResponse(
                source=response.url,
                reason=response.error or "transport error",
                transport_failure=True,
            )
        outcome = classify_response(
            response.url,
            response.content,
            status_code=response.status_code,
        )
        if not response.is_success and isinstance(outcome, InvalidResponse):
            return InvalidResponse(
                source=outcome.source,
                reason=f"{response.error}, {outcome.reason}",
                status_code=outcome.status_code,
                body_preview=outcome.body_preview,
                transport_failure=True,
            )
        return outcome

    def _report_invalid(self, outcome: InvalidResponse) -> None:
        """Tell the server its payload was rejected. Best effort."""

        reply = self.client.post_json(
            outcome.source,
            {"message": f"ERROR: agent {self.client.agent_id} got {outcome.reason}"},
        )
        if not reply.is_success:
            logger.warning(
                "Could not notify %s of invalid response: %s",
                outcome.source,
                reply.error,
            )
