"""Report delivery to job servers or a local report directory."""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Protocol
from urllib.parse import urlparse

from a11y_watch.errors import ReportDeliveryError, TransportError
from a11y_watch.http.client import JobServerClient
from a11y_watch.models import Report

logger = logging.getLogger(__name__)


class ReportSink(Protocol):
    """Delivers a finished report to the destination the job named."""

    def deliver(self, report: Report) -> None:
        """Deliver or raise ``ReportDeliveryError`` or ``TransportError``."""
        raise NotImplementedError


def is_url_destination(destination: str) -> bool:
    parsed = urlparse(destination)
    return parsed.scheme in {"http", "https"} and bool(parsed.netloc)


class ReportDispatcher:
    """POSTs reports to URL destinations and writes the rest to ``report_dir``."""

    def __init__(
        self,
        *,
        client: JobServerClient | None = None,
        report_dir: Path | None = None,
    ) -> None:
        self.client = client
        self.report_dir = report_dir

    def deliver(self, report: Report) -> None:
        body = _encode(report)
        if is_url_destination(report.destination):
            self._post(report)
        else:
            self._write(report, body)

    def _post(self, report: Report) -> None:
        if self.client is None:
            raise ReportDeliveryError(
                f"No HTTP client available to send report {report.job_id}",
                destination=report.destination,
            )
        response = self.client.post_json(report.destination, report.payload)
        if response.transport_failed:
            raise TransportError(
                f"Cannot reach {report.destination} to send report {report.job_id} "
                f"({response.error})",
                url=report.destination,
            )
        if not response.is_success:
            raise ReportDeliveryError(
                f"Report {report.job_id} rejected by {report.destination} ({response.error})",
                destination=report.destination,
            )
        logger.info("Report %s sent to %s", report.job_id, report.destination)

    def _write(self, report: Report, body: str) -> None:
        if self.report_dir is None:
            raise ReportDeliveryError(
                f"No report directory configured for report {report.job_id}. Set REPORTDIR.",
                destination=report.destination,
            )
        path = self.report_dir / f"{_file_stem(report.job_id)}.json"
        try:
            self.report_dir.mkdir(parents=True, exist_ok=True)
            path.write_text(body, "utf-8")
        except OSError as error:
            raise ReportDeliveryError(
                f"Cannot write report {report.job_id} to {path} ({error})",
                destination=report.destination,
            ) from error
        logger.info("Report %s saved in %s", report.job_id, self.report_dir)


def _file_stem(job_id: str) -> str:
    return re.sub(r"[^\w.-]", "_", job_id).lstrip(".") or "report"


def _encode(report: Report) -> str:
    try:
        return report.to_json()
    except (TypeError, ValueError) as error:
        raise ReportDeliveryError(
            f"Report {report.job_id} cannot be serialized as JSON ({error})",
            destination=report.destination,
        ) from error
