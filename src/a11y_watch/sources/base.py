"""Common job source contracts."""

from __future__ import annotations

from typing import Protocol

from a11y_watch.models import Job


class JobSource(Protocol):
    """Interface shared by the directory queue and the job-server poller."""

    name: str

    def archive(self, job: Job) -> None:
        """Acknowledge a job whose checks ran and whose report was delivered."""
        raise NotImplementedError
