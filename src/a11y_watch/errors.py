"""Error kinds raised by job sources, the runner, and configuration."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True)
class WatchError(Exception):
    """Base watcher error."""

    message: str
    code: str = "watch_error"

    def __str__(self) -> str:
        return self.message


@dataclass(slots=True)
class ConfigurationError(WatchError):
    """Fatal configuration problem detected before watching starts."""

    code: str = "configuration_error"


@dataclass(slots=True)
class SourceReadError(WatchError):
    """Queue directory could not be listed or read."""

    code: str = "source_read_error"
    location: str | None = None


@dataclass(slots=True)
class JobParseError(WatchError):
    """Job payload does not decode into a well-formed job."""

    code: str = "job_parse_error"
    location: str | None = None


@dataclass(slots=True)
class TransportError(WatchError):
    """Request to a job server or report destination failed in transit."""

    code: str = "transport_error"
    url: str | None = None


@dataclass(slots=True)
class CheckExecutionError(WatchError):
    """A check raised while a job was running."""

    code: str = "check_execution_error"
    check: str | None = None


@dataclass(slots=True)
class ReportDeliveryError(WatchError):
    """Report could not be delivered to its destination."""

    code: str = "report_delivery_error"
    destination: str | None = None


@dataclass(slots=True)
class ArchiveError(WatchError):
    """Completed job could not be archived."""

    code: str = "archive_error"
