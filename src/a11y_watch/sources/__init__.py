"""Job sources: a local queue directory or a rotation of job servers."""

from a11y_watch.sources.base import JobSource
from a11y_watch.sources.directory import DirectoryJobSource
from a11y_watch.sources.network import NetworkJobSource, classify_response

__all__ = [
    "DirectoryJobSource",
    "JobSource",
    "NetworkJobSource",
    "classify_response",
]
