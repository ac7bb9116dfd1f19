"""Runtime configuration for directory and network job watching."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from urllib.parse import urlparse

from a11y_watch.errors import ConfigurationError

DEFAULT_IDLE_INTERVAL_SECONDS = 300.0
DEFAULT_INTER_SERVER_DELAY_SECONDS = 2.0
JOB_URL_SEPARATOR = "+"


@dataclass(slots=True)
class DirectorySettings:
    """Filesystem queue layout."""

    job_dir: Path | None = None
    report_dir: Path | None = None
    todo_subdir: str = "todo"
    done_subdir: str = "done"
    invalid_subdir: str = "invalid"
    failed_subdir: str = "failed"
    job_suffix: str = ".json"

    @property
    def todo_dir(self) -> Path:
        return self._root() / self.todo_subdir

    @property
    def done_dir(self) -> Path:
        return self._root() / self.done_subdir

    @property
    def invalid_dir(self) -> Path:
        return self._root() / self.invalid_subdir

    @property
    def failed_dir(self) -> Path:
        return self._root() / self.failed_subdir

    def _root(self) -> Path:
        if self.job_dir is None:
            raise ConfigurationError("Job directory is not configured. Set JOBDIR.")
        return self.job_dir


@dataclass(slots=True)
class NetworkSettings:
    """Remote job server polling settings."""

    job_urls: tuple[str, ...] = ()
    agent_id: str = ""
    idle_interval_seconds: float = DEFAULT_IDLE_INTERVAL_SECONDS
    inter_server_delay_seconds: float = DEFAULT_INTER_SERVER_DELAY_SECONDS
    request_timeout_seconds: float = 30.0
    max_retries: int = 1


@dataclass(slots=True)
class RunnerSettings:
    """Job execution settings."""

    with_items: bool = False
    executor_path: str | None = None


@dataclass(slots=True)
class WatchSettings:
    """Watcher settings grouped by concern."""

    directory: DirectorySettings = field(default_factory=DirectorySettings)
    network: NetworkSettings = field(default_factory=NetworkSettings)
    runner: RunnerSettings = field(default_factory=RunnerSettings)

    @classmethod
    def from_env(cls) -> WatchSettings:
        """Load settings from the process environment."""

        job_dir = os.getenv("JOBDIR", "").strip()
        report_dir = os.getenv("REPORTDIR", "").strip()
        return cls(
            directory=DirectorySettings(
                job_dir=Path(job_dir) if job_dir else None,
                report_dir=Path(report_dir) if report_dir else None,
                job_suffix=os.getenv("A11Y_WATCH_JOB_SUFFIX", ".json"),
            ),
            network=NetworkSettings(
                job_urls=parse_job_urls(os.getenv("JOB_URLS", "")),
                agent_id=os.getenv("AGENT", "").strip(),
                idle_interval_seconds=_env_float(
                    "A11Y_WATCH_IDLE_INTERVAL_SECONDS",
                    DEFAULT_IDLE_INTERVAL_SECONDS,
                ),
                inter_server_delay_seconds=_env_float(
                    "A11Y_WATCH_INTER_SERVER_DELAY_SECONDS",
                    DEFAULT_INTER_SERVER_DELAY_SECONDS,
                ),
                request_timeout_seconds=_env_float(
                    "A11Y_WATCH_REQUEST_TIMEOUT_SECONDS",
                    30.0,
                ),
                max_retries=int(_env_float("A11Y_WATCH_MAX_RETRIES", 1)),
            ),
            runner=RunnerSettings(
                with_items=_env_bool("A11Y_WATCH_WITH_ITEMS", default=False),
                executor_path=os.getenv("A11Y_WATCH_EXECUTOR") or None,
            ),
        )

    def validate_for_directory(self) -> None:
        """Raise configuration error if the queue directory is unusable."""

        if self.directory.job_dir is None:
            raise ConfigurationError("Job directory is not configured. Set JOBDIR.")
        if not self.directory.job_suffix:
            raise ConfigurationError("Job file suffix must not be empty.")

    def validate_for_network(self) -> None:
        """Raise configuration error if the endpoint list or agent id is unusable."""

        if not self.network.job_urls:
            raise ConfigurationError(
                "At least one job server URL is required. Set JOB_URLS.",
            )
        for url in self.network.job_urls:
            validate_job_url(url)
        if not self.network.agent_id:
            raise ConfigurationError("Agent id is required. Set AGENT.")
        if self.network.idle_interval_seconds < 0:
            raise ConfigurationError("Idle interval must be >= 0.")
        if self.network.inter_server_delay_seconds < 0:
            raise ConfigurationError("Inter-server delay must be >= 0.")


def parse_job_urls(raw: str) -> tuple[str, ...]:
    """Split a ``+``-joined endpoint list, dropping blanks and duplicates."""

    deduped: list[str] = []
    seen: set[str] = set()
    for part in raw.split(JOB_URL_SEPARATOR):
        normalized = part.strip()
        if not normalized or normalized in seen:
            continue
        seen.add(normalized)
        deduped.append(normalized)
    return tuple(deduped)


def validate_job_url(value: str) -> None:
    parsed = urlparse(value)
    if parsed.scheme not in {"http", "https"} or not parsed.netloc:
        raise ConfigurationError(
            "Invalid job server URL: "
            f"{value!r}. Expected an absolute URL with http:// or https:// scheme.",
        )


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return float(default)
    try:
        return float(raw)
    except ValueError as error:
        raise ValueError(f"Invalid numeric value for {name}: {raw!r}") from error


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "on"}:
        return True
    if normalized in {"0", "false", "no", "off"}:
        return False
    raise ValueError(f"Invalid boolean value for {name}: {value!r}")
