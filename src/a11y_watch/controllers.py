"""Controllers for watch CLI commands."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, replace

from a11y_watch.checks import CheckExecutor, load_executor
from a11y_watch.config import WatchSettings
from a11y_watch.errors import ConfigurationError
from a11y_watch.http.client import JobServerClient
from a11y_watch.models import WatchSummary
from a11y_watch.reporting import ReportDispatcher
from a11y_watch.runner import JobRunner
from a11y_watch.sources.directory import DirectoryJobSource
from a11y_watch.sources.network import NetworkJobSource
from a11y_watch.watcher import SINGLE_SHOT, Watcher, validate_network_settings


@dataclass(slots=True)
class DirWatchCommand:
    """CLI input for directory watching."""

    interval: float = SINGLE_SHOT
    executor_path: str | None = None
    with_items: bool | None = None


@dataclass(slots=True)
class NetWatchCommand:
    """CLI input for network watching."""

    is_forever: bool = False
    interval: float | None = None
    executor_path: str | None = None
    with_items: bool | None = None


class WatchCliController:
    """Wires settings, sources, runner, and watcher for one CLI invocation."""

    def __init__(self, settings: WatchSettings | None = None) -> None:
        self._settings = settings

    def dir_watch(self, command: DirWatchCommand) -> list[str]:
        settings = self._resolve_settings(command.executor_path, command.with_items)
        with _client(settings) as client:
            watcher = Watcher(
                settings=settings,
                runner=_runner(settings, client),
                directory_source=DirectoryJobSource(settings.directory),
            )
            summary = watcher.dir_watch(command.interval)
        return [_summary_line("Directory", summary)]

    def net_watch(self, command: NetWatchCommand) -> list[str]:
        settings = self._resolve_settings(command.executor_path, command.with_items)
        validate_network_settings(settings)
        with _client(settings) as client:
            watcher = Watcher(
                settings=settings,
                runner=_runner(settings, client),
                network_source=NetworkJobSource(client),
            )
            summary = watcher.net_watch(is_forever=command.is_forever, interval=command.interval)
        return [_summary_line("Network", summary)]

    def _resolve_settings(
        self,
        executor_path: str | None,
        with_items: bool | None,
    ) -> WatchSettings:
        settings = self._settings or WatchSettings.from_env()
        runner = settings.runner
        if executor_path:
            runner = replace(runner, executor_path=executor_path)
        if with_items is not None:
            runner = replace(runner, with_items=with_items)
        return replace(settings, runner=runner)


@contextmanager
def _client(settings: WatchSettings) -> Iterator[JobServerClient]:
    client = JobServerClient(
        agent_id=settings.network.agent_id or "local",
        timeout_seconds=settings.network.request_timeout_seconds,
        max_retries=settings.network.max_retries,
    )
    try:
        yield client
    finally:
        client.close()


def _runner(settings: WatchSettings, client: JobServerClient) -> JobRunner:
    return JobRunner(
        executor=_executor(settings),
        reporter=ReportDispatcher(client=client, report_dir=settings.directory.report_dir),
        with_items=settings.runner.with_items,
    )


def _executor(settings: WatchSettings) -> CheckExecutor:
    if not settings.runner.executor_path:
        raise ConfigurationError(
            "No check executor configured. Set A11Y_WATCH_EXECUTOR or pass --executor.",
        )
    return load_executor(settings.runner.executor_path, agent_id=settings.network.agent_id)


def _summary_line(mode: str, summary: WatchSummary) -> str:
    return (
        f"{mode} watch summary: "
        f"polls={summary.polls} jobs={summary.jobs_found} "
        f"succeeded={summary.jobs_succeeded} failed={summary.jobs_failed} "
        f"idle_polls={summary.idle_polls} invalid={summary.invalid_responses} "
        f"idle_backoffs={summary.idle_backoffs}"
    )
