"""Watch loops that find jobs and hand them to the runner one at a time."""

from __future__ import annotations

import logging
import random
import signal
import time
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from typing import TypeVar

from a11y_watch.config import WatchSettings
from a11y_watch.errors import ConfigurationError, JobParseError, SourceReadError
from a11y_watch.models import JobFound, NoJob, WatchSummary, now_string
from a11y_watch.rotation import ServerRotation
from a11y_watch.runner import JobRunner
from a11y_watch.sources.directory import DirectoryJobSource
from a11y_watch.sources.network import NetworkJobSource

logger = logging.getLogger(__name__)

SINGLE_SHOT = -1

SourceT = TypeVar("SourceT", DirectoryJobSource, NetworkJobSource)


class Watcher:
    """Polls a job source and runs at most one job at a time.

    Directory mode checks the queue once when ``interval`` is negative and
    otherwise forever with ``interval`` seconds between checks. Network mode
    sweeps the shuffled server rotation until a job is found, then stops or
    keeps going depending on ``is_forever``.
    """

    def __init__(  # noqa: PLR0913
        self,
        *,
        settings: WatchSettings,
        runner: JobRunner,
        directory_source: DirectoryJobSource | None = None,
        network_source: NetworkJobSource | None = None,
        sleep: Callable[[float], None] | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self.settings = settings
        self.runner = runner
        self.directory_source = directory_source
        self.network_source = network_source
        self._sleep = sleep or self._sleep_with_stop
        self._rng = rng
        self._stop_requested = False

    def dir_watch(self, interval: float = SINGLE_SHOT) -> WatchSummary:
        try:
            self.settings.validate_for_directory()
            source = self._require(self.directory_source, "directory")
        except ConfigurationError as error:
            logger.error("ERROR: Directory watching not started (%s)", error)
            raise

        logger.info("Directory watching started %s(%s)", _interval_spec(interval), now_string())
        summary = WatchSummary()
        with self._signal_handlers():
            while not self._stop_requested:
                summary.polls += 1
                self._check_dir_job(source, summary)
                if interval < 0 or self._stop_requested:
                    break
                self._sleep(interval)
        logger.info("Directory watching ended (%s)", now_string())
        return summary

    def net_watch(self, *, is_forever: bool, interval: float | None = None) -> WatchSummary:
        network = self.settings.network
        validate_network_settings(self.settings)
        source = self._require(self.network_source, "network")

        idle_interval = network.idle_interval_seconds if interval is None else interval
        rotation = ServerRotation.shuffled(
            network.job_urls,
            idle_interval_seconds=idle_interval,
            inter_server_delay_seconds=network.inter_server_delay_seconds,
            rng=self._rng,
        )
        logger.info(
            "Network watching started %s(%s)",
            _interval_spec(idle_interval if is_forever else SINGLE_SHOT),
            now_string(),
        )
        summary = WatchSummary()
        with self._signal_handlers():
            while not self._stop_requested:
                if rotation.wait(self._sleep):
                    summary.idle_backoffs += 1
                if self._stop_requested:
                    break
                summary.polls += 1
                outcome = source.poll_next(rotation)
                if isinstance(outcome, JobFound):
                    summary.record_run(self.runner.run(outcome.job, source=source))
                    rotation.record_job()
                    if not is_forever:
                        break
                elif isinstance(outcome, NoJob):
                    summary.idle_polls += 1
                else:
                    summary.invalid_responses += 1
        logger.info(
            "Network watching ended after %d job(s) (%s)",
            summary.jobs_found,
            now_string(),
        )
        return summary

    def _check_dir_job(self, source: DirectoryJobSource, summary: WatchSummary) -> None:
        try:
            outcome = source.next_job()
        except SourceReadError as error:
            logger.warning("ERROR: Directory watching failed (%s)", error)
            summary.idle_polls += 1
            return
        except JobParseError as error:
            logger.warning("ERROR processing directory job (%s)", error)
            summary.invalid_responses += 1
            try:
                source.quarantine(error)
            except SourceReadError as move_error:
                logger.warning("ERROR: %s", move_error)
            return

        if isinstance(outcome, NoJob):
            logger.info("%s (%s)", outcome.message, now_string())
            summary.idle_polls += 1
            return
        if isinstance(outcome, JobFound):
            job = outcome.job
            logger.info("Directory job %s found (%s)", job.id, now_string())
            result = self.runner.run(job, source=source)
            summary.record_run(result)
            if not result.ok:
                try:
                    source.set_aside(job)
                except SourceReadError as move_error:
                    logger.warning("ERROR: %s", move_error)

    @staticmethod
    def _require(source: SourceT | None, mode: str) -> SourceT:
        if source is None:
            raise ConfigurationError(f"No {mode} job source configured")
        return source

    def _sleep_with_stop(self, seconds: float) -> None:
        deadline = time.monotonic() + seconds
        while not self._stop_requested and time.monotonic() < deadline:
            time.sleep(min(0.1, max(0.0, deadline - time.monotonic())))

    @contextmanager
    def _signal_handlers(self) -> Iterator[None]:
        if not hasattr(signal, "SIGINT"):
            yield
            return

        original_sigint = signal.getsignal(signal.SIGINT)
        original_sigterm = signal.getsignal(signal.SIGTERM)

        def _handler(signum: int, _: object | None) -> None:
            try:
                name = signal.Signals(signum).name
            except ValueError:
                name = str(signum)
            self._request_stop(signal_name=name)

        try:
            signal.signal(signal.SIGINT, _handler)
            signal.signal(signal.SIGTERM, _handler)
        except ValueError:
            # Signal handlers can only be installed in main thread.
            yield
            return
        try:
            yield
        finally:
            signal.signal(signal.SIGINT, original_sigint)
            signal.signal(signal.SIGTERM, original_sigterm)

    def _request_stop(self, *, signal_name: str) -> None:
        self._stop_requested = True
        logger.info("Received %s, stopping after the current step", signal_name)


def _interval_spec(interval: float) -> str:
    if interval > SINGLE_SHOT:
        return f"repeatedly, with {interval:g}-second intervals "
    return ""


def validate_network_settings(settings: WatchSettings) -> None:
    """Fail fast on a missing agent or a bad job server list."""

    try:
        settings.validate_for_network()
    except ConfigurationError as error:
        logger.error("ERROR: List of job URLs invalid (%s)", error)
        raise
