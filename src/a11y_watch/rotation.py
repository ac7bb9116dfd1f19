"""Randomized round-robin over job servers with two-tier backoff."""

from __future__ import annotations

import random
from collections.abc import Callable
from dataclasses import dataclass

from a11y_watch.config import DEFAULT_IDLE_INTERVAL_SECONDS, DEFAULT_INTER_SERVER_DELAY_SECONDS


@dataclass(slots=True)
class ServerRotation:
    """Cyclic endpoint order plus the consecutive no-job counter.

    The endpoint order is shuffled once per watch session. Once every endpoint
    in a full cycle has come back without a job, the next poll waits the idle
    interval; otherwise it waits only the short inter-server delay.
    """

    endpoints: tuple[str, ...]
    idle_interval_seconds: float = DEFAULT_IDLE_INTERVAL_SECONDS
    inter_server_delay_seconds: float = DEFAULT_INTER_SERVER_DELAY_SECONDS
    cursor: int = 0
    no_job_count: int = 0

    @classmethod
    def shuffled(
        cls,
        endpoints: tuple[str, ...] | list[str],
        *,
        idle_interval_seconds: float = DEFAULT_IDLE_INTERVAL_SECONDS,
        inter_server_delay_seconds: float = DEFAULT_INTER_SERVER_DELAY_SECONDS,
        rng: random.Random | None = None,
    ) -> ServerRotation:
        order = list(endpoints)
        (rng or random.Random()).shuffle(order)  # noqa: S311
        return cls(
            endpoints=tuple(order),
            idle_interval_seconds=idle_interval_seconds,
            inter_server_delay_seconds=inter_server_delay_seconds,
        )

    def __post_init__(self) -> None:
        if not self.endpoints:
            raise ValueError("Server rotation needs at least one endpoint")

    @property
    def current(self) -> str:
        return self.endpoints[self.cursor % len(self.endpoints)]

    @property
    def cycle_exhausted(self) -> bool:
        return self.no_job_count >= len(self.endpoints)

    def wait(self, sleep: Callable[[float], None]) -> bool:
        """Sleep before the next poll. Returns True when the idle interval was used."""

        if self.cycle_exhausted:
            sleep(self.idle_interval_seconds)
            self.no_job_count = 0
            return True
        sleep(self.inter_server_delay_seconds)
        return False

    def advance(self) -> str:
        """Return the endpoint to poll now and move the cursor past it."""

        endpoint = self.current
        self.cursor = (self.cursor + 1) % len(self.endpoints)
        return endpoint

    def record_no_job(self) -> None:
        self.no_job_count += 1

    def record_job(self) -> None:
        self.no_job_count = 0
