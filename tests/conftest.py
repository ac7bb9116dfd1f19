"""Shared test fixtures."""

from __future__ import annotations

import json
from collections.abc import Callable
from pathlib import Path
from typing import Any

import httpx
import pytest

from a11y_watch.config import DirectorySettings, NetworkSettings, WatchSettings
from a11y_watch.errors import CheckExecutionError
from a11y_watch.http.client import JobServerClient
from a11y_watch.models import Job, Report


class StubExecutor:
    """Check executor that records calls and returns a totals-only report."""

    def __init__(self, *, error: Exception | None = None) -> None:
        self.error = error
        self.calls: list[tuple[str, bool]] = []

    def execute(self, job: Job, *, with_items: bool) -> Report:
        self.calls.append((job.id, with_items))
        if self.error is not None:
            raise self.error
        return Report(
            job_id=job.id,
            destination=job.sources.send_report_to,
            payload={"id": job.id, "checks": [{"which": "linkTo", "result": {"totals": 0}}]},
        )


class RecordingReporter:
    def __init__(self, *, error: Exception | None = None) -> None:
        self.error = error
        self.delivered: list[Report] = []

    def deliver(self, report: Report) -> None:
        if self.error is not None:
            raise self.error
        self.delivered.append(report)


class FakeSleep:
    """Records requested waits; optionally calls ``on_sleep`` after each one."""

    def __init__(self) -> None:
        self.calls: list[float] = []
        self.on_sleep: Callable[[float], None] | None = None

    def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)
        if self.on_sleep is not None:
            self.on_sleep(seconds)


class FakeJobServers:
    """httpx handler serving scripted JSON bodies per endpoint host."""

    def __init__(self, scripts: dict[str, list[Any]]) -> None:
        self.scripts = {host: list(bodies) for host, bodies in scripts.items()}
        self.requests: list[httpx.Request] = []

    @property
    def polled_hosts(self) -> list[str]:
        return [request.url.host for request in self.requests if request.method == "GET"]

    @property
    def posts(self) -> list[httpx.Request]:
        return [request for request in self.requests if request.method == "POST"]

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.method == "POST":
            return httpx.Response(200, json={"message": "ok"})
        bodies = self.scripts[request.url.host]
        body = bodies.pop(0) if len(bodies) > 1 else bodies[0]
        if isinstance(body, Exception):
            raise body
        if isinstance(body, httpx.Response):
            return body
        if isinstance(body, str):
            return httpx.Response(200, text=body)
        return httpx.Response(200, json=body)

    def client(self, agent_id: str = "agent-1") -> JobServerClient:
        return JobServerClient(agent_id=agent_id, transport=httpx.MockTransport(self))


def write_job(todo_dir: Path, name: str, payload: dict[str, Any] | str) -> Path:
    todo_dir.mkdir(parents=True, exist_ok=True)
    path = todo_dir / name
    text = payload if isinstance(payload, str) else json.dumps(payload)
    path.write_text(text, "utf-8")
    return path


@pytest.fixture()
def queue_settings(tmp_path: Path) -> WatchSettings:
    return WatchSettings(
        directory=DirectorySettings(job_dir=tmp_path / "jobs", report_dir=tmp_path / "reports"),
    )


@pytest.fixture()
def net_settings() -> WatchSettings:
    return WatchSettings(
        network=NetworkSettings(
            job_urls=("http://s1.test/job", "http://s2.test/job"),
            agent_id="agent-1",
            idle_interval_seconds=300,
            inter_server_delay_seconds=2,
        ),
    )


@pytest.fixture()
def fake_sleep() -> FakeSleep:
    return FakeSleep()


@pytest.fixture()
def failing_executor() -> StubExecutor:
    return StubExecutor(error=CheckExecutionError("page crashed", check="labClash"))
