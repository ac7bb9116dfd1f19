"""Check execution seam between the job runner and browser-driven checks."""

from __future__ import annotations

import importlib
import logging
from collections.abc import Callable, Mapping
from contextlib import AbstractContextManager
from typing import Any, Protocol

from a11y_watch.errors import CheckExecutionError, ConfigurationError
from a11y_watch.models import Job, Report, now_string

logger = logging.getLogger(__name__)

CheckFunction = Callable[[Any, bool], dict[str, Any]]
PageProvider = Callable[[Job], AbstractContextManager[Any]]


class CheckExecutor(Protocol):
    """Runs a job's checks and returns the report to deliver."""

    def execute(self, job: Job, *, with_items: bool) -> Report:
        """Run checks or raise ``CheckExecutionError``."""
        raise NotImplementedError


class RegistryCheckExecutor:
    """Runs the checks a job names from a name-to-function registry.

    A job lists its checks under ``checks`` as ``{"which": <name>}`` objects,
    optionally with a per-check ``withItems`` override. Each check receives a
    page handle opened by ``page_provider`` for the whole job.
    """

    def __init__(
        self,
        *,
        registry: Mapping[str, CheckFunction],
        page_provider: PageProvider,
        agent_id: str = "",
    ) -> None:
        self.registry = dict(registry)
        self.page_provider = page_provider
        self.agent_id = agent_id

    def execute(self, job: Job, *, with_items: bool) -> Report:
        specs = _check_specs(job)
        unknown = [spec["which"] for spec in specs if spec["which"] not in self.registry]
        if unknown:
            raise CheckExecutionError(
                f"Job {job.id} names unknown checks: {', '.join(unknown)}",
                check=unknown[0],
            )

        start_time = now_string()
        results: list[dict[str, Any]] = []
        with self.page_provider(job) as page:
            for spec in specs:
                name = spec["which"]
                check_items = bool(spec.get("withItems", with_items))
                try:
                    result = self.registry[name](page, check_items)
                except Exception as error:  # noqa: BLE001
                    raise CheckExecutionError(
                        f"Check {name} failed for job {job.id} ({error})",
                        check=name,
                    ) from error
                logger.debug("Check %s finished for job %s", name, job.id)
                results.append({**spec, "result": result})

        payload = dict(job.payload)
        payload["jobData"] = {
            "agent": self.agent_id,
            "startTime": start_time,
            "endTime": now_string(),
        }
        payload["checks"] = results
        return Report(job_id=job.id, destination=job.sources.send_report_to, payload=payload)


def _check_specs(job: Job) -> list[dict[str, Any]]:
    raw = job.payload.get("checks", [])
    if not isinstance(raw, list):
        raise CheckExecutionError(f"Job {job.id} checks must be a list")
    specs: list[dict[str, Any]] = []
    for index, item in enumerate(raw):
        if isinstance(item, str):
            item = {"which": item}
        if not isinstance(item, dict) or not isinstance(item.get("which"), str):
            raise CheckExecutionError(f"Job {job.id} check #{index} has no name")
        specs.append(item)
    return specs


def load_executor(path: str, **kwargs: Any) -> CheckExecutor:
    """Import ``module:attr`` and call it to build a check executor."""

    module_name, _, attr = path.partition(":")
    if not module_name or not attr:
        raise ConfigurationError(
            f"Invalid executor path {path!r}. Expected 'package.module:factory'.",
        )
    try:
        module = importlib.import_module(module_name)
        factory = getattr(module, attr)
    except (ImportError, AttributeError) as error:
        raise ConfigurationError(f"Cannot load executor {path!r} ({error})") from error
    executor = factory(**kwargs)
    if not hasattr(executor, "execute"):
        raise ConfigurationError(f"Executor factory {path!r} returned no executor")
    return executor
