"""HTTP client for job servers and report destinations."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

import httpx

from a11y_watch import __version__

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 30.0
DEFAULT_MAX_RETRIES = 1


@dataclass(slots=True)
class ServerResponse:
    """Result of one request to a job server or report destination."""

    url: str
    status_code: int
    content: str
    is_success: bool
    error: str | None = None

    @property
    def transport_failed(self) -> bool:
        return self.status_code == 0


class JobServerClient:
    """httpx wrapper that tags every request with the agent id."""

    def __init__(
        self,
        *,
        agent_id: str,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        max_retries: int = DEFAULT_MAX_RETRIES,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.agent_id = agent_id
        timeout = httpx.Timeout(timeout_seconds, connect=10.0)
        headers = {"User-Agent": f"a11y-watch/{__version__} (agent {agent_id})"}
        self._client = httpx.Client(
            timeout=timeout,
            headers=headers,
            transport=transport or httpx.HTTPTransport(retries=max_retries),
            follow_redirects=True,
        )

    def request_job(self, endpoint: str) -> ServerResponse:
        """Ask one job server for work. Transport failures are returned, not raised."""

        try:
            response = self._client.get(endpoint, params={"agent": self.agent_id})
        except httpx.HTTPError as exc:
            logger.warning("HTTP error requesting job from %s: %s", endpoint, exc)
            return ServerResponse(
                url=endpoint,
                status_code=0,
                content="",
                is_success=False,
                error=str(exc) or type(exc).__name__,
            )
        return ServerResponse(
            url=endpoint,
            status_code=response.status_code,
            content=response.text,
            is_success=response.is_success,
            error=None if response.is_success else f"HTTP {response.status_code}",
        )

    def post_json(self, url: str, payload: dict[str, Any]) -> ServerResponse:
        try:
            response = self._client.post(url, params={"agent": self.agent_id}, json=payload)
        except httpx.HTTPError as exc:
            return ServerResponse(
                url=url,
                status_code=0,
                content="",
                is_success=False,
                error=str(exc) or type(exc).__name__,
            )
        return ServerResponse(
            url=url,
            status_code=response.status_code,
            content=response.text,
            is_success=response.is_success,
            error=None if response.is_success else f"HTTP {response.status_code}",
        )

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> JobServerClient:
        return self

    def __exit__(self, *_: object) -> None:
        self.close()
