"""HTTP plumbing shared by the network job source and report delivery."""

from a11y_watch.http.client import JobServerClient, ServerResponse

__all__ = ["JobServerClient", "ServerResponse"]
