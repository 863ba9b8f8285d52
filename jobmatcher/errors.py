"""Error taxonomy shared by tools, the turn controller and the adapters."""
from __future__ import annotations


class JobMatcherError(Exception):
    """Base error. ``retryable`` tells the caller whether re-running the turn can help."""

    retryable: bool = False


class Unauthenticated(JobMatcherError):
    """The caller has no verified identity."""

    def __init__(self, message: str = "Not authenticated") -> None:
        super().__init__(message)


class NoThreadContext(JobMatcherError):
    """A thread-scoped tool ran outside a conversation thread."""

    def __init__(self, message: str = "No thread context") -> None:
        super().__init__(message)


class ThreadNotFound(JobMatcherError):
    """Unknown thread id, or a thread owned by someone else."""


class ProtocolViolation(JobMatcherError):
    """The model emitted a tool-call sequence the turn protocol does not allow."""

    retryable = True

    def __init__(self, message: str, *, tool_name: str | None = None) -> None:
        super().__init__(message)
        self.tool_name = tool_name


class UpstreamError(JobMatcherError):
    """The search index or the model provider failed after client-side retries."""

    retryable = True

    def __init__(self, service: str, message: str) -> None:
        super().__init__(f"{service}: {message}")
        self.service = service
