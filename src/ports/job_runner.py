"""Port definition for background job execution."""

from __future__ import annotations

from collections.abc import Callable
from typing import Protocol, runtime_checkable

JobHandler = Callable[[dict[str, object]], dict[str, object] | None]
"""Callable run by a job runner with the submitted params."""


@runtime_checkable
class JobRunnerPort(Protocol):
    """Interface for submitting background jobs and draining them."""

    def submit(self, name: str, params: dict[str, object]) -> str:
        """Schedule a job for asynchronous execution.

        Args:
            name: Logical job name.
            params: Job parameters handed to the registered handler.

        Returns:
            Unique identifier for the submitted job.
        """

    def wait(self, timeout: float | None = None) -> bool:
        """Block until every submitted job has finished.

        Returns:
            True if all jobs finished within ``timeout``.
        """


__all__ = ["JobHandler", "JobRunnerPort"]
