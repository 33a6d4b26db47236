"""In-process job runner executing webhook work on worker threads."""

from __future__ import annotations

import threading
import time
from uuid import uuid4

from src.config.logging_config import get_logger
from src.ports.job_runner import JobHandler, JobRunnerPort

logger = get_logger(__name__)


class InProcessJobRunner(JobRunnerPort):
    """Job runner starting one daemon thread per job.

    Jobs are independent: a failing job is logged without affecting its
    siblings. Only running jobs are tracked; a job is forgotten once its
    handler returns or raises.
    """

    def __init__(self, handlers: dict[str, JobHandler]):
        if not handlers:
            raise ValueError("handlers must not be empty")
        self._handlers = handlers
        self._running: dict[str, threading.Thread] = {}
        self._lock = threading.Lock()

    def submit(self, name: str, params: dict[str, object]) -> str:
        handler = self._handlers.get(name)
        if handler is None:
            raise KeyError(f"Unknown job name: {name}")

        job_id = str(uuid4())
        thread = threading.Thread(
            target=self._execute_job,
            args=(job_id, name, handler, dict(params)),
            name=f"job-{name}-{job_id[:8]}",
            daemon=True,
        )
        with self._lock:
            self._running[job_id] = thread

        logger.info("job_submitted", job_id=job_id, job_name=name)
        thread.start()
        return job_id

    def wait(self, timeout: float | None = None) -> bool:
        deadline = None if timeout is None else time.monotonic() + timeout
        with self._lock:
            threads = list(self._running.values())

        for thread in threads:
            remaining = None if deadline is None else max(deadline - time.monotonic(), 0)
            thread.join(remaining)
            if thread.is_alive():
                logger.warning("job_wait_timed_out", thread=thread.name)
                return False
        return True

    # Internal helpers -------------------------------------------------

    def _execute_job(
        self, job_id: str, name: str, handler: JobHandler, params: dict[str, object]
    ) -> None:
        start_time = time.perf_counter()
        try:
            result = handler(params)
        except Exception:  # noqa: BLE001
            logger.exception("job_failed", job_id=job_id, job_name=name)
        else:
            logger.info(
                "job_completed",
                job_id=job_id,
                job_name=name,
                result=result,
                duration_seconds=time.perf_counter() - start_time,
            )
        finally:
            with self._lock:
                self._running.pop(job_id, None)


__all__ = ["InProcessJobRunner"]
