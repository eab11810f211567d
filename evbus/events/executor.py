"""Worker pool for asynchronous dispatch.

A fixed-size thread pool, sized to the host's parallelism unless
configured otherwise. Submission is fire-and-forget: no future is returned
to the caller and the queue is unbounded. Each unit runs in a copy of the
submitting thread's context, so the event logging context follows it
onto the worker.
"""

import contextvars
import os
from concurrent.futures import ThreadPoolExecutor
from threading import Lock
from typing import Any, Callable, Optional

from evbus.configuration import settings
from evbus.logging import get_module_logger

logger = get_module_logger()


def default_worker_count() -> int:
    """Worker count from settings, else the host CPU count."""
    return settings.events.worker_count or os.cpu_count() or 1


class WorkerPool:
    """Lazily created, fixed-size pool shared by all async dispatch units.

    The worker count is read once, when the executor is created. After
    ``shutdown`` further submissions are dropped and logged.
    """

    def __init__(
        self,
        max_workers: Optional[int] = None,
        thread_name_prefix: Optional[str] = None,
    ):
        self._max_workers = max_workers
        self._thread_name_prefix = (
            thread_name_prefix or settings.events.thread_name_prefix
        )
        self._executor: Optional[ThreadPoolExecutor] = None
        self._lock = Lock()
        self._shutdown = False

    @property
    def max_workers(self) -> Optional[int]:
        """Configured size; None until the pool starts if left to default."""
        return self._max_workers

    @property
    def is_running(self) -> bool:
        with self._lock:
            return self._executor is not None

    @property
    def is_shutdown(self) -> bool:
        with self._lock:
            return self._shutdown

    def _get_or_create_executor(self) -> Optional[ThreadPoolExecutor]:
        """Create the executor if needed.

        Returns None when the pool has been explicitly shut down.
        """
        with self._lock:
            if self._shutdown:
                return None
            if self._executor is None:
                if self._max_workers is None:
                    self._max_workers = default_worker_count()
                self._executor = ThreadPoolExecutor(
                    max_workers=self._max_workers,
                    thread_name_prefix=self._thread_name_prefix,
                )
                logger.debug(
                    "created_event_worker_pool",
                    max_workers=self._max_workers,
                )
            return self._executor

    def start(self) -> None:
        """Explicitly start the pool (optional; it starts on first submit)."""
        self._get_or_create_executor()

    def submit(self, fn: Callable[..., Any], *args: Any) -> bool:
        """Run ``fn(*args)`` on a pool worker.

        The caller's contextvars are copied into the unit. Exceptions
        escaping ``fn`` are logged inside the worker.

        Returns:
            True if the unit was queued, False if the pool is shut down.
        """
        executor = self._get_or_create_executor()
        if executor is None:
            logger.error(
                "event_worker_pool_unavailable",
                unit=getattr(fn, "__name__", repr(fn)),
            )
            return False
        try:
            executor.submit(self._run, contextvars.copy_context(), fn, *args)
        except RuntimeError:
            # Executor shut down between the check and the submit
            logger.exception(
                "failed_to_submit_to_event_worker_pool",
                unit=getattr(fn, "__name__", repr(fn)),
            )
            return False
        return True

    @staticmethod
    def _run(
        context: contextvars.Context, fn: Callable[..., Any], *args: Any
    ) -> None:
        """Worker wrapper running a unit in its context and logging exceptions."""
        try:
            context.run(fn, *args)
        except Exception as e:
            logger.exception(
                "background_event_dispatch_failed",
                unit=getattr(fn, "__name__", repr(fn)),
                error=str(e),
            )

    def shutdown(self, wait: bool = True) -> None:
        """Shut down the pool and refuse further submissions.

        Idempotent.

        Args:
            wait: If True, wait for queued units to complete.
        """
        with self._lock:
            executor = self._executor
            self._executor = None
            self._shutdown = True
        if executor is None:
            return
        executor.shutdown(wait=wait)
        logger.debug("event_worker_pool_shut_down", wait=wait)
