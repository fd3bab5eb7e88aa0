"""Background bulk-load runner — ThreadPool-based fire-and-forget.

Manifesto:
``Repository.insert_many`` returns as soon as the destination schema has
been probed; the streaming part runs here. Jobs are plain callables that
own their connection. A failed job cannot reach its caller, so the
failure is logged at ERROR and kept, in a bounded list, for ``wait()``.

ARCHITECTURE
────────────
::

    BulkLoadRunner(max_workers=2)
      ├── .submit(fn, table=...)  ─ queue job, return Future
      ├── .wait(timeout)          ─ block until queued jobs finish
      └── .shutdown()             ─ drain pool

Tags:
    autocrud, bulk, executor, thread-pool, background

Doc-Types:
    api-reference
"""

from __future__ import annotations

import threading
from collections import deque
from collections.abc import Callable
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any

from autocrud.core.errors import categorize_error, is_retryable
from autocrud.core.logging import get_logger

logger = get_logger(__name__)


class BulkLoadRunner:
    """ThreadPoolExecutor-backed runner for detached bulk loads.

    A job is forgotten as soon as it finishes. Failures are kept, without
    their traceback, in a list of at most *max_failures* entries until the
    next :meth:`wait`.

    Example:
        >>> runner = BulkLoadRunner(max_workers=2)
        >>> future = runner.submit(lambda: 3, table="customers")
        >>> runner.wait()
        []
    """

    def __init__(self, max_workers: int = 2, max_failures: int = 100):
        self.pool = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="autocrud-bulk")
        self._futures: set[Future] = set()
        self._failures: deque[BaseException] = deque(maxlen=max_failures)
        self._finished = threading.Condition()

    def submit(self, fn: Callable[[], Any], *, table: str) -> Future:
        """Queue *fn* and return its future."""
        future = self.pool.submit(fn)
        with self._finished:
            self._futures.add(future)

        def on_done(done: Future) -> None:
            error = None
            if done.cancelled():
                logger.warning("bulk_load_cancelled", table=table)
            else:
                error = done.exception()
            if error is not None:
                logger.error(
                    "bulk_load_failed",
                    table=table,
                    error=str(error),
                    error_type=type(error).__name__,
                    category=categorize_error(error).value,
                    retryable=is_retryable(error),
                )
                # the traceback pins the job frame and its whole batch
                error.__traceback__ = None
            with self._finished:
                if error is not None:
                    self._failures.append(error)
                self._futures.discard(done)
                self._finished.notify_all()

        future.add_done_callback(on_done)
        return future

    @property
    def pending(self) -> int:
        with self._finished:
            return len(self._futures)

    def wait(self, timeout: float | None = None) -> list[BaseException]:
        """Block until every job submitted so far has finished.

        Returns:
            Exceptions raised by jobs that failed since the last call,
            oldest first. They are forgotten once returned.

        Raises:
            TimeoutError: Jobs were still running after *timeout* seconds.
        """
        with self._finished:
            waiting = set(self._futures)
            if not self._finished.wait_for(lambda: not waiting & self._futures, timeout):
                running = len(waiting & self._futures)
                raise TimeoutError(f"{running} bulk load(s) still running after {timeout}s")
            errors = list(self._failures)
            self._failures.clear()
        return errors

    def shutdown(self, wait: bool = True) -> None:
        """Shutdown thread pool.

        Args:
            wait: If True, wait for queued loads to complete
        """
        self.pool.shutdown(wait=wait)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.shutdown(wait=True)


__all__ = [
    "BulkLoadRunner",
]
