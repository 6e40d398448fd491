import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor, wait
from typing import Any, Callable

logger = logging.getLogger(__name__)


class BackgroundRunner:
    """Detached work that must never block or fail the request that scheduled it.

    Every task runs inside its own error boundary; failures are logged and
    dropped. ``flush`` waits for in-flight tasks (used at shutdown and in tests).
    """

    def __init__(self, max_workers: int = 4) -> None:
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="background")
        self._pending: set[Future] = set()
        self._lock = threading.Lock()
        self._closed = False

    def submit(self, name: str, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> Future | None:
        with self._lock:
            if self._closed:
                logger.warning("Background runner is closed, dropping task %s", name)
                return None
            future = self._executor.submit(self._run, name, fn, *args, **kwargs)
            self._pending.add(future)
        future.add_done_callback(self._discard)
        return future

    def flush(self, timeout: float | None = None) -> None:
        with self._lock:
            pending = list(self._pending)
        if pending:
            wait(pending, timeout=timeout)

    def shutdown(self) -> None:
        with self._lock:
            self._closed = True
        self._executor.shutdown(wait=True)

    def _discard(self, future: Future) -> None:
        with self._lock:
            self._pending.discard(future)

    @staticmethod
    def _run(name: str, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> None:
        try:
            fn(*args, **kwargs)
        except Exception:
            logger.exception("Background task %s failed", name)
