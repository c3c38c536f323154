"""
Background Tasks

Fire-and-forget work (image mirroring and cleanup) run on a thread pool.
Each task gets its own Flask app context, so it can use db.session without
sharing the request's session. Failures are logged, never raised.
"""

import logging
import threading
from concurrent.futures import ThreadPoolExecutor, wait as wait_futures

from flask import current_app

logger = logging.getLogger(__name__)


class BackgroundTasks:
    """Thread pool that runs callables inside an application context."""

    def __init__(self, max_workers=4):
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix='catalogue-bg')
        self._pending = set()
        self._lock = threading.Lock()

    def submit(self, fn, *args, **kwargs):
        """
        Schedule fn(*args, **kwargs) and return its Future.

        Must be called while an app context is active; the task runs in a
        fresh context for the same app.
        """
        app = current_app._get_current_object()

        def run():
            with app.app_context():
                try:
                    return fn(*args, **kwargs)
                except Exception:
                    logger.exception("Background task %s failed", getattr(fn, '__name__', fn))
                    return None

        future = self._executor.submit(run)
        with self._lock:
            self._pending.add(future)
        future.add_done_callback(self._forget)
        return future

    def _forget(self, future):
        with self._lock:
            self._pending.discard(future)

    def wait(self, timeout=None):
        """
        Block until every task submitted so far (and any task those tasks
        submit) has finished. Returns True if nothing is left pending.
        """
        while True:
            with self._lock:
                pending = list(self._pending)
            if not pending:
                return True
            done, not_done = wait_futures(pending, timeout=timeout)
            if not_done:
                return False

    def shutdown(self, wait=True):
        self._executor.shutdown(wait=wait)
