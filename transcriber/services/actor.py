"""Single-threaded executor owning all session state."""

import queue
import logging
import threading
from concurrent.futures import Future
from typing import Any, Callable

logger = logging.getLogger(__name__)


class ActorShutdownError(RuntimeError):
    def __init__(self, name: str):
        super().__init__(f"{name} is shut down")


class SessionActor:
    """Runs submitted callables one at a time, in submission order, on one thread."""

    def __init__(self, name: str = "SessionActorThread"):
        self.name = name
        self.inbox: queue.Queue = queue.Queue()
        self._shutdown = threading.Event()
        self._thread = threading.Thread(target=self._run_loop, daemon=True)
        self._thread.name = name
        self._thread.start()

    @property
    def is_running(self) -> bool:
        return not self._shutdown.is_set()

    def is_current(self) -> bool:
        """True when called from the actor thread itself."""
        return threading.current_thread() is self._thread

    def submit(self, fn: Callable[..., Any], *args: Any) -> Future:
        """Queue ``fn(*args)`` and return a future for its result."""
        future: Future = Future()
        if self._shutdown.is_set():
            future.set_exception(ActorShutdownError(self.name))
            return future
        self.inbox.put((future, fn, args))
        return future

    def post(self, fn: Callable[..., Any], *args: Any) -> None:
        """Fire-and-forget submit; failures are logged."""
        if self._shutdown.is_set():
            logger.debug(f"{self.name}: dropping {getattr(fn, '__name__', fn)} after shutdown")
            return
        self.submit(fn, *args).add_done_callback(self._log_failure)

    def call(self, fn: Callable[..., Any], *args: Any) -> Any:
        """Run ``fn(*args)`` on the actor and wait for its result.

        Runs inline when already on the actor thread.
        """
        if self.is_current():
            return fn(*args)
        return self.submit(fn, *args).result()

    def shutdown(self, timeout: float = 2.0) -> None:
        """Process what is already queued, then stop the thread."""
        if self._shutdown.is_set():
            return
        self._shutdown.set()
        self.inbox.put(None)
        if not self.is_current():
            self._thread.join(timeout)
            if self._thread.is_alive():
                logger.warning(f"{self.name} did not terminate cleanly")

    @staticmethod
    def _log_failure(future: Future) -> None:
        exc = future.exception()
        if exc is not None:
            logger.error(f"Unhandled exception in session task: {exc}",
                         exc_info=(type(exc), exc, exc.__traceback__))

    def _run_loop(self) -> None:
        logger.debug(f"{self.name} starting")
        while True:
            item = self.inbox.get()
            try:
                if item is None:
                    logger.debug(f"{self.name} received sentinel, exiting.")
                    break

                future, fn, args = item
                if not future.set_running_or_notify_cancel():
                    continue
                try:
                    result = fn(*args)
                except Exception as e:
                    future.set_exception(e)
                else:
                    future.set_result(result)
            finally:
                self.inbox.task_done()
