"""Cancellation token and signal wiring for a deployment run."""

import logging
import signal
import threading
from contextlib import contextmanager
from typing import Callable, Iterator, List

from .exceptions import DeploymentCancelled

logger = logging.getLogger(__name__)

HANDLED_SIGNALS = [signal.SIGINT, signal.SIGTERM]


class CancellationToken:
    """
    Cooperative cancellation shared by every blocking step of one run.

    Cleanup callbacks registered with ``add_callback`` run exactly once, on the
    first call to ``cancel``. A callback registered after cancellation runs
    immediately.
    """

    def __init__(self) -> None:
        self._event = threading.Event()
        self._lock = threading.RLock()
        self._callbacks: List[Callable[[], None]] = []
        self.reason = ""

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def add_callback(self, callback: Callable[[], None]) -> None:
        with self._lock:
            if not self.cancelled:
                self._callbacks.append(callback)
                return
        callback()

    def remove_callback(self, callback: Callable[[], None]) -> None:
        with self._lock:
            if callback in self._callbacks:
                self._callbacks.remove(callback)

    def cancel(self, reason: str = "cancelled") -> None:
        with self._lock:
            if self.cancelled:
                return
            self.reason = reason
            self._event.set()
            callbacks, self._callbacks = self._callbacks, []

        for callback in callbacks:
            try:
                callback()
            except Exception:
                logger.exception("Cancellation callback %r failed", callback)

    def sleep(self, seconds: float) -> None:
        """
        Block for up to ``seconds``.

        Raises:
            DeploymentCancelled: If the token is cancelled before or during the wait
        """
        if self._event.wait(seconds):
            self.raise_if_cancelled()

    def raise_if_cancelled(self) -> None:
        if self.cancelled:
            raise DeploymentCancelled(f"Run cancelled: {self.reason}")


@contextmanager
def install_signal_handlers(token: CancellationToken) -> Iterator[None]:
    """
    Route SIGINT/SIGTERM into ``token`` for the duration of the block.

    The handler cancels the token, which terminates any owned node through its
    registered callbacks, then raises DeploymentCancelled in the main flow. A
    repeated signal during cleanup is only logged.
    Previous handlers are restored on exit. Outside the main thread this is a no-op.
    """
    if threading.current_thread() is not threading.main_thread():
        yield
        return

    def handler(signum, frame):
        name = signal.Signals(signum).name
        if token.cancelled:
            logger.warning("Received %s again, cleanup already in progress", name)
            return
        logger.warning("Received %s, cleaning up", name)
        token.cancel(name)
        raise DeploymentCancelled(f"Interrupted by {name}")

    previous = {}
    for signum in HANDLED_SIGNALS:
        previous[signum] = signal.signal(signum, handler)
    try:
        yield
    finally:
        for signum, old_handler in previous.items():
            signal.signal(signum, old_handler)
