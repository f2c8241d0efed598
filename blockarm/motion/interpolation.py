"""
Virtual motion scheduler
Periodic background tick that animates joints toward their targets
"""

import threading
import logging
from typing import Callable, Optional

from ..config import INTERPOLATION_CONFIG

logger = logging.getLogger(__name__)


class InterpolationScheduler:
    """
    Single-owner periodic tick

    Runs ``step`` every ``interval`` seconds on a daemon thread until ``step``
    returns False (nothing left to animate) or ``stop`` is called. Starting
    while running and stopping while stopped are both no-ops.
    """

    def __init__(self, step: Callable[[], bool],
                 tick_hz: float = INTERPOLATION_CONFIG["tick_hz"],
                 name: str = "interpolation"):
        """
        Args:
            step: Advances the animation once, returns True while motion remains
            tick_hz: Tick rate (display refresh rate)
            name: Thread name
        """
        self._step = step
        self.interval = 1.0 / tick_hz
        self.name = name
        self._lock = threading.Lock()
        self._thread: Optional[threading.Thread] = None
        self._stop_event: Optional[threading.Event] = None

    @property
    def running(self) -> bool:
        """True while a tick thread is scheduled"""
        with self._lock:
            return self._thread is not None

    def start(self) -> bool:
        """
        Start ticking

        Returns:
            True if a new tick thread was started
        """
        with self._lock:
            if self._thread is not None:
                return False

            stop_event = threading.Event()
            thread = threading.Thread(
                target=self._run,
                args=(stop_event,),
                name=self.name,
                daemon=True
            )
            self._thread = thread
            self._stop_event = stop_event
            thread.start()

        logger.debug("Interpolation scheduler started")
        return True

    def stop(self, timeout: float = 1.0) -> bool:
        """
        Stop ticking and wait for the thread to finish

        Returns:
            True if a running scheduler was stopped
        """
        with self._lock:
            thread, stop_event = self._thread, self._stop_event
            self._thread = None
            self._stop_event = None

        if thread is None:
            return False

        stop_event.set()
        if thread is not threading.current_thread():
            thread.join(timeout)
        logger.debug("Interpolation scheduler stopped")
        return True

    def tick(self) -> bool:
        """Run one step synchronously, returns True while motion remains"""
        with self._lock:
            return self._step()

    def _run(self, stop_event: threading.Event):
        """Tick loop, exits once nothing is moving"""
        while not stop_event.wait(self.interval):
            # The step runs under the scheduler lock so that a start() racing
            # with the self-stop below either sees this thread or none at all
            with self._lock:
                if stop_event.is_set():
                    return

                try:
                    moving = self._step()
                except Exception:
                    logger.exception("Interpolation step failed")
                    moving = False

                if moving:
                    continue

                if self._stop_event is stop_event:
                    self._thread = None
                    self._stop_event = None
                logger.debug("Interpolation scheduler idle")
                return
