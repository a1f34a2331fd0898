"""
Change notification channel between connectors and the configurator.

Connectors report source changes from their own background threads. The
dispatcher queues those notifications in a bounded queue and hands them,
one at a time, to a single consumer thread.
"""

import logging
import queue
import threading
from typing import Any, Callable, Dict, Optional

from ..core.interfaces.drivers import SourceEvent

logger = logging.getLogger(__name__)

_STOP = object()


class ChangeDispatcher:
    """
    Bounded change-notification queue with a single consumer thread.

    ``notify`` never blocks. When the queue is full the notification is
    dropped: a notification already waiting in the queue reloads the source
    after the change anyway.
    """

    def __init__(
        self,
        handler: Callable[[SourceEvent], Any],
        error_handler: Optional[Callable[[SourceEvent, Exception], None]] = None,
        queue_size: int = 16,
        name: str = "hotconf-dispatcher"
    ) -> None:
        if queue_size < 1:
            raise ValueError(f"queue_size must be positive, got {queue_size}")

        self._handler = handler
        self._error_handler = error_handler
        self._queue: "queue.Queue[Any]" = queue.Queue(maxsize=queue_size)
        self._name = name
        self._thread: Optional[threading.Thread] = None
        self._lock = threading.Lock()
        self._idle = threading.Condition(self._lock)
        self._pending = 0
        self._running = False

        self._metrics: Dict[str, int] = {
            'events_received': 0,
            'events_dropped': 0,
            'events_processed': 0,
            'events_failed': 0,
        }

    @property
    def running(self) -> bool:
        return self._running

    @property
    def metrics(self) -> Dict[str, int]:
        with self._lock:
            return dict(self._metrics)

    def start(self) -> None:
        """Start the consumer thread."""
        with self._lock:
            if self._running:
                return
            self._running = True
            self._thread = threading.Thread(
                target=self._worker, name=self._name, daemon=True)
            self._thread.start()

        logger.debug(f"Change dispatcher started: {self._name}")

    def notify(self, event: SourceEvent) -> bool:
        """
        Queue a change notification.

        Returns:
            True if the notification was queued
        """
        with self._lock:
            if not self._running:
                return False
            self._metrics['events_received'] += 1
            try:
                self._queue.put_nowait(SourceEvent(event))
            except queue.Full:
                self._metrics['events_dropped'] += 1
                logger.debug(f"Change queue full, dropping {SourceEvent(event).name} event")
                return False
            self._pending += 1
            return True

    def wait_idle(self, timeout: Optional[float] = None) -> bool:
        """
        Wait until every queued notification has been handled.

        Returns:
            False if the timeout expired first
        """
        with self._idle:
            return self._idle.wait_for(lambda: self._pending == 0, timeout)

    def stop(self) -> None:
        """
        Stop the consumer thread and wait for it to exit.

        Notifications still queued are discarded; one being handled runs to
        completion first.
        """
        with self._lock:
            if not self._running:
                return
            self._running = False
            while True:
                try:
                    self._queue.get_nowait()
                except queue.Empty:
                    break
                self._pending -= 1
            self._queue.put_nowait(_STOP)
            self._idle.notify_all()
            thread = self._thread
            self._thread = None

        if thread is not None and thread is not threading.current_thread():
            thread.join()

        logger.debug(f"Change dispatcher stopped: {self._name}")

    def _worker(self) -> None:
        while True:
            event = self._queue.get()
            if event is _STOP:
                return

            try:
                self._handler(event)
                with self._lock:
                    self._metrics['events_processed'] += 1
            except Exception as e:
                with self._lock:
                    self._metrics['events_failed'] += 1
                if self._error_handler is not None:
                    try:
                        self._error_handler(event, e)
                    except Exception as handler_error:
                        logger.error(f"Error in change error handler: {handler_error}")
                else:
                    logger.error(f"Error handling {event.name} notification: {e}")
            finally:
                with self._idle:
                    self._pending -= 1
                    if self._pending <= 0:
                        self._pending = 0
                        self._idle.notify_all()
