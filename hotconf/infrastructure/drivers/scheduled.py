"""
Polling support for connectors whose source cannot push changes.

A polling connector fetches the raw document on a schedule and reports a
change whenever the text differs from what was last loaded. Schedules are
crontab expressions (``*/5 * * * *``), the usual ``@hourly`` style
descriptors, or ``@every <duration>`` for a fixed interval.
"""

import logging
import threading
from abc import abstractmethod
from typing import Optional

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.base import BaseTrigger
from apscheduler.triggers.cron import CronTrigger
from apscheduler.triggers.interval import IntervalTrigger

from ...core.exceptions import ConnectorError, HotconfError
from ...core.interfaces.drivers import ChangeHandler, IConnector, SourceEvent
from ...core.options.codec import from_text
from ...core.options.duration import parse_duration
from ...core.options.node import Options

logger = logging.getLogger(__name__)

EVERY_PREFIX = "@every"

_DESCRIPTORS = {
    "@yearly": "0 0 1 1 *",
    "@annually": "0 0 1 1 *",
    "@monthly": "0 0 1 * *",
    "@weekly": "0 0 * * 0",
    "@daily": "0 0 * * *",
    "@midnight": "0 0 * * *",
    "@hourly": "0 * * * *",
}


def create_trigger(spec: str) -> BaseTrigger:
    """
    Build a scheduler trigger from a schedule expression.

    Raises:
        ConnectorError: If the expression is invalid
    """
    text = (spec or "").strip()
    try:
        if text.startswith(EVERY_PREFIX):
            interval = parse_duration(text[len(EVERY_PREFIX):].strip())
            if interval.total_seconds() <= 0:
                raise ValueError("interval must be positive")
            return IntervalTrigger(seconds=interval.total_seconds())
        return CronTrigger.from_crontab(_DESCRIPTORS.get(text, text))
    except (ValueError, TypeError, HotconfError) as e:
        raise ConnectorError(f"Invalid schedule {spec!r}: {e}") from e


class PollingConnector(IConnector):
    """
    Base class for connectors that detect changes by polling.

    Subclasses implement ``_fetch`` to return the raw document and
    ``_release`` to free their resources.
    """

    def __init__(self, fmt: str, on_change: Optional[ChangeHandler] = None,
                 cron_spec: Optional[str] = None):
        self._format = fmt
        self._on_change = on_change
        self._cron_spec = cron_spec
        self._lock = threading.Lock()
        self._last_raw: Optional[str] = None
        self._scheduler: Optional[BackgroundScheduler] = None

    @property
    def polling(self) -> bool:
        return self._scheduler is not None

    @abstractmethod
    def _fetch(self) -> str:
        """Fetch the raw configuration document."""
        pass

    def _release(self) -> None:
        pass

    def start_polling(self) -> None:
        """Schedule change detection; does nothing without a schedule or callback."""
        if self._on_change is None or not self._cron_spec:
            return

        trigger = create_trigger(self._cron_spec)
        scheduler = BackgroundScheduler(daemon=True)
        scheduler.add_job(
            self._poll, trigger,
            id="hotconf-poll", max_instances=1, coalesce=True)
        scheduler.start()
        self._scheduler = scheduler

        logger.info(f"{type(self).__name__} polling with schedule {self._cron_spec!r}")

    def load(self) -> Options:
        raw = self._fetch()
        with self._lock:
            self._last_raw = raw
        return from_text(raw, self._format)

    def _poll(self) -> None:
        try:
            raw = self._fetch()
        except HotconfError as e:
            logger.warning(f"{type(self).__name__} poll failed: {e}")
            return

        with self._lock:
            changed = self._last_raw is not None and raw != self._last_raw

        if changed and self._on_change is not None:
            logger.debug(f"{type(self).__name__} detected a configuration change")
            self._on_change(SourceEvent.MODIFIED)

    def close(self) -> None:
        scheduler = self._scheduler
        self._scheduler = None
        if scheduler is not None:
            scheduler.shutdown(wait=True)
        self._release()
