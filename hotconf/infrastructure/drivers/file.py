"""
File configuration driver.

Loads JSON, HJSON or YAML documents from a file and watches the file with
watchdog. File system events are queued and coalesced; at most one change
notification, for the latest event, is delivered per ``eventDelay``.
"""

import logging
import queue
import threading
from datetime import timedelta
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from ...core.exceptions import ConnectorError
from ...core.interfaces.drivers import ChangeHandler, IConnector, IDriver, SourceEvent
from ...core.options.codec import FORMAT_AUTO, from_file, normalize_format, to_file
from ...core.options.duration import Duration
from ...core.options.node import Options

logger = logging.getLogger(__name__)


class FileDriverOptions(BaseModel):
    """Connection properties of the file driver."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    file_name: str
    format: str = FORMAT_AUTO
    event_delay: Duration = timedelta(seconds=2)
    event_queue_size: int = Field(default=10, ge=1)
    watch: bool = True


class ConfigFileHandler(FileSystemEventHandler):
    """
    Translates watchdog events on one file into source events.

    Events are kept in a bounded queue; when it is full the oldest event is
    discarded since only the latest one is delivered.
    """

    def __init__(self, config_path: Path, queue_size: int = 10):
        super().__init__()
        self.config_path = config_path
        self.events: "queue.Queue[SourceEvent]" = queue.Queue(maxsize=queue_size)

    def _matches(self, path: object) -> bool:
        if not path:
            return False
        if isinstance(path, bytes):
            path = path.decode()
        return Path(str(path)).resolve() == self.config_path

    def classify(self, event: FileSystemEvent) -> Optional[SourceEvent]:
        if event.is_directory:
            return None

        if event.event_type in ("modified", "created", "closed"):
            return SourceEvent.MODIFIED if self._matches(event.src_path) else None
        if event.event_type == "moved":
            if self._matches(getattr(event, "dest_path", None)):
                return SourceEvent.MODIFIED
            return SourceEvent.REMOVED if self._matches(event.src_path) else None
        if event.event_type == "deleted":
            return SourceEvent.REMOVED if self._matches(event.src_path) else None
        return None

    def on_any_event(self, event: FileSystemEvent) -> None:
        kind = self.classify(event)
        if kind is None:
            return

        logger.debug(f"Configuration file {kind.name.lower()}: {self.config_path}")
        while True:
            try:
                self.events.put_nowait(kind)
                return
            except queue.Full:
                try:
                    self.events.get_nowait()
                except queue.Empty:
                    pass

    def latest(self) -> Optional[SourceEvent]:
        """Drain the queue and return the most recent event."""
        found: Optional[SourceEvent] = None
        while True:
            try:
                found = self.events.get_nowait()
            except queue.Empty:
                return found


class FileConnector(IConnector):
    """Connector bound to one configuration file."""

    def __init__(self, options: FileDriverOptions, on_change: Optional[ChangeHandler] = None):
        self._options = options
        self._on_change = on_change
        self._path = Path(options.file_name)
        self._format = normalize_format(options.format, self._path)

        self._observer: Optional[Observer] = None  # type: ignore[valid-type]
        self._handler: Optional[ConfigFileHandler] = None
        self._thread: Optional[threading.Thread] = None
        self._quit = threading.Event()

    @property
    def path(self) -> Path:
        return self._path

    @property
    def watching(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def open(self) -> None:
        """
        Verify the file is readable and start watching it.

        Raises:
            ConnectorError: If the file cannot be opened or watched
        """
        try:
            with open(self._path, "rb"):
                pass
        except OSError as e:
            raise ConnectorError(f"Cannot open configuration file {self._path}: {e}") from e

        if self._on_change is None or not self._options.watch:
            return

        self._handler = ConfigFileHandler(
            self._path.resolve(), self._options.event_queue_size)
        try:
            observer = Observer()
            observer.schedule(
                self._handler, str(self._path.resolve().parent), recursive=False)
            observer.start()
        except Exception as e:
            self._handler = None
            raise ConnectorError(f"Cannot watch configuration file {self._path}: {e}") from e

        self._observer = observer
        self._thread = threading.Thread(
            target=self._watch_loop, name=f"hotconf-file-{self._path.name}", daemon=True)
        self._thread.start()

        logger.info(f"Started watching configuration file: {self._path}")

    def _watch_loop(self) -> None:
        delay = max(self._options.event_delay.total_seconds(), 0.01)
        while not self._quit.wait(delay):
            handler = self._handler
            if handler is None or self._on_change is None:
                continue
            event = handler.latest()
            if event is None:
                continue
            try:
                self._on_change(event)
            except Exception as e:
                logger.error(f"Error notifying configuration change: {e}")

    def load(self) -> Options:
        try:
            return from_file(self._path, self._format)
        except OSError as e:
            raise ConnectorError(f"Cannot read configuration file {self._path}: {e}") from e

    def store(self, options: Options) -> None:
        if options is None:
            raise ConnectorError("FileConnector: config parameter is None")
        try:
            to_file(options, self._path, self._format)
        except OSError as e:
            raise ConnectorError(f"Cannot write configuration file {self._path}: {e}") from e

    def close(self) -> None:
        self._quit.set()

        thread = self._thread
        self._thread = None
        if thread is not None and thread is not threading.current_thread():
            thread.join()

        observer = self._observer
        self._observer = None
        if observer is not None:
            observer.stop()
            observer.join(timeout=5.0)
            logger.info(f"Stopped watching configuration file: {self._path}")

        self._handler = None


class FileDriver(IDriver):
    """
    Driver for configuration files.

    Properties: ``fileName`` (required), ``format``, ``eventDelay``,
    ``eventQueueSize`` and ``watch``.
    """

    def connect(self, on_change: Optional[ChangeHandler], properties: Options) -> FileConnector:
        options = properties.as_struct(FileDriverOptions)

        connector = FileConnector(options, on_change)
        connector.open()
        return connector
