"""Filesystem watcher feeding the sync engine.

Watchdog delivers raw events on its own thread. DataFileEventHandler filters
them down to data files and turns them into FileEvents; ChangeWatcher owns
the observer, listens for shutdown requests (SIGINT, SIGTERM, or "exit" /
"quit" typed on stdin) and tears everything down in order.
"""

import logging
import os
import signal
import sys
import threading
from typing import Callable, Iterable, List, Optional, TextIO

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from ..content.discovery import is_data_file, make_data_file, to_relative
from .engine import EventKind, FileEvent, SyncEngine
from .progress import NullProgress, ProgressReporter

logger = logging.getLogger(__name__)

STOP_COMMANDS = ("exit", "quit")


class DataFileEventHandler(FileSystemEventHandler):
    """Translates watchdog events into FileEvents for data files only.

    A rename is reported as the removal of the old path followed by the
    addition of the new one.
    """

    def __init__(
        self,
        project_root: str,
        submit: Callable[[FileEvent], None],
        source_format: str = "yaml",
        exclude: Iterable[str] = ("node_modules",),
    ):
        super().__init__()
        self.project_root = os.path.abspath(project_root)
        self.submit = submit
        self.source_format = source_format
        self.exclude = list(exclude)

    def _emit(self, kind: EventKind, path) -> None:
        full_path = os.path.abspath(os.fsdecode(path))
        relative = to_relative(full_path, self.project_root)
        if not is_data_file(relative, self.source_format, self.exclude):
            return
        data_file = make_data_file(full_path, self.project_root)
        logger.debug(f"{kind.value}: {data_file.path}")
        self.submit(FileEvent(kind, data_file))

    def on_created(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self._emit(EventKind.ADD, event.src_path)

    def on_modified(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self._emit(EventKind.CHANGE, event.src_path)

    def on_deleted(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self._emit(EventKind.UNLINK, event.src_path)

    def on_moved(self, event: FileSystemEvent) -> None:
        if event.is_directory:
            return
        self._emit(EventKind.UNLINK, event.src_path)
        self._emit(EventKind.ADD, event.dest_path)


class ChangeWatcher:
    """Runs the watch loop until a stop request or a fatal sync error.

    Example:
        >>> watcher = ChangeWatcher(engine, progress=output)
        >>> watcher.run()   # blocks until Ctrl+C or "exit"
    """

    def __init__(
        self,
        engine: SyncEngine,
        progress: Optional[ProgressReporter] = None,
        observer_factory: Callable[[], Observer] = Observer,
        stdin: Optional[TextIO] = None,
        cleanup: Optional[Callable[[], None]] = None,
        install_signals: bool = True,
        poll_interval: float = 0.5,
    ):
        """Initialize the watcher.

        Args:
            engine: Engine that receives filesystem events
            progress: Where status updates go
            observer_factory: Builds the watchdog observer
            stdin: Stream read for "exit" / "quit" (None disables it)
            cleanup: Called once after the observer and engine stopped
            install_signals: Stop on SIGINT and SIGTERM (main thread only)
            poll_interval: Seconds between checks of the stop flag
        """
        self.engine = engine
        self.progress = progress or NullProgress()
        self.observer_factory = observer_factory
        self.stdin = stdin
        self.cleanup = cleanup
        self.install_signals = install_signals
        self.poll_interval = poll_interval

        self._stop = threading.Event()
        self._fatal: Optional[Exception] = None
        self._observer = None
        self._previous_handlers: List = []
        self._closed = False

        self.engine.on_fatal = self._on_fatal

    def request_stop(self) -> None:
        self._stop.set()

    def _on_fatal(self, error: Exception) -> None:
        if self._fatal is None:
            self._fatal = error
        self.request_stop()

    def _handle_signal(self, signum, frame) -> None:
        logger.info(f"Received signal {signal.Signals(signum).name}, shutting down")
        self.request_stop()

    def _install_signal_handlers(self) -> None:
        if not self.install_signals or threading.current_thread() is not threading.main_thread():
            return
        for signum in (signal.SIGINT, signal.SIGTERM):
            self._previous_handlers.append((signum, signal.signal(signum, self._handle_signal)))

    def _restore_signal_handlers(self) -> None:
        while self._previous_handlers:
            signum, handler = self._previous_handlers.pop()
            signal.signal(signum, handler)

    def _read_commands(self) -> None:
        for line in self.stdin:
            if line.strip().lower() in STOP_COMMANDS:
                logger.info(f"Received '{line.strip()}' on stdin, shutting down")
                self.request_stop()
                return
            if self._stop.is_set():
                return

    def start(self) -> None:
        """Start observing the project root."""
        config = self.engine.config
        handler = DataFileEventHandler(
            self.engine.project_root,
            self.engine.submit_event,
            config.source_format,
            config.exclude,
        )
        self._observer = self.observer_factory()
        self._observer.schedule(handler, self.engine.project_root, recursive=True)
        self._observer.start()
        self._install_signal_handlers()

        if self.stdin is not None:
            threading.Thread(
                target=self._read_commands,
                name="shanoom-stdin",
                daemon=True,
            ).start()

        logger.info(f"Watching {self.engine.project_root}")
        self.progress.info("Watching for changes... (type 'exit' or press Ctrl+C to stop)")

    def close(self) -> None:
        """Stop the observer, drain in-flight work and run cleanup once."""
        if self._closed:
            return
        self._closed = True
        try:
            if self._observer is not None:
                self._observer.stop()
                self._observer.join(timeout=10)
            self.engine.shutdown(wait=True)
            if self.cleanup is not None:
                self.cleanup()
        finally:
            self._restore_signal_handlers()
            self.progress.stop()
        logger.info("Watcher stopped")

    def run(self) -> None:
        """Watch until stopped.

        Raises:
            The fatal error that stopped the watcher, after cleanup has run
        """
        self.start()
        try:
            while not self._stop.wait(self.poll_interval):
                pass
        except KeyboardInterrupt:
            logger.info("Interrupted, shutting down")
        finally:
            self.close()

        if self._fatal is not None:
            raise self._fatal


def watch(
    engine: SyncEngine,
    progress: Optional[ProgressReporter] = None,
    cleanup: Optional[Callable[[], None]] = None,
) -> None:
    """Watch the engine's project root with stdin and signal handling enabled."""
    ChangeWatcher(engine, progress=progress, stdin=sys.stdin, cleanup=cleanup).run()
