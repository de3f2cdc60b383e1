"""Unit tests for sync.watcher module."""

import io
import os
import signal
import threading
from unittest.mock import Mock

import pytest
from watchdog.events import (
    DirCreatedEvent,
    FileCreatedEvent,
    FileDeletedEvent,
    FileModifiedEvent,
    FileMovedEvent,
)

from shanoom.api_client.errors import UnauthorizedError
from shanoom.content.models import ProjectConfig
from shanoom.sync.engine import EventKind
from shanoom.sync.watcher import ChangeWatcher, DataFileEventHandler


@pytest.fixture
def submitted():
    return []


@pytest.fixture
def handler(tmp_path, submitted):
    return DataFileEventHandler(str(tmp_path), submitted.append)


def _path(root, relative):
    return os.path.join(str(root), *relative.split("/"))


class TestDataFileEventHandler:
    """Test cases for DataFileEventHandler."""

    def test_created_file_is_add(self, handler, tmp_path, submitted):
        handler.dispatch(FileCreatedEvent(_path(tmp_path, "pages/user.data.yaml")))

        assert len(submitted) == 1
        event = submitted[0]
        assert event.kind == EventKind.ADD
        assert event.name == "user"
        assert event.data_file.path == "pages/user.data.yaml"
        assert event.data_file.full_path == _path(tmp_path, "pages/user.data.yaml")

    def test_modified_file_is_change(self, handler, tmp_path, submitted):
        handler.dispatch(FileModifiedEvent(_path(tmp_path, "user.data.yml")))

        assert [e.kind for e in submitted] == [EventKind.CHANGE]

    def test_deleted_file_is_unlink(self, handler, tmp_path, submitted):
        handler.dispatch(FileDeletedEvent(_path(tmp_path, "user.data.yaml")))

        assert [e.kind for e in submitted] == [EventKind.UNLINK]

    def test_move_is_unlink_then_add(self, handler, tmp_path, submitted):
        handler.dispatch(FileMovedEvent(
            _path(tmp_path, "old.data.yaml"),
            _path(tmp_path, "new.data.yaml"),
        ))

        assert [(e.kind, e.name) for e in submitted] == [
            (EventKind.UNLINK, "old"),
            (EventKind.ADD, "new"),
        ]

    def test_move_to_non_data_file_is_only_unlink(self, handler, tmp_path, submitted):
        handler.dispatch(FileMovedEvent(
            _path(tmp_path, "user.data.yaml"),
            _path(tmp_path, "user.data.yaml.bak"),
        ))

        assert [e.kind for e in submitted] == [EventKind.UNLINK]

    @pytest.mark.parametrize("relative", [
        "notes.yaml",
        "node_modules/pkg/x.data.yaml",
        ".cache/x.data.yaml",
        "x.data.js",
    ])
    def test_ignores_other_files(self, handler, tmp_path, submitted, relative):
        handler.dispatch(FileCreatedEvent(_path(tmp_path, relative)))

        assert submitted == []

    def test_ignores_directories(self, handler, tmp_path, submitted):
        handler.dispatch(DirCreatedEvent(_path(tmp_path, "dir.data.yaml")))

        assert submitted == []

    def test_js_source_format(self, tmp_path, submitted):
        handler = DataFileEventHandler(str(tmp_path), submitted.append, source_format="js")

        handler.dispatch(FileCreatedEvent(_path(tmp_path, "x.data.mjs")))

        assert [e.name for e in submitted] == ["x"]


@pytest.fixture
def engine(tmp_path):
    engine = Mock()
    engine.project_root = str(tmp_path)
    engine.config = ProjectConfig()
    return engine


@pytest.fixture
def observer():
    return Mock()


def _watcher(engine, observer, **kwargs):
    kwargs.setdefault("install_signals", False)
    kwargs.setdefault("poll_interval", 0.01)
    return ChangeWatcher(engine, observer_factory=lambda: observer, **kwargs)


class TestChangeWatcher:
    """Test cases for ChangeWatcher."""

    @pytest.mark.parametrize("command", ["exit\n", "quit\n", "  EXIT  \n"])
    def test_stdin_command_stops_and_cleans_up(self, engine, observer, command):
        cleanup = Mock()
        watcher = _watcher(engine, observer, stdin=io.StringIO("hello\n" + command), cleanup=cleanup)

        watcher.run()

        handler, root = observer.schedule.call_args[0]
        assert isinstance(handler, DataFileEventHandler)
        assert root == engine.project_root
        assert observer.schedule.call_args[1] == {"recursive": True}
        observer.start.assert_called_once()
        observer.stop.assert_called_once()
        engine.shutdown.assert_called_once_with(wait=True)
        cleanup.assert_called_once_with()

    def test_handler_feeds_engine(self, engine, observer):
        watcher = _watcher(engine, observer, stdin=io.StringIO("exit\n"))
        watcher.run()

        handler = observer.schedule.call_args[0][0]
        handler.dispatch(FileCreatedEvent(os.path.join(engine.project_root, "a.data.yaml")))

        engine.submit_event.assert_called_once()
        assert engine.submit_event.call_args[0][0].kind == EventKind.ADD

    def test_request_stop_from_another_thread(self, engine, observer):
        watcher = _watcher(engine, observer)
        timer = threading.Timer(0.05, watcher.request_stop)
        timer.start()

        watcher.run()

        timer.join()
        observer.stop.assert_called_once()

    def test_fatal_error_stops_and_is_raised_after_cleanup(self, engine, observer):
        error = UnauthorizedError("GET /content")
        cleanup = Mock()
        watcher = _watcher(engine, observer, cleanup=cleanup)
        observer.start.side_effect = lambda: engine.on_fatal(error)

        with pytest.raises(UnauthorizedError):
            watcher.run()

        engine.shutdown.assert_called_once_with(wait=True)
        cleanup.assert_called_once_with()

    def test_close_is_idempotent(self, engine, observer):
        cleanup = Mock()
        watcher = _watcher(engine, observer, stdin=io.StringIO("exit\n"), cleanup=cleanup)
        watcher.run()

        watcher.close()

        cleanup.assert_called_once_with()

    def test_restores_signal_handlers(self, engine, observer):
        before = signal.getsignal(signal.SIGTERM)
        watcher = _watcher(engine, observer, stdin=io.StringIO("exit\n"), install_signals=True)

        watcher.run()

        assert signal.getsignal(signal.SIGTERM) == before

    @pytest.mark.parametrize("signum", [signal.SIGTERM, signal.SIGINT])
    def test_signal_stops_and_cleans_up(self, engine, observer, signum):
        cleanup = Mock()
        progress = Mock()
        timer = threading.Timer(0.05, os.kill, args=(os.getpid(), signum))
        # Handlers are in place once the watching message is shown
        progress.info.side_effect = lambda message: timer.start()
        watcher = _watcher(engine, observer, progress=progress, cleanup=cleanup, install_signals=True)

        watcher.run()
        timer.join()

        observer.stop.assert_called_once_with()
        engine.shutdown.assert_called_once_with(wait=True)
        cleanup.assert_called_once_with()
