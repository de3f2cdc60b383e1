"""Reconciliation of local data files against a remote domain.

This module provides the SyncEngine class, which decides for each local data
file whether the remote content item must be created, updated, deleted or
left alone, and then performs that decision through the API client.

Decisions are made by comparing the content hash of the local record with
the hash the backend stored for the same name. Equal hashes never cause a
write.

Two passes drive the engine:
    - bulk_sync: runs once at startup. Every discovered file is reconciled
      in parallel against a single listing of the remote domain.
    - submit_event: runs for each filesystem event. Events for different
      content names run in parallel; events for the same name run one at
      a time in arrival order.

Per-file problems (unreadable file, bad syntax, missing media, rejected
payload) are reported and do not stop other files. Fatal problems (expired
session, backend down, no connectivity, duplicate names) abort the pass.
"""

import logging
import os
import threading
from collections import deque
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, Callable, Deque, Dict, List, Optional

from ..api_client.errors import (
    APIError,
    MaxRetriesExceededError,
    NotLoggedInError,
    ServerUnavailableError,
    UnauthorizedError,
)
from ..content.codec import parse_file, serialize_data
from ..content.discovery import ensure_unique_names, find_data_files, find_duplicates
from ..content.errors import ContentError, DataFileReadError, DuplicateNameError
from ..content.media import resolve_media
from ..content.models import (
    ACTION_CREATED,
    ACTION_DELETED,
    ACTION_NO_CHANGES,
    ACTION_UPDATED,
    BulkSyncResult,
    ContentRecord,
    DataFile,
    ProjectConfig,
    SyncDecision,
    SyncOutcome,
)
from .progress import NullProgress, ProgressReporter

if TYPE_CHECKING:
    from ..api_client.api_wrapper import ContentAPI

logger = logging.getLogger(__name__)

# Errors that make continuing pointless: every remaining file would fail the same way
FATAL_ERRORS = (
    NotLoggedInError,
    UnauthorizedError,
    ServerUnavailableError,
    MaxRetriesExceededError,
    DuplicateNameError,
)

_DEFAULT_ACTIONS = {
    SyncDecision.CREATE: ACTION_CREATED,
    SyncDecision.UPDATE: ACTION_UPDATED,
    SyncDecision.DELETE: ACTION_DELETED,
}

_UNFETCHED = object()


class EventKind(Enum):
    """Filesystem event kinds delivered by the watcher."""
    ADD = "add"
    CHANGE = "change"
    UNLINK = "unlink"


@dataclass(frozen=True)
class FileEvent:
    """One filesystem event for a data file.

    Attributes:
        kind: add, change or unlink
        data_file: The affected file (name, relative and absolute path)
    """
    kind: EventKind
    data_file: DataFile

    @property
    def name(self) -> str:
        return self.data_file.name


def decide(
    record: Optional[ContentRecord],
    remote: Optional[Dict[str, Any]],
    deleted: bool = False,
) -> SyncDecision:
    """Pick the action for one content item.

    Args:
        record: Local record (None when the file was removed)
        remote: Remote content item for the same name, or None if absent
        deleted: True for an unlink event

    Returns:
        DELETE for removals, CREATE when the remote item is absent,
        NO_CHANGE when hashes match, UPDATE otherwise
    """
    if deleted or record is None:
        return SyncDecision.DELETE
    if not remote:
        return SyncDecision.CREATE
    if str(remote.get("hash", "")) == record.hash:
        return SyncDecision.NO_CHANGE
    return SyncDecision.UPDATE


def describe_outcome(outcome: SyncOutcome) -> str:
    return (
        f"File: {outcome.path} has been {(outcome.action or '').lower()}. "
        f"Content name: {outcome.name}."
    )


class SyncEngine:
    """Keeps a remote domain in step with the project's data files.

    Example:
        >>> engine = SyncEngine(api, "my-site", "/path/to/my-site")
        >>> result = engine.bulk_sync()
        >>> print(f"{len(result.created)} created, {len(result.updated)} updated")
    """

    def __init__(
        self,
        api: "ContentAPI",
        domain_name: str,
        project_root: str,
        config: Optional[ProjectConfig] = None,
        progress: Optional[ProgressReporter] = None,
        on_fatal: Optional[Callable[[Exception], None]] = None,
    ):
        """Initialize the engine.

        Args:
            api: Remote content client
            domain_name: Normalized domain name
            project_root: Directory containing the data files
            config: Project configuration (defaults if omitted)
            progress: Where status updates go
            on_fatal: Called (from a worker thread) when an incremental
                      event hits a fatal error
        """
        self.api = api
        self.domain_name = domain_name
        self.project_root = os.path.abspath(project_root)
        self.config = config or ProjectConfig()
        self.progress = progress or NullProgress()
        self.on_fatal = on_fatal

        self._lock = threading.Lock()
        self._pending: Dict[str, Deque[FileEvent]] = {}
        self._executor: Optional[ThreadPoolExecutor] = None
        self._closing = False

    # ------------------------------------------------------------------
    # Local side
    # ------------------------------------------------------------------

    def discover(self) -> List[DataFile]:
        return find_data_files(
            self.project_root,
            self.config.source_format,
            self.config.exclude,
        )

    def load_record(self, data_file: DataFile) -> ContentRecord:
        """Parse a data file and inline its media.

        Raises:
            DataFileReadError: If the file cannot be read
            InvalidDataFileError: If the file cannot be parsed
            MediaNotFoundError: If a referenced media file is missing
        """
        record = parse_file(data_file.full_path, data_file.path)
        return resolve_media(record, self.project_root)

    def local_records(self) -> List[ContentRecord]:
        """Parse every data file without touching the network or media."""
        return [parse_file(f.full_path, f.path) for f in self.discover()]

    # ------------------------------------------------------------------
    # Reconcile and apply
    # ------------------------------------------------------------------

    def apply(self, decision: SyncDecision, name: str, path: str,
              record: Optional[ContentRecord] = None) -> SyncOutcome:
        """Execute a decision against the backend.

        NO_CHANGE performs no request. A "No changes" answer from the
        backend is treated exactly like a local NO_CHANGE.
        """
        outcome = SyncOutcome(name=name, path=path, decision=decision)

        if decision == SyncDecision.NO_CHANGE:
            outcome.action = ACTION_NO_CHANGES
            return outcome

        if decision == SyncDecision.CREATE:
            result = self.api.create_content(self.domain_name, record.to_payload())
        elif decision == SyncDecision.UPDATE:
            result = self.api.update_content(self.domain_name, name, record.to_payload())
        else:
            result = self.api.delete_content(self.domain_name, name)
            if result is None:
                logger.info(f"Content '{name}' was already absent from '{self.domain_name}'")
                outcome.action = ACTION_NO_CHANGES
                return outcome

        action = result.get("action") if isinstance(result, dict) else None
        outcome.action = action or _DEFAULT_ACTIONS[decision]
        logger.info(f"{decision.value} {name} ({path}): {outcome.action}")
        return outcome

    def reconcile_file(self, data_file: DataFile, remote: Any = _UNFETCHED) -> SyncOutcome:
        """Reconcile one existing data file.

        Args:
            data_file: The local file
            remote: Remote item for the file's name if already known (None
                    for "known to be absent"); fetched when omitted

        Returns:
            SyncOutcome; per-file failures are captured in ``error``

        Raises:
            Any of FATAL_ERRORS
        """
        try:
            record = self.load_record(data_file)
            if remote is _UNFETCHED:
                remote = self.api.get_content(self.domain_name, data_file.name)
            decision = decide(record, remote)
            return self.apply(decision, record.name, record.path, record)
        except FATAL_ERRORS:
            raise
        except (ContentError, APIError) as e:
            logger.error(f"Failed to sync {data_file.path}: {e}")
            return SyncOutcome(name=data_file.name, path=data_file.path, error=str(e))

    def reconcile_deleted(self, data_file: DataFile) -> SyncOutcome:
        """Delete the remote item for a removed file, keyed by name only."""
        try:
            return self.apply(SyncDecision.DELETE, data_file.name, data_file.path)
        except FATAL_ERRORS:
            raise
        except APIError as e:
            logger.error(f"Failed to delete {data_file.name}: {e}")
            return SyncOutcome(
                name=data_file.name,
                path=data_file.path,
                decision=SyncDecision.DELETE,
                error=str(e),
            )

    def report(self, outcome: SyncOutcome) -> None:
        if outcome.error is not None:
            self.progress.fail(outcome.error)
        elif outcome.action == ACTION_NO_CHANGES:
            self.progress.info(f"No changes detected for {outcome.name}.")
        else:
            self.progress.succeed(describe_outcome(outcome))

    # ------------------------------------------------------------------
    # Bulk pass
    # ------------------------------------------------------------------

    def bulk_sync(self) -> BulkSyncResult:
        """Reconcile every local data file against the remote domain.

        Names are checked for uniqueness before any request is made. The
        remote domain is listed once and files are reconciled in parallel.

        Returns:
            BulkSyncResult with one outcome per file

        Raises:
            DuplicateNameError: If two files share a content name
            Any other of FATAL_ERRORS, after cancelling pending work
        """
        files = self.discover()
        ensure_unique_names(files)

        self.progress.start("Processing data files...")
        remote_items = {
            item.get("name"): item
            for item in self.api.list_contents(self.domain_name)
            if isinstance(item, dict)
        }
        logger.info(
            f"Reconciling {len(files)} local file(s) against "
            f"{len(remote_items)} remote item(s) in '{self.domain_name}'"
        )

        result = BulkSyncResult()
        if not files:
            return result

        with ThreadPoolExecutor(max_workers=self.config.max_workers) as executor:
            futures = {
                executor.submit(self.reconcile_file, f, remote_items.get(f.name)): f
                for f in files
            }

            for i, future in enumerate(as_completed(futures), 1):
                data_file = futures[future]
                self.progress.update(f"Processing {data_file.name}... ({i}/{len(files)})")
                try:
                    outcome = future.result()
                except FATAL_ERRORS:
                    for pending in futures:
                        pending.cancel()
                    raise
                result.outcomes.append(outcome)
                self.report(outcome)

        result.outcomes.sort(key=lambda o: o.path)
        logger.info(
            f"Bulk sync complete: {len(result.created)} created, "
            f"{len(result.updated)} updated, {len(result.unchanged)} unchanged, "
            f"{len(result.failed)} failed"
        )
        return result

    # ------------------------------------------------------------------
    # Incremental pass
    # ------------------------------------------------------------------

    def handle_event(self, event: FileEvent) -> SyncOutcome:
        """Run one reconcile-and-apply cycle for a filesystem event.

        Raises:
            DuplicateNameError: If an added file reuses an existing name
            Any other of FATAL_ERRORS
        """
        data_file = event.data_file

        if event.kind == EventKind.UNLINK:
            self.progress.start(f"Deleting... file: {data_file.path}")
            return self.reconcile_deleted(data_file)

        if event.kind == EventKind.ADD:
            self.progress.start(f"Creating... file: {data_file.path}")
            duplicates = find_duplicates(self.discover())
            if data_file.name in duplicates:
                raise DuplicateNameError(data_file.name, duplicates[data_file.name])
        else:
            self.progress.start(f"Updating... file: {data_file.path}")

        return self.reconcile_file(data_file)

    def submit_event(self, event: FileEvent) -> None:
        """Queue an event; events for one content name run in order.

        Safe to call from the watcher's thread.
        """
        with self._lock:
            if self._closing:
                logger.debug(f"Ignoring {event.kind.value} for {event.data_file.path}: shutting down")
                return
            queue = self._pending.get(event.name)
            if queue is not None:
                queue.append(event)
                return
            self._pending[event.name] = deque([event])
            if self._executor is None:
                self._executor = ThreadPoolExecutor(
                    max_workers=self.config.max_workers,
                    thread_name_prefix="shanoom-sync",
                )
            executor = self._executor
        executor.submit(self._drain, event.name)

    def _drain(self, name: str) -> None:
        while True:
            with self._lock:
                queue = self._pending.get(name)
                if not queue or self._closing:
                    self._pending.pop(name, None)
                    return
                event = queue.popleft()
            self._process_event(event)

    def _process_event(self, event: FileEvent) -> None:
        try:
            outcome = self.handle_event(event)
        except FATAL_ERRORS as e:
            logger.error(f"Fatal error while handling {event.data_file.path}: {e}")
            self.progress.fail(str(e))
            if self.on_fatal is not None:
                self.on_fatal(e)
            return
        except Exception as e:
            logger.exception(f"Unexpected error while handling {event.data_file.path}")
            self.progress.fail(f"{event.data_file.path}: {e}")
            return
        self.report(outcome)

    def shutdown(self, wait: bool = True) -> None:
        """Stop accepting events and let in-flight requests finish.

        Events still queued behind an in-flight one are dropped.
        """
        with self._lock:
            self._closing = True
            executor = self._executor
            self._executor = None
        if executor is not None:
            executor.shutdown(wait=wait)

    # ------------------------------------------------------------------
    # Remote to local
    # ------------------------------------------------------------------

    def _safe_target(self, relative_path: str) -> str:
        real_root = os.path.realpath(self.project_root)
        target = os.path.realpath(os.path.join(real_root, relative_path))
        if not target.startswith(real_root + os.sep):
            raise DataFileReadError(
                relative_path,
                'write',
                f'Path is outside the project directory {self.project_root}',
            )
        return target

    def pull_all(self, skip_if_count: Optional[int] = None) -> int:
        """Write every remote item to its recorded path, overwriting local files.

        Args:
            skip_if_count: When the remote domain holds exactly this many
                           items, nothing is written (used after a bulk
                           pass to skip a pointless download)

        Returns:
            Number of files written

        Raises:
            DataFileReadError: If a file cannot be written or its path
                               escapes the project directory
        """
        items = [i for i in self.api.list_contents(self.domain_name) if isinstance(i, dict)]
        if not items:
            return 0
        if skip_if_count is not None and len(items) == skip_if_count:
            logger.info(f"Remote holds {len(items)} item(s), same as local; skipping download")
            return 0

        self.progress.update("Synchronizing data files...")
        written = 0
        for item in items:
            relative_path = item.get("path")
            if not relative_path:
                logger.warning(f"Remote content '{item.get('name')}' has no path; skipping")
                continue

            target = self._safe_target(relative_path)
            data = item.get("data") or {}
            try:
                os.makedirs(os.path.dirname(target), exist_ok=True)
                with open(target, "w", encoding="utf-8") as f:
                    f.write(serialize_data(data, relative_path))
            except OSError as e:
                raise DataFileReadError(relative_path, 'write', str(e))
            written += 1
            logger.debug(f"Wrote {relative_path}")

        self.progress.succeed("Data files successfully synchronized.")
        return written

    def remove_local_files(self) -> int:
        """Delete every discovered data file (ephemeral local copies).

        Returns:
            Number of files removed
        """
        removed = 0
        for data_file in self.discover():
            try:
                os.remove(data_file.full_path)
            except FileNotFoundError:
                continue
            except OSError as e:
                raise DataFileReadError(data_file.path, 'delete', str(e))
            removed += 1
        logger.info(f"Removed {removed} local data file(s)")
        return removed
