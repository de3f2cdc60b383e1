"""Sync command orchestration for CLI.

This module provides the SyncCommand class behind ``shanoom run`` and
``shanoom watch``. Both ensure the project's domain exists and push every
local data file; ``run`` then pulls remote content when the two sides hold
a different number of items, while ``watch`` keeps syncing on every file
change until stopped.
"""

import logging
import sys
from typing import Optional, TextIO

from ..api_client.api_wrapper import ContentAPI
from ..content.discovery import ensure_unique_names
from ..content.models import BulkSyncResult
from ..sync.domain import DomainBootstrapper
from ..sync.engine import SyncEngine
from ..sync.watcher import ChangeWatcher
from .models import ExitCode, Project
from .output import OutputHandler

logger = logging.getLogger(__name__)


class SyncCommand:
    """Orchestrates one-shot and continuous sync for a project.

    The sync workflow:
        1. Refuse duplicate content names, then ensure the domain exists (created from the directory name and
           the manifest description)
        2. Bulk pass: reconcile every data file against the remote domain
        3. ``run``: sync down when remote and local counts differ
           ``watch``: hand filesystem events to the engine until stopped

    Errors from the API client and the engine propagate to the caller,
    which maps them to exit codes.

    Example:
        >>> sync_cmd = SyncCommand(project, api, output)
        >>> exit_code = sync_cmd.run()
    """

    def __init__(
        self,
        project: Project,
        api: ContentAPI,
        output: OutputHandler,
        engine: Optional[SyncEngine] = None,
        bootstrapper: Optional[DomainBootstrapper] = None,
    ):
        self.project = project
        self.api = api
        self.output = output
        self.engine = engine or SyncEngine(
            api,
            project.domain_name,
            project.root,
            project.config,
            progress=output,
        )
        self.bootstrapper = bootstrapper or DomainBootstrapper(api, output)

    def _ensure_domain(self) -> None:
        ensure_unique_names(self.engine.discover())
        self.output.start("Checking domain...")
        self.bootstrapper.ensure_domain(self.project.domain_name, self.project.description)

    def _push(self) -> BulkSyncResult:
        try:
            result = self.engine.bulk_sync()
        finally:
            self.output.stop()
        self.output.print_summary(
            created=len(result.created),
            updated=len(result.updated),
            unchanged=len(result.unchanged),
            failed=len(result.failed),
        )
        return result

    def run(self) -> ExitCode:
        """Push local data, then pull remote data if the counts differ.

        Returns:
            ExitCode.SUCCESS, or GENERAL_ERROR when any file failed
        """
        self._ensure_domain()
        result = self._push()

        self.output.start("Checking remote content...")
        try:
            self.engine.pull_all(skip_if_count=len(result.outcomes))
        finally:
            self.output.stop()

        return ExitCode.GENERAL_ERROR if result.failed else ExitCode.SUCCESS

    def watch(self, pull: bool = False, ephemeral: bool = False, stdin: Optional[TextIO] = None) -> ExitCode:
        """Sync once, then keep syncing on file changes until stopped.

        Args:
            pull: Overwrite local data files from the backend before pushing
            ephemeral: Remove all local data files when the watcher stops
            stdin: Stream read for "exit" / "quit" (defaults to sys.stdin)

        Returns:
            ExitCode.SUCCESS after a requested stop

        Raises:
            The fatal sync error that stopped the watcher, after cleanup
        """
        self._ensure_domain()
        if pull:
            try:
                self.engine.pull_all()
            finally:
                self.output.stop()
        self._push()

        watcher = ChangeWatcher(
            self.engine,
            progress=self.output,
            stdin=stdin if stdin is not None else sys.stdin,
            cleanup=self._remove_local_files if ephemeral else None,
        )
        watcher.run()
        return ExitCode.SUCCESS

    def _remove_local_files(self) -> None:
        removed = self.engine.remove_local_files()
        self.output.info(f"Removed {removed} local data file(s).")
