"""Content inspection and local data commands.

``raw`` and ``remove-data`` work on local files only. ``get-content``,
``get-contents`` and ``get-all-data`` read from the project's remote domain
and fail with a hint when that domain has not been created yet.
"""

import logging
from typing import Any, Dict, List

from ..api_client.api_wrapper import ContentAPI
from ..sync.engine import SyncEngine
from .errors import ContentNotFoundError, DomainNotFoundError
from .models import Project
from .output import OutputHandler, format_timestamp

logger = logging.getLogger(__name__)


class ContentCommand:
    """Commands that read content, locally or from the backend.

    Example:
        >>> cmd = ContentCommand(project, api, output)
        >>> cmd.get_content("user", meta=True)
    """

    def __init__(self, project: Project, api: ContentAPI, output: OutputHandler):
        self.project = project
        self.api = api
        self.output = output
        self.engine = SyncEngine(
            api,
            project.domain_name,
            project.root,
            project.config,
            progress=output,
        )

    def raw(self) -> int:
        """Print the parsed data of every local data file.

        Returns:
            Number of data files
        """
        records = self.engine.local_records()
        data = {record.name: record.data for record in records}
        self.output.print_heading(self.project.domain_name)
        self.output.print_data(data)
        self.output.print(f"Total: {len(records)} data file(s)")
        return len(records)

    def get_content(self, name: str, meta: bool = False) -> Dict[str, Any]:
        """Print one remote content item.

        Raises:
            DomainNotFoundError: If the project's domain does not exist
            ContentNotFoundError: If no item has that name
        """
        self.output.start("Fetching content...")
        try:
            self._require_domain()
            item = self.api.get_content(self.project.domain_name, name)
        finally:
            self.output.stop()

        if item is None:
            raise ContentNotFoundError(name, self.project.domain_name)
        self._print_item(item, meta)
        return item

    def get_contents(self, meta: bool = False) -> List[Dict[str, Any]]:
        self.output.start("Fetching contents...")
        try:
            self._require_domain()
            items = self.api.list_contents(self.project.domain_name)
        finally:
            self.output.stop()

        if not items:
            self.output.info(f'No content in domain "{self.project.domain_name}".')
            return []

        for item in items:
            self._print_item(item, meta)
        self.output.print(f"Total: {len(items)} item(s)")
        return items

    def get_all_data(self) -> int:
        """Overwrite local data files with the remote domain's content.

        Returns:
            Number of files written
        """
        self.output.start("Fetching data files...")
        try:
            self._require_domain()
            written = self.engine.pull_all()
        finally:
            self.output.stop()

        if written == 0:
            self.output.info(f'No content in domain "{self.project.domain_name}".')
        return written

    def remove_data(self) -> int:
        removed = self.engine.remove_local_files()
        self.output.success(f"Removed {removed} data file(s).")
        return removed

    def _require_domain(self) -> None:
        if self.api.get_domain(self.project.domain_name) is None:
            raise DomainNotFoundError(self.project.domain_name)

    def _print_item(self, item: Dict[str, Any], meta: bool) -> None:
        self.output.print_heading(f"{item.get('name')} ({item.get('path', '?')})")
        self.output.print_data(item.get("data", {}))
        if meta:
            self.output.print(f"  Created: {format_timestamp(item.get('createdAt', '-'))}")
            self.output.print(f"  Updated: {format_timestamp(item.get('updatedAt', '-'))}")
