"""Domain management commands.

Confirmation prompts for destructive operations live in the Typer layer;
the methods here assume the user already agreed.
"""

import logging
from typing import Any, Dict

from ..api_client.api_wrapper import ContentAPI
from ..sync.domain import validate_domain_name
from .errors import DomainNotFoundError
from .output import OutputHandler

logger = logging.getLogger(__name__)


class DomainCommand:
    """List, show, update and delete domains."""

    def __init__(self, api: ContentAPI, output: OutputHandler):
        self.api = api
        self.output = output

    def list_domains(self) -> int:
        """Print every domain owned by the user.

        Returns:
            Number of domains
        """
        self.output.start("Fetching domains...")
        try:
            domains = self.api.list_domains()
        finally:
            self.output.stop()

        if not domains:
            self.output.info("No domains found.")
            return 0

        self.output.print_heading(f"Domains ({len(domains)})")
        for domain in domains:
            self.output.print(self._describe(domain))
        return len(domains)

    def show(self, name: str) -> Dict[str, Any]:
        domain_name = validate_domain_name(name)
        self.output.start("Fetching domain...")
        try:
            domain = self.api.get_domain(domain_name)
        finally:
            self.output.stop()

        if domain is None:
            raise DomainNotFoundError(domain_name)
        self.output.print_data(domain)
        return domain

    def update(self, name: str, description: str) -> None:
        domain_name = validate_domain_name(name)
        self.output.start("Updating domain...")
        try:
            self.api.update_domain(domain_name, {"description": description})
        finally:
            self.output.stop()
        self.output.success(f'Domain "{domain_name}" has been updated.')

    def delete(self, name: str) -> None:
        """Delete one domain and all of its content."""
        domain_name = validate_domain_name(name)
        self.output.start("Deleting domain...")
        try:
            if self.api.get_domain(domain_name) is None:
                raise DomainNotFoundError(domain_name)
            self.api.delete_domain(domain_name)
        finally:
            self.output.stop()
        logger.info(f"Deleted domain '{domain_name}'")
        self.output.success(f'Domain "{domain_name}" has been successfully deleted.')

    def delete_all(self) -> None:
        self.output.start("Deleting all domains...")
        try:
            self.api.delete_domains()
        finally:
            self.output.stop()
        self.output.success("All domains have been successfully deleted.")

    @staticmethod
    def _describe(domain: Dict[str, Any]) -> str:
        name = domain.get("name", "?")
        description = domain.get("description")
        return f"  {name} - {description}" if description else f"  {name}"
