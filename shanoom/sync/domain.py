"""Domain bootstrapping.

Every content operation happens inside a domain named after the project
directory. The bootstrapper validates that name, looks the domain up and
creates it when it is missing, exactly once per CLI invocation.
"""

import logging
import os
import re
from typing import TYPE_CHECKING, Optional, Set

from ..api_client.errors import APIError
from ..content.errors import ProjectError
from ..content.models import Domain
from .progress import NullProgress, ProgressReporter

if TYPE_CHECKING:
    from ..api_client.api_wrapper import ContentAPI

logger = logging.getLogger(__name__)

DOMAIN_NAME_MIN_LENGTH = 2


def normalize_domain_name(name: str) -> str:
    """Trim, collapse whitespace runs to hyphens and lower-case.

    Example:
        >>> normalize_domain_name("  My  Site ")
        'my-site'
    """
    return re.sub(r"\s+", "-", name.strip()).lower()


def validate_domain_name(name: str) -> str:
    """Normalize a candidate domain name and check its length.

    Raises:
        ProjectError: If the normalized name is shorter than two characters
    """
    normalized = normalize_domain_name(name)
    if len(normalized) < DOMAIN_NAME_MIN_LENGTH:
        raise ProjectError(
            f"Domain name ({name}) must be at least {DOMAIN_NAME_MIN_LENGTH} characters long."
        )
    return normalized


def domain_name_for(project_root: str) -> str:
    """Derive and validate the domain name from the project directory."""
    return validate_domain_name(os.path.basename(os.path.abspath(project_root)))


class DomainBootstrapper:
    """Ensures the project's domain exists before content is touched.

    Lookup and creation failures propagate unchanged: the API client has
    already retried whatever was retryable, so the caller aborts the command.

    Example:
        >>> bootstrapper = DomainBootstrapper(api, progress)
        >>> bootstrapper.ensure_domain("my-site", "Marketing site")
    """

    def __init__(self, api: "ContentAPI", progress: Optional[ProgressReporter] = None):
        self.api = api
        self.progress = progress or NullProgress()
        self._ensured: Set[str] = set()

    def ensure_domain(self, domain_name: str, description: str = "") -> Domain:
        """Make sure the domain exists, creating it if needed.

        Args:
            domain_name: Candidate name (normalized before use)
            description: Description used when the domain is created

        Returns:
            The Domain that now exists remotely

        Raises:
            ProjectError: If the name is too short (no network call is made)
            APIError: If lookup or creation fails
        """
        domain = Domain(name=validate_domain_name(domain_name), description=description)
        if domain.name in self._ensured:
            return domain

        existing = self.api.get_domain(domain.name)
        if existing:
            logger.info(f"Domain '{domain.name}' already exists")
            self._ensured.add(domain.name)
            return Domain(
                name=existing.get("name", domain.name),
                description=existing.get("description") or "",
            )

        self.progress.update("Creating domain...")
        logger.info(f"Creating domain '{domain.name}'")
        result = self.api.create_domain(domain.to_payload())

        # The backend answers with the bare string "Created" or a domain object
        if isinstance(result, str) and result != "Created":
            self.progress.fail(f"Operation failed: {result}")
            raise APIError(f"Could not create domain '{domain.name}': {result}")

        self.progress.succeed(f'Domain "{domain.name}" has been successfully created.')
        self._ensured.add(domain.name)
        return domain
