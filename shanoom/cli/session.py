"""Construction of the objects every command needs.

Commands run against the working directory. ``load_project`` validates it
(manifest present, usable domain name, valid ``.shanoom.yaml``) before any
network call; ``build_api`` wires the API client to the credential file and
the project's retry and timeout settings.
"""

import logging
import os
from typing import Optional

from ..api_client.api_wrapper import ContentAPI
from ..api_client.auth import CredentialStore
from ..api_client.retry_logic import ConnectivityProbe
from ..content.config_loader import ConfigLoader, load_manifest
from ..content.models import ProjectConfig
from ..sync.domain import domain_name_for
from ..sync.progress import ProgressReporter
from .models import Project

logger = logging.getLogger(__name__)


def load_project(root: Optional[str] = None) -> Project:
    """Load the project in ``root`` (defaults to the working directory).

    Raises:
        ProjectError: If there is no manifest or the directory name is not
                      a valid domain name
        ConfigError: If ``.shanoom.yaml`` is invalid
    """
    project_root = os.path.abspath(root or os.getcwd())
    manifest = load_manifest(project_root)
    config = ConfigLoader.load(project_root)
    domain_name = domain_name_for(project_root)
    logger.debug(f"Project {project_root} -> domain '{domain_name}' ({manifest.path})")
    return Project(root=project_root, domain_name=domain_name, config=config, manifest=manifest)


def load_config(root: Optional[str] = None) -> ProjectConfig:
    """Load ``.shanoom.yaml`` if present, without requiring a project."""
    return ConfigLoader.load(os.path.abspath(root or os.getcwd()))


def build_api(
    config: ProjectConfig,
    progress: ProgressReporter,
    credentials: Optional[CredentialStore] = None,
) -> ContentAPI:
    """Create the API client for a command run."""
    credentials = credentials or CredentialStore()
    credentials.ensure_exists()
    probe = ConnectivityProbe(
        host=config.connectivity_host,
        port=config.connectivity_port,
        enabled=config.connectivity_check,
    )
    return ContentAPI(
        credentials,
        base_url=config.api_url,
        probe=probe,
        max_retries=config.max_retries,
        retry_delay=config.retry_delay,
        timeout=config.request_timeout,
        progress=progress,
    )
