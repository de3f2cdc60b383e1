"""Data models for CLI operations."""

from dataclasses import dataclass
from enum import IntEnum

from ..content.config_loader import ProjectManifest
from ..content.models import ProjectConfig


class ExitCode(IntEnum):
    """Exit codes for CLI operations.

    - SUCCESS (0): Operation completed successfully
    - GENERAL_ERROR (1): Any fatal error: missing manifest, invalid domain
      name, duplicate content name, authentication or network failure, or
      a data file that failed during `run`

    Example:
        >>> exit_code = ExitCode.SUCCESS
        >>> sys.exit(exit_code)
    """
    SUCCESS = 0
    GENERAL_ERROR = 1


@dataclass
class Project:
    """The project a command runs in (always the working directory).

    Attributes:
        root: Absolute project directory
        domain_name: Normalized domain name derived from the directory
        config: Settings from ``.shanoom.yaml``
        manifest: Manifest the domain description is read from
    """
    root: str
    domain_name: str
    config: ProjectConfig
    manifest: ProjectManifest

    @property
    def description(self) -> str:
        return self.manifest.description
