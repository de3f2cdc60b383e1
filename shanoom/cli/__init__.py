"""Command-line interface for the shanoom content backend.

This package provides the `shanoom` CLI tool: account commands, one-shot and
continuous sync of local data files, content inspection and domain
management, with Rich terminal output and typed exit codes.
"""

from .content_command import ContentCommand
from .domain_command import DomainCommand
from .errors import (
    AlreadyLoggedInError,
    CLIError,
    ContentNotFoundError,
    DomainNotFoundError,
)
from .models import ExitCode, Project
from .output import OutputHandler
from .sync_command import SyncCommand
from .user_command import UserCommand

__all__ = [
    'ContentCommand',
    'DomainCommand',
    'SyncCommand',
    'UserCommand',
    'OutputHandler',
    'ExitCode',
    'Project',
    'CLIError',
    'AlreadyLoggedInError',
    'ContentNotFoundError',
    'DomainNotFoundError',
]
