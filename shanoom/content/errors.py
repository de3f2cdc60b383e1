"""Typed exception hierarchy for local content errors.

This module defines the exceptions raised while reading, parsing and
resolving local data files. All exceptions inherit from ContentError and
name the offending file (or field) so the user knows what to fix.
"""

from typing import List, Optional

from ..api_client.errors import ShanoomError


class ContentError(ShanoomError):
    """Base exception for all local content errors."""
    pass


class DataFileReadError(ContentError):
    """Raised when a data file cannot be read (missing, permissions, etc)."""

    def __init__(self, file_path: str, operation: str = "read", reason: Optional[str] = None):
        message = f"Filesystem operation '{operation}' failed for {file_path}"
        if reason:
            message += f": {reason}"
        super().__init__(message)
        self.file_path = file_path
        self.operation = operation
        self.reason = reason


class InvalidDataFileError(ContentError):
    """Raised when a data file's text cannot be parsed."""

    def __init__(self, file_path: str, reason: Optional[str] = None):
        message = f"Invalid data file: {file_path}"
        if reason:
            message += f" ({reason})"
        super().__init__(message)
        self.file_path = file_path
        self.reason = reason


class DuplicateNameError(ContentError):
    """Raised when two data files derive the same content name."""

    def __init__(self, name: str, paths: List[str]):
        joined = ", ".join(paths)
        super().__init__(
            f'Duplicate data file name "{name}" found ({joined}). '
            f"Data file names must be unique within a project: rename one of "
            f"the files and run the command again."
        )
        self.name = name
        self.paths = paths


class MediaNotFoundError(ContentError):
    """Raised when a ``src`` reference points to a file that does not exist."""

    def __init__(self, src: str, record_path: str, reason: Optional[str] = None):
        message = f"File not found: {src} in the {record_path} file"
        if reason:
            message += f". {reason}"
        super().__init__(message)
        self.src = src
        self.record_path = record_path


class ContentHashError(ContentError):
    """Raised when there is nothing to hash."""

    def __init__(self):
        super().__init__("Error while hashing content")


class ConfigError(ContentError):
    """Raised when project configuration validation fails."""

    def __init__(self, message: str, config_field: Optional[str] = None):
        if config_field:
            full_message = f"Configuration error in field '{config_field}': {message}"
        else:
            full_message = f"Configuration error: {message}"
        super().__init__(full_message)
        self.config_field = config_field
        self.original_message = message


class ProjectError(ContentError):
    """Raised when the working directory is not a usable project."""

    def __init__(self, message: str):
        super().__init__(message)
