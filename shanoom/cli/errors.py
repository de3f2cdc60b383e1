"""Typed exception hierarchy for CLI-related errors.

This module defines the exceptions raised by command orchestration itself,
as opposed to the API client or the content layer.
"""

from ..api_client.errors import ShanoomError


class CLIError(ShanoomError):
    """Base exception for all CLI-related errors."""
    pass


class AlreadyLoggedInError(CLIError):
    """Raised when login is attempted while a token is stored."""

    def __init__(self):
        super().__init__("You are already logged in. Run 'shanoom logout' first.")


class DomainNotFoundError(CLIError):
    """Raised when a command needs a domain the backend does not have."""

    def __init__(self, domain_name: str):
        super().__init__(
            f'Domain "{domain_name}" does not exist. '
            f"Run 'shanoom watch' in the project directory to create it."
        )
        self.domain_name = domain_name


class ContentNotFoundError(CLIError):
    """Raised when a named content item does not exist in the domain."""

    def __init__(self, name: str, domain_name: str):
        super().__init__(f'Content "{name}" not found in domain "{domain_name}".')
        self.name = name
        self.domain_name = domain_name
