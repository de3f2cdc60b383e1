"""Typed exception hierarchy for backend API errors.

This module defines the exceptions raised by the API client. All of them
inherit from ShanoomError so the CLI can catch any application-level failure
in one place, and each carries enough context (endpoint, status, message)
to produce a user-facing explanation.
"""

from typing import Optional


class ShanoomError(Exception):
    """Base exception for all shanoom errors.

    Use this to catch any application-level error from the CLI.
    """
    pass


class APIError(ShanoomError):
    """Base exception for all backend API errors."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class NotLoggedInError(APIError):
    """Raised when an authenticated call is attempted without a token."""

    def __init__(self):
        super().__init__("You are not logged in. Run 'shanoom login' first.")


class UnauthorizedError(APIError):
    """Raised on HTTP 401. The local credential has already been invalidated."""

    def __init__(self, endpoint: str):
        super().__init__(
            f"Session expired or invalid token ({endpoint}). Please log in again.",
            status_code=401,
        )
        self.endpoint = endpoint


class BadRequestError(APIError):
    """Raised on HTTP 400 with the server-supplied message passed through."""

    def __init__(self, message: str):
        super().__init__(message, status_code=400)


class ServerUnavailableError(APIError):
    """Raised when the backend refuses the connection or answers with 5xx."""

    def __init__(self, endpoint: str, reason: Optional[str] = None):
        message = f"Server is unreachable at {endpoint}"
        if reason:
            message += f": {reason}"
        super().__init__(message)
        self.endpoint = endpoint
        self.reason = reason


class NoConnectivityError(APIError):
    """Raised when the pre-flight connectivity probe fails."""

    def __init__(self):
        super().__init__("No internet connection")


class MaxRetriesExceededError(APIError):
    """Raised when the connectivity retry loop gives up."""

    def __init__(self, max_retries: int):
        super().__init__(
            f"Max retries exceeded ({max_retries}). Unable to connect to the internet."
        )
        self.max_retries = max_retries
