"""User lifecycle commands: login, logout, whoami and profile."""

import logging
from typing import Any, Dict

from ..api_client.api_wrapper import ContentAPI
from ..api_client.auth import CredentialStore
from ..api_client.errors import APIError, NotLoggedInError
from .errors import AlreadyLoggedInError
from .output import OutputHandler, format_timestamp

logger = logging.getLogger(__name__)

HIDDEN_PROFILE_FIELDS = ("_id", "id", "__v", "password", "token")
TIMESTAMP_FIELDS = ("createdAt", "updatedAt", "lastLogin")


class UserCommand:
    """Handles the account commands.

    Example:
        >>> cmd = UserCommand(api, credentials, output)
        >>> cmd.login("ada@example.com", "secret")
    """

    def __init__(self, api: ContentAPI, credentials: CredentialStore, output: OutputHandler):
        self.api = api
        self.credentials = credentials
        self.output = output

    def login(self, email: str, password: str) -> None:
        """Exchange credentials for a token and store it.

        Raises:
            AlreadyLoggedInError: If a token is already stored
            BadRequestError: If the backend rejects the credentials
        """
        if self.credentials.is_logged_in():
            raise AlreadyLoggedInError()

        self.output.start("Logging in...")
        try:
            response = self.api.login(email, password)
        finally:
            self.output.stop()

        token = response.get("token") if isinstance(response, dict) else None
        if not token:
            raise APIError("Login failed: the server did not return a token")

        self.credentials.save_token(token)
        logger.info(f"Logged in as {email}")
        self.output.success("Successfully logged in.")

    def logout(self) -> None:
        """End the session on the server and clear the local token."""
        if not self.credentials.is_logged_in():
            raise NotLoggedInError()

        self.output.start("Logging out...")
        try:
            self.api.logout()
        finally:
            self.output.stop()

        self.credentials.clear()
        self.output.success("Successfully logged out.")

    def whoami(self) -> None:
        user = self._fetch_user()
        name = user.get("name") or user.get("username") or "unknown"
        email = user.get("email")
        self.output.print(f"{name} ({email})" if email else name)

    def profile(self) -> None:
        """Print every user field except internal ids and secrets."""
        user = self._fetch_user()
        self.output.print_heading("Profile")
        for key, value in user.items():
            if key in HIDDEN_PROFILE_FIELDS:
                continue
            if key in TIMESTAMP_FIELDS:
                value = format_timestamp(value)
            self.output.print(f"  {key}: {value}")

    def _fetch_user(self) -> Dict[str, Any]:
        self.output.start("Fetching user...")
        try:
            user = self.api.get_user()
        finally:
            self.output.stop()
        if not isinstance(user, dict):
            raise APIError("Unexpected response from the server for the current user")
        # Some backends wrap the user object
        return user.get("user", user) if isinstance(user.get("user"), dict) else user
