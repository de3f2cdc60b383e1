"""Credential storage for the shanoom backend.

The bearer token lives in a small JSON file in the user's home directory
(``~/.shanoomrc`` unless ``SHANOOM_RC`` points elsewhere). The backend URL is
read from the environment, with a ``.env`` file in the working directory
loaded through python-dotenv.
"""

import json
import logging
import os
from pathlib import Path
from typing import Optional

from dotenv import find_dotenv, load_dotenv

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "http://localhost:4000/"
CREDENTIAL_FILE_NAME = ".shanoomrc"


def default_credential_path() -> Path:
    """Return the credential file location, honouring SHANOOM_RC."""
    override = os.getenv("SHANOOM_RC")
    if override:
        return Path(override).expanduser()
    return Path.home() / CREDENTIAL_FILE_NAME


def resolve_api_url(configured: Optional[str] = None) -> str:
    """Resolve the backend base URL.

    Precedence: explicit value (project config), then SHANOOM_API_URL from
    the environment or .env file, then the local development default.
    The returned URL always ends with a slash.
    """
    load_dotenv(find_dotenv(usecwd=True))
    url = configured or os.getenv("SHANOOM_API_URL") or DEFAULT_API_URL
    if not url.endswith("/"):
        url += "/"
    return url


class CredentialStore:
    """Reads and writes the ``{"token": ...}`` credential file.

    The file is created with an empty token when missing, cleared (not
    removed) on logout, and deleted outright when the backend rejects the
    token so the next command asks the user to log in again.

    Example:
        >>> store = CredentialStore()
        >>> store.ensure_exists()
        >>> token = store.get_token()
    """

    def __init__(self, path: Optional[Path] = None):
        self.path = Path(path) if path else default_credential_path()

    def ensure_exists(self) -> None:
        """Create the credential file with an empty token if it is absent."""
        if not self.path.exists():
            self._write("")

    def get_token(self) -> str:
        """Return the stored token, or an empty string when logged out.

        A missing or unreadable file counts as logged out.
        """
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                payload = json.load(f)
        except FileNotFoundError:
            return ""
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Could not read credential file {self.path}: {e}")
            return ""

        if not isinstance(payload, dict):
            return ""
        token = payload.get("token") or ""
        return token if isinstance(token, str) else ""

    def is_logged_in(self) -> bool:
        return bool(self.get_token())

    def save_token(self, token: str) -> None:
        self._write(token)

    def clear(self) -> None:
        """Empty the token (logout)."""
        self._write("")

    def invalidate(self) -> None:
        """Delete the credential file after an authentication failure."""
        try:
            self.path.unlink()
            logger.info(f"Removed rejected credential file {self.path}")
        except FileNotFoundError:
            pass

    def _write(self, token: str) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump({"token": token}, f)
