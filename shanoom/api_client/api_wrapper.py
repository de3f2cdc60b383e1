"""HTTP client for the shanoom backend REST API.

This module wraps a requests Session and exposes one method per backend verb
(user, domain and content endpoints). It translates HTTP failures into the
typed exceptions from ``errors`` and routes every request through the
connectivity retry loop in ``retry_logic``.
"""

import logging
import re
import time
from typing import Any, Callable, Dict, List, Optional

import requests
from requests.exceptions import ConnectionError, Timeout
from requests.utils import quote

from ..sync.progress import NullProgress, ProgressReporter
from .auth import CredentialStore, resolve_api_url
from .errors import (
    APIError,
    BadRequestError,
    NotLoggedInError,
    ServerUnavailableError,
    UnauthorizedError,
)
from .retry_logic import MAX_RETRIES, RETRY_DELAY, ConnectivityProbe, call_with_retries

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30


def _segment(value: str) -> str:
    """Quote a value for use as a single URL path segment."""
    return quote(str(value), safe="")


class ContentAPI:
    """Typed access to the shanoom backend.

    This class provides a thin wrapper over the REST API that:
    1. Attaches the bearer token from the CredentialStore
    2. Sends every request through the connectivity retry loop
    3. Translates HTTP errors to typed exceptions (401 also invalidates
       the stored credential)
    4. Returns None for "not found" lookups instead of raising

    Example:
        >>> api = ContentAPI(CredentialStore())
        >>> api.get_content("my-site", "user")
        {'name': 'user', 'hash': '1243668434', 'data': {...}}
    """

    def __init__(
        self,
        credentials: CredentialStore,
        base_url: Optional[str] = None,
        probe: Optional[Callable[[], bool]] = None,
        max_retries: int = MAX_RETRIES,
        retry_delay: float = RETRY_DELAY,
        timeout: float = DEFAULT_TIMEOUT,
        session: Optional[requests.Session] = None,
        sleep: Callable[[float], None] = time.sleep,
        progress: Optional[ProgressReporter] = None,
    ):
        self._credentials = credentials
        self.base_url = resolve_api_url(base_url)
        self._probe = probe if probe is not None else ConnectivityProbe()
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self.timeout = timeout
        self._session = session or requests.Session()
        self._sleep = sleep
        self.progress = progress or NullProgress()

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    def _request(
        self,
        method: str,
        endpoint: str,
        payload: Optional[Dict[str, Any]] = None,
        authenticated: bool = True,
        allow_missing: bool = False,
    ) -> Any:
        """Send one request and decode the JSON response.

        Args:
            method: HTTP method
            endpoint: Path relative to the base URL (no leading slash)
            payload: Optional JSON body
            authenticated: Attach the bearer token (and require one)
            allow_missing: Return None on 404 instead of raising

        Returns:
            Decoded JSON body, or None for empty bodies and allowed 404s

        Raises:
            NotLoggedInError: If authentication is required and no token is stored
            UnauthorizedError: On 401 (credential file is removed first)
            BadRequestError: On 400, carrying the server message
            ServerUnavailableError: On refused connections, timeouts and 5xx
            MaxRetriesExceededError: If connectivity never came back
            APIError: On any other error status
        """
        headers = {"Content-Type": "application/json"}
        if authenticated:
            token = self._credentials.get_token()
            if not token:
                raise NotLoggedInError()
            headers["Authorization"] = f"Bearer {token}"

        url = f"{self.base_url}{endpoint}"
        operation = f"{method} /{endpoint}"

        def _send() -> requests.Response:
            try:
                return self._session.request(
                    method,
                    url,
                    json=payload,
                    headers=headers,
                    timeout=self.timeout,
                )
            except (Timeout, ConnectionError) as e:
                logger.debug(f"{operation} failed: {self._sanitize_credentials(str(e))}")
                raise ServerUnavailableError(self.base_url, type(e).__name__) from e

        response = call_with_retries(
            _send,
            self._probe,
            max_retries=self.max_retries,
            delay=self.retry_delay,
            sleep=self._sleep,
            on_retry=self._report_retry,
        )

        status = response.status_code
        logger.debug(f"{operation} -> {status}")

        if allow_missing and status == 404:
            return None

        if status >= 400:
            raise self._translate_error(response, operation, authenticated)

        return self._decode(response)

    def _report_retry(self, attempt: int, max_retries: int) -> None:
        self.progress.update(
            f"Retrying internet connection... (Attempt {attempt} of {max_retries})"
        )

    @staticmethod
    def _decode(response: requests.Response) -> Any:
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            return response.text

    @staticmethod
    def _server_message(response: requests.Response) -> str:
        """Extract the human-readable message from an error response."""
        try:
            body = response.json()
        except ValueError:
            return response.text.strip() or response.reason or f"HTTP {response.status_code}"

        if isinstance(body, dict):
            message = body.get("message") or body.get("error")
            if isinstance(message, list):
                return "; ".join(str(m) for m in message)
            if message:
                return str(message)
        return response.reason or f"HTTP {response.status_code}"

    def _translate_error(
        self,
        response: requests.Response,
        operation: str,
        authenticated: bool,
    ) -> Exception:
        """Translate an error response to a typed exception.

        Args:
            response: The HTTP response with an error status
            operation: Description of the request (for messages and logging)
            authenticated: Whether the request carried the stored token

        Returns:
            Exception: Translated exception (one of our typed exceptions)
        """
        status = response.status_code
        message = self._server_message(response)

        if status == 401:
            if not authenticated:
                return BadRequestError(message)
            self._credentials.invalidate()
            return UnauthorizedError(operation)

        if status == 400:
            return BadRequestError(message)

        if status >= 500:
            return ServerUnavailableError(self.base_url, f"HTTP {status}")

        logger.error(
            f"API operation failed: {operation} - {self._sanitize_credentials(message)}"
        )
        return APIError(f"{message} ({operation})", status_code=status)

    @staticmethod
    def _sanitize_credentials(text: str) -> str:
        """Mask bearer tokens and token fields before text reaches a log."""
        if not text:
            return text

        sanitized = re.sub(
            r'Authorization:\s*[^\n\r]+',
            'Authorization: ***REDACTED***',
            text,
            flags=re.IGNORECASE
        )
        sanitized = re.sub(
            r'Bearer\s+[^\s\n\r]+',
            'Bearer ***REDACTED***',
            sanitized,
            flags=re.IGNORECASE
        )
        sanitized = re.sub(
            r'(token|password)["\']?\s*[:=]\s*["\']?([^"\'\s&,}]+)',
            r'\1=***REDACTED***',
            sanitized,
            flags=re.IGNORECASE
        )
        return sanitized

    # ------------------------------------------------------------------
    # User
    # ------------------------------------------------------------------

    def login(self, email: str, password: str) -> Dict[str, Any]:
        """Exchange email and password for a token.

        Returns:
            Response body, containing at least ``token``
        """
        return self._request(
            "POST",
            "user/login",
            {"email": email, "password": password},
            authenticated=False,
        )

    def logout(self) -> Any:
        return self._request("POST", "user/logout", {})

    def get_user(self) -> Dict[str, Any]:
        return self._request("GET", "user")

    # ------------------------------------------------------------------
    # Domains
    # ------------------------------------------------------------------

    def create_domain(self, data: Dict[str, Any]) -> Any:
        return self._request("POST", "domain", data)

    def get_domain(self, domain_name: str) -> Optional[Dict[str, Any]]:
        """Fetch a domain by name.

        Returns:
            Domain dict, or None if the domain does not exist
        """
        result = self._request(
            "GET", f"domain/{_segment(domain_name)}", allow_missing=True
        )
        return result or None

    def list_domains(self) -> List[Dict[str, Any]]:
        return self._request("GET", "domain/list") or []

    def update_domain(self, domain_name: str, data: Dict[str, Any]) -> Any:
        return self._request("PATCH", f"domain/{_segment(domain_name)}", data)

    def delete_domain(self, domain_name: str) -> Any:
        return self._request("DELETE", f"domain/{_segment(domain_name)}")

    def delete_domains(self) -> Any:
        return self._request("DELETE", "domain")

    # ------------------------------------------------------------------
    # Content
    # ------------------------------------------------------------------

    def create_content(self, domain_name: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        """Create a content item (the server answers "No changes" on equal hash).

        Returns:
            Result dict with ``action``, ``name`` and ``path``
        """
        return self._request("POST", f"content/{_segment(domain_name)}", payload)

    def update_content(
        self,
        domain_name: str,
        content_name: str,
        payload: Dict[str, Any],
    ) -> Dict[str, Any]:
        return self._request(
            "PATCH",
            f"content/{_segment(domain_name)}/{_segment(content_name)}",
            payload,
        )

    def delete_content(self, domain_name: str, content_name: str) -> Optional[Dict[str, Any]]:
        """Delete a content item.

        Returns:
            Result dict, or None if the item was already gone
        """
        return self._request(
            "DELETE",
            f"content/{_segment(domain_name)}/{_segment(content_name)}",
            allow_missing=True,
        )

    def get_content(self, domain_name: str, content_name: str) -> Optional[Dict[str, Any]]:
        """Fetch one content item.

        Returns:
            Content dict, or None if no item has that name
        """
        result = self._request(
            "GET",
            f"content/{_segment(domain_name)}/{_segment(content_name)}",
            allow_missing=True,
        )
        return result or None

    def list_contents(self, domain_name: str) -> List[Dict[str, Any]]:
        return self._request(
            "GET", f"content/list/{_segment(domain_name)}", allow_missing=True
        ) or []

    def count_contents(self, domain_name: str) -> int:
        result = self._request(
            "GET", f"content/count/{_segment(domain_name)}", allow_missing=True
        )
        if isinstance(result, dict):
            return int(result.get("count", 0))
        if isinstance(result, int):
            return result
        return 0

    def delete_all_contents(self, domain_name: str) -> Any:
        return self._request("DELETE", f"content/{_segment(domain_name)}")
