"""Connectivity-aware retry loop for backend calls.

Every HTTP call made by the API client goes through ``call_with_retries``.
Before each attempt a connectivity probe runs; when the machine is offline the
loop waits a fixed delay (one second by default) and tries again, up to a
bounded number of retries, then gives up with MaxRetriesExceededError.

Only the "no connectivity" case is retried. A refused connection or a server
error means the network is fine and the backend is not, so those fail fast.
The request itself is only sent after the probe succeeds, which means a
retry never repeats a request the server has already acknowledged.
"""

import logging
import socket
import time
from typing import Callable, Optional, TypeVar

from .errors import MaxRetriesExceededError, NoConnectivityError

logger = logging.getLogger(__name__)

T = TypeVar('T')

MAX_RETRIES = 20
RETRY_DELAY = 1.0

DEFAULT_PROBE_HOST = "1.1.1.1"
DEFAULT_PROBE_PORT = 53


class ConnectivityProbe:
    """Checks whether the machine can reach the internet.

    Opens (and immediately closes) a TCP connection to a well-known host.
    A disabled probe always reports online, for offline development against
    a local backend.

    Example:
        >>> probe = ConnectivityProbe()
        >>> if not probe():
        ...     print("offline")
    """

    def __init__(
        self,
        host: str = DEFAULT_PROBE_HOST,
        port: int = DEFAULT_PROBE_PORT,
        timeout: float = 3.0,
        enabled: bool = True,
    ):
        self.host = host
        self.port = port
        self.timeout = timeout
        self.enabled = enabled

    def __call__(self) -> bool:
        if not self.enabled:
            return True
        try:
            with socket.create_connection((self.host, self.port), timeout=self.timeout):
                return True
        except OSError as e:
            logger.debug(f"Connectivity probe to {self.host}:{self.port} failed: {e}")
            return False


def call_with_retries(
    func: Callable[[], T],
    probe: Callable[[], bool],
    max_retries: int = MAX_RETRIES,
    delay: float = RETRY_DELAY,
    sleep: Callable[[float], None] = time.sleep,
    on_retry: Optional[Callable[[int, int], None]] = None,
) -> T:
    """Run ``func`` once connectivity is confirmed, retrying while offline.

    Args:
        func: Zero-argument callable performing the actual request
        probe: Zero-argument callable returning True when online
        max_retries: Retries after the first attempt before giving up
        delay: Seconds to wait between attempts
        sleep: Sleep function (injected so tests run without real delays)
        on_retry: Optional callback receiving (attempt, max_retries) before
                  each wait, used for progress feedback

    Returns:
        The return value of ``func``

    Raises:
        MaxRetriesExceededError: If the probe still fails after max_retries
        Other exceptions: Raised by ``func``, passed through without retry

    Example:
        >>> data = call_with_retries(lambda: session.get(url), probe)
    """
    for attempt in range(max_retries + 1):
        try:
            if not probe():
                raise NoConnectivityError()
            return func()
        except NoConnectivityError:
            if attempt >= max_retries:
                logger.error(f"No connectivity after {max_retries} retries, giving up")
                raise MaxRetriesExceededError(max_retries)

            logger.info(
                f"No internet connection, retrying in {delay}s "
                f"(attempt {attempt + 1} of {max_retries})"
            )
            if on_retry is not None:
                on_retry(attempt + 1, max_retries)
            sleep(delay)

    raise MaxRetriesExceededError(max_retries)
