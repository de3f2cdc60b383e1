"""Progress-reporting interface used by the sync engine and API client.

Core components never touch the terminal. They receive a ProgressReporter and
call it to announce what they are doing; the CLI passes an implementation
backed by Rich, tests pass NullProgress or a Mock.
"""

from typing import Protocol


class ProgressReporter(Protocol):
    """Receives status updates from long-running operations."""

    def start(self, message: str) -> None:
        """Begin an activity (shows a spinner in the terminal)."""

    def update(self, message: str) -> None:
        """Replace the text of the current activity."""

    def succeed(self, message: str) -> None:
        """Report a completed step."""

    def fail(self, message: str) -> None:
        """Report a failed step."""

    def info(self, message: str) -> None:
        """Report an informational message."""

    def stop(self) -> None:
        """End the current activity without a message."""


class NullProgress:
    """ProgressReporter that discards everything."""

    def start(self, message: str) -> None:
        pass

    def update(self, message: str) -> None:
        pass

    def succeed(self, message: str) -> None:
        pass

    def fail(self, message: str) -> None:
        pass

    def info(self, message: str) -> None:
        pass

    def stop(self) -> None:
        pass
