"""Data models for local content.

This module defines the data models shared by the codec, media resolver and
sync engine. All models use dataclasses for clean, type-safe data structures.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class DataFile:
    """A discovered local data file.

    Attributes:
        name: Content name derived from the base name (``user`` for
              ``pages/user.data.yaml``)
        path: Path relative to the project root, using forward slashes
        full_path: Absolute path on disk
    """
    name: str
    path: str
    full_path: str


@dataclass
class MediaBlob:
    """Inlined bytes of a file referenced by a ``src`` field.

    Attributes:
        src: Base64-encoded file content
        ext: File extension including the dot (e.g. ".png")
    """
    src: str
    ext: str


@dataclass
class ContentRecord:
    """One named content item built from a local data file.

    Attributes:
        name: Unique key within the domain
        path: Source file path relative to the project root
        data: User-authored payload (insertion-ordered, JSON-compatible)
        hash: Signed CRC-32 of the canonical JSON of ``data``, as a string
        media: Resolved media keyed by dotted field path (empty until the
               media resolver has run)

    Example:
        >>> record = ContentRecord(name="user", path="user.data.yaml",
        ...                        data={"name": "Ada"}, hash="...")
    """
    name: str
    path: str
    data: Dict[str, Any] = field(default_factory=dict)
    hash: str = ""
    media: Dict[str, MediaBlob] = field(default_factory=dict)

    def to_payload(self) -> Dict[str, Any]:
        """Build the JSON body sent to the backend for create/update."""
        payload: Dict[str, Any] = {
            "name": self.name,
            "path": self.path,
            "hash": self.hash,
            "data": self.data,
        }
        if self.media:
            payload["media"] = {
                key: {"src": blob.src, "ext": blob.ext}
                for key, blob in self.media.items()
            }
        return payload


@dataclass
class Domain:
    """Remote namespace matching the project directory.

    Attributes:
        name: Normalized domain name (trimmed, hyphenated, lower-case)
        description: Optional description taken from the project manifest
    """
    name: str
    description: str = ""

    def to_payload(self) -> Dict[str, Any]:
        return {"name": self.name, "description": self.description}


class SyncDecision(Enum):
    """What reconciliation decided to do for one content item."""
    CREATE = "Create"
    UPDATE = "Update"
    DELETE = "Delete"
    NO_CHANGE = "NoChange"


# Actions reported by the backend for create/update/delete
ACTION_CREATED = "Created"
ACTION_UPDATED = "Updated"
ACTION_DELETED = "Deleted"
ACTION_NO_CHANGES = "No changes"


@dataclass
class SyncOutcome:
    """Result of one reconcile-and-apply cycle.

    Attributes:
        name: Content name
        path: Source file path relative to the project root
        decision: Local reconciliation decision
        action: Backend-reported action ("Created", "Updated", "Deleted",
                "No changes"), None when the cycle failed
        error: Error message when the cycle failed for this file only
    """
    name: str
    path: str
    decision: Optional[SyncDecision] = None
    action: Optional[str] = None
    error: Optional[str] = None

    @property
    def changed(self) -> bool:
        return self.error is None and self.action not in (None, ACTION_NO_CHANGES)


@dataclass
class BulkSyncResult:
    """Aggregated outcome of a bulk reconciliation pass."""
    outcomes: List[SyncOutcome] = field(default_factory=list)

    @property
    def created(self) -> List[SyncOutcome]:
        return [o for o in self.outcomes if o.action == ACTION_CREATED]

    @property
    def updated(self) -> List[SyncOutcome]:
        return [o for o in self.outcomes if o.action == ACTION_UPDATED]

    @property
    def unchanged(self) -> List[SyncOutcome]:
        return [o for o in self.outcomes if o.action == ACTION_NO_CHANGES]

    @property
    def failed(self) -> List[SyncOutcome]:
        return [o for o in self.outcomes if o.error is not None]


@dataclass
class ProjectConfig:
    """Per-project settings from ``.shanoom.yaml`` (all optional).

    Attributes:
        api_url: Backend base URL (None means environment / default)
        source_format: "yaml" for ``*.data.{yml,yaml}`` or "js" for
                       ``*.data.{js,mjs}``
        exclude: Directory names never scanned or watched
        max_retries: Connectivity retries before giving up
        retry_delay: Seconds between connectivity retries
        connectivity_check: Probe for internet access before each request
        connectivity_host: Host used by the connectivity probe
        connectivity_port: Port used by the connectivity probe
        request_timeout: HTTP timeout in seconds
        max_workers: Parallel requests during a bulk pass
    """
    api_url: Optional[str] = None
    source_format: str = "yaml"
    exclude: List[str] = field(default_factory=lambda: ["node_modules"])
    max_retries: int = 20
    retry_delay: float = 1.0
    connectivity_check: bool = True
    connectivity_host: str = "1.1.1.1"
    connectivity_port: int = 53
    request_timeout: float = 30.0
    max_workers: int = 10
