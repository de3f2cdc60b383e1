"""In-memory stand-in for ContentAPI.

Behaves like the backend for the content and domain verbs the sync engine
uses: create and update answer "No changes" when the stored hash already
matches, delete of a missing item returns None, and every call is recorded
in ``calls`` so tests can assert on the exact requests made.
"""

import threading
from typing import Any, Dict, List, Optional, Tuple


WRITE_VERBS = ("create_content", "update_content", "delete_content")


class FakeContentAPI:
    """Thread-safe fake backend holding one or more domains."""

    def __init__(self, domains: Optional[Dict[str, Dict[str, Dict[str, Any]]]] = None):
        self.domains: Dict[str, Dict[str, Dict[str, Any]]] = domains or {}
        self.calls: List[Tuple[str, tuple]] = []
        self._lock = threading.Lock()

    def _record(self, verb: str, *args: Any) -> None:
        with self._lock:
            self.calls.append((verb, args))

    def calls_to(self, verb: str) -> List[tuple]:
        with self._lock:
            return [args for name, args in self.calls if name == verb]

    @property
    def writes(self) -> List[Tuple[str, tuple]]:
        with self._lock:
            return [call for call in self.calls if call[0] in WRITE_VERBS]

    # Domains

    def get_domain(self, domain_name: str) -> Optional[Dict[str, Any]]:
        self._record("get_domain", domain_name)
        if domain_name in self.domains:
            return {"name": domain_name, "description": ""}
        return None

    def create_domain(self, data: Dict[str, Any]) -> str:
        self._record("create_domain", data)
        self.domains.setdefault(data["name"], {})
        return "Created"

    # Content

    def list_contents(self, domain_name: str) -> List[Dict[str, Any]]:
        self._record("list_contents", domain_name)
        with self._lock:
            return [dict(item) for item in self.domains.get(domain_name, {}).values()]

    def get_content(self, domain_name: str, name: str) -> Optional[Dict[str, Any]]:
        self._record("get_content", domain_name, name)
        with self._lock:
            item = self.domains.get(domain_name, {}).get(name)
            return dict(item) if item else None

    def count_contents(self, domain_name: str) -> int:
        self._record("count_contents", domain_name)
        return len(self.domains.get(domain_name, {}))

    def create_content(self, domain_name: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        self._record("create_content", domain_name, payload)
        with self._lock:
            items = self.domains.setdefault(domain_name, {})
            existing = items.get(payload["name"])
            if existing and existing["hash"] == payload["hash"]:
                action = "No changes"
            else:
                items[payload["name"]] = dict(payload)
                action = "Created"
        return {"action": action, "name": payload["name"], "path": payload["path"]}

    def update_content(self, domain_name: str, name: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        self._record("update_content", domain_name, name, payload)
        with self._lock:
            items = self.domains.setdefault(domain_name, {})
            existing = items.get(name)
            if existing and existing["hash"] == payload["hash"]:
                action = "No changes"
            else:
                items[name] = dict(payload)
                action = "Updated"
        return {"action": action, "name": name, "path": payload["path"]}

    def delete_content(self, domain_name: str, name: str) -> Optional[Dict[str, Any]]:
        self._record("delete_content", domain_name, name)
        with self._lock:
            item = self.domains.get(domain_name, {}).pop(name, None)
        if item is None:
            return None
        return {"action": "Deleted", "name": name, "path": item.get("path")}
