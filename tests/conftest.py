"""Root pytest configuration for all tests.

Every test gets its own credential file and API URL so nothing touches the
real home directory or a running backend.
"""

import json
import logging

import pytest

logging.getLogger("watchdog").setLevel(logging.WARNING)


@pytest.fixture(autouse=True)
def isolated_environment(tmp_path, monkeypatch):
    """Point the credential file and API URL at throwaway values."""
    monkeypatch.setenv("SHANOOM_RC", str(tmp_path / "shanoomrc"))
    monkeypatch.setenv("SHANOOM_API_URL", "http://api.test/")


@pytest.fixture
def credential_path(tmp_path):
    return tmp_path / "shanoomrc"


@pytest.fixture
def logged_in(credential_path):
    """Store a token so authenticated calls are allowed."""
    credential_path.write_text(json.dumps({"token": "test-token"}), encoding="utf-8")
    return "test-token"


@pytest.fixture
def project_dir(tmp_path):
    """An empty project named "my-site" with a package.json manifest."""
    root = tmp_path / "my-site"
    root.mkdir()
    (root / "package.json").write_text(
        json.dumps({"name": "my-site", "description": "Marketing site"}),
        encoding="utf-8",
    )
    return root
