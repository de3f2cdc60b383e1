"""Unit tests for api_client.auth module."""

import json
from pathlib import Path

from shanoom.api_client.auth import (
    DEFAULT_API_URL,
    CredentialStore,
    default_credential_path,
    resolve_api_url,
)


class TestCredentialPath:
    """Test cases for default_credential_path."""

    def test_honours_override(self, credential_path):
        assert default_credential_path() == credential_path

    def test_defaults_to_home(self, monkeypatch):
        monkeypatch.delenv("SHANOOM_RC")

        assert default_credential_path() == Path.home() / ".shanoomrc"


class TestResolveApiUrl:
    """Test cases for resolve_api_url."""

    def test_explicit_value_wins(self):
        assert resolve_api_url("https://cms.example.com/api/") == "https://cms.example.com/api/"

    def test_adds_trailing_slash(self):
        assert resolve_api_url("https://cms.example.com") == "https://cms.example.com/"

    def test_reads_environment(self):
        assert resolve_api_url() == "http://api.test/"

    def test_falls_back_to_default(self, monkeypatch, tmp_path):
        monkeypatch.delenv("SHANOOM_API_URL")
        monkeypatch.chdir(tmp_path)

        assert resolve_api_url() == DEFAULT_API_URL

    def test_reads_dotenv_in_working_directory(self, monkeypatch, tmp_path):
        monkeypatch.delenv("SHANOOM_API_URL")
        (tmp_path / ".env").write_text("SHANOOM_API_URL=https://from-dotenv.test\n", encoding="utf-8")
        monkeypatch.chdir(tmp_path)

        assert resolve_api_url() == "https://from-dotenv.test/"


class TestCredentialStore:
    """Test cases for CredentialStore."""

    def test_ensure_exists_creates_empty_token(self, credential_path):
        store = CredentialStore(credential_path)

        store.ensure_exists()

        assert json.loads(credential_path.read_text()) == {"token": ""}
        assert store.is_logged_in() is False

    def test_ensure_exists_keeps_existing_token(self, credential_path, logged_in):
        store = CredentialStore(credential_path)

        store.ensure_exists()

        assert store.get_token() == "test-token"

    def test_save_and_clear(self, credential_path):
        store = CredentialStore(credential_path)

        store.save_token("abc")
        assert store.is_logged_in() is True

        store.clear()
        assert credential_path.exists()
        assert store.get_token() == ""

    def test_invalidate_removes_file(self, credential_path, logged_in):
        store = CredentialStore(credential_path)

        store.invalidate()

        assert not credential_path.exists()
        assert store.get_token() == ""

    def test_invalidate_missing_file_is_noop(self, credential_path):
        CredentialStore(credential_path).invalidate()

        assert not credential_path.exists()

    def test_corrupt_file_counts_as_logged_out(self, credential_path):
        credential_path.write_text("{not json", encoding="utf-8")

        assert CredentialStore(credential_path).get_token() == ""

    def test_non_string_token_counts_as_logged_out(self, credential_path):
        credential_path.write_text(json.dumps({"token": 42}), encoding="utf-8")

        assert CredentialStore(credential_path).is_logged_in() is False
