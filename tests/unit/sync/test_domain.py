"""Unit tests for sync.domain module."""

from unittest.mock import Mock

import pytest

from shanoom.api_client.errors import APIError, ServerUnavailableError
from shanoom.content.errors import ProjectError
from shanoom.sync.domain import (
    DomainBootstrapper,
    domain_name_for,
    normalize_domain_name,
    validate_domain_name,
)


class TestDomainNames:
    """Test cases for domain name normalization and validation."""

    @pytest.mark.parametrize("raw,expected", [
        ("my-site", "my-site"),
        ("  My  Site ", "my-site"),
        ("Docs\tPortal", "docs-portal"),
        ("ABC", "abc"),
    ])
    def test_normalize(self, raw, expected):
        assert normalize_domain_name(raw) == expected

    def test_too_short(self):
        with pytest.raises(ProjectError, match="at least 2 characters"):
            validate_domain_name(" a ")

    def test_from_directory(self, tmp_path):
        root = tmp_path / "My Site"
        root.mkdir()

        assert domain_name_for(str(root)) == "my-site"


class TestDomainBootstrapper:
    """Test cases for DomainBootstrapper.ensure_domain."""

    def test_existing_domain_is_not_recreated(self):
        api = Mock()
        api.get_domain.return_value = {"name": "my-site", "description": "Existing"}

        domain = DomainBootstrapper(api).ensure_domain("my-site", "New description")

        assert domain.name == "my-site"
        assert domain.description == "Existing"
        api.create_domain.assert_not_called()

    def test_missing_domain_is_created(self):
        api = Mock()
        api.get_domain.return_value = None
        api.create_domain.return_value = "Created"
        progress = Mock()

        domain = DomainBootstrapper(api, progress).ensure_domain("My Site", "Marketing site")

        api.get_domain.assert_called_once_with("my-site")
        api.create_domain.assert_called_once_with(
            {"name": "my-site", "description": "Marketing site"}
        )
        progress.succeed.assert_called_once_with('Domain "my-site" has been successfully created.')
        assert domain.name == "my-site"

    def test_domain_object_response_counts_as_created(self):
        api = Mock()
        api.get_domain.return_value = None
        api.create_domain.return_value = {"name": "my-site"}

        DomainBootstrapper(api).ensure_domain("my-site")

        api.create_domain.assert_called_once()

    def test_unexpected_string_response_fails(self):
        api = Mock()
        api.get_domain.return_value = None
        api.create_domain.return_value = "Quota exceeded"

        with pytest.raises(APIError, match="Quota exceeded"):
            DomainBootstrapper(api).ensure_domain("my-site")

    def test_only_checks_once_per_run(self):
        api = Mock()
        api.get_domain.return_value = None
        api.create_domain.return_value = "Created"
        bootstrapper = DomainBootstrapper(api)

        bootstrapper.ensure_domain("my-site")
        bootstrapper.ensure_domain("my-site")

        api.get_domain.assert_called_once()
        api.create_domain.assert_called_once()

    def test_invalid_name_makes_no_request(self):
        api = Mock()

        with pytest.raises(ProjectError):
            DomainBootstrapper(api).ensure_domain("x")

        api.get_domain.assert_not_called()

    def test_lookup_errors_propagate(self):
        api = Mock()
        api.get_domain.side_effect = ServerUnavailableError("http://api.test/")

        with pytest.raises(ServerUnavailableError):
            DomainBootstrapper(api).ensure_domain("my-site")

        api.create_domain.assert_not_called()
