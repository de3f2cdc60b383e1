"""Project configuration and manifest loading.

A project is the current working directory. It must contain a manifest
(``package.json`` or ``pyproject.toml``), whose ``description`` becomes the
domain description, and may contain a ``.shanoom.yaml`` file tuning how the
CLI talks to the backend.

Configuration file structure (every field optional):
    api_url: "https://api.example.com/"
    source_format: yaml          # or "js"
    exclude: ["node_modules", "dist"]
    max_retries: 20
    retry_delay: 1.0
    connectivity_check: true
    connectivity_host: "1.1.1.1"
    connectivity_port: 53
    request_timeout: 30
    max_workers: 10
"""

import json
import os
import tomllib
from dataclasses import dataclass
from typing import Any, Dict

import yaml

from .codec import SOURCE_FORMAT_EXTENSIONS
from .discovery import DEFAULT_EXCLUDE
from .errors import ConfigError, DataFileReadError, ProjectError
from .models import ProjectConfig

CONFIG_FILE_NAME = ".shanoom.yaml"
MANIFEST_FILES = ("package.json", "pyproject.toml")


@dataclass
class ProjectManifest:
    """The bits of the project manifest the CLI cares about."""
    path: str
    description: str = ""


class ConfigLoader:
    """Loads and validates ``.shanoom.yaml``.

    A missing file means defaults for every field. Unknown fields are
    rejected so typos do not silently fall back to defaults.
    """

    FIELD_TYPES = {
        'api_url': (str,),
        'source_format': (str,),
        'exclude': (list,),
        'max_retries': (int,),
        'retry_delay': (int, float),
        'connectivity_check': (bool,),
        'connectivity_host': (str,),
        'connectivity_port': (int,),
        'request_timeout': (int, float),
        'max_workers': (int,),
    }

    @classmethod
    def load(cls, project_root: str) -> ProjectConfig:
        """Load configuration for a project directory.

        Args:
            project_root: Directory containing ``.shanoom.yaml``

        Returns:
            ProjectConfig with defaults for missing fields

        Raises:
            DataFileReadError: If the file exists but cannot be read
            ConfigError: If the configuration is invalid
        """
        config_path = os.path.join(project_root, CONFIG_FILE_NAME)
        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                content = f.read()
        except FileNotFoundError:
            return ProjectConfig()
        except PermissionError:
            raise DataFileReadError(config_path, 'read', 'Permission denied')
        except OSError as e:
            raise DataFileReadError(config_path, 'read', str(e))

        try:
            config_dict = yaml.safe_load(content)
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML syntax in {config_path}: {e}")

        if config_dict is None:
            return ProjectConfig()

        if not isinstance(config_dict, dict):
            raise ConfigError(
                f"Configuration must be a YAML dictionary, got {type(config_dict).__name__}"
            )

        return cls._parse_config(config_dict)

    @classmethod
    def _parse_config(cls, config_dict: Dict[str, Any]) -> ProjectConfig:
        unknown = sorted(set(config_dict) - set(cls.FIELD_TYPES))
        if unknown:
            raise ConfigError(f"Unknown field(s): {', '.join(unknown)}")

        for field_name, value in config_dict.items():
            expected = cls.FIELD_TYPES[field_name]
            # bool is an int subclass; only accept it where bool is expected
            if isinstance(value, bool) and bool not in expected:
                raise ConfigError("Must be a number, got bool", field_name)
            if not isinstance(value, expected):
                names = " or ".join(t.__name__ for t in expected)
                raise ConfigError(
                    f"Must be {names}, got {type(value).__name__}",
                    field_name,
                )

        source_format = config_dict.get('source_format', 'yaml')
        if source_format not in SOURCE_FORMAT_EXTENSIONS:
            raise ConfigError(
                f"Must be one of {', '.join(SOURCE_FORMAT_EXTENSIONS)}, got '{source_format}'",
                'source_format',
            )

        configured = config_dict.get('exclude', [])
        for entry in configured:
            if not isinstance(entry, str) or not entry.strip():
                raise ConfigError("Entries must be non-empty strings", 'exclude')

        if config_dict.get('max_retries', 0) < 0:
            raise ConfigError("Must not be negative", 'max_retries')

        for field_name in ('connectivity_port', 'max_workers'):
            if config_dict.get(field_name, 1) < 1:
                raise ConfigError("Must be at least 1", field_name)

        for field_name in ('retry_delay', 'request_timeout'):
            if field_name in config_dict and config_dict[field_name] < 0:
                raise ConfigError("Must not be negative", field_name)

        defaults = ProjectConfig()
        return ProjectConfig(
            api_url=config_dict.get('api_url', defaults.api_url),
            source_format=source_format,
            exclude=list(DEFAULT_EXCLUDE) + [e for e in configured if e not in DEFAULT_EXCLUDE],
            max_retries=config_dict.get('max_retries', defaults.max_retries),
            retry_delay=float(config_dict.get('retry_delay', defaults.retry_delay)),
            connectivity_check=config_dict.get('connectivity_check', defaults.connectivity_check),
            connectivity_host=config_dict.get('connectivity_host', defaults.connectivity_host),
            connectivity_port=config_dict.get('connectivity_port', defaults.connectivity_port),
            request_timeout=float(config_dict.get('request_timeout', defaults.request_timeout)),
            max_workers=config_dict.get('max_workers', defaults.max_workers),
        )


def load_manifest(project_root: str) -> ProjectManifest:
    """Find and read the project manifest.

    ``package.json`` wins over ``pyproject.toml`` when both exist. The
    description comes from ``description`` (package.json) or
    ``[project].description`` (pyproject.toml).

    Raises:
        ProjectError: If no manifest exists or it cannot be parsed
    """
    for manifest_name in MANIFEST_FILES:
        manifest_path = os.path.join(project_root, manifest_name)
        if not os.path.isfile(manifest_path):
            continue

        try:
            if manifest_name == "package.json":
                with open(manifest_path, 'r', encoding='utf-8') as f:
                    manifest = json.load(f)
                description = manifest.get("description") if isinstance(manifest, dict) else None
            else:
                with open(manifest_path, 'rb') as f:
                    manifest = tomllib.load(f)
                description = manifest.get("project", {}).get("description")
        except (OSError, ValueError) as e:
            raise ProjectError(f"Could not read {manifest_path}: {e}")

        return ProjectManifest(
            path=manifest_path,
            description=description if isinstance(description, str) else "",
        )

    raise ProjectError(
        f"No project manifest ({' or '.join(MANIFEST_FILES)}) found in {project_root}. "
        f"Run the command in the root directory of your project."
    )

