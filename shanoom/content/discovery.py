"""Discovery of local data files.

Data files are ``**/*.data.{yml,yaml}`` (or ``**/*.data.{js,mjs}`` for the
JS source format) anywhere under the project root, skipping dotfiles,
dot-directories, ``node_modules`` and any configured excluded directories.
"""

import logging
import os
from collections import defaultdict
from typing import Dict, Iterable, List, Optional, Sequence

from .codec import DATA_FILE_PATTERN, SOURCE_FORMAT_EXTENSIONS, content_name
from .errors import ConfigError, DuplicateNameError
from .models import DataFile

logger = logging.getLogger(__name__)

DEFAULT_EXCLUDE = ("node_modules",)


def _extensions(source_format: str) -> Sequence[str]:
    try:
        return SOURCE_FORMAT_EXTENSIONS[source_format]
    except KeyError:
        raise ConfigError(
            f"Unknown source format '{source_format}' "
            f"(expected one of: {', '.join(SOURCE_FORMAT_EXTENSIONS)})",
            "source_format",
        )


def to_relative(full_path: str, project_root: str) -> str:
    """Project-relative path with forward slashes."""
    return os.path.relpath(full_path, project_root).replace(os.sep, "/")


def is_ignored(relative_path: str, exclude: Iterable[str] = DEFAULT_EXCLUDE) -> bool:
    """True if any path segment is a dotfile/dot-directory or excluded."""
    excluded = set(DEFAULT_EXCLUDE) | set(exclude)
    for part in relative_path.replace("\\", "/").split("/"):
        if part in ("", "."):
            continue
        if part.startswith(".") or part in excluded:
            return True
    return False


def is_data_file(
    relative_path: str,
    source_format: str = "yaml",
    exclude: Iterable[str] = DEFAULT_EXCLUDE,
) -> bool:
    """True if the path names a syncable data file for this source format."""
    if relative_path.startswith(".."):
        return False
    match = DATA_FILE_PATTERN.search(relative_path)
    if not match or match.group(2) not in _extensions(source_format):
        return False
    return not is_ignored(relative_path, exclude)


def make_data_file(full_path: str, project_root: str) -> DataFile:
    relative = to_relative(full_path, project_root)
    return DataFile(name=content_name(relative), path=relative, full_path=os.path.abspath(full_path))


def find_data_files(
    project_root: str,
    source_format: str = "yaml",
    exclude: Optional[Iterable[str]] = None,
) -> List[DataFile]:
    """Find every data file under the project root.

    Args:
        project_root: Directory to scan
        source_format: "yaml" or "js"
        exclude: Extra directory names to skip (node_modules is always skipped)

    Returns:
        DataFile list sorted by relative path
    """
    excluded = set(DEFAULT_EXCLUDE) | set(exclude or ())
    _extensions(source_format)

    found: List[DataFile] = []
    for dirpath, dirnames, filenames in os.walk(project_root):
        dirnames[:] = [
            d for d in dirnames
            if not d.startswith(".") and d not in excluded
        ]
        for filename in filenames:
            full_path = os.path.join(dirpath, filename)
            relative = to_relative(full_path, project_root)
            if is_data_file(relative, source_format, excluded):
                found.append(make_data_file(full_path, project_root))

    found.sort(key=lambda f: f.path)
    logger.debug(f"Discovered {len(found)} data file(s) under {project_root}")
    return found


def find_duplicates(files: Iterable[DataFile]) -> Dict[str, List[str]]:
    """Map each content name used more than once to the paths using it."""
    paths_by_name: Dict[str, List[str]] = defaultdict(list)
    for data_file in files:
        paths_by_name[data_file.name].append(data_file.path)
    return {name: paths for name, paths in paths_by_name.items() if len(paths) > 1}


def ensure_unique_names(files: Iterable[DataFile]) -> None:
    """Raise on the first content name shared by several files.

    Raises:
        DuplicateNameError: Naming the content name and every offending path
    """
    duplicates = find_duplicates(files)
    if duplicates:
        name = sorted(duplicates)[0]
        raise DuplicateNameError(name, duplicates[name])
