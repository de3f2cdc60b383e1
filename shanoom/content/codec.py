"""Content codec: data file text to ContentRecord, plus the content hash.

A data file is either YAML (``*.data.yml`` / ``*.data.yaml``) or a JS object
literal (``*.data.js`` / ``*.data.mjs``). The JS dialect is never executed:
the ``module.exports =`` / ``export default`` prefix and trailing semicolon
are stripped and the remainder is parsed as JSON5.

The hash is a signed CRC-32 of the compact JSON serialization of ``data``,
keys in insertion order, rendered as a decimal string. It matches what the
backend stores, so equal hashes mean "nothing to send".
"""

import base64
import json
import logging
import math
import os
import re
import zlib
from datetime import date, datetime, time
from typing import Any, Dict, Optional

import json5
import yaml

from .errors import ContentHashError, DataFileReadError, InvalidDataFileError
from .models import ContentRecord

logger = logging.getLogger(__name__)

YAML_EXTENSIONS = ("yml", "yaml")
JS_EXTENSIONS = ("js", "mjs")

SOURCE_FORMAT_EXTENSIONS = {
    "yaml": YAML_EXTENSIONS,
    "js": JS_EXTENSIONS,
}

DATA_FILE_PATTERN = re.compile(r'([^/\\]+)\.data\.(yml|yaml|js|mjs)$')

JS_EXPORT_PREFIX = re.compile(r'(module\.exports\s*=\s*|export\s+default\s*)')
JS_TRAILING_SEMICOLON = re.compile(r';\s*$')

_MISSING = object()


def hash_content(content: Any = _MISSING) -> str:
    """Hash a string with CRC-32 and return the signed decimal value.

    Non-string input hashes to "0"; calling without content (or with None)
    raises.

    Args:
        content: The text to hash (normally canonical JSON)

    Returns:
        Signed 32-bit CRC as a string, e.g. ``hash_content("test") == "-662733300"``

    Raises:
        ContentHashError: If no content is given
    """
    if content is _MISSING or content is None:
        raise ContentHashError()

    if not isinstance(content, str):
        return "0"

    value = zlib.crc32(content.encode("utf-8"))
    if value >= 2 ** 31:
        value -= 2 ** 32
    return str(value)


def canonical_json(data: Any) -> str:
    """Serialize data as compact JSON, keys in insertion order."""
    return json.dumps(data, separators=(",", ":"), ensure_ascii=False)


def hash_data(data: Dict[str, Any]) -> str:
    return hash_content(canonical_json(data))


def content_name(file_path: str) -> str:
    """Derive the content name from a data file path.

    ``pages/user.data.yaml`` gives ``user``. Paths that do not follow the
    ``<name>.data.<ext>`` convention fall back to the part of the base name
    before the first dot.
    """
    match = DATA_FILE_PATTERN.search(file_path)
    if match:
        return match.group(1)
    return os.path.basename(file_path).split(".")[0]


def source_format_for(file_path: str, default: str = "yaml") -> str:
    ext = os.path.splitext(file_path)[1].lstrip(".").lower()
    if ext in YAML_EXTENSIONS:
        return "yaml"
    if ext in JS_EXTENSIONS:
        return "js"
    return default


def _canonical_key(key: Any) -> str:
    if isinstance(key, bool):
        return "true" if key else "false"
    if key is None:
        return "null"
    return str(key)


def canonicalize(value: Any) -> Any:
    """Normalize a parsed value into plain JSON-compatible types.

    YAML can produce timestamps, binary blobs, sets and non-string keys;
    these become ISO strings, base64 strings, lists and string keys.
    Integral floats become ints and non-finite floats become None, the
    way a JSON number round-trips.
    """
    if isinstance(value, dict):
        return {_canonical_key(k): canonicalize(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [canonicalize(v) for v in value]
    if isinstance(value, (set, frozenset)):
        return [canonicalize(v) for v in value]
    if isinstance(value, bool) or value is None or isinstance(value, (int, str)):
        return value
    if isinstance(value, float):
        if not math.isfinite(value):
            return None
        if value.is_integer():
            return int(value)
        return value
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    if isinstance(value, bytes):
        return base64.b64encode(value).decode("ascii")
    return str(value)


def _parse_yaml(text: str, file_path: str) -> Any:
    try:
        return yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise InvalidDataFileError(file_path, f"Invalid YAML syntax: {e}") from e


def _parse_js_object(text: str, file_path: str) -> Any:
    # Comments before the export stay in place; JSON5 skips them
    body = JS_EXPORT_PREFIX.sub("", text, count=1)
    body = JS_TRAILING_SEMICOLON.sub("", body)
    try:
        return json5.loads(body)
    except ValueError as e:
        raise InvalidDataFileError(file_path, f"Invalid JS object: {e}") from e


def parse_data(text: str, file_path: str, source_format: Optional[str] = None) -> Dict[str, Any]:
    """Parse data file text into a canonical mapping.

    Empty (or whitespace-only) text yields an empty mapping. A document
    whose top level is not a mapping is coerced to an empty mapping.

    Args:
        text: Raw file text
        file_path: Path used for format detection and error messages
        source_format: "yaml" or "js"; detected from the extension if omitted

    Returns:
        Insertion-ordered dict of JSON-compatible values

    Raises:
        InvalidDataFileError: If the text cannot be parsed
    """
    trimmed = text.strip()
    if not trimmed:
        return {}

    fmt = source_format or source_format_for(file_path)
    if fmt == "js":
        parsed = _parse_js_object(trimmed, file_path)
    else:
        parsed = _parse_yaml(trimmed, file_path)

    if not isinstance(parsed, dict):
        if parsed is not None:
            logger.warning(
                f"{file_path}: top level is {type(parsed).__name__}, not a mapping; "
                f"treating it as empty"
            )
        return {}

    return canonicalize(parsed)


def build_record(name: str, path: str, data: Dict[str, Any]) -> ContentRecord:
    return ContentRecord(name=name, path=path, data=data, hash=hash_data(data))


def parse_text(text: str, file_path: str, name: Optional[str] = None) -> ContentRecord:
    """Build a ContentRecord from already-read text."""
    data = parse_data(text, file_path)
    return build_record(name or content_name(file_path), file_path, data)


def parse_file(full_path: str, relative_path: Optional[str] = None) -> ContentRecord:
    """Read and parse one data file.

    Args:
        full_path: Absolute path to read
        relative_path: Path stored on the record (defaults to ``full_path``)

    Returns:
        ContentRecord with name, path, data and hash

    Raises:
        DataFileReadError: If the file cannot be read
        InvalidDataFileError: If the file cannot be parsed
    """
    record_path = relative_path or full_path
    try:
        with open(full_path, "r", encoding="utf-8") as f:
            text = f.read()
    except FileNotFoundError:
        raise DataFileReadError(record_path, "read", "File not found")
    except PermissionError:
        raise DataFileReadError(record_path, "read", "Permission denied")
    except (OSError, UnicodeDecodeError) as e:
        raise DataFileReadError(record_path, "read", str(e))

    return parse_text(text, record_path)


def serialize_data(data: Dict[str, Any], file_path: str) -> str:
    """Render data in the format implied by the file extension.

    YAML files keep key order; JS files become an ``export default`` module.
    """
    if source_format_for(file_path) == "js":
        return "export default " + json.dumps(data, indent=2, ensure_ascii=False) + ";\n"

    if not data:
        return ""
    return yaml.safe_dump(
        data,
        default_flow_style=False,
        allow_unicode=True,
        sort_keys=False,
    )
