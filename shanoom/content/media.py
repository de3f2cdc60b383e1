"""Media resolver: inline files referenced from content data.

Any mapping inside a record's data that carries a string ``src`` field is a
media reference. The traversal first classifies every node into a typed
MediaRef (everything else is plain data), then the resolver reads each
referenced file and stores its base64 bytes in ``record.media`` under the
dotted path of the node. ``record.data`` is left untouched, so the content
hash keeps describing what the user wrote.
"""

import base64
import logging
import os
from dataclasses import dataclass, replace
from typing import Any, Dict, Iterator, List, Union

from .errors import MediaNotFoundError
from .models import ContentRecord, MediaBlob

logger = logging.getLogger(__name__)

SRC_FIELD = "src"


@dataclass(frozen=True)
class MediaRef:
    """A node in content data that points at a local file.

    Attributes:
        key: Dotted path of the node within the data ("" for the top level)
        src: File reference as written by the user
    """
    key: str
    src: str

    @property
    def is_local_file(self) -> bool:
        """True unless ``src`` is a URL or data URI."""
        return "://" not in self.src and not self.src.startswith("data:")


def _child_key(parent: str, child: Any) -> str:
    return f"{parent}.{child}" if parent else str(child)


def iter_media_refs(data: Any, key: str = "") -> Iterator[MediaRef]:
    """Yield every MediaRef reachable from ``data``, depth first.

    Lists are traversed with their indexes as path segments, so a media
    reference inside ``gallery[2]`` has the key ``gallery.2``.
    """
    if isinstance(data, dict):
        is_ref = isinstance(data.get(SRC_FIELD), str)
        if is_ref:
            yield MediaRef(key=key, src=data[SRC_FIELD])
        for child, value in data.items():
            if child == SRC_FIELD and is_ref:
                continue
            yield from iter_media_refs(value, _child_key(key, child))
    elif isinstance(data, list):
        for index, value in enumerate(data):
            yield from iter_media_refs(value, _child_key(key, index))


def _resolve_path(ref: MediaRef, project_root: str, record_path: str) -> str:
    """Resolve a reference against the project root, refusing escapes."""
    relative = ref.src[1:] if ref.src.startswith("/") else ref.src
    real_root = os.path.realpath(project_root)
    real_path = os.path.realpath(os.path.join(real_root, relative))

    if not real_path.startswith(real_root + os.sep) and real_path != real_root:
        raise MediaNotFoundError(ref.src, record_path, "Path is outside the project directory")
    return real_path


def load_media(ref: MediaRef, project_root: str, record_path: str) -> MediaBlob:
    """Read the file behind one reference.

    Raises:
        MediaNotFoundError: If the file cannot be read
    """
    full_path = _resolve_path(ref, project_root, record_path)
    try:
        with open(full_path, "rb") as f:
            payload = f.read()
    except OSError as e:
        raise MediaNotFoundError(ref.src, record_path, e.strerror or str(e)) from e

    return MediaBlob(
        src=base64.b64encode(payload).decode("ascii"),
        ext=os.path.splitext(ref.src)[1],
    )


def resolve_record(record: ContentRecord, project_root: str) -> ContentRecord:
    """Return a copy of ``record`` with its media inlined."""
    media: Dict[str, MediaBlob] = {}
    for ref in iter_media_refs(record.data):
        if not ref.is_local_file:
            logger.debug(f"{record.path}: skipping remote media reference {ref.src}")
            continue
        media[ref.key] = load_media(ref, project_root, record.path)
        logger.debug(f"{record.path}: inlined {ref.src} at '{ref.key}'")

    return replace(record, media=media)


def resolve_media(
    records: Union[ContentRecord, List[ContentRecord]],
    project_root: str,
) -> Union[ContentRecord, List[ContentRecord]]:
    """Inline media for one record or a list of records.

    Args:
        records: A ContentRecord or a list of them
        project_root: Directory that ``src`` paths are relative to

    Returns:
        The same shape as the input, with ``media`` populated

    Raises:
        MediaNotFoundError: If any referenced file is missing (the error
                            names both the file and the record's path)
    """
    if isinstance(records, ContentRecord):
        return resolve_record(records, project_root)
    return [resolve_record(record, project_root) for record in records]
