"""Local content handling: data files, records, hashing and media.

This package turns local ``*.data.*`` files into ContentRecords, computes the
content hash the backend compares against, inlines referenced media files,
and loads per-project configuration.
"""

from .codec import hash_content, parse_file, parse_text, serialize_data
from .errors import (
    ContentError,
    DataFileReadError,
    InvalidDataFileError,
    DuplicateNameError,
    MediaNotFoundError,
    ContentHashError,
    ConfigError,
    ProjectError,
)
from .models import ContentRecord, DataFile, Domain, MediaBlob, SyncDecision, SyncOutcome

__all__ = [
    'hash_content',
    'parse_file',
    'parse_text',
    'serialize_data',
    'ContentError',
    'DataFileReadError',
    'InvalidDataFileError',
    'DuplicateNameError',
    'MediaNotFoundError',
    'ContentHashError',
    'ConfigError',
    'ProjectError',
    'ContentRecord',
    'DataFile',
    'Domain',
    'MediaBlob',
    'SyncDecision',
    'SyncOutcome',
]
