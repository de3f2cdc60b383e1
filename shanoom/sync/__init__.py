"""Synchronization of local data files with a remote domain.

This package reconciles local data files against the backend (engine),
bootstraps the project's domain (domain) and turns filesystem events into
incremental syncs (watcher).
"""

from .domain import DomainBootstrapper, domain_name_for, normalize_domain_name, validate_domain_name
from .engine import FATAL_ERRORS, EventKind, FileEvent, SyncEngine, decide, describe_outcome
from .progress import NullProgress, ProgressReporter
from .watcher import ChangeWatcher, DataFileEventHandler

__all__ = [
    'DomainBootstrapper',
    'domain_name_for',
    'normalize_domain_name',
    'validate_domain_name',
    'FATAL_ERRORS',
    'EventKind',
    'FileEvent',
    'SyncEngine',
    'decide',
    'describe_outcome',
    'NullProgress',
    'ProgressReporter',
    'ChangeWatcher',
    'DataFileEventHandler',
]
