"""
relmirror - mirror the latest release assets of a repository into a local directory.

Checks each configured asset's Last-Modified against the local copy and only
downloads newer ones, replacing files atomically. Runs once or on an interval.
"""

__version__ = "0.1.0"

from relmirror.config import MirrorSettings, load_settings
from relmirror.exceptions import (
    ArtifactSyncError,
    ConfigurationError,
    RelmirrorError,
    SyncError,
    TargetDirectoryError,
)
from relmirror.service import MirrorService, run_service
from relmirror.sync import PassSummary, ReleaseSource, SyncEngine, SyncOutcome, parse_artifact_list
from relmirror.utils.logging import get_logger, setup_logging

__all__ = [
    "__version__",
    # Settings
    "MirrorSettings",
    "load_settings",
    # Sync
    "SyncEngine",
    "ReleaseSource",
    "SyncOutcome",
    "PassSummary",
    "parse_artifact_list",
    # Service
    "MirrorService",
    "run_service",
    # Exceptions
    "RelmirrorError",
    "ConfigurationError",
    "SyncError",
    "ArtifactSyncError",
    "TargetDirectoryError",
    # Logging
    "get_logger",
    "setup_logging",
]
