"""
relmirror exception hierarchy.

All domain-specific exceptions inherit from RelmirrorError, making it easy
to catch any mirror error with a single base class while still allowing
fine-grained handling when needed.

Hierarchy::

    RelmirrorError
    ├── ConfigurationError        - missing variables, bad interval, bad config file
    └── SyncError                 - anything that goes wrong during a pass
        ├── ArtifactSyncError     - one artifact failed (download, write, rename, ...)
        └── TargetDirectoryError  - target directory could not be created
"""

from __future__ import annotations


class RelmirrorError(Exception):
    """Base exception for all relmirror errors."""

    def __init__(self, message: str, *, details: dict | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}


# --- Configuration -----------------------------------------------------------


class ConfigurationError(RelmirrorError):
    """Raised when configuration loading, parsing, or validation fails.

    Fatal at startup: the process exits before any network activity.
    """


# --- Sync --------------------------------------------------------------------


class SyncError(RelmirrorError):
    """Raised when part of a sync pass fails."""


class ArtifactSyncError(SyncError):
    """Raised when a single artifact cannot be brought up to date."""

    def __init__(self, artifact: str, step: str, message: str, *, cause: Exception | None = None) -> None:
        full = f"Artifact '{artifact}' failed at {step}: {message}"
        super().__init__(full, details={"artifact": artifact, "step": step})
        self.artifact = artifact
        self.step = step
        if cause is not None:
            self.__cause__ = cause


class TargetDirectoryError(SyncError):
    """Raised when the target directory cannot be created."""

    def __init__(self, path: str, message: str) -> None:
        super().__init__(f"Cannot create target directory {path!r}: {message}", details={"path": path})
        self.path = path
