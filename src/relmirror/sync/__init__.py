"""
Sync subsystem: mirror named release assets into a local directory.
"""

from relmirror.sync.engine import SyncEngine, parse_http_date
from relmirror.sync.types import PassSummary, ReleaseSource, SyncOutcome, parse_artifact_list, staging_path

__all__ = [
    "SyncEngine",
    "ReleaseSource",
    "SyncOutcome",
    "PassSummary",
    "parse_artifact_list",
    "parse_http_date",
    "staging_path",
]
