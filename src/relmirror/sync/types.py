"""
Type definitions for release-asset sync.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

STAGING_PREFIX = ".tmp-"


@dataclass(frozen=True)
class ReleaseSource:
    """
    Where release assets come from.

    Builds ``<host>/<owner>/<repository>/releases/latest/download/<artifact>``,
    the hosting provider's "latest release" asset convention.
    """

    owner: str
    repository: str
    host: str = "https://github.com"

    def url_for(self, artifact_name: str) -> str:
        return f"{self.host.rstrip('/')}/{self.owner}/{self.repository}/releases/latest/download/{artifact_name}"


class SyncOutcome(str, Enum):
    """Result of a successful sync_one call."""

    DOWNLOADED = "downloaded"
    UP_TO_DATE = "up_to_date"


@dataclass
class PassSummary:
    """Counts for one pass; used for the end-of-pass log line."""

    downloaded: list[str] = field(default_factory=list)
    up_to_date: list[str] = field(default_factory=list)
    failed: dict[str, str] = field(default_factory=dict)  # artifact -> reason
    aborted: str | None = None  # set when the pass never reached any artifact

    @property
    def attempted(self) -> int:
        return len(self.downloaded) + len(self.up_to_date) + len(self.failed)


def parse_artifact_list(artifacts_csv: str) -> list[str]:
    """
    Split a comma-separated artifact list.

    Entries are trimmed; empty entries are dropped; order is preserved.
    """
    names = []
    for part in artifacts_csv.split(","):
        name = part.strip()
        if name:
            names.append(name)
    return names


def staging_path(target_dir: Path, artifact_name: str) -> Path:
    """In-progress download location, next to the final file so the swap is a rename."""
    return Path(target_dir) / f"{STAGING_PREFIX}{artifact_name}"
