"""
Release asset sync engine.

One pass walks the configured artifact list in order. For each artifact:

- if a local copy exists, a HEAD request reads the remote ``Last-Modified``;
  when it is not newer than the local mtime the artifact is skipped,
- otherwise the body is streamed to ``.tmp-<name>`` next to the target and
  renamed over it, then the file's mtime is set to the remote ``Last-Modified``
  so the next pass compares like with like.

Anything that prevents the freshness check from confirming the local copy
(network error, missing or unparseable header) results in a download.
"""

from __future__ import annotations

import asyncio
import os
import time
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from pathlib import Path
from typing import IO, Any

import aiohttp
from aiohttp import hdrs

from relmirror.exceptions import ArtifactSyncError, TargetDirectoryError
from relmirror.sync.types import PassSummary, ReleaseSource, SyncOutcome, parse_artifact_list, staging_path
from relmirror.utils.logging import get_logger

logger = get_logger("relmirror.sync")

# Transport-level failures of a single request
TRANSPORT_ERRORS = (aiohttp.ClientError, asyncio.TimeoutError)

# Seconds allowed to establish a connection; transfers themselves are unbounded by default
CONNECT_TIMEOUT = 30.0


def parse_http_date(value: str) -> datetime:
    """
    Parse an HTTP date header (e.g. ``Wed, 21 Oct 2015 07:28:00 GMT``).

    Returns an aware datetime; dates without zone information are taken as UTC.

    Raises:
        ValueError: If the value is not a valid HTTP date
    """
    try:
        parsed = parsedate_to_datetime(value)
    except (TypeError, ValueError, IndexError) as e:
        raise ValueError(f"unparseable HTTP date {value!r}") from e
    if parsed is None:
        raise ValueError(f"unparseable HTTP date {value!r}")
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _discard(path: Path) -> None:
    """Best-effort removal of a staging file."""
    try:
        path.unlink(missing_ok=True)
    except OSError as e:
        logger.debug(f"Could not remove staging file {path}: {e}")


class SyncEngine:
    """
    Mirrors release assets into a local directory.

    Holds one HTTP session (bounded connection pool) for its whole lifetime so
    repeated requests to the same host reuse connections across artifacts and
    passes. Use as an async context manager, or call close() when done.

    Example:
        ```python
        source = ReleaseSource(owner="acme", repository="tools")
        async with SyncEngine(pool_size=4) as engine:
            await engine.sync_all(source, "cli-linux-amd64, checksums.txt", "/srv/mirror")
        ```
    """

    def __init__(
        self,
        pool_size: int = 4,
        chunk_size: int = 64 * 1024,
        timeout: float | None = None,
    ):
        """
        Args:
            pool_size: Maximum simultaneous connections kept by the session
            chunk_size: Read size when streaming a body to disk
            timeout: Total per-request timeout in seconds. None or 0 means no total
                limit, so large assets may take as long as they need; connecting
                is still bounded by CONNECT_TIMEOUT.
        """
        if pool_size <= 0:
            raise ValueError("pool_size must be > 0")
        if chunk_size <= 0:
            raise ValueError("chunk_size must be > 0")
        self.pool_size = pool_size
        self.chunk_size = chunk_size
        # aiohttp would otherwise apply its 5 minute total default
        self.timeout = aiohttp.ClientTimeout(total=timeout or None, sock_connect=CONNECT_TIMEOUT)

        self.session: aiohttp.ClientSession | None = None
        self._session_lock = asyncio.Lock()

    async def _ensure_session(self) -> aiohttp.ClientSession:
        """Ensure session exists, creating it if needed."""
        async with self._session_lock:
            if self.session is None or self.session.closed:
                from relmirror import __version__

                self.session = aiohttp.ClientSession(
                    connector=aiohttp.TCPConnector(limit=self.pool_size),
                    headers={hdrs.USER_AGENT: f"relmirror/{__version__}"},
                    timeout=self.timeout,
                )
            return self.session

    async def __aenter__(self) -> "SyncEngine":
        await self._ensure_session()
        return self

    async def __aexit__(self, exc_type: type[BaseException] | None, exc_val: BaseException | None, exc_tb: Any) -> None:
        await self.close()

    async def close(self) -> None:
        """Close the HTTP session and its connection pool."""
        async with self._session_lock:
            if self.session and not self.session.closed:
                await self.session.close()
            self.session = None

    async def sync_all(self, source: ReleaseSource, artifacts_csv: str, target_dir: str | Path) -> PassSummary:
        """
        Run one pass over a comma-separated artifact list.

        The target directory is created if missing; if that fails the pass is
        abandoned. Each artifact is synced in listed order and a failure only
        affects that artifact. Errors are logged, never raised.

        Returns:
            PassSummary for logging/observability
        """
        summary = PassSummary()
        target_dir = Path(target_dir)

        try:
            target_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            err = TargetDirectoryError(str(target_dir), str(e))
            logger.error(f"{err}; skipping this pass")
            summary.aborted = str(err)
            return summary

        for name in parse_artifact_list(artifacts_csv):
            url = source.url_for(name)
            try:
                outcome = await self.sync_one(url, name, target_dir)
            except ArtifactSyncError as e:
                logger.error(f"Failed to sync artifact {name}: {e}")
                summary.failed[name] = str(e)
                continue
            except Exception as e:
                logger.exception(f"Unexpected error syncing artifact {name}: {e}")
                summary.failed[name] = f"unexpected error: {e}"
                continue

            if outcome is SyncOutcome.DOWNLOADED:
                summary.downloaded.append(name)
            else:
                summary.up_to_date.append(name)

        log_level = logger.warning if summary.failed else logger.info
        log_level(
            f"Pass complete: {summary.attempted} artifact(s), {len(summary.downloaded)} downloaded, "
            f"{len(summary.up_to_date)} up to date, {len(summary.failed)} failed"
        )
        return summary

    async def sync_one(self, url: str, artifact_name: str, target_dir: str | Path) -> SyncOutcome:
        """
        Bring one artifact up to date.

        Args:
            url: Full source URL of the artifact
            artifact_name: File name, used verbatim under target_dir
            target_dir: Local directory (must exist)

        Returns:
            SyncOutcome.UP_TO_DATE if the local copy was confirmed current,
            SyncOutcome.DOWNLOADED if a new copy was put in place

        Raises:
            ArtifactSyncError: If downloading, writing, renaming or timestamping failed
        """
        local_path = Path(target_dir) / artifact_name
        logger.info(f"Processing artifact: {artifact_name}")

        session = await self._ensure_session()

        try:
            local_mtime: float | None = local_path.stat().st_mtime
        except OSError:
            local_mtime = None

        if local_mtime is not None and await self._is_current(session, url, artifact_name, local_mtime):
            return SyncOutcome.UP_TO_DATE

        await self._download(session, url, artifact_name, local_path)
        return SyncOutcome.DOWNLOADED

    async def _is_current(
        self, session: aiohttp.ClientSession, url: str, artifact_name: str, local_mtime: float
    ) -> bool:
        """Freshness check: True only when the remote copy is confirmed not newer."""
        try:
            # Release download URLs redirect to the storage host that carries Last-Modified
            async with session.head(url, allow_redirects=True) as response:
                last_modified = response.headers.get(hdrs.LAST_MODIFIED)
        except (*TRANSPORT_ERRORS, ValueError) as e:
            logger.warning(f"Error performing HEAD request for {url}: {e}; proceeding to download")
            return False

        if not last_modified:
            logger.info(f"No Last-Modified header for {url}; proceeding to download")
            return False

        try:
            remote_mtime = parse_http_date(last_modified)
        except ValueError as e:
            logger.warning(f"Error parsing Last-Modified header for {url}: {e}; proceeding to download")
            return False

        local_dt = datetime.fromtimestamp(local_mtime, tz=timezone.utc)
        if remote_mtime.timestamp() > local_mtime:
            logger.info(
                f"New version available for {artifact_name} "
                f"(remote mod time: {remote_mtime.isoformat()}, local mod time: {local_dt.isoformat()})"
            )
            return False

        logger.info(
            f"No new version available for {artifact_name} "
            f"(remote mod time: {remote_mtime.isoformat()}, local mod time: {local_dt.isoformat()})"
        )
        return True

    async def _download(
        self, session: aiohttp.ClientSession, url: str, artifact_name: str, local_path: Path
    ) -> None:
        """GET the artifact into its staging file, rename it into place, then stamp its mtime."""
        logger.info(f"Downloading {artifact_name} from {url}")
        tmp_path = staging_path(local_path.parent, artifact_name)

        try:
            async with session.get(url) as response:
                if not 200 <= response.status <= 299:
                    reason = f"{response.status} {response.reason or ''}".strip()
                    raise ArtifactSyncError(artifact_name, "download", f"HTTP status {reason}")

                last_modified = response.headers.get(hdrs.LAST_MODIFIED)

                try:
                    with open(tmp_path, "wb") as out:
                        size = await self._copy_body(response, out)
                except (*TRANSPORT_ERRORS, OSError) as e:
                    _discard(tmp_path)
                    raise ArtifactSyncError(
                        artifact_name, "write", f"error saving file {tmp_path}: {e}", cause=e
                    ) from e
        except TRANSPORT_ERRORS as e:
            raise ArtifactSyncError(artifact_name, "download", f"error downloading {url}: {e}", cause=e) from e
        except ValueError as e:
            # Malformed URL
            raise ArtifactSyncError(artifact_name, "request", f"invalid request for {url}: {e}", cause=e) from e

        logger.info(f"Successfully downloaded {artifact_name} ({size} bytes)")

        try:
            os.replace(tmp_path, local_path)
        except OSError as e:
            _discard(tmp_path)
            raise ArtifactSyncError(
                artifact_name, "rename", f"error moving file {tmp_path} to {local_path}: {e}", cause=e
            ) from e
        logger.debug(f"Moved staging file {tmp_path} to {local_path}")

        if last_modified:
            try:
                remote_mtime = parse_http_date(last_modified)
            except ValueError as e:
                raise ArtifactSyncError(
                    artifact_name, "timestamp", f"error parsing Last-Modified header {last_modified!r}", cause=e
                ) from e
            try:
                os.utime(local_path, (time.time(), remote_mtime.timestamp()))
            except OSError as e:
                raise ArtifactSyncError(
                    artifact_name, "timestamp", f"error setting modification time: {e}", cause=e
                ) from e

    async def _copy_body(self, response: aiohttp.ClientResponse, out: IO[bytes]) -> int:
        """Stream the response body into an open file; returns bytes written."""
        written = 0
        async for chunk in response.content.iter_chunked(self.chunk_size):
            out.write(chunk)
            written += len(chunk)
        return written
