"""
relmirror long-running service.

Runs a sync pass immediately, then (unless in run-once mode) again on a fixed
interval until SIGINT/SIGTERM. Passes never overlap: the loop runs a pass to
completion, then waits on two sources at once, the interval deadline and the
stop event set by the signal handlers. A signal that arrives mid-pass is seen
at the next wait.
"""

from __future__ import annotations

import asyncio
import signal
from typing import Any

from relmirror.config.duration import format_duration
from relmirror.config.loader import MirrorSettings
from relmirror.sync.engine import SyncEngine
from relmirror.sync.types import PassSummary, ReleaseSource
from relmirror.utils.logging import get_logger

logger = get_logger("relmirror.service")

STOP_SIGNALS = (signal.SIGINT, signal.SIGTERM)


class MirrorService:
    def __init__(self, settings: MirrorSettings, engine: Any):
        """
        Args:
            settings: Validated settings
            engine: Object with an async ``sync_all(source, artifacts_csv, target_dir)``,
                normally a SyncEngine
        """
        self.settings = settings
        self.engine = engine
        self.source = ReleaseSource(owner=settings.owner, repository=settings.repository, host=settings.host)

        self.passes_completed = 0
        self.last_summary: PassSummary | None = None

        self._pass_running = False
        self._stopping = asyncio.Event()
        self._stop_reason: str | None = None

    @property
    def stopping(self) -> bool:
        return self._stopping.is_set()

    def request_stop(self, reason: str = "Stop requested") -> None:
        """Ask the loop to exit at its next wait point. Safe to call repeatedly."""
        if self._stopping.is_set():
            return
        self._stop_reason = reason
        self._stopping.set()

    def _handle_signal(self, sig: signal.Signals) -> None:
        if self._pass_running:
            logger.info(f"Received signal {sig.name}; will shut down after the current pass")
        self.request_stop(f"Received signal {sig.name}")

    async def run_pass(self) -> PassSummary:
        """Run one sync pass over all configured artifacts."""
        self._pass_running = True
        try:
            summary = await self.engine.sync_all(self.source, self.settings.artifacts, self.settings.download_path)
        finally:
            self._pass_running = False
        self.passes_completed += 1
        self.last_summary = summary
        return summary

    async def run(self) -> None:
        """
        Run until done: one pass in run-once mode, otherwise until stopped.
        """
        interval = self.settings.check_interval
        if interval is None:
            logger.info("Check interval set to 0 or empty; running only once")
            logger.info("Starting download check...")
            await self.run_pass()
            logger.info("Run once mode enabled; exiting after initial check.")
            return

        loop = asyncio.get_running_loop()
        installed = self._install_signal_handlers(loop)
        try:
            logger.info(f"Starting scheduled download check (every {format_duration(interval)})...")
            await self.run_pass()

            next_fire = loop.time() + interval
            while True:
                if await self._wait_for_tick(next_fire - loop.time()):
                    logger.info(f"{self._stop_reason}, shutting down gracefully")
                    return

                await self.run_pass()

                # Fixed cadence; after an overrun keep one pending tick and drop the rest
                now = loop.time()
                next_fire += interval
                if next_fire < now:
                    behind = int((now - next_fire) // interval)
                    if behind:
                        logger.warning(f"Pass overran the check interval; skipping {behind} missed tick(s)")
                    next_fire += behind * interval
        finally:
            for sig in installed:
                loop.remove_signal_handler(sig)

    async def _wait_for_tick(self, delay: float) -> bool:
        """Wait until the next tick or a stop request. Returns True if stopping."""
        if self._stopping.is_set():
            return True
        if delay > 0:
            try:
                await asyncio.wait_for(self._stopping.wait(), timeout=delay)
            except asyncio.TimeoutError:
                pass
        # Stop may land in the same instant as the deadline; stop wins
        return self._stopping.is_set()

    def _install_signal_handlers(self, loop: asyncio.AbstractEventLoop) -> list[signal.Signals]:
        installed = []
        for sig in STOP_SIGNALS:
            try:
                loop.add_signal_handler(sig, self._handle_signal, sig)
            except (NotImplementedError, RuntimeError, ValueError) as e:
                # Not available off the main thread or on some platforms
                logger.debug(f"Cannot install handler for {sig.name}: {e}")
                continue
            installed.append(sig)
        return installed


async def serve(settings: MirrorSettings) -> MirrorService:
    """Build the engine and service, run to completion, and close the engine."""
    async with SyncEngine(
        pool_size=settings.pool_size,
        chunk_size=settings.chunk_size,
        timeout=settings.request_timeout,
    ) as engine:
        service = MirrorService(settings, engine)
        await service.run()
    return service


def run_service(settings: MirrorSettings) -> None:
    """
    Run the mirror service (blocking).

    Args:
        settings: Validated settings, see relmirror.config.load_settings
    """
    logger.info(
        f"Mirroring {settings.owner}/{settings.repository} artifacts [{settings.artifacts}] "
        f"into {settings.download_path}"
    )
    asyncio.run(serve(settings))
