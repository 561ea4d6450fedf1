# vaultsync Auto Sync Scheduler
# Startup divergence check and interval-triggered syncs

import threading
from typing import Optional

from vaultsync.config.schema import SyncConfiguration, parse_interval
from vaultsync.errors import SyncError
from vaultsync.notify import Notifier
from vaultsync.sync.orchestrator import SyncOrchestrator
from vaultsync.sync.result import SyncResult, SyncTrigger


class AutoSyncScheduler:
    """
    Triggers the orchestrator once at startup and then on a fixed interval.

    Interval ticks go through the orchestrator's guard, so a tick that fires
    while an attempt is running is skipped rather than queued.
    """

    def __init__(self, orchestrator: SyncOrchestrator, config: SyncConfiguration, notifier: Notifier):
        self.orchestrator = orchestrator
        self.config = config
        self.notifier = notifier
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def interval_minutes(self) -> int:
        """Configured interval; malformed values count as disabled."""
        return parse_interval(self.config.sync_interval)

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def on_load(self) -> Optional[SyncResult]:
        """
        Check the remote for new commits at startup.

        Runs a full sync when behind and ``sync_on_load`` is enabled,
        otherwise only notifies. Failures are reported, never raised.

        Returns:
            The SyncResult if a sync was run, else None.
        """
        try:
            status = self.orchestrator.check_remote()
        except SyncError as e:
            self.notifier.warning(f"Startup check failed: {e}")
            return None

        if status is None:
            return None

        if status.behind > 0:
            if self.config.sync_on_load:
                return self.orchestrator.sync(SyncTrigger.STARTUP)
            self.notifier.info(f"{status.behind} commits behind remote. Run 'vaultsync sync' to sync.")
        else:
            self.notifier.info("Up to date with remote.")
        return None

    def tick(self) -> SyncResult:
        """Run one interval-triggered sync."""
        return self.orchestrator.sync(SyncTrigger.INTERVAL)

    def start(self, interval_seconds: Optional[float] = None) -> bool:
        """
        Start the recurring trigger.

        Args:
            interval_seconds: Overrides the configured interval.

        Returns:
            True if the trigger is running, False if the interval disables it.
        """
        if interval_seconds is None:
            interval_seconds = self.interval_minutes * 60
        if interval_seconds <= 0:
            return False
        if self.running:
            return True

        self._stop.clear()
        self._thread = threading.Thread(
            target=self._loop,
            args=(interval_seconds,),
            name="vaultsync-interval",
            daemon=True,
        )
        self._thread.start()
        self.notifier.info("Auto sync enabled")
        return True

    def _loop(self, interval_seconds: float) -> None:
        while not self._stop.wait(interval_seconds):
            try:
                self.tick()
            except Exception as e:
                # The next tick still runs
                self.notifier.error(f"Auto sync attempt failed: {e}")

    def stop(self, timeout: Optional[float] = None) -> None:
        """Stop the recurring trigger; an attempt already running completes."""
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None

    def run_forever(self) -> None:
        """Startup check, then block while the interval trigger runs."""
        self.on_load()
        if not self.start():
            return
        try:
            while not self._stop.wait(1.0):
                pass
        finally:
            self.stop()
