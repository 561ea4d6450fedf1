# vaultsync Sync Orchestrator
# Runs the sync state machine against whichever backend the host supports

import threading
from collections.abc import Callable
from datetime import datetime
from typing import Optional

from vaultsync.config.schema import SyncConfiguration, credential_provider
from vaultsync.errors import RemoteConfigError, SyncError
from vaultsync.git.engine import (
    CommitAuthor,
    PullOptions,
    PushOptions,
    SyncBackend,
    WorkingTreeStatus,
    build_commit_message,
)
from vaultsync.notify import Notifier
from vaultsync.sync.backends import HostCapabilities, build_backend
from vaultsync.sync.history import SyncHistory
from vaultsync.sync.result import StepOutcome, SyncResult, SyncStep, SyncTrigger
from vaultsync.utils.platform import get_host_identifier
from vaultsync.vault import Vault

BackendFactory = Callable[[], SyncBackend]

# Notification prefix per failing step
_FAILURE_MESSAGES: dict[SyncStep, str] = {
    SyncStep.DETECT_STATUS: "Cannot read repository status",
    SyncStep.COMMIT: "Commit error",
    SyncStep.CONFIGURE_REMOTE: "Remote configuration failed",
    SyncStep.FETCH: "Fetch failed",
    SyncStep.PULL: "Pull failed",
    SyncStep.PUSH: "Push failed",
}


class SyncOrchestrator:
    """
    Executes sync attempts one at a time.

    Each attempt builds a fresh backend, then runs
    detect status -> stage+commit (if dirty) -> configure remote -> fetch ->
    pull -> push (if committed). The first fatal failure ends the attempt and
    the steps after it are recorded as skipped;
    push failure is reported without undoing the local commit. A request made
    while another attempt holds the guard is skipped, never queued.
    """

    def __init__(
        self,
        config: SyncConfiguration,
        vault: Vault,
        notifier: Notifier,
        *,
        capabilities: Optional[HostCapabilities] = None,
        backend_factory: Optional[BackendFactory] = None,
        history: Optional[SyncHistory] = None,
        host: Optional[str] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        """
        Initialize orchestrator.

        Args:
            config: Sync configuration (read-only).
            vault: Host vault.
            notifier: User notification side-channel.
            capabilities: Host capabilities (detected when omitted).
            backend_factory: Overrides backend construction.
            history: Optional history log recording each attempt.
            host: Device identifier (hostname by default).
            clock: Time source for commit messages.
        """
        self.config = config
        self.vault = vault
        self.notifier = notifier
        self.capabilities = capabilities or HostCapabilities.detect()
        self.backend_factory = backend_factory
        self.history = history
        self.host = host or get_host_identifier()
        self.clock = clock
        self._guard = threading.Lock()

    @property
    def busy(self) -> bool:
        """True while a sync attempt or remote check is running."""
        return self._guard.locked()

    def make_backend(self) -> SyncBackend:
        """Construct the backend for one attempt."""
        if self.backend_factory is not None:
            return self.backend_factory()
        return build_backend(self.config, self.vault, self.capabilities, notifier=self.notifier, host=self.host)

    def sync(self, trigger: SyncTrigger = SyncTrigger.MANUAL) -> SyncResult:
        """
        Run one sync attempt.

        Args:
            trigger: What requested the attempt.

        Returns:
            SyncResult; ``skipped`` is set when another attempt was in flight.
        """
        if not self._guard.acquire(blocking=False):
            self.notifier.info("Sync already in progress, skipping")
            return SyncResult(trigger=trigger, skipped=True)

        try:
            result = self._run(trigger)
        finally:
            self._guard.release()

        if self.history is not None:
            self.history.record(result, self.clock())
        return result

    def check_remote(self) -> Optional[WorkingTreeStatus]:
        """
        Fetch and report divergence without staging, committing or pushing.

        Returns:
            Status with ahead/behind counts, or None when the backend keeps
            no history or another attempt is running.

        Raises:
            SyncError: If fetching or status detection fails.
        """
        if not self._guard.acquire(blocking=False):
            return None
        try:
            backend = self.make_backend()
            remote, branch = self.config.remote_name, self.config.branch
            if not backend.fetch(remote, branch, credential_provider(self.config)):
                return None
            # Missing remote branch is fine here; only the counts matter
            backend.track_upstream(remote, branch)
            return backend.status()
        finally:
            self._guard.release()

    def _fail(self, result: SyncResult, step: SyncStep, error: SyncError) -> SyncResult:
        result.record(step, StepOutcome.FAILED, error=error)
        result.abort_remaining()
        self.notifier.error(f"{_FAILURE_MESSAGES[step]}: {error}")
        return result

    def _run(self, trigger: SyncTrigger) -> SyncResult:
        result = SyncResult(trigger=trigger)
        config = self.config
        credentials = credential_provider(config)

        try:
            backend = self.make_backend()
        except SyncError as e:
            return self._fail(result, SyncStep.DETECT_STATUS, e)

        result.backend = backend.kind
        self.notifier.info(f"Syncing to remote ({backend.kind.value})")

        try:
            status = backend.status()
        except SyncError as e:
            return self._fail(result, SyncStep.DETECT_STATUS, e)
        result.record(
            SyncStep.DETECT_STATUS,
            StepOutcome.SUCCEEDED,
            "clean" if status.clean else f"{len(status.changed_paths)} changed",
        )

        message = build_commit_message(self.host, self.clock())
        if status.dirty:
            try:
                staged = backend.stage_all(status)
                commit_id = backend.commit(message, CommitAuthor(name=self.host))
            except SyncError as e:
                return self._fail(result, SyncStep.COMMIT, e)
            if commit_id is None:
                result.record(SyncStep.COMMIT, StepOutcome.SKIPPED, "nothing to commit")
            else:
                result.commit_id = commit_id
                result.record(SyncStep.COMMIT, StepOutcome.SUCCEEDED, f"{len(staged)} files: {commit_id}")
        else:
            result.record(SyncStep.COMMIT, StepOutcome.SKIPPED, "working tree clean")
            self.notifier.info("Working branch clean")

        try:
            if not config.remote_url:
                raise RemoteConfigError("No remote URL configured")
            previous_url = backend.remote_url(config.remote_name)
            binding = backend.configure_remote(config.remote_name, config.remote_url)
        except SyncError as e:
            return self._fail(result, SyncStep.CONFIGURE_REMOTE, e)
        if binding.url != config.remote_url:
            self.notifier.warning(
                f"Remote '{binding.name}' already points to {binding.url}; it is not rebound to {config.remote_url}"
            )
        elif previous_url and previous_url != binding.url:
            self.notifier.info(f"Remote '{binding.name}' rebound from {previous_url} to {binding.url}")
        result.record(SyncStep.CONFIGURE_REMOTE, StepOutcome.SUCCEEDED, f"{binding.name} -> {binding.url}")

        try:
            fetched = backend.fetch(config.remote_name, config.branch, credentials)
        except SyncError as e:
            return self._fail(result, SyncStep.FETCH, e)
        if fetched:
            result.record(SyncStep.FETCH, StepOutcome.SUCCEEDED)
            self.notifier.success(f"Successfully set remote {config.remote_name} url")
        else:
            result.record(SyncStep.FETCH, StepOutcome.SKIPPED, "not applicable")

        try:
            pulled = backend.pull(config.remote_name, config.branch, PullOptions(rebase=False), credentials)
        except SyncError as e:
            return self._fail(result, SyncStep.PULL, e)
        if pulled is None:
            result.record(SyncStep.PULL, StepOutcome.SKIPPED, "not applicable")
        else:
            detail = f"{pulled.changes} changes" if pulled.changes is not None else ""
            result.record(SyncStep.PULL, StepOutcome.SUCCEEDED, detail)
            if pulled.changes:
                self.notifier.success(f"Pulled {pulled.changes} changes")

        if not result.committed:
            result.record(SyncStep.PUSH, StepOutcome.SKIPPED, "nothing committed")
        else:
            try:
                pushed = backend.push(config.remote_name, config.branch, PushOptions(set_upstream=True), credentials)
            except SyncError as e:
                return self._fail(result, SyncStep.PUSH, e)
            detail = f"{len(pushed.uploaded)} uploaded" if pushed.uploaded else ""
            result.record(SyncStep.PUSH, StepOutcome.SUCCEEDED, detail)
            self.notifier.success(f"Pushed on {message}")

        result.state = SyncStep.DONE
        return result
