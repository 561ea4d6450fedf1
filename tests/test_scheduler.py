# Tests for vaultsync.sync.scheduler and vaultsync.sync.backends
# Startup check, interval trigger and backend selection

import threading
from unittest.mock import MagicMock, patch

import pytest

from vaultsync.config.schema import BackendChoice, SyncConfiguration, parse_interval
from vaultsync.content import DirectContentSyncEngine
from vaultsync.errors import NetworkError, RepoAccessError
from vaultsync.git.embedded import EmbeddedGitEngine
from vaultsync.git.engine import BackendKind, WorkingTreeStatus
from vaultsync.git.native import NativeGitEngine
from vaultsync.sync.backends import HostCapabilities, build_backend, choose_backend_kind
from vaultsync.sync.result import SyncResult, SyncTrigger
from vaultsync.sync.scheduler import AutoSyncScheduler


@pytest.fixture
def orchestrator() -> MagicMock:
    mock = MagicMock()
    mock.sync.side_effect = lambda trigger=SyncTrigger.MANUAL: SyncResult(trigger=trigger)
    return mock


class TestOnLoad:
    """Tests for the startup divergence check."""

    def test_behind_prompts_manual_sync(self, orchestrator, notifier):
        orchestrator.check_remote.return_value = WorkingTreeStatus(clean=True, behind=3)
        scheduler = AutoSyncScheduler(orchestrator, SyncConfiguration(), notifier)

        assert scheduler.on_load() is None
        orchestrator.sync.assert_not_called()
        assert notifier.of("info") == ["3 commits behind remote. Run 'vaultsync sync' to sync."]

    def test_behind_syncs_when_enabled(self, orchestrator, notifier):
        orchestrator.check_remote.return_value = WorkingTreeStatus(clean=True, behind=1)
        scheduler = AutoSyncScheduler(orchestrator, SyncConfiguration(sync_on_load=True), notifier)

        result = scheduler.on_load()

        assert result.trigger == SyncTrigger.STARTUP
        orchestrator.sync.assert_called_once_with(SyncTrigger.STARTUP)

    def test_up_to_date(self, orchestrator, notifier):
        orchestrator.check_remote.return_value = WorkingTreeStatus(clean=True, ahead=2)
        AutoSyncScheduler(orchestrator, SyncConfiguration(sync_on_load=True), notifier).on_load()

        orchestrator.sync.assert_not_called()
        assert notifier.of("info") == ["Up to date with remote."]

    def test_failure_is_reported_not_raised(self, orchestrator, notifier):
        orchestrator.check_remote.side_effect = NetworkError("Fetch error", "offline")
        scheduler = AutoSyncScheduler(orchestrator, SyncConfiguration(), notifier)

        assert scheduler.on_load() is None
        assert notifier.of("warning") == ["Startup check failed: Fetch error: offline"]

    def test_not_applicable(self, orchestrator, notifier):
        orchestrator.check_remote.return_value = None
        assert AutoSyncScheduler(orchestrator, SyncConfiguration(), notifier).on_load() is None
        assert notifier.messages == []


class TestInterval:
    """Tests for the recurring trigger."""

    @pytest.mark.parametrize(
        "value,expected",
        [(10, 10), ("15", 15), (2.7, 2), (0, 0), (-5, 0), ("soon", 0), (None, 0), (True, 0), ("nan", 0), ("inf", 0)],
    )
    def test_parse_interval(self, value, expected):
        assert parse_interval(value) == expected

    def test_malformed_interval_disables(self, orchestrator, notifier):
        config = SyncConfiguration(sync_interval="every hour")
        scheduler = AutoSyncScheduler(orchestrator, config, notifier)

        assert scheduler.interval_minutes == 0
        assert scheduler.start() is False
        assert not scheduler.running

    def test_tick_uses_interval_trigger(self, orchestrator, notifier):
        scheduler = AutoSyncScheduler(orchestrator, SyncConfiguration(sync_interval=5), notifier)
        assert scheduler.tick().trigger == SyncTrigger.INTERVAL

    def test_start_and_stop(self, orchestrator, notifier):
        ticked = threading.Event()
        orchestrator.sync.side_effect = lambda trigger: ticked.set() or SyncResult(trigger=trigger)
        scheduler = AutoSyncScheduler(orchestrator, SyncConfiguration(sync_interval=5), notifier)

        assert scheduler.start(interval_seconds=0.01) is True
        assert scheduler.running
        assert ticked.wait(5)

        scheduler.stop(timeout=5)
        assert not scheduler.running
        assert "Auto sync enabled" in notifier.of("info")
        orchestrator.sync.assert_called_with(SyncTrigger.INTERVAL)

    def test_unexpected_error_keeps_trigger_alive(self, orchestrator, notifier):
        attempts: list[int] = []
        recovered = threading.Event()

        def flaky_sync(trigger):
            attempts.append(1)
            if len(attempts) < 3:
                raise IsADirectoryError("sync_history.log is a directory")
            recovered.set()
            return SyncResult(trigger=trigger)

        orchestrator.sync.side_effect = flaky_sync
        scheduler = AutoSyncScheduler(orchestrator, SyncConfiguration(sync_interval=5), notifier)
        try:
            scheduler.start(interval_seconds=0.01)
            assert recovered.wait(5)
            assert scheduler.running
        finally:
            scheduler.stop(timeout=5)

        assert notifier.of("error")[:2] == ["Auto sync attempt failed: sync_history.log is a directory"] * 2

    def test_start_is_idempotent(self, orchestrator, notifier):
        scheduler = AutoSyncScheduler(orchestrator, SyncConfiguration(sync_interval=60), notifier)
        try:
            assert scheduler.start() is True
            assert scheduler.start() is True
            assert notifier.of("info").count("Auto sync enabled") == 1
        finally:
            scheduler.stop(timeout=5)


class TestBackendSelection:
    """Tests for choose_backend_kind and build_backend."""

    def test_auto_prefers_native(self):
        caps = HostCapabilities(can_spawn_processes=True, embedded_toolkit=object())
        assert choose_backend_kind(BackendChoice.AUTO, caps) == BackendKind.NATIVE

    def test_auto_falls_back_to_embedded(self):
        caps = HostCapabilities(can_spawn_processes=False, embedded_toolkit=object())
        assert choose_backend_kind(BackendChoice.AUTO, caps) == BackendKind.EMBEDDED

    def test_auto_falls_back_to_content_api(self):
        caps = HostCapabilities(can_spawn_processes=False)
        assert choose_backend_kind(BackendChoice.AUTO, caps) == BackendKind.CONTENT_API

    def test_explicit_content_api(self):
        caps = HostCapabilities(can_spawn_processes=True)
        assert choose_backend_kind(BackendChoice.CONTENT_API, caps) == BackendKind.CONTENT_API

    def test_explicit_embedded_without_toolkit(self):
        with pytest.raises(RepoAccessError, match="Embedded git backend unavailable"):
            choose_backend_kind(BackendChoice.EMBEDDED, HostCapabilities())

    @patch("vaultsync.sync.backends.can_spawn_processes", return_value=False)
    def test_detect(self, mock_spawn):
        assert HostCapabilities.detect().can_spawn_processes is False

    def test_build_native(self, sync_config, vault):
        config = sync_config.model_copy(update={"git_path": "/opt/git/bin/", "network_timeout": 12.0})
        engine = build_backend(config, vault, HostCapabilities())

        assert isinstance(engine, NativeGitEngine)
        assert engine.git_binary.endswith("git")
        assert engine.timeout == 12.0

    def test_build_embedded(self, sync_config, vault, toolkit):
        caps = HostCapabilities(can_spawn_processes=False, embedded_toolkit=toolkit)
        engine = build_backend(sync_config, vault, caps, host="tablet")

        assert isinstance(engine, EmbeddedGitEngine)
        assert engine.author.name == "tablet"
        assert engine.fs.base_path == vault.get_base_path()

    def test_build_content_api(self, sync_config, vault):
        config = sync_config.model_copy(update={"backend": BackendChoice.CONTENT_API})
        engine = build_backend(config, vault, HostCapabilities())

        assert isinstance(engine, DirectContentSyncEngine)
        assert engine.exclude == [".git", ".trash"]
