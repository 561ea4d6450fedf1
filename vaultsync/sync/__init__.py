# vaultsync Sync Module
# Backend selection, orchestration and scheduling

from vaultsync.sync.backends import HostCapabilities, build_backend, choose_backend_kind
from vaultsync.sync.history import SyncHistory
from vaultsync.sync.orchestrator import SyncOrchestrator
from vaultsync.sync.result import PIPELINE, StepOutcome, StepResult, SyncResult, SyncStep, SyncTrigger
from vaultsync.sync.scheduler import AutoSyncScheduler

__all__ = [
    # Results
    "SyncStep",
    "StepOutcome",
    "StepResult",
    "SyncResult",
    "SyncTrigger",
    "PIPELINE",
    # Backends
    "HostCapabilities",
    "build_backend",
    "choose_backend_kind",
    # Orchestration
    "SyncOrchestrator",
    "AutoSyncScheduler",
    "SyncHistory",
]
